"""
Unit tests for prefix stripping.
"""

import pytest

from assetserver.http import HTTPResponse
from assetserver.middleware.rewrite import (
    PathRewriter,
    PathRewriteMiddleware,
    create_path_rewriter,
)


class TestPathRewriter:

    def test_strips_prefix(self):
        assert PathRewriter("/static").rewrite("/static/img.png") == "/img.png"

    def test_strips_only_one_occurrence(self):
        assert PathRewriter("/static").rewrite("/static/static/a.css") == "/static/a.css"

    @pytest.mark.parametrize("path", ["/img.png", "/", "/assets/static/x.js", "static/x.js"])
    def test_paths_without_prefix_are_unchanged(self, path):
        assert PathRewriter("/static").rewrite(path) == path

    @pytest.mark.parametrize("suffix", ["", "/", "/a", "/deep/er/file.css"])
    def test_prefix_plus_suffix_yields_suffix(self, suffix):
        path = "/static" + suffix
        rewritten = PathRewriter("/static").rewrite(path)

        assert rewritten == suffix
        assert len(rewritten) < len(path)

    def test_match_is_not_segment_aware(self):
        assert PathRewriter("/static").rewrite("/staticfoo/a.js") == "foo/a.js"

    def test_prefix_property(self):
        assert PathRewriter("/app").prefix == "/app"


class TestCreatePathRewriter:

    @pytest.mark.parametrize("prefix", ["", "/"])
    def test_disabled_prefixes(self, prefix):
        assert create_path_rewriter(prefix) is None

    def test_enabled_prefix(self):
        rewriter = create_path_rewriter("/static")
        assert isinstance(rewriter, PathRewriter)
        assert rewriter.rewrite("/static/a") == "/a"


class TestPathRewriteMiddleware:

    def test_next_sees_rewritten_path(self, make_request):
        seen = []

        def next_handler(request):
            seen.append(request.path)
            return HTTPResponse()

        original = make_request("GET", "/static/img.png", {"If-None-Match": "x"})
        PathRewriteMiddleware(PathRewriter("/static"))(original, next_handler)

        assert seen == ["/img.png"]
        # The caller's request is left as it was.
        assert original.path == "/static/img.png"

    def test_unmatched_request_passed_as_is(self, make_request):
        seen = []
        request = make_request("GET", "/img.png")

        PathRewriteMiddleware(PathRewriter("/static"))(
            request, lambda r: seen.append(r) or HTTPResponse()
        )

        assert seen[0] is request
