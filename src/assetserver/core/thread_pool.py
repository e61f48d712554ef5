"""
=============================================================================
WORKER THREAD POOL
=============================================================================

A fixed set of worker threads pulling connections off a bounded queue:

    accept loop ──submit()──►  [conn][conn][conn]...   (queue_size slots)
                                   │
                     ┌─────────────┼─────────────┐
                     ▼             ▼             ▼
                 Worker-0      Worker-1  ...  Worker-N

When every slot is taken, submit() returns False instead of blocking, and
the server answers that connection with 503 straight from the accept loop.

Shutdown uses one "poison pill" (None) per worker; a worker that takes a
pill out of the queue exits its loop.

=============================================================================
"""

import queue
import threading
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


@dataclass
class Task:
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)


class Worker(threading.Thread):
    """Runs tasks until it receives a poison pill."""

    def __init__(self, task_queue: "queue.Queue[Optional[Task]]", worker_id: int):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.busy = False
        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")
        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                self._execute(task)
            finally:
                self.task_queue.task_done()
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute(self, task: Task):
        self.busy = True
        try:
            task.func(*task.args, **task.kwargs)
            self.tasks_completed += 1
        except Exception as e:
            # A failing task must not take the worker down with it.
            logger.exception(f"Worker {self.worker_id} task failed: {e}")
            self.tasks_failed += 1
        finally:
            self.busy = False


class ThreadPool:
    """
    Fixed-size pool of worker threads.

        pool = ThreadPool(workers=8, queue_size=256)
        pool.start()
        if not pool.submit(handle_connection, args=(conn,)):
            reject(conn)                  # queue full
        ...
        pool.shutdown()
    """

    def __init__(self, workers: int = 8, queue_size: int = 256):
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self.workers = workers
        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._threads: list[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutting_down = False

    def start(self) -> None:
        with self._lock:
            if self._started:
                return
            logger.info(f"Starting thread pool with {self.workers} workers")
            for worker_id in range(self.workers):
                worker = Worker(self._task_queue, worker_id)
                self._threads.append(worker)
                worker.start()
            self._started = True

    def submit(self, func: Callable[..., Any], args: tuple = (), kwargs: Optional[dict] = None) -> bool:
        """
        Queue func(*args, **kwargs) without blocking.

        Returns:
            True if queued, False if the queue is full.

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self._started or self._shutting_down:
            raise RuntimeError("Thread pool is not running")

        try:
            self._task_queue.put_nowait(Task(func, args, kwargs or {}))
            return True
        except queue.Full:
            return False

    def shutdown(self, wait: bool = True, timeout: float = 5.0) -> None:
        """
        Stop all workers.

        Args:
            wait: Join the workers, so queued tasks finish first.
            timeout: Per-worker join timeout in seconds.
        """
        with self._lock:
            if not self._started or self._shutting_down:
                return
            self._shutting_down = True

        logger.info("Shutting down thread pool...")
        for _ in self._threads:
            self._task_queue.put(None)

        if wait:
            for worker in self._threads:
                worker.join(timeout=timeout)

        self._threads.clear()
        self._started = False
        logger.info("Thread pool shutdown complete")

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._threads if w.busy)

    @property
    def queued(self) -> int:
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        return {
            "workers": len(self._threads),
            "busy": self.busy_workers,
            "queued": self.queued,
            "completed": sum(w.tasks_completed for w in self._threads),
            "failed": sum(w.tasks_failed for w in self._threads),
        }
