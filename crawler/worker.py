"""
Bounded worker pool for the crawler.
A fixed set of threads pulls tasks from one bounded queue; handlers may submit
more tasks while they run, and wait_finalize() returns once every task,
including the ones spawned by other tasks, has been handled.
"""

import queue
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")


class PoolState(Enum):
    CREATED = "CREATED"
    RUNNING = "RUNNING"
    DRAINING = "DRAINING"
    FINALIZED = "FINALIZED"


class PoolError(Exception):
    """Raised on pool misuse: bad worker count, double start, submit outside RUNNING."""
    pass


@dataclass(frozen=True)
class TaskFailure(Generic[T]):
    task: T
    error: BaseException
    worker: str


class PoolWorker(threading.Thread):
    """
    Worker thread.
    Runs in a loop: dequeue task, run the pool handler, drain the local backlog, mark done.
    Exits on the None sentinel.
    The backlog holds tasks this worker submitted while the queue was full.
    """

    def __init__(self, pool, name):
        super().__init__(name=name, daemon=True)
        self.pool = pool
        self.backlog = deque()

    def run(self):
        self.pool.logger.with_context(self.name).debug("started")
        while True:
            task = self.pool._queue.get()
            try:
                if task is None:
                    break
                self.pool._execute(task, self.name)
                while self.backlog:
                    self.pool._execute(self.backlog.popleft(), self.name, inline=True)
            finally:
                self.pool._queue.task_done()
        self.pool.logger.with_context(self.name).debug("stopped")


class WorkerPool(Generic[T]):
    """
    FLOW: start() launches workers -> submit() counts the task as outstanding, then queues it ->
    workers run the handler and count it done in a finally block ->
    wait_finalize() blocks until nothing is outstanding, then closes the queue and joins workers.

    INVARIANT: the outstanding counter is incremented before a task is queued and decremented
    only after its handler, including every submit it made, has returned. So the counter
    cannot reach zero while any task could still produce work.
    """

    def __init__(self, logger, queue_size: Optional[int] = None, metrics=None, name_prefix: str = "worker"):
        self.logger = logger
        self.metrics = metrics
        self.name_prefix = name_prefix
        self._queue_size = queue_size
        self._queue = None
        self._handler: Optional[Callable[[T], None]] = None
        self._workers: List[PoolWorker] = []
        self._cond = threading.Condition()
        self._state = PoolState.CREATED
        self._outstanding = 0
        self._submitted = 0
        self._completed = 0
        self._inline = 0
        self._failures: List[TaskFailure] = []

    @property
    def state(self) -> PoolState:
        with self._cond:
            return self._state

    @property
    def worker_count(self) -> int:
        return len(self._workers)

    def start(self, worker_count: int, handler: Callable[[T], None]) -> None:
        if worker_count <= 0:
            raise PoolError(f"Worker count should be number greater than zero, got {worker_count}")
        with self._cond:
            if self._state is not PoolState.CREATED:
                raise PoolError(f"Pool already started (state {self._state.value})")
            self._handler = handler
            self._queue = queue.Queue(maxsize=self._queue_size or worker_count)
            self._workers = [
                PoolWorker(self, f"{self.name_prefix}-{i + 1}") for i in range(worker_count)
            ]
            self._state = PoolState.RUNNING
        for worker in self._workers:
            worker.start()
        self.logger.info(f"Worker pool started with {worker_count} workers (queue capacity {self._queue.maxsize})")

    def submit(self, task: T) -> None:
        """
        Registers one unit of outstanding work, then queues it.
        External submitters block while the queue is full. A pool worker that
        finds the queue full keeps the task in its own backlog and runs it after
        the current task returns, since blocking every worker on put would leave
        nobody to drain the queue. The backlog is drained in a loop, so nesting
        depth stays flat however deep the crawl goes.
        """
        with self._cond:
            if self._state is not PoolState.RUNNING:
                raise PoolError(f"Cannot submit to a pool in state {self._state.value}")
            self._outstanding += 1
            self._submitted += 1

        current = threading.current_thread()
        if getattr(current, "pool", None) is not self:
            self._queue.put(task)
            return
        try:
            self._queue.put_nowait(task)
        except queue.Full:
            with self._cond:
                self._inline += 1
            current.backlog.append(task)

    def wait_finalize(self) -> List[TaskFailure]:
        """Block until all outstanding work is done, then stop and join every worker."""
        with self._cond:
            if self._state is PoolState.CREATED:
                raise PoolError("Pool was never started")
            if self._state is PoolState.FINALIZED:
                return list(self._failures)
            while self._outstanding > 0:
                self._cond.wait()
            self._state = PoolState.DRAINING

        for _ in self._workers:
            self._queue.put(None)
        for worker in self._workers:
            worker.join()

        with self._cond:
            self._state = PoolState.FINALIZED
            failures = list(self._failures)
        self.logger.info(f"Worker pool finalized: {self._completed} tasks, {len(failures)} failed, {self._inline} inline")
        return failures

    def failures(self) -> List[TaskFailure]:
        with self._cond:
            return list(self._failures)

    def stats(self) -> dict:
        with self._cond:
            return {
                "submitted": self._submitted,
                "completed": self._completed,
                "failed": len(self._failures),
                "inline": self._inline,
                "outstanding": self._outstanding,
            }

    def _execute(self, task, worker_name, inline=False):
        failed = False
        try:
            self._handler(task)
        except Exception as e:
            failed = True
            with self._cond:
                self._failures.append(TaskFailure(task=task, error=e, worker=worker_name))
            self.logger.with_context(worker_name).error(f"Task {task!r} failed: {e}", exc_info=e)
        finally:
            if self.metrics is not None:
                self.metrics.record_task(worker_name, failed=failed, inline=inline)
            with self._cond:
                self._outstanding -= 1
                self._completed += 1
                if self._outstanding == 0:
                    self._cond.notify_all()
