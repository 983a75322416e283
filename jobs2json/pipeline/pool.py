"""Bounded worker pool: closable work queue, completion barrier and worker threads."""

from __future__ import annotations

import contextvars
import threading
from collections import deque
from typing import Callable, Deque, List, Optional

from jobs2json.core.errors import FetchError, ParseError, PoolStartupError, QueueClosedError
from jobs2json.infra.logging import get_unified_logger, log_error
from jobs2json.pipeline.aggregator import ResultAggregator
from jobs2json.scrape.extractor import FieldExtractor
from jobs2json.scrape.fetcher import Fetcher

logger = get_unified_logger("pipeline", "worker")


class WorkQueue:
    """Single-batch channel of URLs, many consumers, closed once by the producer.

    ``get`` blocks while the queue is empty and open and returns ``None`` once it
    is closed and drained. ``maxsize > 0`` makes ``put`` block while full.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self.maxsize = maxsize
        self._items: Deque[str] = deque()
        self._closed = False
        self._cond = threading.Condition()

    def put(self, url: str) -> None:
        with self._cond:
            while not self._closed and self.maxsize > 0 and len(self._items) >= self.maxsize:
                self._cond.wait()
            if self._closed:
                raise QueueClosedError("work queue is closed")
            self._items.append(url)
            self._cond.notify_all()

    def get(self) -> Optional[str]:
        with self._cond:
            while not self._items and not self._closed:
                self._cond.wait()
            if not self._items:
                return None
            url = self._items.popleft()
            self._cond.notify_all()
            return url

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)


class CompletionBarrier:
    """Count-down latch: ``wait`` returns once ``arrive`` was called ``count`` times."""

    def __init__(self, count: int) -> None:
        if count < 0:
            raise ValueError("count must be >= 0")
        self._remaining = count
        self._cond = threading.Condition()

    def arrive(self) -> None:
        with self._cond:
            if self._remaining <= 0:
                raise RuntimeError("barrier already complete")
            self._remaining -= 1
            if self._remaining == 0:
                self._cond.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._remaining == 0, timeout=timeout)

    @property
    def remaining(self) -> int:
        with self._cond:
            return self._remaining


class WorkerPool:
    """Start exactly ``pool_size`` threads that fetch, extract and aggregate.

    A failure on one URL drops that URL's record and the worker moves on; it
    never stops siblings or the batch.
    """

    def __init__(self, pool_size: int, fetcher: Fetcher, extractor: FieldExtractor) -> None:
        if pool_size < 1:
            raise ValueError(f"pool_size must be >= 1, got {pool_size}")
        self.pool_size = pool_size
        self.fetcher = fetcher
        self.extractor = extractor

    def _handle(self, url: str, aggregator: ResultAggregator) -> None:
        try:
            document = self.fetcher.fetch(url)
            record = self.extractor.extract(document, url)
        except (FetchError, ParseError) as e:
            logger.debug("dropped url=%s: %s", url, e)
            aggregator.mark_failed(url)
            return
        except Exception as e:
            log_error("pipeline", "worker", e, f"unexpected failure for {url}")
            aggregator.mark_failed(url)
            return
        aggregator.append(record)

    def _work(self, queue: WorkQueue, aggregator: ResultAggregator, barrier: CompletionBarrier) -> None:
        handled = 0
        try:
            while True:
                url = queue.get()
                if url is None:
                    break
                self._handle(url, aggregator)
                handled += 1
        finally:
            logger.trace("worker done, handled=%d", handled)  # type: ignore[attr-defined]
            barrier.arrive()

    def _spawn(self, name: str, target: Callable[[], None]) -> threading.Thread:
        t = threading.Thread(target=target, name=name, daemon=True)
        t.start()
        return t

    def start(self, queue: WorkQueue, aggregator: ResultAggregator) -> CompletionBarrier:
        """Start the workers and return the barrier they arrive at when they exit.

        Raises :class:`PoolStartupError` when not every worker could be started;
        the queue is closed and workers that did start are waited for first.
        """
        barrier = CompletionBarrier(self.pool_size)
        started: List[threading.Thread] = []
        for i in range(self.pool_size):
            # each worker logs with the MDC of the batch that started it
            ctx = contextvars.copy_context()
            try:
                started.append(
                    self._spawn(
                        f"j2j-worker-{i + 1}", lambda ctx=ctx: ctx.run(self._work, queue, aggregator, barrier)
                    )
                )
            except RuntimeError as e:
                queue.close()
                for _ in range(self.pool_size - len(started)):
                    barrier.arrive()
                barrier.wait()
                raise PoolStartupError(
                    f"started {len(started)} of {self.pool_size} workers: {e}"
                ) from e
        return barrier

    def run(self, queue: WorkQueue, aggregator: ResultAggregator) -> None:
        """Start the workers and block until all of them have exited."""
        self.start(queue, aggregator).wait()
