from __future__ import annotations

import time
import uuid
from typing import Iterable, List

from jobs2json.core.config import DEFAULT_POOL_SIZE
from jobs2json.core.errors import PoolStartupError
from jobs2json.core.models import BatchResult, Record
from jobs2json.infra.logging import (
    log_batch_processing,
    log_task_end,
    log_task_start,
    mdc_get,
    mdc_put,
    mdc_remove,
)
from jobs2json.pipeline.aggregator import ResultAggregator
from jobs2json.pipeline.pool import WorkerPool, WorkQueue
from jobs2json.scrape.extractor import FieldExtractor
from jobs2json.scrape.fetcher import Fetcher


class BatchOrchestrator:
    """Run one batch of URLs through a fresh worker pool per call.

    Holds only read-only collaborators, so concurrent calls for unrelated
    batches share nothing mutable.
    """

    def __init__(self, fetcher: Fetcher, extractor: FieldExtractor, pool_size: int = DEFAULT_POOL_SIZE) -> None:
        if pool_size < 1:
            raise ValueError(f"pool_size must be >= 1, got {pool_size}")
        self.fetcher = fetcher
        self.extractor = extractor
        self.pool_size = pool_size

    def run(self, urls: Iterable[str]) -> BatchResult:
        batch = list(urls)
        previous_id = mdc_get("batch")
        mdc_put("batch", uuid.uuid4().hex[:8])
        started_at = time.perf_counter()
        log_task_start("pipeline", "batch", {"urls": len(batch), "pool_size": self.pool_size})
        try:
            queue = WorkQueue(maxsize=self.pool_size)
            aggregator = ResultAggregator()
            try:
                barrier = WorkerPool(self.pool_size, self.fetcher, self.extractor).start(queue, aggregator)
            except PoolStartupError as e:
                log_task_end("pipeline", "batch", False, {"error": str(e)})
                raise
            try:
                for url in batch:
                    queue.put(url)
            finally:
                queue.close()
            barrier.wait()

            records = aggregator.snapshot()
            failed_urls = aggregator.failed_urls()
            result = BatchResult(
                total=len(batch),
                success=len(records),
                failed=len(failed_urls),
                records=records,
                failed_urls=failed_urls,
            )
            log_batch_processing(
                "pipeline",
                "batch",
                "fetch_extract",
                result.total,
                result.success,
                result.failed,
                time.perf_counter() - started_at,
                "success",
            )
            log_task_end("pipeline", "batch", True, {"records": result.success, "dropped": result.failed})
            return result
        finally:
            if previous_id is None:
                mdc_remove("batch")
            else:
                mdc_put("batch", previous_id)

    def process(self, urls: Iterable[str]) -> List[Record]:
        """Fetch and extract every URL; URLs that fail are left out of the result."""
        return self.run(urls).records
