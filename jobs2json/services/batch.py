from __future__ import annotations

from jobs2json.core.config import AppConfig
from jobs2json.pipeline.orchestrator import BatchOrchestrator
from jobs2json.scrape.extractor import FieldExtractor
from jobs2json.scrape.fetcher import HttpFetcher
from jobs2json.scrape.schema import DEFAULT_SCHEMA, ExtractionSchema, load_schema, merge_schema


def build_schema(cfg: AppConfig) -> ExtractionSchema:
    """Default job-page schema, or the configured schema file merged over or replacing it."""
    if not cfg.schema_file:
        return DEFAULT_SCHEMA
    loaded = load_schema(cfg.schema_file)
    return merge_schema(DEFAULT_SCHEMA, loaded) if cfg.schema_merge else loaded


def build_orchestrator(cfg: AppConfig) -> BatchOrchestrator:
    """Wire the HTTP fetcher and schema extractor into an orchestrator."""
    # extractor first: a bad schema or parser fails before a session is opened
    extractor = FieldExtractor(build_schema(cfg), parser=cfg.parser)
    fetcher = HttpFetcher(timeout=cfg.timeout, pool_size=cfg.pool_size, max_connections=cfg.max_connections)
    return BatchOrchestrator(fetcher, extractor, pool_size=cfg.pool_size)
