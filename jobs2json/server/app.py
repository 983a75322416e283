"""HTTP boundary: ``POST /get_jobs`` takes a JSON array of URLs and returns extracted records.

Request::

    POST /get_jobs
    Content-Type: application/json

    ["https://www.example.com/viewjob?jk=8cfd54301d909668", ...]

Response (order not related to the request order; URLs that fail are left out)::

    [{"title": "...", "location": "...", "company": "...", "url": "..."}, ...]
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException

from jobs2json import __version__
from jobs2json.core.config import AppConfig, resolve_config
from jobs2json.core.errors import PoolStartupError
from jobs2json.infra.logging import get_unified_logger
from jobs2json.pipeline.orchestrator import BatchOrchestrator
from jobs2json.services.batch import build_orchestrator

logger = get_unified_logger("server", "http")


def create_app(
    orchestrator: Optional[BatchOrchestrator] = None, config: Optional[AppConfig] = None
) -> FastAPI:
    cfg = config or resolve_config()
    orch = orchestrator or build_orchestrator(cfg)

    app = FastAPI(title="Jobs2Json", version=__version__)
    app.state.orchestrator = orch

    # sync endpoint: FastAPI runs it in its thread pool, one batch per request
    @app.post("/get_jobs")
    def get_jobs(urls: List[str] = Body(...)) -> List[Dict[str, Any]]:
        try:
            records = orch.process(urls)
        except PoolStartupError as e:
            logger.error("batch rejected: %s", e)
            raise HTTPException(status_code=503, detail=str(e)) from e
        return [r.to_dict() for r in records]

    return app
