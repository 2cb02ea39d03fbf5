from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from .config import Settings
from .errors import ExternalChoicesError
from .models import (
    CacheStatus,
    ChoicesResponse,
    ColumnsResponse,
    HealthResponse,
    PruneResponse,
    RefreshRequest,
    RefreshResponse,
    SourceDescriptor,
    SubmissionRequest,
    SubmissionResult,
)
from .resolver import ChoiceResolver
from .submission import prune_submission, validate_submission

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stdout,
        format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
    )


def get_resolver(request: Request) -> ChoiceResolver:
    return request.app.state.resolver


def create_app(settings: Optional[Settings] = None, resolver: Optional[ChoiceResolver] = None) -> FastAPI:
    settings = settings or Settings()
    _configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.resolver.close()

    app = FastAPI(
        title="external-choices",
        description="Form field choices loaded from external CSV, JSON and XLSX sources",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.resolver = resolver or ChoiceResolver.from_settings(settings)

    @app.exception_handler(ExternalChoicesError)
    async def external_choices_error(request: Request, exc: ExternalChoicesError):
        logger.info("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.code, "message": exc.message},
        )

    @app.get("/health", response_model=HealthResponse)
    def health():
        return {"ok": True}

    @app.post("/choices", response_model=ChoicesResponse)
    def choices(source: SourceDescriptor, resolver: ChoiceResolver = Depends(get_resolver)):
        result = resolver.get_choices(source)
        return {"choices": result, "count": len(result)}

    @app.post("/columns", response_model=ColumnsResponse)
    def columns(source: SourceDescriptor, resolver: ChoiceResolver = Depends(get_resolver)):
        return {"columns": resolver.get_columns(source)}

    @app.post("/refresh", response_model=RefreshResponse)
    def refresh(body: RefreshRequest, resolver: ChoiceResolver = Depends(get_resolver)):
        result = resolver.force_refresh(
            body.locator,
            body.label_selector,
            body.value_selector,
            body.refresh_frequency,
        )
        return {"message": "Cache refreshed successfully.", "count": len(result)}

    @app.post("/cache/status", response_model=CacheStatus)
    def cache_status(source: SourceDescriptor, resolver: ChoiceResolver = Depends(get_resolver)):
        return resolver.cache_status(source)

    @app.post("/validate", response_model=SubmissionResult)
    def validate(body: SubmissionRequest, resolver: ChoiceResolver = Depends(get_resolver)):
        return validate_submission(resolver, body.source, body.values)

    @app.post("/prune", response_model=PruneResponse)
    def prune(body: SubmissionRequest, resolver: ChoiceResolver = Depends(get_resolver)):
        return {"values": prune_submission(resolver, body.source, body.values)}

    return app


app = create_app()
