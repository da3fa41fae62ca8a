"""FastAPI application exposing SDS extraction and wheel lookups."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from .fetcher import FetchError, InvalidPdfError, UnsafeUrlError
from .logging import get_logger
from .runtime import Runtime, build_runtime
from .search import SearchError, SearchNotConfiguredError

logger = get_logger(__name__)


def get_runtime(request: Request) -> Runtime:
    runtime: Runtime = request.app.state.runtime
    return runtime


def _to_http_error(exc: Exception, event: str) -> HTTPException:
    if isinstance(exc, SearchNotConfiguredError):
        return HTTPException(status_code=503, detail=str(exc))
    if isinstance(exc, (UnsafeUrlError, InvalidPdfError)):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, (FetchError, SearchError)):
        logger.warning(event, error=str(exc))
        return HTTPException(status_code=502, detail=str(exc))
    logger.error(event, error=str(exc))
    return HTTPException(status_code=500, detail=f"Unexpected error: {exc}")


def create_app(runtime_factory: Callable[[], Runtime] = build_runtime) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        runtime = runtime_factory()
        app.state.runtime = runtime
        try:
            yield
        finally:
            runtime.close()

    api = FastAPI(title="Depot Tools Service", version="2.1.0", lifespan=lifespan)
    api.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @api.get("/api/health")
    def health(runtime: Runtime = Depends(get_runtime)) -> dict:
        return {"ok": True, "searchEnabled": runtime.config.search_enabled}

    @api.get("/api/search")
    def search(
        q: Optional[str] = Query(None, description="Product or MIL-PRF query"),
        runtime: Runtime = Depends(get_runtime),
    ) -> dict:
        query = (q or "").strip()
        if not query:
            raise HTTPException(status_code=400, detail="q parameter is required")
        try:
            return runtime.service.search(query)
        except Exception as exc:
            raise _to_http_error(exc, "search_failed") from exc

    @api.post("/api/extract")
    async def extract(request: Request, runtime: Runtime = Depends(get_runtime)) -> dict:
        try:
            body = await request.json()
        except ValueError:
            body = None
        pdf_url = ""
        if isinstance(body, dict):
            pdf_url = str(body.get("pdfUrl") or "").strip()
        if not pdf_url:
            raise HTTPException(status_code=400, detail="pdfUrl is required")

        try:
            sections = await run_in_threadpool(runtime.service.extract_sections, pdf_url)
        except Exception as exc:
            raise _to_http_error(exc, "extract_failed") from exc
        return sections.as_dict()

    @api.get("/api/wheels")
    def wheels(
        tail: Optional[str] = Query(None, description="Aircraft registration, e.g. TC-JHK"),
        runtime: Runtime = Depends(get_runtime),
    ) -> dict:
        tail_number = (tail or "").strip()
        if not tail_number:
            raise HTTPException(status_code=400, detail="tail parameter is required")
        try:
            return runtime.service.lookup_wheels(tail_number)
        except Exception as exc:
            raise _to_http_error(exc, "wheel_lookup_failed") from exc

    return api
