"""FastAPI app serving topic explorations over server-sent events."""

from __future__ import annotations

import asyncio
import json
import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel
from sse_starlette.sse import EventSourceResponse
from starlette.datastructures import Headers

from ..cache import ExplorationCache
from ..config import ExplorerConfig, load_config
from ..errors import ExplorationError
from ..llm import LLMClient
from ..models import ExplorationRequest, PathEntry
from ..pipeline import ExplorationPipeline
from ..progress import (
    ERROR_MESSAGE,
    Milestone,
    QueueProgressReporter,
    report_milestone,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request model
# ---------------------------------------------------------------------------

class ExploreRequest(BaseModel):
    """Body of ``POST /api/explore``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    topic: str = ""
    parent_id: str | None = None
    depth: int = Field(default=0, ge=0)
    context: str | None = None
    path_history: list[PathEntry] = Field(default_factory=list)

    def to_exploration(self) -> ExplorationRequest:
        return ExplorationRequest(
            topic=self.topic.strip(),
            parent_context=(self.context or "").strip(),
            path_history=self.path_history,
        )


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------

async def _run_exploration(
    pipeline: ExplorationPipeline,
    req: ExploreRequest,
    queue: asyncio.Queue,
) -> None:
    """Run the pipeline and push exactly one terminal event (data or error)."""
    reporter = QueueProgressReporter(queue)
    try:
        result = await pipeline.explore(req.to_exploration(), reporter)
        queue.put_nowait({
            "type": "data",
            "result": result.to_wire(),
            "topic": req.topic.strip(),
            "parentId": req.parent_id,
            "depth": req.depth,
        })
        report_milestone(reporter, Milestone.complete)
    except ExplorationError as exc:
        queue.put_nowait({"type": "error", "message": str(exc)})
    except Exception:
        logger.exception("Exploration task crashed for %r", req.topic)
        queue.put_nowait({"type": "error", "message": ERROR_MESSAGE})
    finally:
        queue.put_nowait(None)


def _event_stream(pipeline: ExplorationPipeline, req: ExploreRequest):
    queue: asyncio.Queue = asyncio.Queue()

    async def stream():
        task = asyncio.create_task(_run_exploration(pipeline, req, queue))
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield {"data": json.dumps(event)}
        finally:
            # Client went away mid-stream: cancel the upstream call too.
            if not task.done():
                logger.info("Client disconnected; cancelling exploration of %r", req.topic)
                task.cancel()

    return stream()


@router.post("/api/explore")
async def explore(request: Request):
    """Explore a topic. Streams progress, then the result or an error, as SSE."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error("Request body must be valid JSON", 400)

    try:
        req = ExploreRequest.model_validate(payload)
    except ValidationError as exc:
        logger.info("Rejected explore request: %s", exc)
        return _error("Invalid request body", 400)

    if not req.topic.strip():
        return _error("Topic is required", 400)

    try:
        pipeline: ExplorationPipeline = request.app.state.pipeline
        logger.info(
            "Explore %r (depth=%d, path=%d entries)",
            req.topic, req.depth, len(req.path_history),
        )
        return EventSourceResponse(_event_stream(pipeline, req), sep="\n")
    except Exception:
        logger.exception("Failed to start exploration stream")
        return _error("Failed to process request", 500)


@router.get("/api/health")
async def health(request: Request) -> JSONResponse:
    pipeline: ExplorationPipeline = request.app.state.pipeline
    payload: dict = {"status": "ok", "cacheEntries": len(pipeline.cache)}
    get_stats = getattr(pipeline.client, "get_stats", None)
    if get_stats is not None:
        payload["upstream"] = await get_stats()
    return JSONResponse(payload)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

class PreflightCORSMiddleware(CORSMiddleware):
    """CORSMiddleware whose accepted preflight answers 204 No Content."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            k: v for k, v in response.headers.items()
            if k not in ("content-length", "content-type")
        }
        return Response(status_code=204, headers=headers)


def build_pipeline(config: ExplorerConfig) -> ExplorationPipeline:
    """Wire a pipeline with a fresh cache from *config*."""
    client = LLMClient(
        api_key=config.api_key,
        api_url=config.api_url,
        model=config.model,
        max_tokens=config.max_tokens,
        temperature=config.temperature,
        timeout=config.timeout,
    )
    cache = ExplorationCache(max_entries=config.cache_size, ttl_seconds=config.cache_ttl)
    return ExplorationPipeline(client, cache=cache)


def create_app(
    config: ExplorerConfig | None = None,
    pipeline: ExplorationPipeline | None = None,
    *,
    cors_origins: list[str] | None = None,
) -> FastAPI:
    """Create the FastAPI app.

    Parameters
    ----------
    config:
        Loaded from the environment when neither *config* nor *pipeline*
        is given.
    pipeline:
        Prebuilt pipeline (tests inject one with a fake client).
    cors_origins:
        Overrides ``config.cors_origins``.
    """
    if pipeline is None:
        config = config or load_config()
        pipeline = build_pipeline(config)
    if cors_origins is None:
        cors_origins = list(config.cors_origins) if config is not None else []

    app = FastAPI(title="topicwalk", version="0.1.0")
    app.state.pipeline = pipeline
    app.add_middleware(
        PreflightCORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.include_router(router)
    return app


# ---------------------------------------------------------------------------
# Server launcher
# ---------------------------------------------------------------------------

def start_server(
    config: ExplorerConfig,
    host: str = "127.0.0.1",
    port: int = 8000,
) -> None:
    """Start the API server with uvicorn."""
    import uvicorn

    uvicorn.run(create_app(config), host=host, port=port)
