"""HTTP API adapter for the querychat handlers.

Architectural role:
    - Expose the chat, query-generation and health endpoints.
    - Parse request bodies leniently and pass the raw field to the core layer.
    - Map handler envelopes to HTTP status codes.

Endpoint responsibilities:
    - `POST /api/addtext`: `{prompt}` -> chat envelope (`response`).
    - `POST /api/generateSQL`: `{query}` -> query envelope (`sqlQuery`).
    - `GET /health`: liveness probe.

Error handling strategy:
    - Validation happens in the core handlers, so a missing field yields the
      same failure envelope as an upstream failure.
    - Every failure envelope is returned with HTTP 500.
    - Malformed JSON and non-object bodies are treated as a missing field.

Lifecycle:
    The application context is built in the lifespan hook; a failure there
    (for example MongoDB unreachable) aborts startup. On shutdown pending
    history writes are drained and the store is closed.
"""

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from querychat.core.context import AppContext, build_context
from querychat.core.engine import handle_chat, handle_generate_query
from querychat.core.settings import get_settings


logger = logging.getLogger(__name__)


def _default_context() -> AppContext:
    return build_context(get_settings())


async def _read_field(request: Request, name: str):
    """Return `body[name]` or `None` when the body is not a JSON object."""
    try:
        body = await request.json()
    except ValueError:
        logger.warning("Request body is not valid JSON: path=%s", request.url.path)
        return None
    if not isinstance(body, dict):
        return None
    return body.get(name)


def _respond(result: dict) -> JSONResponse:
    status = 200 if result.get("success") else 500
    return JSONResponse(status_code=status, content=result)


def create_app(context_factory: Optional[Callable[[], AppContext]] = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        context_factory: Zero-argument callable producing the `AppContext`;
            defaults to building one from environment settings.
    """
    factory = context_factory or _default_context

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            app.state.context = factory()
        except Exception:
            logger.exception("Startup failed: could not build application context")
            raise
        logger.info("querychat ready")
        try:
            yield
        finally:
            logger.info("Shutting down server...")
            await app.state.context.aclose()
            logger.info("Server closed.")

    app = FastAPI(title="querychat", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ============================================================
    # Chat (history-aware when a store is configured)
    # ============================================================

    @app.post("/api/addtext")
    async def add_text(request: Request):
        prompt = await _read_field(request, "prompt")
        return _respond(await handle_chat(request.app.state.context, prompt))

    # ============================================================
    # Query generation (stateless)
    # ============================================================

    @app.post("/api/generateSQL")
    async def generate_sql(request: Request):
        query = await _read_field(request, "query")
        return _respond(await handle_generate_query(request.app.state.context, query))

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app
