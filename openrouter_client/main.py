"""AI editing endpoints for the video editor backend.

Exposes the suggestion service and read-only access to the per-call API
logs. Media probing and the video/audio/subtitle handlers live elsewhere;
callers send the probed metadata along with the prompt.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from openrouter_client.client import OpenRouterClient
from openrouter_client.config.settings import get_settings
from openrouter_client.errors import OpenRouterError
from openrouter_client.logging.audit import (
    RequestTimer,
    client_ip_var,
    generate_trace_id,
    get_audit_logger,
    setup_logging,
    trace_id_var,
    user_agent_var,
)
from openrouter_client.logging.store import ApiLogStore
from openrouter_client.services.suggestions import DEFAULT_TEMPLATE, EditSuggestionService

VERSION = "1.0.0"

_client: OpenRouterClient | None = None


def get_client() -> OpenRouterClient:
    """Shared client built from process settings on first use."""
    global _client
    if _client is not None:
        return _client

    settings = get_settings()
    if not settings.openrouter_api_key:
        raise HTTPException(status_code=500, detail="OpenRouter API key not configured")
    _client = OpenRouterClient(settings.openrouter_api_key, settings)
    return _client


async def close_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle hooks."""
    setup_logging()
    get_audit_logger().info("AI editing service started")
    yield
    await close_client()
    get_audit_logger().info("AI editing service stopped")


app = FastAPI(
    title="AI Video Editor - AI endpoints",
    description="Editing suggestions backed by OpenRouter",
    version=VERSION,
    lifespan=lifespan,
)


@app.exception_handler(OpenRouterError)
async def openrouter_error_handler(request: Request, exc: OpenRouterError):
    # Transport failures carry code 0: surface them as a bad gateway
    status_code = exc.code if exc.code >= 400 else 502
    headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after is not None else None
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION}


@app.post("/api/ai/analyze")
async def analyze(request: Request):
    """Suggest edits for a video given its probed metadata and a user prompt."""
    logger = get_audit_logger()
    trace_id_var.set(generate_trace_id())
    client_ip_var.set(request.client.host if request.client else "unknown")
    user_agent_var.set(request.headers.get("user-agent", ""))

    try:
        body = await request.json()
    except ValueError:
        body = None

    if not isinstance(body, dict) or not body.get("prompt") or not isinstance(body.get("metadata"), dict):
        return JSONResponse(status_code=400, content={"error": "Metadata and prompt required"})

    service = EditSuggestionService(get_client())
    template = body.get("template") or DEFAULT_TEMPLATE

    with RequestTimer() as timer:
        result = await service.suggest(body["metadata"], body["prompt"], template)

    logger.info(
        "Suggestions generated",
        extra={"audit_data": {
            "template": template,
            "model": service.model,
            "cached": result["cached"],
            "suggestion_count": len(result["suggestions"]),
            "latency_ms": timer.elapsed_ms,
        }},
    )

    return {
        "success": True,
        "cached": result["cached"],
        "suggestions": result["suggestions"],
        "metadata": body["metadata"],
        "raw": result.get("raw"),
    }


@app.get("/api/logs/{date}")
async def list_logs(date: str, limit: int = 100):
    store = ApiLogStore.from_settings(get_settings())
    return {"date": date, "generation_ids": store.list(date, limit)}


@app.get("/api/logs/{date}/{generation_id}")
async def read_log(date: str, generation_id: str):
    store = ApiLogStore.from_settings(get_settings())
    entry = store.read(generation_id, date)
    if entry is None:
        return JSONResponse(status_code=404, content={"error": "Log entry not found"})
    return entry
