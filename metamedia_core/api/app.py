"""
METAMEDIA CORE — FastAPI Application
Dashboard read models, view inputs and the analyst chat over HTTP.
"""
import uuid
from typing import Dict, Any, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from metamedia_core.config.settings import get_settings
from metamedia_core.utils.logger import get_logger, setup_logging
from metamedia_core.utils.helpers import utc_timestamp
from metamedia_core.data.acquisition import get_acquisition_client
from metamedia_core.data.models import Category, Domain
from metamedia_core.parsers.registry import get_parser_registry
from metamedia_core.engines.orchestrator import get_orchestrator
from metamedia_core.chat.session import get_session

logger = get_logger("api")

# Application state
app_state: Dict[str, Any] = {
    "instance_id": str(uuid.uuid4())[:8],
    "started_at": None,
    "chat_messages": 0,
    "manual_resyncs": 0,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown."""
    setup_logging()
    settings = get_settings()
    app_state["started_at"] = utc_timestamp()

    logger.info("metamedia_core_starting",
                version=settings.version,
                instance=app_state["instance_id"])

    orchestrator = get_orchestrator()
    await orchestrator.start()

    logger.info("metamedia_core_ready")

    yield

    logger.info("metamedia_core_shutting_down")
    await orchestrator.shutdown()


app = FastAPI(
    title="METAMEDIA CORE",
    description="Live market, news, event, social and macro intelligence uplink",
    version="1.0.0",
    lifespan=lifespan,
)


# ─── Health & Metrics ───────────────────────────────────────────

@app.get("/healthz", tags=["System"])
async def health_check():
    """Fast health check endpoint for load balancers and monitoring."""
    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "instance": app_state["instance_id"],
            "uptime_since": app_state["started_at"],
            "timestamp": utc_timestamp(),
        },
    )


@app.get("/metrics", tags=["System"])
async def metrics():
    settings = get_settings()
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.version,
            "instance_id": app_state["instance_id"],
            "started_at": app_state["started_at"],
        },
        "activity": {
            "chat_messages": app_state["chat_messages"],
            "manual_resyncs": app_state["manual_resyncs"],
        },
        "components": {
            "parsers_registered": get_parser_registry().count,
            "acquisition": get_acquisition_client().stats,
            "orchestrator": get_orchestrator().stats,
            "chat": get_session().stats,
        },
        "timestamp": utc_timestamp(),
    }


# ─── Dashboard ──────────────────────────────────────────────────

class CategoryRequest(BaseModel):
    category: Category


class AutoRefreshRequest(BaseModel):
    enabled: bool


class SocialSearchRequest(BaseModel):
    query: str


@app.get("/api/v1/categories", tags=["Dashboard"])
async def list_categories():
    return {"categories": [c.value for c in Category]}


@app.get("/api/v1/dashboard", tags=["Dashboard"])
async def dashboard():
    """Full read model: every domain plus view-level state."""
    return get_orchestrator().snapshot()


@app.get("/api/v1/domains/{domain}", tags=["Dashboard"])
async def domain_view(domain: str):
    try:
        key = Domain(domain.lower())
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown domain {domain}")
    return get_orchestrator().view(key).model_dump(mode="json")


@app.post("/api/v1/category", tags=["Dashboard"])
async def set_category(request: CategoryRequest):
    orchestrator = get_orchestrator()
    orchestrator.set_category(request.category)
    return {"active_category": orchestrator.active_category.value}


@app.post("/api/v1/resync", tags=["Dashboard"])
async def manual_resync():
    """Immediate reload of the active category, ignored while it is loading."""
    orchestrator = get_orchestrator()
    triggered = await orchestrator.manual_resync()
    if triggered:
        app_state["manual_resyncs"] += 1
    return {"triggered": triggered, "dashboard": orchestrator.snapshot()}


@app.post("/api/v1/social/auto-refresh", tags=["Social"])
async def toggle_auto_refresh(request: AutoRefreshRequest):
    orchestrator = get_orchestrator()
    orchestrator.set_auto_refresh(request.enabled)
    return {"auto_refresh_social": orchestrator.auto_refresh_social}


@app.post("/api/v1/social/search", tags=["Social"])
async def search_social(request: SocialSearchRequest):
    orchestrator = get_orchestrator()
    await orchestrator.search_social(request.query)
    return orchestrator.view(Domain.SOCIAL).model_dump(mode="json")


# ─── Analyst Chat ───────────────────────────────────────────────

class ChatRequest(BaseModel):
    message: str


@app.get("/api/v1/chat", tags=["Chat"])
async def chat_transcript():
    session = get_session()
    return {"state": session.state.value, "turns": session.transcript()}


@app.post("/api/v1/chat", tags=["Chat"])
async def chat_send(request: ChatRequest):
    session = get_session()
    reply = await session.send_user_message(request.message)
    if reply is None:
        raise HTTPException(status_code=409, detail="Message ignored: empty input or a turn in progress")
    app_state["chat_messages"] += 1
    return {"reply": reply.model_dump(mode="json"), "state": session.state.value}
