"""Creator Match — Web Server.

FastAPI backend exposing campaign/creator lookups, creator ranking for a
campaign, and outreach brief generation (SQLite-backed, cache-checked).

Usage:
    python server.py
    # Then open http://localhost:8000/docs
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

import config
from pipeline.errors import GenerationExhausted, NotFound, StorageFailure
from pipeline.explain import weighted_contributions
from pipeline.llm import LLMError, get_provider
from pipeline.orchestrator import BriefService, MatchService, load_campaign, load_creator
from pipeline.storage import Store
from schemas.matching import MatchResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

app_state: dict[str, Any] = {
    "store": Store(config.DB_PATH),
    "brief_service": None,  # built on first brief request
}


def _store() -> Store:
    return app_state["store"]


def _brief_service() -> BriefService:
    if app_state["brief_service"] is None:
        app_state["brief_service"] = BriefService(
            _store(),
            get_provider(),
            max_repairs=config.BRIEF_MAX_REPAIR_ATTEMPTS,
        )
    return app_state["brief_service"]


def _check_api_keys() -> list[str]:
    """Returns warnings about provider configuration."""
    if not config.OPENAI_API_KEY:
        return ["OPENAI_API_KEY is not set; briefs will come from the offline mock provider"]
    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    _store().init_db()
    for w in _check_api_keys():
        logger.warning(w)
    yield
    # Shutdown
    _store().close()


app = FastAPI(title="Creator Match", version="1.0.0", lifespan=lifespan)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _error(exc: Exception) -> JSONResponse:
    """Map pipeline errors onto HTTP responses."""
    if isinstance(exc, NotFound):
        return JSONResponse({"error": str(exc)}, status_code=404)
    if isinstance(exc, (GenerationExhausted, LLMError)):
        return JSONResponse({"error": str(exc)}, status_code=502)
    if isinstance(exc, StorageFailure):
        return JSONResponse({"error": str(exc)}, status_code=500)
    raise exc


def _match_payload(result: MatchResult) -> dict:
    payload = result.model_dump()
    payload["contributions"] = weighted_contributions(result.breakdown)
    return payload


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/api/health")
async def api_health():
    return "yay!"


@app.get("/api/campaigns")
async def api_list_campaigns():
    try:
        campaigns = await asyncio.to_thread(_store().list_campaigns)
    except StorageFailure as exc:
        return _error(exc)
    return [c.model_dump() for c in campaigns]


@app.get("/api/campaigns/{campaign_id}")
async def api_get_campaign(campaign_id: str):
    try:
        campaign = await asyncio.to_thread(load_campaign, _store(), campaign_id)
    except (NotFound, StorageFailure) as exc:
        return _error(exc)
    return campaign.model_dump()


@app.get("/api/creators")
async def api_list_creators():
    try:
        creators = await asyncio.to_thread(_store().list_creators)
    except StorageFailure as exc:
        return _error(exc)
    return [c.model_dump() for c in creators]


@app.get("/api/creators/{creator_id}")
async def api_get_creator(creator_id: str):
    try:
        creator = await asyncio.to_thread(load_creator, _store(), creator_id)
    except (NotFound, StorageFailure) as exc:
        return _error(exc)
    return creator.model_dump()


@app.get("/api/matching/{campaign_id}")
async def api_top_creators(
    campaign_id: str,
    limit: int = Query(config.DEFAULT_MATCH_LIMIT, ge=1, le=config.MAX_MATCH_LIMIT),
):
    """Rank every creator against a campaign and return the best `limit`."""
    service = MatchService(_store())
    try:
        campaign, results = await asyncio.to_thread(
            service.get_top_creators_for_campaign, campaign_id, limit
        )
    except (NotFound, StorageFailure) as exc:
        return _error(exc)
    return {
        "campaign": campaign.model_dump(),
        "results": [_match_payload(r) for r in results],
    }


class BriefRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    campaign_id: str = Field(..., alias="campaignId")
    creator_id: str = Field(..., alias="creatorId")
    force_refresh: bool = Field(default=False, alias="forceRefresh")


@app.post("/api/brief")
async def api_generate_brief(req: BriefRequest):
    """Generate (or fetch from cache) the outreach brief for one pairing."""
    service = _brief_service()
    try:
        brief, cached = await asyncio.to_thread(
            service.generate_brief, req.campaign_id, req.creator_id, req.force_refresh
        )
    except (NotFound, GenerationExhausted, LLMError, StorageFailure) as exc:
        return _error(exc)
    return {"brief": brief.to_wire(), "cached": cached}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=getattr(logging, config.LOG_LEVEL))
    print("\n  Creator Match API")
    print("  http://localhost:8000/docs\n")
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
