"""FastAPI routes - read-only analytics and search over the dashboard data."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from config.settings import settings
from leadscope.engine import Engine, get_engine, reset_engine
from leadscope.errors import ApiClientError, SearchError
from leadscope.models import FilterSpec


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    yield
    # Cleanup on shutdown
    await reset_engine()


app = FastAPI(
    title="Leadscope",
    description="Opportunity search and pipeline analytics",
    version="0.1.0",
    lifespan=lifespan
)

# CORS for the dashboard
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class FilterRequest(BaseModel):
    """Filter the opportunity list."""
    query: str = ""
    status: str = "all"
    source: str = "all"
    min_score: int = Field(default=0, description="0-100 score floor")
    date_range: str = Field(default="all", description="all | today | 7d | 30d")
    has_keywords: list[str] = Field(default_factory=list)
    limit: Optional[int] = Field(default=None, ge=1)


async def loaded_engine(engine: Engine = Depends(get_engine)) -> Engine:
    try:
        await engine.ensure_loaded()
    except ApiClientError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return engine


# Routes
@app.get("/")
async def root():
    """Health check."""
    return {
        "status": "running",
        "service": "leadscope",
        "description": "Opportunity search and pipeline analytics"
    }


@app.get("/health")
async def health(engine: Engine = Depends(get_engine)):
    """Detailed health check."""
    return {
        "status": "healthy",
        "loaded_at": engine.loaded_at.isoformat() if engine.loaded_at else None,
        "opportunities": len(engine.opportunities),
        "config": {
            "api_base_url": settings.api_base_url,
            "api_token_configured": bool(settings.api_token),
        }
    }


@app.get("/search")
async def search(q: str = Query(default=""), engine: Engine = Depends(get_engine)):
    """Global search across opportunities and keyword searches."""
    try:
        results = await engine.search(q)
    except SearchError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return results.model_dump(mode="json", by_alias=True)


@app.delete("/search/cache")
async def clear_search_cache(engine: Engine = Depends(get_engine)):
    engine.search_service.clear_cache()
    return {"status": "cache_cleared"}


@app.post("/opportunities/filter")
async def filter_list(request: FilterRequest, engine: Engine = Depends(loaded_engine)):
    """Filtered, ranked opportunities plus facet values."""
    spec = FilterSpec.model_validate(request.model_dump(exclude={"limit"}))
    results = engine.filter(spec)
    if request.limit:
        results = results[:request.limit]
    return {
        "opportunities": [o.model_dump(mode="json") for o in results],
        "count": len(results),
        "options": engine.options().model_dump(),
    }


@app.get("/analytics/snapshots")
async def snapshots(
    days: int = Query(default=settings.snapshot_days, ge=1, le=365),
    stored: bool = False,
    engine: Engine = Depends(get_engine),
):
    """Daily snapshots, computed from the working set or read back from storage."""
    if stored:
        series = engine.stored_snapshots(days)
    else:
        await loaded_engine(engine)
        series = engine.snapshots(days)
    return {"snapshots": [s.model_dump(mode="json", by_alias=True) for s in series]}


@app.get("/analytics/trend")
async def trend(
    metric: str = "total_opportunities",
    days: int = Query(default=settings.snapshot_days, ge=1, le=365),
    engine: Engine = Depends(loaded_engine),
):
    try:
        data = engine.trend(metric, days)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return data.model_dump(by_alias=True)


@app.get("/analytics/compare")
async def compare(
    current_days: int = Query(default=30, ge=1),
    previous_days: int = Query(default=30, ge=1),
    engine: Engine = Depends(loaded_engine),
):
    return engine.compare(current_days, previous_days).model_dump(by_alias=True)


@app.get("/analytics/funnel")
async def funnel(engine: Engine = Depends(loaded_engine)):
    """Conversion funnel. No records gives no stages and a null summary."""
    stages, summary = engine.funnel()
    return {
        "stages": [s.model_dump(by_alias=True) for s in stages],
        "summary": summary.model_dump(by_alias=True) if summary else None,
    }


@app.get("/analytics/sources")
async def sources(limit: int = Query(default=10, ge=1), engine: Engine = Depends(loaded_engine)):
    return {"sources": [s.model_dump(by_alias=True) for s in engine.sources(limit)]}


@app.get("/analytics/keyword-searches")
async def keyword_searches(engine: Engine = Depends(loaded_engine)):
    return {"keywordSearches": [k.model_dump(by_alias=True) for k in engine.keyword_performance()]}


@app.post("/analytics/snapshots")
async def record_snapshot(engine: Engine = Depends(loaded_engine)):
    """Store today's snapshot."""
    snapshot = engine.record_snapshot()
    return snapshot.model_dump(mode="json", by_alias=True)


# Run with: uvicorn leadscope.api.routes:app --reload
