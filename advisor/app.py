from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .catalog.data_store import CatalogError, get_catalog
from .recommendations.config import CATEGORY_PRODUCT_TYPES
from .recommendations.engine import generate_recommendations
from .recommendations.models import (
    RecommendationItem,
    RecommendationRequest,
    RecommendationResponse,
    SavedRecommendationsResponse,
    SessionRecommendation,
)
from .recommendations.store import (
    get_session_recommendations,
    save_recommendations,
    select_product,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Eyewear Advisor Recommendation API", version="1.0.0")


@app.exception_handler(CatalogError)
def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    logger.error("Catalog unavailable while serving %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Catalog unavailable"})


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    catalog = get_catalog()
    return {
        "categories": CATEGORY_PRODUCT_TYPES,
        "product_types": catalog.product_types(),
        "features": [{"code": f.code, "name": f.name} for f in catalog.features()],
    }


# ── Session recommendations ──────────────────────────────────────────────


@app.post(
    "/sessions/{session_id}/recommendations",
    response_model=RecommendationResponse,
)
def recommendations(session_id: str, body: RecommendationRequest) -> RecommendationResponse:
    ranked = generate_recommendations(
        session_id, body.store_id, body.category.value, body.limit,
    )
    saved = save_recommendations(session_id, ranked)

    items = [
        RecommendationItem(rank=entry.rank, candidate=candidate, is_selected=entry.is_selected)
        for entry, candidate in zip(saved, ranked)
    ]
    return RecommendationResponse(
        session_id=session_id,
        store_id=body.store_id,
        category=body.category,
        recommendations=items,
    )


@app.get(
    "/sessions/{session_id}/recommendations",
    response_model=SavedRecommendationsResponse,
)
def saved_recommendations(session_id: str) -> SavedRecommendationsResponse:
    return SavedRecommendationsResponse(
        session_id=session_id,
        recommendations=get_session_recommendations(session_id),
    )


@app.post(
    "/sessions/{session_id}/recommendations/{product_id}/select",
    response_model=SessionRecommendation,
)
def select(session_id: str, product_id: str) -> SessionRecommendation:
    try:
        return select_product(session_id, product_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


# ── Analytics ────────────────────────────────────────────────────────────


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())
