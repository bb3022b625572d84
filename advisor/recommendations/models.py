from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Category(str, Enum):
    eyeglasses = "EYEGLASSES"
    sunglasses = "SUNGLASSES"
    contact_lenses = "CONTACT_LENSES"
    accessories = "ACCESSORIES"


class ScoredCandidate(BaseModel):
    product_id: str
    name: str = ""
    brand: str | None = None
    feature_score: float = Field(default=0.0, ge=0.0, le=100.0)
    benefit_score: float = Field(default=0.0, ge=0.0, le=100.0)
    interconnected_score: float = Field(default=0.0, ge=0.0, le=100.0)
    match_score: float = 0.0
    diversity_bonus: float = 0.0
    store_price: float = 0.0
    in_stock: bool = False


class RecommendationRequest(BaseModel):
    store_id: str = Field(..., min_length=1)
    category: Category = Category.eyeglasses
    limit: int = Field(default=10, ge=1, le=50)


class SessionRecommendation(BaseModel):
    session_id: str
    product_id: str
    match_score: float
    rank: int = Field(..., ge=1)
    is_selected: bool = False
    created_at: datetime


class RecommendationItem(BaseModel):
    rank: int
    candidate: ScoredCandidate
    is_selected: bool = False


class RecommendationResponse(BaseModel):
    session_id: str
    store_id: str
    category: Category
    recommendations: list[RecommendationItem]


class SavedRecommendationsResponse(BaseModel):
    session_id: str
    recommendations: list[SessionRecommendation]
