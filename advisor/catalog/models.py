from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class Answer(_Record):
    session_id: str
    question_id: str
    option_id: str


class AnswerOption(_Record):
    id: str
    question_id: str
    key: str


class FeatureMapping(_Record):
    question_id: str
    option_key: str
    feature_id: str
    weight: float = Field(..., ge=-2.0, le=2.0)


class AnswerBenefitMapping(_Record):
    option_id: str
    benefit_id: str
    points: float = Field(..., ge=0.0, le=3.0)


class Feature(_Record):
    id: str
    code: str
    name: str | None = None


class Benefit(_Record):
    id: str
    code: str
    name: str | None = None
    organization_id: str | None = None


class Product(_Record):
    id: str
    name: str
    sku: str | None = None
    brand: str | None = None
    product_type: str
    base_price: float = Field(..., ge=0.0)
    is_active: bool = True


class ProductFeature(_Record):
    product_id: str
    feature_id: str
    strength: float = Field(..., ge=0.0, le=2.0)


class ProductBenefit(_Record):
    product_id: str
    benefit_id: str
    strength: float = Field(..., ge=0.0, le=3.0)


class FeatureBenefitMapping(_Record):
    feature_id: str
    benefit_id: str
    weight: float


class StoreProduct(_Record):
    store_id: str
    product_id: str
    price_override: float | None = None
    is_available: bool = False
    stock_quantity: int = 0
