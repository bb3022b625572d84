from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoringConfig:
    # Blend weights for the three signals
    feature_weight: float = 0.4
    benefit_weight: float = 0.4
    interconnected_weight: float = 0.2

    # Assumed ceiling strengths used to normalise each signal
    max_feature_strength: float = 2.0
    max_benefit_strength: float = 3.0

    # Bonus for the 1st, 2nd, ... occurrence of a brand; later occurrences get 0
    diversity_bonuses: tuple[float, ...] = (2.0, 1.0)
    # Rebalancing only runs when there are more candidates than this
    diversity_min_candidates: int = 5

    default_limit: int = 10
    max_score: float = 100.0


DEFAULT_SCORING_CONFIG = ScoringConfig()

CATEGORY_PRODUCT_TYPES: dict[str, str] = {
    "EYEGLASSES": "FRAME",
    "SUNGLASSES": "SUNGLASS",
    "CONTACT_LENSES": "CONTACT_LENS",
    "ACCESSORIES": "ACCESSORY",
}
DEFAULT_PRODUCT_TYPE = "FRAME"
