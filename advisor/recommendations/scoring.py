"""
Per-candidate scoring signals and the blend that combines them.

Three independent signals, each normalised to [0, 100] against the best
score the candidate could have reached:

* **feature**: preference weight x product feature strength
* **benefit**: answer benefit points x product benefit strength
* **interconnected**: preferred features that also feed a benefit the
  customer asked for, via the feature -> benefit mapping table
"""
from __future__ import annotations

from dataclasses import dataclass, field

from ..catalog.models import FeatureBenefitMapping, Product, StoreProduct
from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .models import ScoredCandidate
from .preferences import BenefitScoreMap, PreferenceVector


def _clamp(value: float, config: ScoringConfig) -> float:
    return max(0.0, min(config.max_score, value))


def _normalise(total: float, maximum: float, config: ScoringConfig) -> float:
    if maximum == 0:
        return 0.0
    return _clamp(total / maximum * 100, config)


@dataclass
class CandidateProfile:
    """A product joined with its indexed feature, benefit and stock rows."""

    product: Product
    feature_strengths: dict[str, float] = field(default_factory=dict)
    # Keyed by benefit code, not id
    benefit_strengths: dict[str, float] = field(default_factory=dict)
    store_product: StoreProduct | None = None

    @property
    def in_stock(self) -> bool:
        sp = self.store_product
        return sp is not None and sp.is_available and sp.stock_quantity > 0

    @property
    def store_price(self) -> float:
        sp = self.store_product
        if sp is not None and sp.price_override:
            return float(sp.price_override)
        return float(self.product.base_price)


def feature_score(
    profile: CandidateProfile,
    preferences: PreferenceVector,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    if not preferences:
        return 0.0
    total = 0.0
    maximum = 0.0
    for feature_id, weight in preferences.items():
        strength = profile.feature_strengths.get(feature_id)
        if strength is not None:
            total += weight * strength
        maximum += abs(weight) * config.max_feature_strength
    return _normalise(total, maximum, config)


def benefit_score(
    profile: CandidateProfile,
    benefit_scores: BenefitScoreMap,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    if not benefit_scores:
        return 0.0
    total = 0.0
    maximum = 0.0
    for code, points in benefit_scores.items():
        strength = profile.benefit_strengths.get(code)
        if strength is not None:
            total += points * strength
        maximum += points * config.max_benefit_strength
    return _normalise(total, maximum, config)


def interconnected_score(
    profile: CandidateProfile,
    preferences: PreferenceVector,
    benefit_scores: BenefitScoreMap,
    mappings_by_feature: dict[str, list[FeatureBenefitMapping]],
    benefit_codes: dict[str, str],
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    """Score features that lead to benefits the customer also asked for.

    The maximum grows for every mapping visited, whether or not the benefit
    had points or the product carries it.
    """
    total = 0.0
    maximum = 0.0
    for feature_id, feature_weight in preferences.items():
        for mapping in mappings_by_feature.get(feature_id, []):
            code = benefit_codes.get(mapping.benefit_id)
            if code is None:
                continue
            if benefit_scores.get(code, 0.0) > 0:
                strength = profile.benefit_strengths.get(code)
                if strength is not None:
                    total += feature_weight * mapping.weight * strength
            maximum += abs(feature_weight) * mapping.weight * config.max_benefit_strength
    return _normalise(total, maximum, config)


def blend(
    feature: float,
    benefit: float,
    interconnected: float,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    """Combine the three signals into one match score in [0, 100]."""
    return _clamp(
        feature * config.feature_weight
        + benefit * config.benefit_weight
        + interconnected * config.interconnected_weight,
        config,
    )


def score_candidate(
    profile: CandidateProfile,
    preferences: PreferenceVector,
    benefit_scores: BenefitScoreMap,
    mappings_by_feature: dict[str, list[FeatureBenefitMapping]],
    benefit_codes: dict[str, str],
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> ScoredCandidate:
    f = feature_score(profile, preferences, config)
    b = benefit_score(profile, benefit_scores, config)
    i = interconnected_score(
        profile, preferences, benefit_scores, mappings_by_feature, benefit_codes, config,
    )
    return ScoredCandidate(
        product_id=profile.product.id,
        name=profile.product.name,
        brand=profile.product.brand,
        feature_score=f,
        benefit_score=b,
        interconnected_score=i,
        match_score=blend(f, b, i, config),
        store_price=profile.store_price,
        in_stock=profile.in_stock,
    )
