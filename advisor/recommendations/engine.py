"""
Recommendation run orchestration.

One call is a single synchronous pass: bulk-read answers, mappings,
candidates and stock; index them into dicts; score every candidate;
blend; rebalance for brand diversity; rank by stock. Nothing is shared
between calls, so concurrent runs for different sessions are independent.
Any catalog read failure aborts the whole run.
"""
from __future__ import annotations

import logging
import time
from itertools import chain

from ..analytics.store import RUN_EVENT, record_event
from ..catalog.data_store import CatalogStore, get_catalog
from ..catalog.models import (
    FeatureBenefitMapping,
    Product,
    ProductBenefit,
    ProductFeature,
    StoreProduct,
)
from .config import (
    CATEGORY_PRODUCT_TYPES,
    DEFAULT_PRODUCT_TYPE,
    DEFAULT_SCORING_CONFIG,
    ScoringConfig,
)
from .models import ScoredCandidate
from .preferences import build_benefit_scores, build_preference_vector
from .ranking import apply_diversity_bonus, rank_by_stock, sort_by_score
from .scoring import CandidateProfile, score_candidate

logger = logging.getLogger(__name__)


def resolve_product_type(category: str) -> str:
    """Map a questionnaire category to the catalog product type it recommends."""
    product_type = CATEGORY_PRODUCT_TYPES.get(category)
    if product_type is None:
        logger.warning("Unknown category %r, falling back to %s", category, DEFAULT_PRODUCT_TYPE)
        return DEFAULT_PRODUCT_TYPE
    return product_type


def _index_candidates(
    products: list[Product],
    product_features: list[ProductFeature],
    product_benefits: list[ProductBenefit],
    store_products: list[StoreProduct],
    benefit_codes: dict[str, str],
) -> list[CandidateProfile]:
    profiles = {p.id: CandidateProfile(product=p) for p in products}

    # First row wins when a product repeats a feature, benefit or store record
    for pf in product_features:
        profiles[pf.product_id].feature_strengths.setdefault(pf.feature_id, pf.strength)
    for pb in product_benefits:
        code = benefit_codes.get(pb.benefit_id)
        if code is not None:
            profiles[pb.product_id].benefit_strengths.setdefault(code, pb.strength)
    for sp in store_products:
        profile = profiles[sp.product_id]
        if profile.store_product is None:
            profile.store_product = sp

    return list(profiles.values())


def _group_by_feature(
    mappings: list[FeatureBenefitMapping],
) -> dict[str, list[FeatureBenefitMapping]]:
    grouped: dict[str, list[FeatureBenefitMapping]] = {}
    for mapping in mappings:
        grouped.setdefault(mapping.feature_id, []).append(mapping)
    return grouped


def generate_recommendations(
    session_id: str,
    store_id: str,
    category: str,
    limit: int | None = None,
    catalog: CatalogStore | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> list[ScoredCandidate]:
    """Score and rank the active products of *category* for one session.

    Returns at most *limit* candidates, in-stock first, each stock group by
    descending match score. A session without answers is not an error: every
    signal is 0 and the order falls back to stock, then catalog order.
    """
    start_time = time.time()
    if limit is None:
        limit = config.default_limit
    if limit < 1:
        raise ValueError(f"limit must be a positive integer, got {limit}")
    catalog = catalog if catalog is not None else get_catalog()

    # --- Session preferences ---
    answers = catalog.answers_for_session(session_id)
    preferences = build_preference_vector(answers, catalog)
    benefit_scores = build_benefit_scores((a.option_id for a in answers), catalog)

    # --- Candidates ---
    product_type = resolve_product_type(category)
    products = catalog.active_products(product_type)

    ranked: list[ScoredCandidate] = []
    if products:
        product_ids = [p.id for p in products]
        product_features = catalog.product_features_for(product_ids)
        product_benefits = catalog.product_benefits_for(product_ids)
        store_products = catalog.store_products_for(product_ids, store_id)
        feature_benefits = catalog.feature_benefits_for(preferences.keys())

        benefit_codes = {
            b.id: b.code
            for b in catalog.benefits_by_ids(chain(
                (pb.benefit_id for pb in product_benefits),
                (fb.benefit_id for fb in feature_benefits),
            ))
        }
        profiles = _index_candidates(
            products, product_features, product_benefits, store_products, benefit_codes,
        )
        mappings_by_feature = _group_by_feature(feature_benefits)

        # --- Scoring ---
        scored = [
            score_candidate(
                profile, preferences, benefit_scores, mappings_by_feature, benefit_codes, config,
            )
            for profile in profiles
        ]

        # --- Diversity + stock-aware ranking ---
        diversified = apply_diversity_bonus(sort_by_score(scored), config)
        ranked = rank_by_stock(diversified, limit)

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    logger.info(
        "Recommendations for session %s: category=%s candidates=%d returned=%d in %.1fms",
        session_id, category, len(products), len(ranked), elapsed_ms,
    )
    record_event(RUN_EVENT, {
        "session_id": session_id,
        "store_id": store_id,
        "category": category,
        "answer_count": len(answers),
        "total_candidates": len(products),
        "results_returned": len(ranked),
        "in_stock_returned": sum(1 for c in ranked if c.in_stock),
        "response_time_ms": elapsed_ms,
    })

    return ranked
