from __future__ import annotations

from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .models import ScoredCandidate


def sort_by_score(candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
    """Stable sort, highest match score first."""
    return sorted(candidates, key=lambda c: c.match_score, reverse=True)


def apply_diversity_bonus(
    candidates: list[ScoredCandidate],
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> list[ScoredCandidate]:
    """Nudge up the first occurrences of each brand so one brand cannot fill the top.

    Expects *candidates* sorted by match score. Candidates without a brand
    share a single bucket.
    """
    if len(candidates) <= config.diversity_min_candidates:
        return list(candidates)

    brand_counts: dict[str | None, int] = {}
    result: list[ScoredCandidate] = []
    for candidate in candidates:
        brand = candidate.brand or None
        seen = brand_counts.get(brand, 0)
        bonus = config.diversity_bonuses[seen] if seen < len(config.diversity_bonuses) else 0.0
        result.append(candidate.model_copy(update={
            "match_score": min(config.max_score, candidate.match_score + bonus),
            "diversity_bonus": bonus,
        }))
        brand_counts[brand] = seen + 1

    return sort_by_score(result)


def rank_by_stock(
    candidates: list[ScoredCandidate],
    limit: int = DEFAULT_SCORING_CONFIG.default_limit,
) -> list[ScoredCandidate]:
    """In-stock candidates first, each group by match score, truncated to *limit*."""
    ranked = sorted(candidates, key=lambda c: (not c.in_stock, -c.match_score))
    return ranked[:limit]
