"""
Turn questionnaire answers into the two per-session preference maps.

Both builders issue one bulk fetch per entity type and aggregate in memory,
so the number of catalog reads stays constant however many answers a
session holds. Weights and points accumulate additively.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from ..catalog.data_store import CatalogStore
from ..catalog.models import Answer

logger = logging.getLogger(__name__)

PreferenceVector = dict[str, float]
BenefitScoreMap = dict[str, float]


def build_preference_vector(
    answers: Iterable[Answer], catalog: CatalogStore,
) -> PreferenceVector:
    """Return ``feature_id -> accumulated weight`` for the given answers."""
    answers = list(answers)
    if not answers:
        return {}

    options = {o.id: o for o in catalog.options_by_ids(a.option_id for a in answers)}

    # Answers pointing at unknown options contribute nothing
    pairs: list[tuple[str, str]] = []
    for answer in answers:
        option = options.get(answer.option_id)
        if option is not None:
            pairs.append((answer.question_id, option.key))

    mappings = catalog.feature_mappings_for(pairs)
    by_pair: dict[tuple[str, str], list] = {}
    for mapping in mappings:
        by_pair.setdefault((mapping.question_id, mapping.option_key), []).append(mapping)

    vector: PreferenceVector = {}
    for pair in pairs:
        for mapping in by_pair.get(pair, []):
            vector[mapping.feature_id] = vector.get(mapping.feature_id, 0.0) + mapping.weight

    logger.debug("Built preference vector with %d features from %d answers", len(vector), len(answers))
    return vector


def build_benefit_scores(
    option_ids: Iterable[str], catalog: CatalogStore,
) -> BenefitScoreMap:
    """Return ``benefit_code -> accumulated points`` for the selected options."""
    # Each selected option counts once, however many answers chose it
    option_ids = list(dict.fromkeys(option_ids))
    if not option_ids:
        return {}

    answer_benefits = catalog.answer_benefits_for(option_ids)
    codes = {
        b.id: b.code
        for b in catalog.benefits_by_ids(ab.benefit_id for ab in answer_benefits)
    }
    by_option: dict[str, list] = {}
    for ab in answer_benefits:
        by_option.setdefault(ab.option_id, []).append(ab)

    scores: BenefitScoreMap = {}
    for option_id in option_ids:
        for ab in by_option.get(option_id, []):
            code = codes.get(ab.benefit_id)
            if code is None:
                continue
            scores[code] = scores.get(code, 0.0) + ab.points

    logger.debug("Built benefit scores for %d benefits from %d options", len(scores), len(option_ids))
    return scores
