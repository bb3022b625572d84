from __future__ import annotations

from datetime import datetime, timezone

from ..analytics.store import SELECTION_EVENT, record_event
from .models import ScoredCandidate, SessionRecommendation

_saved: dict[str, list[SessionRecommendation]] = {}


def save_recommendations(
    session_id: str, ranked: list[ScoredCandidate],
) -> list[SessionRecommendation]:
    """Persist a ranked list for *session_id*, replacing any earlier one.

    Each entry's rank is its 1-based position; nothing starts selected.
    """
    created_at = datetime.now(timezone.utc)
    entries = [
        SessionRecommendation(
            session_id=session_id,
            product_id=candidate.product_id,
            match_score=candidate.match_score,
            rank=position,
            is_selected=False,
            created_at=created_at,
        )
        for position, candidate in enumerate(ranked, start=1)
    ]
    _saved[session_id] = entries
    return entries


def get_session_recommendations(session_id: str) -> list[SessionRecommendation]:
    return list(_saved.get(session_id, []))


def select_product(session_id: str, product_id: str) -> SessionRecommendation:
    """Mark a saved recommendation as the customer's pick."""
    entries = _saved.get(session_id, [])
    for index, entry in enumerate(entries):
        if entry.product_id == product_id:
            selected = entry.model_copy(update={"is_selected": True})
            entries[index] = selected
            record_event(SELECTION_EVENT, {
                "session_id": session_id,
                "product_id": product_id,
                "rank": selected.rank,
            })
            return selected
    raise LookupError(f"product {product_id!r} was not recommended in session {session_id!r}")


def clear_saved() -> None:
    _saved.clear()
