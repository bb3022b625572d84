from __future__ import annotations

from collections import Counter
from typing import Any

from .store import RUN_EVENT, SELECTION_EVENT


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    runs = [e for e in events if e["type"] == RUN_EVENT]
    selections = [e for e in events if e["type"] == SELECTION_EVENT]
    total = len(runs)

    # Average response time
    times = [r["response_time_ms"] for r in runs if "response_time_ms" in r]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    category_counter: Counter[str] = Counter()
    for r in runs:
        category_counter[r.get("category", "unknown")] += 1

    returned = sum(r.get("results_returned", 0) for r in runs)
    in_stock = sum(r.get("in_stock_returned", 0) for r in runs)

    return {
        "total_runs": total,
        "avg_response_time_ms": avg_time,
        "category_usage": dict(category_counter.most_common()),
        "runs_without_answers": sum(1 for r in runs if r.get("answer_count", 0) == 0),
        "runs_with_no_results": sum(1 for r in runs if r.get("results_returned", 0) == 0),
        "avg_results_returned": round(returned / total, 1) if total else 0.0,
        "in_stock_rate": round(in_stock / returned * 100, 1) if returned else 0.0,
        "selections": len(selections),
        "conversion_rate": round(len(selections) / total * 100, 1) if total else 0.0,
    }
