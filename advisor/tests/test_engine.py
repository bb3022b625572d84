from __future__ import annotations

from unittest.mock import patch

import pytest

from advisor.analytics.store import RUN_EVENT, clear_events, get_events
from advisor.catalog.data_store import CatalogError, CatalogStore
from advisor.recommendations.engine import generate_recommendations, resolve_product_type

TABLES = {
    "answers": [
        {"session_id": "S1", "question_id": "Q1", "option_id": "O1"},
        {"session_id": "S1", "question_id": "Q2", "option_id": "O2"},
    ],
    "answer_options": [
        {"id": "O1", "question_id": "Q1", "key": "A"},
        {"id": "O2", "question_id": "Q2", "key": "B"},
    ],
    "feature_mappings": [
        {"question_id": "Q1", "option_key": "A", "feature_id": "F1", "weight": 2},
        {"question_id": "Q2", "option_key": "B", "feature_id": "F1", "weight": 1},
        {"question_id": "Q2", "option_key": "B", "feature_id": "F2", "weight": -1},
    ],
    "answer_benefits": [
        {"option_id": "O1", "benefit_id": "BEN1", "points": 2},
        {"option_id": "O2", "benefit_id": "BEN1", "points": 1},
    ],
    "benefits": [{"id": "BEN1", "code": "B01", "organization_id": "ORG1"}],
    "feature_benefits": [{"feature_id": "F1", "benefit_id": "BEN1", "weight": 1}],
    "products": [
        {"id": "PA", "name": "Alpha", "brand": "X", "product_type": "FRAME", "base_price": 100},
        {"id": "PB", "name": "Beta", "brand": "Y", "product_type": "FRAME", "base_price": 200},
        {"id": "PC", "name": "Gamma", "product_type": "FRAME", "base_price": 50},
        {"id": "PS", "name": "Shade", "brand": "X", "product_type": "SUNGLASS", "base_price": 300},
        {
            "id": "PX", "name": "Old", "brand": "X", "product_type": "FRAME",
            "base_price": 10, "is_active": False,
        },
    ],
    "product_features": [
        {"product_id": "PA", "feature_id": "F1", "strength": 2},
        {"product_id": "PB", "feature_id": "F1", "strength": 1},
        {"product_id": "PB", "feature_id": "F2", "strength": 2},
    ],
    "product_benefits": [
        {"product_id": "PA", "benefit_id": "BEN1", "strength": 3},
        {"product_id": "PB", "benefit_id": "BEN1", "strength": 1},
    ],
    "store_products": [
        {"store_id": "ST1", "product_id": "PA", "is_available": True, "stock_quantity": 0},
        {
            "store_id": "ST1", "product_id": "PB", "price_override": 180,
            "is_available": True, "stock_quantity": 5,
        },
        {"store_id": "ST2", "product_id": "PA", "is_available": True, "stock_quantity": 3},
    ],
}


def _catalog(**overrides) -> CatalogStore:
    return CatalogStore.from_records(**{**TABLES, **overrides})


def test_end_to_end_scores_and_order():
    ranked = generate_recommendations("S1", "ST1", "EYEGLASSES", catalog=_catalog())
    by_id = {c.product_id: c for c in ranked}

    # Preferences {F1: 3, F2: -1}, benefit points {B01: 3}
    assert by_id["PA"].feature_score == pytest.approx(75.0)
    assert by_id["PA"].benefit_score == pytest.approx(100.0)
    assert by_id["PA"].interconnected_score == pytest.approx(100.0)
    assert by_id["PA"].match_score == pytest.approx(90.0)

    assert by_id["PB"].feature_score == pytest.approx(12.5)
    assert by_id["PB"].benefit_score == pytest.approx(100 / 3)
    assert by_id["PB"].interconnected_score == pytest.approx(100 / 3)
    assert by_id["PB"].match_score == pytest.approx(25.0)

    assert by_id["PC"].match_score == 0.0

    # PB is the only one in stock at ST1
    assert [c.product_id for c in ranked] == ["PB", "PA", "PC"]


def test_store_price_and_stock_resolution():
    ranked = generate_recommendations("S1", "ST1", "EYEGLASSES", catalog=_catalog())
    by_id = {c.product_id: c for c in ranked}
    assert by_id["PB"].store_price == 180.0
    assert by_id["PB"].in_stock is True
    assert by_id["PA"].store_price == 100.0
    assert by_id["PA"].in_stock is False
    assert by_id["PC"].store_price == 50.0
    assert by_id["PC"].in_stock is False


def test_other_store_changes_stock_order():
    ranked = generate_recommendations("S1", "ST2", "EYEGLASSES", catalog=_catalog())
    assert [c.product_id for c in ranked] == ["PA", "PB", "PC"]
    assert ranked[0].in_stock is True


def test_scores_in_range():
    ranked = generate_recommendations("S1", "ST1", "EYEGLASSES", catalog=_catalog())
    for c in ranked:
        for value in (c.feature_score, c.benefit_score, c.interconnected_score, c.match_score):
            assert 0.0 <= value <= 100.0


def test_session_without_answers_degenerates_to_stock_then_catalog_order():
    ranked = generate_recommendations("NOBODY", "ST1", "EYEGLASSES", catalog=_catalog())
    assert [c.product_id for c in ranked] == ["PB", "PA", "PC"]
    assert all(c.match_score == 0.0 for c in ranked)
    assert all(c.feature_score == 0.0 for c in ranked)


def test_category_without_candidates_returns_empty_list():
    assert generate_recommendations("S1", "ST1", "ACCESSORIES", catalog=_catalog()) == []


def test_category_maps_to_product_type():
    ranked = generate_recommendations("S1", "ST1", "SUNGLASSES", catalog=_catalog())
    assert [c.product_id for c in ranked] == ["PS"]


def test_unknown_category_falls_back_to_frames():
    assert resolve_product_type("GOGGLES") == "FRAME"
    ranked = generate_recommendations("S1", "ST1", "GOGGLES", catalog=_catalog())
    assert {c.product_id for c in ranked} == {"PA", "PB", "PC"}


def test_inactive_products_excluded():
    ranked = generate_recommendations("S1", "ST1", "EYEGLASSES", catalog=_catalog())
    assert "PX" not in {c.product_id for c in ranked}


def test_limit_truncates_and_defaults_to_ten():
    products = [
        {"id": f"P{i:02d}", "name": f"Frame {i}", "brand": f"B{i % 3}",
         "product_type": "FRAME", "base_price": 100}
        for i in range(15)
    ]
    catalog = _catalog(products=products)
    assert len(generate_recommendations("S1", "ST1", "EYEGLASSES", catalog=catalog)) == 10
    assert len(generate_recommendations("S1", "ST1", "EYEGLASSES", 4, catalog=catalog)) == 4


def test_limit_larger_than_candidates():
    ranked = generate_recommendations("S1", "ST1", "EYEGLASSES", 10, catalog=_catalog())
    assert len(ranked) == 3


def test_non_positive_limit_rejected():
    with pytest.raises(ValueError):
        generate_recommendations("S1", "ST1", "EYEGLASSES", 0, catalog=_catalog())


def test_deterministic_for_same_snapshot():
    catalog = _catalog()
    first = generate_recommendations("S1", "ST1", "EYEGLASSES", catalog=catalog)
    second = generate_recommendations("S1", "ST1", "EYEGLASSES", catalog=catalog)
    assert [c.model_dump() for c in first] == [c.model_dump() for c in second]


def test_diversity_applies_above_five_candidates():
    products = [
        {"id": f"P{i}", "name": f"Frame {i}", "brand": brand,
         "product_type": "FRAME", "base_price": 100}
        for i, brand in enumerate(["A", "A", "A", "B", "B", "C"])
    ]
    ranked = generate_recommendations(
        "NOBODY", "ST1", "EYEGLASSES", catalog=_catalog(products=products, store_products=[]),
    )
    assert [c.product_id for c in ranked] == ["P0", "P3", "P5", "P1", "P4", "P2"]
    assert [c.match_score for c in ranked] == [2, 2, 2, 1, 1, 0]


def test_fetch_count_independent_of_answer_and_candidate_count():
    answers = [
        {"session_id": "BIG", "question_id": "Q1", "option_id": "O1"} for _ in range(30)
    ]
    products = [
        {"id": f"P{i}", "name": "Frame", "product_type": "FRAME", "base_price": 100}
        for i in range(50)
    ]
    catalog = _catalog(answers=answers, products=products)
    names = [
        "answers_for_session", "options_by_ids", "feature_mappings_for",
        "answer_benefits_for", "active_products", "product_features_for",
        "product_benefits_for", "store_products_for", "feature_benefits_for",
    ]
    patches = [patch.object(catalog, n, wraps=getattr(catalog, n)) for n in names]
    mocks = [p.start() for p in patches]
    try:
        generate_recommendations("BIG", "ST1", "EYEGLASSES", catalog=catalog)
    finally:
        for p in patches:
            p.stop()
    assert all(m.call_count == 1 for m in mocks)


def test_catalog_failure_aborts_run():
    products = [{"id": "P1", "name": "Bad", "product_type": "FRAME", "base_price": -5}]
    with pytest.raises(CatalogError):
        generate_recommendations("S1", "ST1", "EYEGLASSES", catalog=_catalog(products=products))


def test_dangling_product_benefit_contributes_nothing():
    product_benefits = TABLES["product_benefits"] + [
        {"product_id": "PC", "benefit_id": "GHOST", "strength": 3},
    ]
    ranked = generate_recommendations(
        "S1", "ST1", "EYEGLASSES", catalog=_catalog(product_benefits=product_benefits),
    )
    pc = next(c for c in ranked if c.product_id == "PC")
    assert pc.benefit_score == 0.0


def test_run_is_recorded():
    clear_events()
    generate_recommendations("S1", "ST1", "EYEGLASSES", catalog=_catalog())
    events = get_events(RUN_EVENT)
    assert len(events) == 1
    assert events[0]["answer_count"] == 2
    assert events[0]["total_candidates"] == 3
    assert events[0]["results_returned"] == 3
    assert events[0]["in_stock_returned"] == 1
