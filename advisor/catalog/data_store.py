from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, TypeVar

import pandas as pd
from pydantic import BaseModel, ValidationError

from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .models import (
    Answer,
    AnswerBenefitMapping,
    AnswerOption,
    Benefit,
    Feature,
    FeatureBenefitMapping,
    FeatureMapping,
    Product,
    ProductBenefit,
    ProductFeature,
    StoreProduct,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

TABLE_MODELS: dict[str, type[BaseModel]] = {
    "answers": Answer,
    "answer_options": AnswerOption,
    "feature_mappings": FeatureMapping,
    "answer_benefits": AnswerBenefitMapping,
    "features": Feature,
    "benefits": Benefit,
    "products": Product,
    "product_features": ProductFeature,
    "product_benefits": ProductBenefit,
    "feature_benefits": FeatureBenefitMapping,
    "store_products": StoreProduct,
}

# Columns parsed by pandas; everything else is read as text so ids keep leading zeros
_NON_TEXT_COLUMNS = {
    "weight",
    "points",
    "strength",
    "base_price",
    "price_override",
    "stock_quantity",
    "is_available",
    "is_active",
}


class CatalogError(RuntimeError):
    """A catalog table could not be read or holds an invalid row."""


def _columns(model: type[BaseModel]) -> list[str]:
    return list(model.model_fields)


def _required_columns(model: type[BaseModel]) -> list[str]:
    return [name for name, info in model.model_fields.items() if info.is_required()]


def _empty_frame(model: type[BaseModel]) -> pd.DataFrame:
    return pd.DataFrame(columns=_columns(model))


def _read_table(table: str, config: CatalogConfig) -> pd.DataFrame:
    model = TABLE_MODELS[table]
    path = config.path_for(table)
    text_columns = {c: str for c in _columns(model) if c not in _NON_TEXT_COLUMNS}
    try:
        df = pd.read_csv(path, dtype=text_columns)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        logger.warning("Failed to read catalog table %s from %s", table, path)
        raise CatalogError(f"cannot read catalog table {table!r} from {path}") from exc

    missing = [c for c in _required_columns(model) if c not in df.columns]
    if missing:
        raise CatalogError(f"catalog table {table!r} is missing columns {missing}")

    # Optional columns may be left out of the file entirely
    for column in _columns(model):
        if column not in df.columns:
            df[column] = None
    return df[_columns(model)]


def _to_records(df: pd.DataFrame, model: type[RecordT]) -> list[RecordT]:
    """Validate DataFrame rows into typed records; blank cells become defaults."""
    if df.empty:
        return []
    cleaned = df.astype(object).where(df.notna(), None)
    records: list[RecordT] = []
    for row in cleaned.to_dict(orient="records"):
        values = {k: v for k, v in row.items() if v is not None}
        try:
            records.append(model.model_validate(values))
        except ValidationError as exc:
            raise CatalogError(f"invalid {model.__name__} row: {row}") from exc
    return records


class CatalogStore:
    """Read-only, in-memory view of every table the recommendation engine consumes.

    Each fetch method takes the complete key set for one invocation and runs a
    single filter over its table, so the number of fetches per recommendation
    run never depends on how many answers or candidates are involved.
    """

    def __init__(self, frames: dict[str, pd.DataFrame]) -> None:
        self._frames: dict[str, pd.DataFrame] = {}
        for table, model in TABLE_MODELS.items():
            frame = frames.get(table)
            self._frames[table] = frame if frame is not None else _empty_frame(model)

    @classmethod
    def from_records(cls, **tables: list[dict[str, Any]]) -> CatalogStore:
        """Build a store from plain row dicts, keyed by table name."""
        unknown = set(tables) - set(TABLE_MODELS)
        if unknown:
            raise CatalogError(f"unknown catalog tables: {sorted(unknown)}")
        frames = {
            table: pd.DataFrame(rows, columns=_columns(TABLE_MODELS[table]))
            for table, rows in tables.items()
        }
        return cls(frames)

    def _frame(self, table: str) -> pd.DataFrame:
        return self._frames[table]

    def _select(self, table: str, column: str, keys: Iterable[str]) -> pd.DataFrame:
        wanted = list(dict.fromkeys(keys))
        df = self._frame(table)
        if not wanted or df.empty:
            return df.iloc[0:0]
        return df[df[column].isin(wanted)]

    # ── Questionnaire ───────────────────────────────────────────────────

    def answers_for_session(self, session_id: str) -> list[Answer]:
        df = self._frame("answers")
        return _to_records(df[df["session_id"] == session_id], Answer)

    def options_by_ids(self, option_ids: Iterable[str]) -> list[AnswerOption]:
        return _to_records(self._select("answer_options", "id", option_ids), AnswerOption)

    def feature_mappings_for(
        self, pairs: Iterable[tuple[str, str]],
    ) -> list[FeatureMapping]:
        """Return mappings matching any of the (question_id, option_key) pairs."""
        wanted = set(pairs)
        df = self._frame("feature_mappings")
        if not wanted or df.empty:
            return []
        keys = pd.MultiIndex.from_frame(df[["question_id", "option_key"]])
        return _to_records(df[keys.isin(list(wanted))], FeatureMapping)

    def answer_benefits_for(self, option_ids: Iterable[str]) -> list[AnswerBenefitMapping]:
        return _to_records(
            self._select("answer_benefits", "option_id", option_ids), AnswerBenefitMapping,
        )

    # ── Reference entities ──────────────────────────────────────────────

    def features(self) -> list[Feature]:
        return _to_records(self._frame("features"), Feature)

    def benefits_by_ids(self, benefit_ids: Iterable[str]) -> list[Benefit]:
        return _to_records(self._select("benefits", "id", benefit_ids), Benefit)

    def feature_benefits_for(
        self, feature_ids: Iterable[str],
    ) -> list[FeatureBenefitMapping]:
        return _to_records(
            self._select("feature_benefits", "feature_id", feature_ids),
            FeatureBenefitMapping,
        )

    # ── Candidates ──────────────────────────────────────────────────────

    def active_products(self, product_type: str) -> list[Product]:
        df = self._frame("products")
        products = _to_records(df[df["product_type"] == product_type], Product)
        return [p for p in products if p.is_active]

    def product_features_for(self, product_ids: Iterable[str]) -> list[ProductFeature]:
        return _to_records(
            self._select("product_features", "product_id", product_ids), ProductFeature,
        )

    def product_benefits_for(self, product_ids: Iterable[str]) -> list[ProductBenefit]:
        return _to_records(
            self._select("product_benefits", "product_id", product_ids), ProductBenefit,
        )

    def store_products_for(
        self, product_ids: Iterable[str], store_id: str,
    ) -> list[StoreProduct]:
        df = self._select("store_products", "product_id", product_ids)
        return _to_records(df[df["store_id"] == store_id], StoreProduct)

    def product_types(self) -> list[str]:
        return sorted(self._frame("products")["product_type"].dropna().unique().tolist())


def load_catalog(config: CatalogConfig = DEFAULT_CATALOG_CONFIG) -> CatalogStore:
    """Read every catalog table from ``config.data_dir``."""
    frames = {table: _read_table(table, config) for table in TABLE_MODELS}
    logger.info(
        "Loaded catalog from %s (%d products)", config.data_dir, len(frames["products"]),
    )
    return CatalogStore(frames)


_catalog: CatalogStore | None = None


def get_catalog() -> CatalogStore:
    """Return the process-wide catalog, loading it on first call."""
    global _catalog
    if _catalog is None:
        _catalog = load_catalog()
    return _catalog


def set_catalog(catalog: CatalogStore | None) -> None:
    """Replace the process-wide catalog (``None`` forces a reload on next use)."""
    global _catalog
    _catalog = catalog
