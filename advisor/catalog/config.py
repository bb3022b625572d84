from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_SAMPLE_DIR = Path(__file__).resolve().parent.parent / "data" / "sample"


@dataclass(frozen=True)
class CatalogConfig:
    """
    Where the catalog tables live and what each file is called.
    """

    data_dir: Path = Path(os.getenv("ADVISOR_DATA_DIR", str(_SAMPLE_DIR)))
    tables: dict[str, str] = field(default_factory=lambda: {
        "answers": "answers.csv",
        "answer_options": "answer_options.csv",
        "feature_mappings": "feature_mappings.csv",
        "answer_benefits": "answer_benefits.csv",
        "features": "features.csv",
        "benefits": "benefits.csv",
        "products": "products.csv",
        "product_features": "product_features.csv",
        "product_benefits": "product_benefits.csv",
        "feature_benefits": "feature_benefits.csv",
        "store_products": "store_products.csv",
    })

    def path_for(self, table: str) -> Path:
        return self.data_dir / self.tables[table]


DEFAULT_CATALOG_CONFIG = CatalogConfig()
