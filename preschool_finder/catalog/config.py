from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CatalogConfig:
    max_comparison: int = 5
    results_page_size: int = 50
    search_debounce_s: float = 0.3


DEFAULT_CATALOG_CONFIG = CatalogConfig()
