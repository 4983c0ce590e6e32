"""
Catalog filter engine.

The engine owns three views over one immutable catalog:

* the **search result**, derived from the free-text query;
* the **filtered view**, the search result narrowed by the municipality and
  operator-type dropdowns (or, after a proximity query, the nearby list);
* the **comparison set**, a bounded, insertion-ordered pick of facilities.

Callers construct one engine per catalog and hold on to it. Renderers
subscribe with ``on_filtered_change`` / ``on_comparison_change`` instead of
reaching into engine state.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from ..errors import NotFound
from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .debounce import Debouncer
from .models import CatalogMetadata, Facility

logger = logging.getLogger(__name__)

Listener = Callable[[tuple[Facility, ...]], None]


class CatalogEngine:
    def __init__(
        self,
        catalog: Iterable[Facility],
        config: CatalogConfig = DEFAULT_CATALOG_CONFIG,
    ):
        self._config = config
        self._catalog: tuple[Facility, ...] = tuple(catalog)
        self._by_id: dict[str, Facility] = {f.id: f for f in self._catalog}

        self._query = ""
        self._municipality: str | None = None
        self._operator_type: str | None = None
        self._search_result: tuple[Facility, ...] = self._catalog
        self._filtered: tuple[Facility, ...] = self._catalog
        self._comparison: list[Facility] = []

        self._filtered_listeners: list[Listener] = []
        self._comparison_listeners: list[Listener] = []

    # ── Read accessors ───────────────────────────────────────────────────

    @property
    def config(self) -> CatalogConfig:
        return self._config

    @property
    def catalog(self) -> tuple[Facility, ...]:
        return self._catalog

    @property
    def filtered(self) -> tuple[Facility, ...]:
        return self._filtered

    @property
    def comparison(self) -> tuple[Facility, ...]:
        return tuple(self._comparison)

    @property
    def query(self) -> str:
        return self._query

    @property
    def active_filters(self) -> dict[str, str | None]:
        return {"municipality": self._municipality, "operator_type": self._operator_type}

    def get(self, facility_id: str) -> Facility:
        try:
            return self._by_id[facility_id]
        except KeyError:
            raise NotFound(facility_id) from None

    def results_page(self) -> tuple[Facility, ...]:
        """The fixed-size slice of the filtered view shown in the results list."""
        return self._filtered[: self._config.results_page_size]

    def mappable(self) -> tuple[Facility, ...]:
        return tuple(f for f in self._filtered if f.has_coordinates)

    def metadata(self) -> CatalogMetadata:
        municipalities = sorted({f.municipality for f in self._catalog if f.municipality})
        operator_types = sorted({f.operator_type for f in self._catalog if f.operator_type})
        return CatalogMetadata(
            municipalities=municipalities,
            operator_types=operator_types,
            total=len(self._catalog),
        )

    # ── Render notifications ─────────────────────────────────────────────

    def on_filtered_change(self, listener: Listener) -> None:
        self._filtered_listeners.append(listener)

    def on_comparison_change(self, listener: Listener) -> None:
        self._comparison_listeners.append(listener)

    def _notify(self, listeners: list[Listener], facilities: tuple[Facility, ...]) -> None:
        for listener in listeners:
            try:
                listener(facilities)
            except Exception:
                logger.warning("Render listener %r failed", listener, exc_info=True)

    # ── Search & filters ─────────────────────────────────────────────────

    def search(self, query: str) -> None:
        """Case-insensitive substring search, then re-apply the current dropdown filters."""
        term = (query or "").strip().lower()
        self._query = term
        if not term:
            self._search_result = self._catalog
        else:
            self._search_result = tuple(f for f in self._catalog if f.matches(term))
        logger.debug("Search %r matched %d preschools", term, len(self._search_result))
        self._refilter()

    def apply_filters(
        self,
        municipality: str | None = None,
        operator_type: str | None = None,
    ) -> None:
        """Narrow the last search result by exact municipality / operator type. Empty values pass through."""
        self._municipality = municipality or None
        self._operator_type = operator_type or None
        self._refilter()

    def _refilter(self) -> None:
        filtered = self._search_result
        if self._municipality:
            filtered = tuple(f for f in filtered if f.municipality == self._municipality)
        if self._operator_type:
            filtered = tuple(f for f in filtered if f.operator_type == self._operator_type)
        self._filtered = filtered
        logger.info("Filtered to %d preschools", len(filtered))
        self._notify(self._filtered_listeners, self._filtered)

    def debounced_search(self) -> Debouncer:
        return Debouncer(self.search, self._config.search_debounce_s)

    def show_nearby(self, facilities: Iterable[Facility]) -> None:
        """
        Replace the filtered view with a proximity result.

        Prior search text and dropdown filters are discarded, not merged; the
        next search or filter action starts again from the full catalog.
        """
        self._query = ""
        self._municipality = None
        self._operator_type = None
        self._search_result = self._catalog
        self._filtered = tuple(f for f in facilities if self._by_id.get(f.id) is f)
        self._notify(self._filtered_listeners, self._filtered)

    # ── Comparison set ───────────────────────────────────────────────────

    def add_to_comparison(self, facility_id: str) -> bool:
        try:
            facility = self.get(facility_id)
        except NotFound:
            logger.debug("Ignoring comparison add for unknown id %r", facility_id)
            return False
        if any(f.id == facility_id for f in self._comparison):
            return False
        if len(self._comparison) >= self._config.max_comparison:
            logger.info("Comparison set is full (%d), rejecting %r", self._config.max_comparison, facility_id)
            return False

        self._comparison.append(facility)
        logger.info("Added %s to comparison", facility.name)
        self._notify(self._comparison_listeners, self.comparison)
        return True

    def remove_from_comparison(self, facility_id: str) -> None:
        remaining = [f for f in self._comparison if f.id != facility_id]
        if len(remaining) == len(self._comparison):
            return
        self._comparison = remaining
        self._notify(self._comparison_listeners, self.comparison)

    def clear_comparison(self) -> None:
        if not self._comparison:
            return
        self._comparison = []
        self._notify(self._comparison_listeners, self.comparison)
