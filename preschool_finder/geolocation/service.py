from __future__ import annotations

import asyncio
import logging
from typing import Callable

import numpy as np

from ..catalog.engine import CatalogEngine
from ..catalog.models import Facility
from ..errors import LocationError, LocationErrorKind
from .backends import GeolocationBackend
from .config import DEFAULT_GEOLOCATION_CONFIG, GeolocationConfig
from .distance import distances_km
from .models import Coordinates, Position, PositionError, PositionErrorCode

logger = logging.getLogger(__name__)

_ERROR_KINDS = {
    PositionErrorCode.PERMISSION_DENIED: LocationErrorKind.permission_denied,
    PositionErrorCode.POSITION_UNAVAILABLE: LocationErrorKind.unavailable,
    PositionErrorCode.TIMEOUT: LocationErrorKind.timeout,
}


def to_location_error(error: PositionError) -> LocationError:
    kind = _ERROR_KINDS.get(error.code, LocationErrorKind.unavailable)
    return LocationError(kind, error.message or None)


class WatchHandle:
    """Cancellation token for a running position watch."""

    def __init__(self) -> None:
        self._cancelled = False
        self._clear: Callable[[], None] | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _bind(self, clear: Callable[[], None]) -> None:
        # The backend may report (and the callback may cancel) before watch_position returns.
        self._clear = clear
        if self._cancelled:
            clear()

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._clear is not None:
            self._clear()


class GeolocationService:
    def __init__(
        self,
        engine: CatalogEngine,
        backend: GeolocationBackend | None = None,
        config: GeolocationConfig = DEFAULT_GEOLOCATION_CONFIG,
    ):
        self._engine = engine
        self._backend = backend
        self._config = config
        self._user_location: Coordinates | None = None
        self._last_nearby: list[Facility] = []
        self._watch: WatchHandle | None = None
        self._location_listeners: list[Callable[[Coordinates], None]] = []

    @property
    def config(self) -> GeolocationConfig:
        return self._config

    @property
    def user_location(self) -> Coordinates | None:
        return self._user_location

    @property
    def watching(self) -> bool:
        return self._watch is not None and not self._watch.cancelled

    def on_location(self, listener: Callable[[Coordinates], None]) -> None:
        """Register a listener for every accepted location (one-shot or watch)."""
        self._location_listeners.append(listener)

    def _set_location(self, coords: Coordinates) -> None:
        self._user_location = coords
        for listener in self._location_listeners:
            try:
                listener(coords)
            except Exception:
                logger.warning("Location listener %r failed", listener, exc_info=True)

    # ── One-shot acquisition ─────────────────────────────────────────────

    async def acquire_location(self) -> Coordinates:
        """
        Ask the backend for the current position once.

        Raises LocationError; a backend that never answers surfaces as a
        timeout after the configured one-shot timeout.
        """
        if self._backend is None:
            raise LocationError(LocationErrorKind.unsupported, "Geolocation is not supported")

        loop = asyncio.get_running_loop()
        future: asyncio.Future[Position] = loop.create_future()

        def _settle(position: Position | None, error: PositionError | None) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(to_location_error(error))
            else:
                future.set_result(position)

        options = self._config.one_shot
        self._backend.get_current_position(
            lambda position: loop.call_soon_threadsafe(_settle, position, None),
            lambda error: loop.call_soon_threadsafe(_settle, None, error),
            options,
        )

        try:
            position = await asyncio.wait_for(future, timeout=options.timeout_s)
        except asyncio.TimeoutError:
            raise LocationError(LocationErrorKind.timeout, "Location request timed out") from None

        coords = position.coords
        self._set_location(coords)
        logger.info("Location acquired: (%.5f, %.5f)", coords.lat, coords.lng)
        return coords

    async def request_location(self, radius_km: float | None = None) -> list[Facility] | None:
        """Acquire the position and show nearby preschools. Returns None when no location could be had."""
        try:
            coords = await self.acquire_location()
        except LocationError as exc:
            logger.warning("Failed to get location (%s): %s", exc.kind.value, exc)
            return None
        return self.find_nearby(coords, radius_km)

    # ── Proximity ────────────────────────────────────────────────────────

    def find_nearby(
        self,
        origin: Coordinates | None = None,
        radius_km: float | None = None,
    ) -> list[Facility]:
        """
        Facilities within `radius_km` of `origin`, nearest first.

        Ties keep catalog order. The result replaces the engine's filtered view.
        """
        origin = origin or self._user_location
        if origin is None:
            logger.debug("No origin for proximity query; skipping")
            return []
        radius = self._config.default_radius_km if radius_km is None else radius_km

        candidates = [f for f in self._engine.catalog if f.has_coordinates]
        nearby: list[Facility] = []
        if candidates:
            lats = np.fromiter((f.latitude for f in candidates), dtype=float, count=len(candidates))
            lons = np.fromiter((f.longitude for f in candidates), dtype=float, count=len(candidates))
            for facility, distance in zip(candidates, distances_km(origin.lat, origin.lng, lats, lons)):
                if distance <= radius:
                    facility.distance_km = float(distance)
                    nearby.append(facility)
                else:
                    facility.distance_km = None

        nearby.sort(key=lambda f: f.distance_km)
        logger.info("Found %d preschools within %.1f km", len(nearby), radius)

        self._last_nearby = nearby
        self._engine.show_nearby(nearby)
        return list(nearby)

    def nearest(self, limit: int | None = None) -> list[Facility]:
        """Top slice of the last proximity result, for the nearby panel."""
        limit = self._config.nearby_display_limit if limit is None else limit
        return self._last_nearby[:limit]

    # ── Continuous tracking ──────────────────────────────────────────────

    def watch(
        self,
        callback: Callable[[Coordinates], None],
        on_error: Callable[[LocationError], None] | None = None,
    ) -> WatchHandle:
        """
        Track the position until stopped. Any previous watch is cancelled first.

        Raises LocationError(unsupported) when there is no backend.
        """
        self.stop_watch()
        if self._backend is None:
            raise LocationError(LocationErrorKind.unsupported, "Geolocation is not supported")

        handle = WatchHandle()
        self._watch = handle

        def _on_success(position: Position) -> None:
            if handle.cancelled:
                return
            self._set_location(position.coords)
            callback(position.coords)

        def _on_error(error: PositionError) -> None:
            if handle.cancelled:
                return
            exc = to_location_error(error)
            if on_error is not None:
                on_error(exc)
            else:
                logger.warning("Location watch error (%s): %s", exc.kind.value, exc)

        backend = self._backend
        watch_id = backend.watch_position(_on_success, _on_error, self._config.watch)
        handle._bind(lambda: backend.clear_watch(watch_id))
        return handle

    def stop_watch(self) -> None:
        if self._watch is None:
            return
        self._watch.cancel()
        self._watch = None
