from __future__ import annotations

import logging
import time
from typing import Callable, Protocol

from .config import GeolocationConfig, PositionOptions
from .models import Coordinates, Position, PositionError

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[Position], None]
ErrorCallback = Callable[[PositionError], None]


class GeolocationBackend(Protocol):
    """The platform position API: one-shot and continuous queries reported through callbacks."""

    def get_current_position(
        self,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
        options: PositionOptions,
    ) -> None: ...

    def watch_position(
        self,
        on_success: SuccessCallback,
        on_error: ErrorCallback,
        options: PositionOptions,
    ) -> int: ...

    def clear_watch(self, watch_id: int) -> None: ...


class FixedPositionBackend:
    """
    Reports a configured position. Used where no position sensor exists,
    e.g. the terminal front end.

    `move_to` simulates movement and is delivered to every active watch.
    """

    def __init__(self, lat: float, lng: float, accuracy: float | None = None):
        self._coords = Coordinates(lat=lat, lng=lng, accuracy=accuracy)
        self._watches: dict[int, SuccessCallback] = {}
        self._next_watch_id = 1

    @classmethod
    def from_config(cls, config: GeolocationConfig) -> FixedPositionBackend | None:
        if config.fixed_lat is None or config.fixed_lng is None:
            return None
        return cls(config.fixed_lat, config.fixed_lng)

    def _position(self) -> Position:
        return Position(coords=self._coords, timestamp=time.time())

    def get_current_position(self, on_success, on_error, options) -> None:
        on_success(self._position())

    def watch_position(self, on_success, on_error, options) -> int:
        watch_id = self._next_watch_id
        self._next_watch_id += 1
        self._watches[watch_id] = on_success
        on_success(self._position())
        return watch_id

    def clear_watch(self, watch_id: int) -> None:
        self._watches.pop(watch_id, None)

    @property
    def active_watches(self) -> int:
        return len(self._watches)

    def move_to(self, lat: float, lng: float, accuracy: float | None = None) -> None:
        self._coords = Coordinates(lat=lat, lng=lng, accuracy=accuracy)
        logger.debug("Fixed position moved to (%.5f, %.5f)", lat, lng)
        for on_success in list(self._watches.values()):
            on_success(self._position())
