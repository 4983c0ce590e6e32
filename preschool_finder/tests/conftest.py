from __future__ import annotations

import time

import pytest

from preschool_finder.catalog.engine import CatalogEngine
from preschool_finder.catalog.models import Facility
from preschool_finder.geolocation.models import Coordinates, Position, PositionError, PositionErrorCode

# Distances from (59.33, 18.06): 1 → 0 km, 5 → ~1.3 km, 2 → ~4.8 km, 7 → ~6.1 km,
# 3 → ~64 km, 6 → ~400 km; 4 has no coordinates.
SAMPLE_ROWS = [
    {"id": "1", "name": "Solrosen", "municipality": "Stockholm", "operator_type": "Municipal",
     "address": "Storgatan 1", "child_count": 40, "staff_ratio": 5.2,
     "teacher_qualification_pct": 45.0, "latitude": 59.33, "longitude": 18.06},
    {"id": "2", "name": "Lärkan", "municipality": "Solna", "operator_type": "Private",
     "address": "ABC-vägen 3", "child_count": 22, "staff_ratio": 4.8,
     "teacher_qualification_pct": 60.0, "latitude": 59.36, "longitude": 18.00},
    {"id": "3", "name": "Ekorren", "municipality": "Uppsala", "operator_type": "Municipal",
     "address": None, "child_count": 55, "staff_ratio": 5.9,
     "teacher_qualification_pct": 38.5, "latitude": 59.86, "longitude": 17.64},
    {"id": "4", "name": "Blåklockan", "municipality": "Stockholm", "operator_type": "Private",
     "address": "Abcgatan 7", "child_count": None, "staff_ratio": None,
     "teacher_qualification_pct": None, "latitude": None, "longitude": None},
    {"id": "5", "name": "Humlan", "municipality": "Stockholm", "operator_type": "Municipal",
     "address": "Kungsgatan 12", "child_count": 31, "staff_ratio": 5.0,
     "teacher_qualification_pct": 52.0, "latitude": 59.34, "longitude": 18.07},
    {"id": "6", "name": "Myran", "municipality": "Göteborg", "operator_type": "Private",
     "address": "Avenyn 2", "child_count": 18, "staff_ratio": 4.1,
     "teacher_qualification_pct": 70.0, "latitude": 57.71, "longitude": 11.97},
    {"id": "7", "name": "Tallen", "municipality": "Nacka", "operator_type": "Private",
     "address": "Skogsvägen 9", "child_count": 27, "staff_ratio": 5.5,
     "teacher_qualification_pct": 41.0, "latitude": 59.31, "longitude": 18.16},
]

STOCKHOLM = Coordinates(lat=59.33, lng=18.06)


def make_position(lat: float, lng: float, accuracy: float | None = None) -> Position:
    return Position(coords=Coordinates(lat=lat, lng=lng, accuracy=accuracy), timestamp=time.time())


class FakeBackend:
    """Backend that records callbacks so tests decide when and how it answers."""

    def __init__(self):
        self.one_shot: list[tuple] = []
        self.watches: dict[int, tuple] = {}
        self.cleared: list[int] = []
        self.options: list = []
        self._next_id = 1

    def get_current_position(self, on_success, on_error, options):
        self.one_shot.append((on_success, on_error))
        self.options.append(options)

    def watch_position(self, on_success, on_error, options):
        watch_id = self._next_id
        self._next_id += 1
        self.watches[watch_id] = (on_success, on_error)
        self.options.append(options)
        return watch_id

    def clear_watch(self, watch_id):
        self.cleared.append(watch_id)
        self.watches.pop(watch_id, None)

    def emit(self, lat: float, lng: float, accuracy: float | None = None):
        for on_success, _ in list(self.watches.values()):
            on_success(make_position(lat, lng, accuracy))

    def fail(self, code: PositionErrorCode):
        for _, on_error in list(self.watches.values()):
            on_error(PositionError(code=code))


class ErrorBackend(FakeBackend):
    def __init__(self, code: PositionErrorCode):
        super().__init__()
        self.code = code

    def get_current_position(self, on_success, on_error, options):
        on_error(PositionError(code=self.code, message="denied by test"))


@pytest.fixture
def facilities() -> list[Facility]:
    return [Facility(**row) for row in SAMPLE_ROWS]


@pytest.fixture
def engine(facilities) -> CatalogEngine:
    return CatalogEngine(facilities)


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()
