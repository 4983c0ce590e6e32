from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


def _env_float(name: str) -> float | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


@dataclass(frozen=True)
class PositionOptions:
    enable_high_accuracy: bool = True
    timeout_s: float = 15.0
    maximum_age_s: float = 300.0


@dataclass(frozen=True)
class GeolocationConfig:
    default_radius_km: float = 10.0
    nearby_display_limit: int = 10
    one_shot: PositionOptions = field(default_factory=PositionOptions)
    watch: PositionOptions = field(
        default_factory=lambda: PositionOptions(timeout_s=30.0, maximum_age_s=60.0)
    )
    user_zoom: int = 12
    fixed_lat: float | None = _env_float("PRESCHOOL_FIXED_LAT")
    fixed_lng: float | None = _env_float("PRESCHOOL_FIXED_LNG")


DEFAULT_GEOLOCATION_CONFIG = GeolocationConfig()
