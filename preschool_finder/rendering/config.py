from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MapConfig:
    # Centered on Sweden
    center: tuple[float, float] = (62.0, 15.0)
    zoom: int = 5
    max_zoom: int = 18
    tile_url: str = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
    attribution: str = "&copy; OpenStreetMap contributors"
    max_cluster_radius: int = 50
    popup_max_width: int = 300


DEFAULT_MAP_CONFIG = MapConfig()
