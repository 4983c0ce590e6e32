from __future__ import annotations

import html
import logging
from pathlib import Path
from typing import Iterable

import folium
from folium.plugins import MarkerCluster

from ..catalog.models import Facility, MarkerSpec
from ..geolocation.config import DEFAULT_GEOLOCATION_CONFIG
from ..geolocation.models import Coordinates
from .config import DEFAULT_MAP_CONFIG, MapConfig

logger = logging.getLogger(__name__)

MISSING = "—"


def _fmt(value: float | int | None, pattern: str = "{}") -> str:
    return MISSING if value is None else pattern.format(value)


def popup_html(facility: Facility) -> str:
    address = facility.address or "Adress ej tillgänglig"
    return (
        '<div class="popup-content">'
        f"<h3>{html.escape(facility.name)}</h3>"
        f"<p><strong>{html.escape(facility.operator_type)}</strong> • {html.escape(facility.municipality)}</p>"
        f"<p>{html.escape(address)}</p>"
        '<div class="popup-stats">'
        f"<span>Barn: {_fmt(facility.child_count)}</span> "
        f"<span>Personal: {_fmt(facility.staff_ratio, '{:.1f}')}</span>"
        "</div></div>"
    )


def marker_spec(facility: Facility) -> MarkerSpec:
    if not facility.has_coordinates:
        raise ValueError(f"Facility {facility.id!r} has no coordinates")
    return MarkerSpec(
        facility_id=facility.id,
        latitude=facility.latitude,
        longitude=facility.longitude,
        popup_html=popup_html(facility),
    )


class FoliumMapView:
    """
    Map collaborator. Keeps marker state itself and builds a fresh
    folium.Map on `render`, with facility markers in a MarkerCluster.
    """

    def __init__(self, config: MapConfig = DEFAULT_MAP_CONFIG):
        self._config = config
        self._center: tuple[float, float] = config.center
        self._zoom = config.zoom
        self._markers: dict[str, MarkerSpec] = {}
        self._user_location: Coordinates | None = None

    @property
    def center(self) -> tuple[float, float]:
        return self._center

    @property
    def zoom(self) -> int:
        return self._zoom

    @property
    def markers(self) -> list[MarkerSpec]:
        return list(self._markers.values())

    @property
    def user_location(self) -> Coordinates | None:
        return self._user_location

    def set_view(self, lat: float, lng: float, zoom: int) -> None:
        self._center = (lat, lng)
        self._zoom = zoom

    def add_marker(self, spec: MarkerSpec) -> None:
        self._markers[spec.facility_id] = spec

    def remove_marker(self, facility_id: str) -> None:
        self._markers.pop(facility_id, None)

    def clear_markers(self) -> None:
        self._markers.clear()

    def set_user_marker(self, coords: Coordinates) -> None:
        self._user_location = coords

    def show_user(self, coords: Coordinates, zoom: int = DEFAULT_GEOLOCATION_CONFIG.user_zoom) -> None:
        self.set_view(coords.lat, coords.lng, zoom)
        self.set_user_marker(coords)

    def sync_markers(self, facilities: Iterable[Facility]) -> None:
        """Replace all markers with the facilities that can be placed on the map."""
        self.clear_markers()
        for facility in facilities:
            if facility.has_coordinates:
                self.add_marker(marker_spec(facility))
        logger.debug("Updated map with %d markers", len(self._markers))

    def render(self) -> folium.Map:
        fmap = folium.Map(
            location=list(self._center),
            zoom_start=self._zoom,
            max_zoom=self._config.max_zoom,
            tiles=self._config.tile_url,
            attr=self._config.attribution,
        )
        cluster = MarkerCluster(
            name="Förskolor",
            options={
                "chunkedLoading": True,
                "spiderfyOnMaxZoom": True,
                "showCoverageOnHover": False,
                "zoomToBoundsOnClick": True,
                "maxClusterRadius": self._config.max_cluster_radius,
            },
        ).add_to(fmap)

        for spec in self._markers.values():
            folium.Marker(
                location=[spec.latitude, spec.longitude],
                popup=folium.Popup(spec.popup_html, max_width=self._config.popup_max_width),
            ).add_to(cluster)

        if self._user_location is not None:
            folium.Marker(
                location=[self._user_location.lat, self._user_location.lng],
                popup="Din plats",
                icon=folium.DivIcon(
                    html='<div class="user-marker-dot"></div>',
                    icon_size=(20, 20),
                    icon_anchor=(10, 10),
                    class_name="user-location-marker",
                ),
            ).add_to(fmap)

        return fmap

    def save(self, path: Path | str) -> Path:
        path = Path(path)
        self.render().save(str(path))
        logger.info("Wrote map with %d markers to %s", len(self._markers), path)
        return path
