from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Facility(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str
    municipality: str
    operator_type: str = Field(..., alias="operatorType", description='"Municipal" or "Private"')
    address: str | None = None
    child_count: int | None = Field(default=None, ge=0, alias="childCount")
    staff_ratio: float | None = Field(default=None, alias="staffRatio", description="Children per staff")
    teacher_qualification_pct: float | None = Field(
        default=None, ge=0.0, le=100.0, alias="teacherQualificationPct"
    )
    latitude: float | None = None
    longitude: float | None = None
    # Written by proximity queries only
    distance_km: float | None = Field(default=None, alias="distanceKm")

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def matches(self, term: str) -> bool:
        """Unanchored substring match on name, municipality and address; `term` must be lowercase."""
        if term in self.name.lower() or term in self.municipality.lower():
            return True
        return bool(self.address) and term in self.address.lower()


class CatalogMetadata(BaseModel):
    municipalities: list[str]
    operator_types: list[str]
    total: int


class MarkerSpec(BaseModel):
    facility_id: str
    latitude: float
    longitude: float
    popup_html: str
