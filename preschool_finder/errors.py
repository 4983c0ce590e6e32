from __future__ import annotations

from enum import Enum


class DataUnavailable(Exception):
    """The preschool dataset could not be found or read."""


class NotFound(LookupError):
    """No facility with the requested id exists in the catalog."""

    def __init__(self, facility_id: str):
        super().__init__(f"No facility with id {facility_id!r}")
        self.facility_id = facility_id


class LocationErrorKind(str, Enum):
    unsupported = "unsupported"
    permission_denied = "permission_denied"
    unavailable = "unavailable"
    timeout = "timeout"


class LocationError(Exception):
    """A location request failed. Terminal for that request; never retried."""

    def __init__(self, kind: LocationErrorKind, message: str | None = None):
        super().__init__(message or kind.value.replace("_", " "))
        self.kind = kind
