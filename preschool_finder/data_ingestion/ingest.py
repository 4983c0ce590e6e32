from __future__ import annotations

import json
import logging
from typing import Any, Iterable, List, Mapping

import pandas as pd
from pydantic import ValidationError

from ..catalog.models import Facility
from ..errors import DataUnavailable
from .config import DEFAULT_INGESTION_CONFIG, IngestionConfig

logger = logging.getLogger(__name__)

CANONICAL_COLUMNS: List[str] = [
    "id",
    "name",
    "municipality",
    "operatorType",
    "address",
    "childCount",
    "staffRatio",
    "teacherQualificationPct",
    "latitude",
    "longitude",
]

# Source headers seen in the wild, Swedish export first.
COLUMN_ALIASES: dict[str, List[str]] = {
    "id": ["id", "ID", "Id", "Skolenhetskod"],
    "name": ["Namn", "name", "Name"],
    "municipality": ["Kommun", "municipality", "Municipality"],
    "operatorType": ["Huvudman", "operatorType", "operator_type"],
    "address": ["Adress", "address", "Address"],
    "childCount": ["Antal barn", "childCount", "child_count"],
    "staffRatio": ["Personaltäthet", "staffRatio", "staff_ratio"],
    "teacherQualificationPct": [
        "Andel med förskollärarexamen",
        "teacherQualificationPct",
        "teacher_qualification_pct",
    ],
    "latitude": ["Latitud", "latitude", "lat"],
    "longitude": ["Longitud", "longitude", "lng", "lon"],
}

_TEXT_COLUMNS = ["name", "municipality", "operatorType"]
_NUMERIC_COLUMNS = ["childCount", "staffRatio", "teacherQualificationPct", "latitude", "longitude"]
# Bad values in these are dropped to None instead of losing the row
_OPTIONAL_COLUMNS = {"address", *_NUMERIC_COLUMNS}


def _first_present(df: pd.DataFrame, columns: List[str]) -> str | None:
    for col in columns:
        if col in df.columns:
            return col
    return None


def _stringify_id(value: Any) -> str | None:
    if value is None or pd.isna(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value).strip()
    return text or None


def _fill_missing_ids(ids: pd.Series) -> pd.Series:
    """Rows without their own id get their row index, suffixed if a real id already uses it."""
    taken = {value for value in ids if not pd.isna(value)}
    filled = []
    for index, value in ids.items():
        if pd.isna(value):
            candidate, suffix = str(index), 1
            while candidate in taken:
                candidate = f"{index}-{suffix}"
                suffix += 1
            taken.add(candidate)
            value = candidate
        filled.append(value)
    return pd.Series(filled, index=ids.index, dtype=object)


def _strip_js_assignment(text: str) -> str:
    """Turn `window.allSchoolsData = [...];` into the bare JSON literal."""
    body = text.strip()
    if not body.startswith(("[", "{")):
        body = body.partition("=")[2].strip()
    return body.rstrip(";").strip()


def _records_from_payload(payload: Any) -> list[dict]:
    if isinstance(payload, dict):
        for key in ("preschools", "data", "records"):
            if isinstance(payload.get(key), list):
                return payload[key]
        raise DataUnavailable("JSON payload has no list of preschool records")
    if not isinstance(payload, list):
        raise DataUnavailable("JSON payload must be a list of preschool records")
    return payload


def read_dataset(config: IngestionConfig = DEFAULT_INGESTION_CONFIG) -> pd.DataFrame:
    """
    Read the raw dataset file into a DataFrame without normalizing it.

    Raises DataUnavailable when the file is missing or cannot be parsed.
    """
    path = config.data_path
    if not path.is_file():
        raise DataUnavailable(f"Preschool dataset not found: {path}")

    suffix = path.suffix.lower()
    try:
        if suffix == ".csv":
            return pd.read_csv(path, encoding=config.encoding)
        text = path.read_text(encoding=config.encoding)
        if suffix == ".js":
            text = _strip_js_assignment(text)
        payload = json.loads(text)
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        raise DataUnavailable(f"Could not read preschool dataset {path}: {exc}") from exc

    return pd.DataFrame.from_records(_records_from_payload(payload))


def normalize_frame(df: pd.DataFrame) -> pd.DataFrame:
    """
    Map raw columns onto CANONICAL_COLUMNS.

    Missing optional columns become None; unparseable numbers are coerced to None.
    """
    canonical = pd.DataFrame(index=df.index)

    col_id = _first_present(df, COLUMN_ALIASES["id"])
    if col_id:
        ids = df[col_id].apply(_stringify_id).astype(object)
    else:
        ids = pd.Series(None, index=df.index, dtype=object)
    canonical["id"] = _fill_missing_ids(ids)

    for column in _TEXT_COLUMNS:
        source = _first_present(df, COLUMN_ALIASES[column])
        canonical[column] = df[source].fillna("").astype(str).str.strip() if source else ""

    col_address = _first_present(df, COLUMN_ALIASES["address"])
    if col_address:
        address = df[col_address].fillna("").astype(str).str.strip()
        canonical["address"] = address.where(address != "", None)
    else:
        canonical["address"] = None

    for column in _NUMERIC_COLUMNS:
        source = _first_present(df, COLUMN_ALIASES[column])
        if source:
            values = df[source]
            if not pd.api.types.is_numeric_dtype(values):
                # Swedish exports use a decimal comma
                values = values.astype(str).str.replace(",", ".", regex=False)
            canonical[column] = pd.to_numeric(values, errors="coerce")
        else:
            canonical[column] = None

    canonical = canonical[CANONICAL_COLUMNS].astype(object)
    return canonical.where(canonical.notna(), None)


def _validate_row(record: dict[str, Any]) -> Facility | None:
    """
    Validate one normalized row.

    Invalid optional metrics are logged and set to None; only rows without a
    usable id or name are dropped.
    """
    if not record.get("id") or not record.get("name"):
        logger.warning("Skipping preschool row %r without id or name", record.get("id"))
        return None
    try:
        return Facility.model_validate(record)
    except ValidationError as exc:
        bad = {err["loc"][0] for err in exc.errors() if err["loc"]}
        if not bad or not bad <= _OPTIONAL_COLUMNS:
            logger.warning("Skipping preschool row %r: %s", record.get("id"), exc)
            return None
        logger.warning(
            "Dropping invalid %s on preschool row %r", ", ".join(sorted(bad)), record.get("id")
        )
        return Facility.model_validate({**record, **{column: None for column in bad}})


def build_catalog(df: pd.DataFrame) -> tuple[Facility, ...]:
    """Validate normalized rows into Facilities, skipping unusable rows and duplicate ids."""
    facilities: list[Facility] = []
    seen: set[str] = set()
    for record in normalize_frame(df).to_dict(orient="records"):
        facility = _validate_row(record)
        if facility is None:
            continue
        if facility.id in seen:
            logger.warning("Skipping duplicate preschool id %r", facility.id)
            continue
        seen.add(facility.id)
        facilities.append(facility)
    return tuple(facilities)


def catalog_from_records(records: Iterable[Mapping[str, Any]]) -> tuple[Facility, ...]:
    """Build a catalog from an already-parsed collection of facility-shaped records."""
    records = list(records)
    if not records:
        return ()
    return build_catalog(pd.DataFrame.from_records(records))


def load_catalog(config: IngestionConfig = DEFAULT_INGESTION_CONFIG) -> tuple[Facility, ...]:
    """
    Load the catalog once at startup.

    A missing or unreadable dataset degrades to an empty catalog and is only logged.
    """
    try:
        df = read_dataset(config)
    except DataUnavailable:
        logger.warning("Preschool data unavailable, starting with an empty catalog", exc_info=True)
        return ()

    catalog = build_catalog(df)
    logger.info("Loaded %d preschools from %s", len(catalog), config.data_path)
    return catalog


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    loaded = load_catalog()
    print(f"Ingestion complete. {len(loaded)} preschools loaded from: {DEFAULT_INGESTION_CONFIG.data_path}")
