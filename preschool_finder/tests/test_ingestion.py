import json
from pathlib import Path

import pandas as pd
import pytest

from preschool_finder.data_ingestion.config import IngestionConfig
from preschool_finder.data_ingestion.ingest import (
    CANONICAL_COLUMNS,
    catalog_from_records,
    load_catalog,
    normalize_frame,
    read_dataset,
)
from preschool_finder.errors import DataUnavailable

SWEDISH_RECORDS = [
    {
        "id": "101",
        "Namn": "Solrosen",
        "Kommun": "Stockholm",
        "Huvudman": "Municipal",
        "Adress": "Storgatan 1",
        "Antal barn": 40,
        "Personaltäthet": 5.2,
        "Andel med förskollärarexamen": 45.0,
        "Latitud": 59.33,
        "Longitud": 18.06,
    },
    {
        "id": "102",
        "Namn": "Lärkan",
        "Kommun": "Solna",
        "Huvudman": "Private",
        "Antal barn": None,
        "Latitud": None,
        "Longitud": None,
    },
]


def _write_json(tmp_path: Path, payload, name: str = "preschools.json") -> IngestionConfig:
    path = tmp_path / name
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return IngestionConfig(data_path=path)


def test_load_json_list(tmp_path: Path):
    catalog = load_catalog(_write_json(tmp_path, SWEDISH_RECORDS))

    assert [f.id for f in catalog] == ["101", "102"]
    first = catalog[0]
    assert first.name == "Solrosen"
    assert first.municipality == "Stockholm"
    assert first.operator_type == "Municipal"
    assert first.child_count == 40
    assert first.staff_ratio == pytest.approx(5.2)
    assert first.teacher_qualification_pct == pytest.approx(45.0)
    assert first.has_coordinates


def test_optional_fields_tolerated(tmp_path: Path):
    catalog = load_catalog(_write_json(tmp_path, SWEDISH_RECORDS))
    second = catalog[1]
    assert second.address is None
    assert second.child_count is None
    assert second.staff_ratio is None
    assert not second.has_coordinates


def test_load_wrapped_json(tmp_path: Path):
    catalog = load_catalog(_write_json(tmp_path, {"preschools": SWEDISH_RECORDS}))
    assert len(catalog) == 2


def test_load_viewer_js_file(tmp_path: Path):
    path = tmp_path / "preschools.js"
    path.write_text(
        "window.allSchoolsData = " + json.dumps(SWEDISH_RECORDS, ensure_ascii=False) + ";\n",
        encoding="utf-8",
    )
    catalog = load_catalog(IngestionConfig(data_path=path))
    assert [f.name for f in catalog] == ["Solrosen", "Lärkan"]


def test_load_csv_with_english_headers_and_decimal_comma(tmp_path: Path):
    path = tmp_path / "preschools.csv"
    path.write_text(
        "id,name,municipality,operatorType,address,childCount,staffRatio,latitude,longitude\n"
        '7,Tallen,Nacka,Private,Skogsvägen 9,27,"5,5",59.31,18.16\n'
        "8,Myran,Göteborg,Private,,,,,\n",
        encoding="utf-8",
    )
    catalog = load_catalog(IngestionConfig(data_path=path))

    assert [f.id for f in catalog] == ["7", "8"]
    assert catalog[0].staff_ratio == pytest.approx(5.5)
    assert catalog[0].latitude == pytest.approx(59.31)
    assert catalog[1].address is None
    assert catalog[1].latitude is None


def test_missing_id_falls_back_to_row_index():
    records = [{"name": "A", "municipality": "Lund", "operatorType": "Private"},
               {"name": "B", "municipality": "Lund", "operatorType": "Municipal"}]
    assert [f.id for f in catalog_from_records(records)] == ["0", "1"]


def test_numeric_ids_become_strings():
    records = [{"id": 5, "name": "A", "municipality": "Lund", "operatorType": "Private"}]
    assert catalog_from_records(records)[0].id == "5"


def test_duplicate_ids_keep_first_row():
    records = [
        {"id": "1", "name": "Ok", "municipality": "Lund", "operatorType": "Private"},
        {"id": "1", "name": "Duplicate", "municipality": "Lund", "operatorType": "Private"},
    ]
    catalog = catalog_from_records(records)
    assert [f.name for f in catalog] == ["Ok"]


def test_mixed_present_and_missing_ids():
    records = [
        {"id": "1", "name": "A", "municipality": "Lund", "operatorType": "Private"},
        {"name": "B", "municipality": "Lund", "operatorType": "Private"},
        {"id": "  ", "name": "C", "municipality": "Lund", "operatorType": "Private"},
    ]
    catalog = catalog_from_records(records)
    assert [f.name for f in catalog] == ["A", "B", "C"]
    assert len({f.id for f in catalog}) == 3
    assert catalog[0].id == "1"
    assert catalog[2].id == "2"


def test_out_of_range_metrics_are_dropped_not_the_row(caplog):
    records = [
        {"id": "1", "name": "Over", "municipality": "Lund", "operatorType": "Private",
         "teacherQualificationPct": 100.4, "childCount": 30},
        {"id": "2", "name": "Fraction", "municipality": "Lund", "operatorType": "Private",
         "childCount": 25.5, "staffRatio": 4.0},
        {"id": "3", "name": "Negative", "municipality": "Lund", "operatorType": "Private",
         "childCount": -3},
    ]
    catalog = catalog_from_records(records)

    assert [f.id for f in catalog] == ["1", "2", "3"]
    assert catalog[0].teacher_qualification_pct is None
    assert catalog[0].child_count == 30
    assert catalog[1].child_count is None
    assert catalog[1].staff_ratio == pytest.approx(4.0)
    assert catalog[2].child_count is None
    assert "Dropping invalid" in caplog.text


def test_rows_without_name_are_skipped():
    records = [
        {"id": "1", "name": "", "municipality": "Lund", "operatorType": "Private"},
        {"id": "2", "name": "Named", "municipality": "Lund", "operatorType": "Private"},
    ]
    assert [f.id for f in catalog_from_records(records)] == ["2"]


def test_decimal_comma_in_json_strings():
    records = [{"id": "1", "name": "A", "municipality": "Lund", "operatorType": "Private",
                "staffRatio": "4,5", "latitude": "55,7", "longitude": 13.19}]
    facility = catalog_from_records(records)[0]
    assert facility.staff_ratio == pytest.approx(4.5)
    assert facility.latitude == pytest.approx(55.7)
    assert facility.longitude == pytest.approx(13.19)


def test_non_numeric_metrics_become_none():
    records = [{"id": "1", "name": "A", "municipality": "Lund", "operatorType": "Private",
                "staffRatio": "okänt", "latitude": "n/a"}]
    facility = catalog_from_records(records)[0]
    assert facility.staff_ratio is None
    assert facility.latitude is None


def test_empty_records():
    assert catalog_from_records([]) == ()


def test_normalize_frame_columns():
    frame = normalize_frame(pd.DataFrame.from_records(SWEDISH_RECORDS))
    assert list(frame.columns) == CANONICAL_COLUMNS
    assert frame.loc[1, "latitude"] is None


def test_missing_file_degrades_to_empty_catalog(tmp_path: Path, caplog):
    catalog = load_catalog(IngestionConfig(data_path=tmp_path / "missing.json"))
    assert catalog == ()
    assert "unavailable" in caplog.text


def test_read_dataset_raises_for_missing_file(tmp_path: Path):
    with pytest.raises(DataUnavailable):
        read_dataset(IngestionConfig(data_path=tmp_path / "missing.json"))


def test_corrupt_file_degrades_to_empty_catalog(tmp_path: Path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(DataUnavailable):
        read_dataset(IngestionConfig(data_path=path))
    assert load_catalog(IngestionConfig(data_path=path)) == ()


def test_payload_without_records_is_unavailable(tmp_path: Path):
    config = _write_json(tmp_path, {"something": 1})
    with pytest.raises(DataUnavailable):
        read_dataset(config)
