from __future__ import annotations

from typing import Iterable

import pandas as pd

from ..catalog.models import Facility

# Rows of the side-by-side comparison, in display order.
COMPARISON_ROWS: list[tuple[str, str]] = [
    ("Kommun", "municipality"),
    ("Huvudman", "operator_type"),
    ("Adress", "address"),
    ("Inskrivna barn", "child_count"),
    ("Barn per personal", "staff_ratio"),
    ("Förskollärarexamen (%)", "teacher_qualification_pct"),
    ("Avstånd (km)", "distance_km"),
]


def results_frame(facilities: Iterable[Facility]) -> pd.DataFrame:
    """One row per facility, for the results list."""
    rows = [
        {
            "id": f.id,
            "name": f.name,
            "municipality": f.municipality,
            "operator_type": f.operator_type,
            "address": f.address,
            "child_count": f.child_count,
            "staff_ratio": f.staff_ratio,
            "teacher_qualification_pct": f.teacher_qualification_pct,
            "distance_km": round(f.distance_km, 1) if f.distance_km is not None else None,
        }
        for f in facilities
    ]
    return pd.DataFrame(rows, columns=[
        "id", "name", "municipality", "operator_type", "address",
        "child_count", "staff_ratio", "teacher_qualification_pct", "distance_km",
    ])


def comparison_frame(facilities: Iterable[Facility]) -> pd.DataFrame:
    """One column per facility, labelled "name (id)" so equal names stay distinct; one row per metric."""
    facilities = list(facilities)
    rows = [[getattr(f, attr) for f in facilities] for _, attr in COMPARISON_ROWS]
    return pd.DataFrame(
        rows,
        index=[label for label, _ in COMPARISON_ROWS],
        columns=[f"{f.name} ({f.id})" for f in facilities],
        dtype=object,
    )
