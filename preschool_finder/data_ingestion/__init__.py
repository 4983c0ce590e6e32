"""
Dataset ingestion for the preschool directory.

Responsibilities:
- Read the raw dataset (JSON, CSV or the viewer's JS data file).
- Normalize Swedish or English column headers into the canonical Facility schema.
- Return an immutable catalog, degrading to empty when the data is missing.
"""
