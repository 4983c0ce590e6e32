"""
Configuration for dataset ingestion.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_DEFAULT_DATA_PATH = Path("data") / "preschools.json"


@dataclass(frozen=True)
class IngestionConfig:
    """
    Where the dataset lives and how its file is interpreted.
    """

    data_path: Path = field(
        default_factory=lambda: Path(os.getenv("PRESCHOOL_DATA_PATH", str(_DEFAULT_DATA_PATH)))
    )
    # Prefix used by the browser viewer's data file: `window.allSchoolsData = [...]`
    js_assignment_prefix: str = "window.allSchoolsData"
    encoding: str = "utf-8"


DEFAULT_INGESTION_CONFIG = IngestionConfig()
