"""Utility functions for loading configuration and snapshot exports."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pandas as pd
import yaml

from .standards.naming import Record, normalize_record


LOGGER_NAME = "catalog_tracker.ingestion"

SNAPSHOT_EXTENSIONS = (".csv", ".tsv", ".txt", ".xlsx", ".xlsm")

logger = logging.getLogger(LOGGER_NAME)


def load_config(path: str | Path | None) -> Dict:
    """Load a YAML configuration file; a missing path yields an empty mapping."""

    if path is None:
        return {}
    path = Path(path)
    if not path.exists():
        logger.info("Config file %s not found, using defaults", path)
        return {}
    with open(path, "r", encoding="utf-8") as stream:
        return yaml.safe_load(stream) or {}


def ensure_directory(directory: str | Path) -> Path:
    """Ensure that the directory exists."""

    path = Path(directory)
    path.mkdir(parents=True, exist_ok=True)
    return path


def validate_extension(path: Path, allowed: Iterable[str]) -> None:
    """Ensure the file extension is allowed."""

    suffix = path.suffix.lower()
    if suffix not in {ext.lower() for ext in allowed}:
        raise ValueError(f"Unsupported file extension: {suffix}. Allowed: {list(allowed)}")


def read_input_file(path: Path, encoding: str = "utf-8") -> pd.DataFrame:
    """Read a snapshot export into a DataFrame of strings.

    - Comma for .csv, tab for .tsv, sniffed delimiter for .txt
    - dtype=str and NA detection disabled so empty cells stay ""
    - Parsing errors are raised with the file name for context
    """

    suffix = path.suffix.lower()
    if suffix in {".csv", ".tsv", ".txt"}:
        sep = {".csv": ",", ".tsv": "\t"}.get(suffix)
        try:
            return pd.read_csv(
                path,
                dtype=str,
                sep=sep,
                engine="python",
                encoding=encoding,
                keep_default_na=False,
            )
        except Exception as exc:
            raise ValueError(f"Failed to read delimited file {path}: {exc}") from exc

    if suffix in {".xlsx", ".xlsm"}:
        try:
            return pd.read_excel(path, dtype=str, keep_default_na=False)
        except Exception as exc:
            raise ValueError(f"Failed to read Excel file {path}: {exc}") from exc

    raise ValueError(f"Unsupported input file extension for {path}")


def frame_to_records(df: pd.DataFrame) -> List[Record]:
    """Convert a frame into normalized field-name -> string records."""

    if df.empty:
        return []
    return [normalize_record(row) for row in df.fillna("").to_dict(orient="records")]


def read_records(path: str | Path, encoding: str = "utf-8", allowed: Optional[Iterable[str]] = None) -> List[Record]:
    """Read one snapshot as a list of records.

    Raises:
        FileNotFoundError: when the snapshot does not exist
        ValueError: when the file cannot be parsed
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    validate_extension(path, allowed or SNAPSHOT_EXTENSIONS)
    df = read_input_file(path, encoding=encoding)
    records = frame_to_records(df)
    logger.info("Read %s (%d rows)", path.name, len(records))
    if records:
        logger.debug("Normalized fields: %s ...", list(records[0])[:5])
    return records
