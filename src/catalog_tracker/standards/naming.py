"""Centralized naming utilities for export headers and cell values."""
from __future__ import annotations

import math
from typing import Any, Dict, Mapping

Record = Dict[str, str]

_BOM = "\ufeff"


def normalize_field_name(name: Any) -> str:
    """Strip one leading byte-order mark, then surrounding whitespace."""
    if name is None:
        return ""
    s = str(name)
    if s.startswith(_BOM):
        s = s[1:]
    return s.strip()


def normalize_value(val: Any) -> str:
    if val is None:
        return ""
    if isinstance(val, float) and math.isnan(val):
        return ""
    return str(val)


def normalize_record(record: Mapping[Any, Any]) -> Record:
    """Return a copy of ``record`` with every field name normalized.

    Values are kept as-is apart from coercion to ``str``; missing values
    (None, NaN) become empty strings.
    """
    return {normalize_field_name(k): normalize_value(v) for k, v in record.items()}


def field_text(record: Mapping[str, str], field: str) -> str:
    """Trimmed value of ``field``; absent or empty fields yield ``""``."""
    return normalize_value(record.get(field)).strip()
