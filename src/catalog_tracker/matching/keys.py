"""Identity keys for product rows.

A product is identified across snapshots by its trimmed name plus the leaf
file name of its detail image, e.g. ``"Widget|foo.jpg"``.
"""
from __future__ import annotations

from typing import Mapping

from ..common.config_validator import FieldMapping
from ..standards.naming import field_text, normalize_value

KEY_SEPARATOR = "|"


def image_filename(image_detail: str) -> str:
    """Leaf segment after the last ``/``; the whole string when there is none."""
    return normalize_value(image_detail).split("/")[-1].strip()


def build_key(record: Mapping[str, str], fields: FieldMapping) -> str:
    name = field_text(record, fields.product_name)
    filename = image_filename(normalize_value(record.get(fields.image)))
    return f"{name}{KEY_SEPARATOR}{filename}"


def name_from_key(key: str) -> str:
    """Display name portion of an identity key."""
    return key.split(KEY_SEPARATOR)[0]
