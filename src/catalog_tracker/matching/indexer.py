"""Keyed index over one snapshot.

Each identity key holds exactly one record. Repeated keys are counted as
collisions and resolved with :func:`prefer_candidate`.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping

from ..common.config_validator import FieldMapping
from ..standards.naming import Record, field_text, normalize_record
from .keys import build_key
from .tiebreak import prefer_candidate


logger = logging.getLogger("catalog_tracker.matching.indexer")


@dataclass
class DatasetIndex:
    records: Dict[str, Record] = field(default_factory=dict)
    collisions: Dict[str, int] = field(default_factory=dict)
    duplicate_name_count: int = 0
    skipped_rows: int = 0
    source_rows: int = 0

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, key: object) -> bool:
        return key in self.records

    def __iter__(self) -> Iterator[str]:
        return iter(self.records)

    def get(self, key: str) -> Record | None:
        return self.records.get(key)

    def keys(self) -> List[str]:
        return list(self.records)

    @property
    def collision_count(self) -> int:
        """Total number of rows that landed on an already indexed key."""
        return sum(self.collisions.values())

    def stats(self) -> Dict[str, int]:
        return {
            "sourceRows": self.source_rows,
            "indexedProducts": len(self.records),
            "skippedRows": self.skipped_rows,
            "duplicateNames": self.duplicate_name_count,
            "keyCollisions": self.collision_count,
            "collidingKeys": len(self.collisions),
        }


def build_index(records: Iterable[Mapping[Any, Any]], fields: FieldMapping) -> DatasetIndex:
    """Normalize and index ``records`` by identity key.

    Rows without a product name cannot be identified and are skipped. The
    duplicate-name tally counts names that occur on more than one row and is
    kept separate from key collisions: one name with two images repeats
    without colliding.
    """
    index = DatasetIndex()
    name_counts: Counter = Counter()

    for raw in records:
        index.source_rows += 1
        item = normalize_record(raw)
        name = field_text(item, fields.product_name)
        if not name:
            index.skipped_rows += 1
            continue
        name_counts[name] += 1

        key = build_key(item, fields)
        stored = index.records.get(key)
        if stored is None:
            index.records[key] = item
            continue

        index.collisions[key] = index.collisions.get(key, 0) + 1
        if prefer_candidate(field_text(stored, fields.image), field_text(item, fields.image)):
            logger.debug("Key %s: replacing stored row with one carrying image detail", key)
            index.records[key] = item

    index.duplicate_name_count = sum(1 for n in name_counts.values() if n > 1)
    logger.info(
        "Indexed %d products from %d rows (duplicate names: %d, key collisions: %d, skipped: %d)",
        len(index.records),
        index.source_rows,
        index.duplicate_name_count,
        index.collision_count,
        index.skipped_rows,
    )
    return index
