"""Old product code -> new product code lookup derived from a comparison run."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .reconcile import ComparisonRecord
from .tiebreak import prefer_candidate


logger = logging.getLogger("catalog_tracker.matching.rename_map")


@dataclass(frozen=True)
class RenameEntry:
    new_code: str
    product_name: str
    product_key: str
    old_categories: str = ""
    new_categories: str = ""
    old_image_detail: str = ""
    new_image_detail: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "newCode": self.new_code,
            "productName": self.product_name,
            "productKey": self.product_key,
            "oldCategories": self.old_categories,
            "newCategories": self.new_categories,
            "oldImageDetail": self.old_image_detail,
            "newImageDetail": self.new_image_detail,
        }

    @classmethod
    def from_comparison(cls, record: ComparisonRecord) -> "RenameEntry":
        return cls(
            new_code=record.new.product_code,
            product_name=record.product_name,
            product_key=record.product_key,
            old_categories=record.old.categories,
            new_categories=record.new.categories,
            old_image_detail=record.old.image_detail,
            new_image_detail=record.new.image_detail,
        )


@dataclass
class RenameMap:
    entries: Dict[str, RenameEntry] = field(default_factory=dict)
    duplicates: Dict[str, int] = field(default_factory=dict)
    unchanged_count: int = 0

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.strip() in self.entries

    def lookup(self, code: str) -> Optional[RenameEntry]:
        return self.entries.get((code or "").strip())

    @property
    def duplicate_count(self) -> int:
        return sum(self.duplicates.values())

    def sample(self, limit: int = 5) -> List[Tuple[str, Dict[str, str]]]:
        return [(code, entry.to_dict()) for code, entry in list(self.entries.items())[:limit]]

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {code: entry.to_dict() for code, entry in self.entries.items()}

    def stats(self) -> Dict[str, object]:
        return {
            "totalMappings": len(self.entries),
            "noChangeCount": self.unchanged_count,
            "duplicateOldCodes": dict(self.duplicates),
            "duplicateOccurrences": self.duplicate_count,
        }


def build_rename_map(comparisons: Iterable[ComparisonRecord]) -> RenameMap:
    """Collect code renames from comparison records.

    Two identities sharing one old code is a data anomaly; the existing entry
    is kept unless the newcomer has old image detail the existing one lacks.
    Every repeat is counted in ``duplicates``.
    """
    rename_map = RenameMap()
    for record in comparisons:
        if not record.code_changed:
            rename_map.unchanged_count += 1
            continue

        old_code = record.old.product_code
        candidate = RenameEntry.from_comparison(record)
        existing = rename_map.entries.get(old_code)
        if existing is None:
            rename_map.entries[old_code] = candidate
            continue

        rename_map.duplicates[old_code] = rename_map.duplicates.get(old_code, 0) + 1
        logger.warning(
            "Old code %s is claimed by %s and %s",
            old_code,
            existing.product_key,
            candidate.product_key,
        )
        if prefer_candidate(existing.old_image_detail, candidate.old_image_detail):
            rename_map.entries[old_code] = candidate

    logger.info(
        "Rename map: %d codes to change, %d unchanged, %d duplicate old codes",
        len(rename_map.entries),
        rename_map.unchanged_count,
        len(rename_map.duplicates),
    )
    return rename_map
