"""Reconciliation driver.

Pairs old and new records by identity key, classifies category changes and
assembles the comparison result for one run. All state is local to the call.
"""
from __future__ import annotations

import locale
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..common.config_validator import FieldMapping
from ..standards.naming import Record, field_text
from .ambiguity import UnmappedAnalysis, analyze_unmapped
from .category_diff import (
    ABSENT_BOTH,
    APPEARED,
    CHANGE_TYPES,
    DISAPPEARED,
    MODIFIED,
    UNCHANGED,
    ChangeDescriptor,
    diff_categories,
    split_categories,
)
from .indexer import DatasetIndex, build_index
from .keys import name_from_key


logger = logging.getLogger("catalog_tracker.matching.reconcile")


@dataclass(frozen=True)
class ProductSnapshot:
    product_code: str = ""
    categories: str = ""
    categories_list: Tuple[str, ...] = ()
    image_detail: str = ""

    @classmethod
    def from_record(cls, record: Optional[Record], fields: FieldMapping) -> "ProductSnapshot":
        if record is None:
            return cls()
        categories = field_text(record, fields.category)
        return cls(
            product_code=field_text(record, fields.product_code),
            categories=categories,
            categories_list=tuple(split_categories(categories)),
            image_detail=field_text(record, fields.image),
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "productCode": self.product_code,
            "categories": self.categories,
            "categoriesArray": list(self.categories_list),
            "imageDetail": self.image_detail,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ProductSnapshot":
        categories = str(payload.get("categories") or "")
        return cls(
            product_code=str(payload.get("productCode") or ""),
            categories=categories,
            categories_list=tuple(payload.get("categoriesArray") or split_categories(categories)),
            image_detail=str(payload.get("imageDetail") or ""),
        )


@dataclass(frozen=True)
class ComparisonRecord:
    product_key: str
    product_name: str
    old: ProductSnapshot
    new: ProductSnapshot
    changes: ChangeDescriptor
    exists_in_old: bool
    exists_in_new: bool

    @property
    def code_changed(self) -> bool:
        return bool(self.old.product_code) and bool(self.new.product_code) and self.old.product_code != self.new.product_code

    def to_dict(self) -> Dict[str, object]:
        return {
            "productKey": self.product_key,
            "productName": self.product_name,
            "old": self.old.to_dict(),
            "new": self.new.to_dict(),
            "changes": self.changes.to_dict(),
            "status": {"existsInOld": self.exists_in_old, "existsInNew": self.exists_in_new},
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ComparisonRecord":
        key = str(payload.get("productKey") or "")
        status = payload.get("status") or {}
        return cls(
            product_key=key,
            product_name=str(payload.get("productName") or name_from_key(key)),
            old=ProductSnapshot.from_dict(payload.get("old") or {}),
            new=ProductSnapshot.from_dict(payload.get("new") or {}),
            changes=ChangeDescriptor.from_dict(payload.get("changes") or {}),
            exists_in_old=bool(status.get("existsInOld", False)),
            exists_in_new=bool(status.get("existsInNew", False)),
        )


@dataclass
class ReconciliationResult:
    summary: Dict[str, object]
    products: List[ComparisonRecord]
    unmapped: UnmappedAnalysis
    old_index: DatasetIndex = field(repr=False, default_factory=DatasetIndex)
    new_index: DatasetIndex = field(repr=False, default_factory=DatasetIndex)

    def changed_products(self) -> List[ComparisonRecord]:
        return [p for p in self.products if p.changes.changed]

    def to_dict(self) -> Dict[str, object]:
        return {
            "summary": dict(self.summary),
            "products": [p.to_dict() for p in self.products],
            "unmappedAnalysis": self.unmapped.to_dict(),
        }


def _sort_key(record: ComparisonRecord) -> Tuple[bool, str, str]:
    # strxfrm rejects embedded NUL characters.
    collated = locale.strxfrm(record.product_name.replace("\x00", ""))
    return (not record.changes.changed, collated, record.product_name)


def compare_indexes(old_index: DatasetIndex, new_index: DatasetIndex, fields: FieldMapping) -> Tuple[List[ComparisonRecord], Dict[str, int]]:
    """Build one comparison per key in the union of both indexes."""

    universe = old_index.keys()
    universe.extend(k for k in new_index if k not in old_index)

    counts = {t: 0 for t in CHANGE_TYPES}
    comparisons: List[ComparisonRecord] = []
    for key in universe:
        old_record = old_index.get(key)
        new_record = new_index.get(key)
        old_side = ProductSnapshot.from_record(old_record, fields)
        new_side = ProductSnapshot.from_record(new_record, fields)
        changes = diff_categories(old_side.categories, new_side.categories)
        counts[changes.change_type] += 1
        comparisons.append(
            ComparisonRecord(
                product_key=key,
                product_name=name_from_key(key),
                old=old_side,
                new=new_side,
                changes=changes,
                exists_in_old=old_record is not None,
                exists_in_new=new_record is not None,
            )
        )

    comparisons.sort(key=_sort_key)
    return comparisons, counts


def reconcile(
    old_records: Iterable[Mapping[Any, Any]],
    new_records: Iterable[Mapping[Any, Any]],
    fields: Optional[FieldMapping] = None,
    file_info: Optional[Dict[str, str]] = None,
) -> ReconciliationResult:
    """Reconcile two snapshots of the catalog.

    Args:
        old_records: Rows of the earlier export (field name -> value)
        new_records: Rows of the later export
        fields: Column names to read; defaults to the export's own headers
        file_info: Optional ``{"oldFile": ..., "newFile": ...}`` for the summary

    Returns:
        ReconciliationResult with the summary, sorted comparisons and the
        unmapped product analysis.
    """
    fields = fields or FieldMapping()

    old_index = build_index(old_records, fields)
    new_index = build_index(new_records, fields)
    unmapped = analyze_unmapped(old_index, new_index, fields)
    comparisons, counts = compare_indexes(old_index, new_index, fields)

    summary: Dict[str, object] = {
        "totalProducts": len(comparisons),
        "changedProducts": counts[MODIFIED],
        "newProducts": counts[APPEARED],
        "removedProducts": counts[DISAPPEARED],
        "unchangedProducts": counts[UNCHANGED],
        "noDataProducts": counts[ABSENT_BOTH],
        "unmappedAnalysis": unmapped.counts(),
        "indexStats": {"old": old_index.stats(), "new": new_index.stats()},
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "fileInfo": dict(file_info or {}),
        "fieldMappings": fields.to_summary(),
    }
    logger.info(
        "Reconciled %d products: %d modified, %d appeared, %d disappeared, %d unchanged",
        len(comparisons),
        counts[MODIFIED],
        counts[APPEARED],
        counts[DISAPPEARED],
        counts[UNCHANGED],
    )
    return ReconciliationResult(
        summary=summary,
        products=comparisons,
        unmapped=unmapped,
        old_index=old_index,
        new_index=new_index,
    )
