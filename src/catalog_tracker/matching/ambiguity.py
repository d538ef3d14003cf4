"""Unmapped product analysis.

Surfaces products present in only one snapshot and product names that were
exported under more than one image, which fragments their identity keys.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from ..common.config_validator import FieldMapping
from ..standards.naming import field_text
from .indexer import DatasetIndex


logger = logging.getLogger("catalog_tracker.matching.ambiguity")


@dataclass
class UnmappedAnalysis:
    old_only: List[Dict[str, str]] = field(default_factory=list)
    new_only: List[Dict[str, str]] = field(default_factory=list)
    possible_matches: List[Dict[str, object]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "oldOnlyProducts": [dict(p) for p in self.old_only],
            "newOnlyProducts": [dict(p) for p in self.new_only],
            "possibleMatches": [dict(m) for m in self.possible_matches],
        }

    def counts(self) -> Dict[str, int]:
        return {
            "oldOnlyCount": len(self.old_only),
            "newOnlyCount": len(self.new_only),
            "possibleMatchesCount": len(self.possible_matches),
        }


def _one_sided(index: DatasetIndex, other: DatasetIndex, fields: FieldMapping) -> List[Dict[str, str]]:
    out: List[Dict[str, str]] = []
    for key, product in index.records.items():
        if key in other:
            continue
        out.append(
            {
                "productName": field_text(product, fields.product_name),
                "imageDetail": field_text(product, fields.image),
                "productCode": field_text(product, fields.product_code),
                "key": key,
            }
        )
    return out


def _variants_by_name(index: DatasetIndex, fields: FieldMapping) -> Dict[str, List[Dict[str, str]]]:
    grouped: Dict[str, List[Dict[str, str]]] = {}
    for product in index.records.values():
        name = field_text(product, fields.product_name)
        grouped.setdefault(name, []).append(
            {
                "image": field_text(product, fields.image),
                "code": field_text(product, fields.product_code),
            }
        )
    return grouped


def analyze_unmapped(old_index: DatasetIndex, new_index: DatasetIndex, fields: FieldMapping) -> UnmappedAnalysis:
    analysis = UnmappedAnalysis(
        old_only=_one_sided(old_index, new_index, fields),
        new_only=_one_sided(new_index, old_index, fields),
    )

    old_by_name = _variants_by_name(old_index, fields)
    new_by_name = _variants_by_name(new_index, fields)
    # Index keys are unique, so each variant here is a distinct key.
    for name, old_variants in old_by_name.items():
        new_variants = new_by_name.get(name)
        if new_variants is None:
            continue
        if len(old_variants) > 1 or len(new_variants) > 1:
            analysis.possible_matches.append(
                {
                    "productName": name,
                    "oldVariants": len(old_variants),
                    "newVariants": len(new_variants),
                    "oldDetails": old_variants,
                    "newDetails": new_variants,
                }
            )

    if analysis.possible_matches:
        logger.warning(
            "%d product names map to several image variants; their keys may not line up",
            len(analysis.possible_matches),
        )
    return analysis
