"""
Product matching engine.

Identity keys, per-snapshot indexes, category diffs, reconciliation and the
code rename map derived from it.
"""

from .category_diff import CHANGE_TYPES, ChangeDescriptor, diff_categories
from .indexer import DatasetIndex, build_index
from .keys import build_key
from .reconcile import ComparisonRecord, ReconciliationResult, reconcile
from .ambiguity import UnmappedAnalysis, analyze_unmapped
from .rename_map import RenameEntry, RenameMap, build_rename_map
from .tiebreak import prefer_candidate

__all__ = [
    'CHANGE_TYPES',
    'ChangeDescriptor',
    'diff_categories',
    'DatasetIndex',
    'build_index',
    'build_key',
    'ComparisonRecord',
    'ReconciliationResult',
    'reconcile',
    'UnmappedAnalysis',
    'analyze_unmapped',
    'RenameEntry',
    'RenameMap',
    'build_rename_map',
    'prefer_candidate',
]
