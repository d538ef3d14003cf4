"""Human-readable console summaries for both pipelines."""
from __future__ import annotations

from typing import Dict, List

from ..matching.reconcile import ReconciliationResult
from .spreadsheet_patcher import PatchRunResult


def format_summary_lines(summary: Dict[str, object]) -> List[str]:
    unmapped = summary.get("unmappedAnalysis") or {}
    return [
        "Comparison summary:",
        f"- Total products: {summary.get('totalProducts', 0)}",
        f"- Modified products: {summary.get('changedProducts', 0)}",
        f"- New products: {summary.get('newProducts', 0)}",
        f"- Removed products: {summary.get('removedProducts', 0)}",
        f"- Unchanged products: {summary.get('unchangedProducts', 0)}",
        f"- Only in old file: {unmapped.get('oldOnlyCount', 0)}",
        f"- Only in new file: {unmapped.get('newOnlyCount', 0)}",
        f"- Ambiguous product names: {unmapped.get('possibleMatchesCount', 0)}",
    ]


def format_sample_lines(result: ReconciliationResult, limit: int = 3, match_limit: int = 2) -> List[str]:
    lines = [f"Sample products (first {limit}):"]
    for i, p in enumerate(result.products[:limit], start=1):
        lines.extend(
            [
                f"--- Sample {i} ---",
                f"Name: {p.product_name}",
                f"Key: {p.product_key}",
                f"Code: {p.old.product_code} -> {p.new.product_code}",
                f"Image: {p.old.image_detail} -> {p.new.image_detail}",
                f"Categories: {p.old.categories} -> {p.new.categories}",
                f"Changed: {'yes' if p.changes.changed else 'no'}",
            ]
        )

    matches = result.unmapped.possible_matches[:match_limit]
    if matches:
        lines.append("Ambiguous product name samples:")
        for i, m in enumerate(matches, start=1):
            lines.extend(
                [
                    f"--- Case {i} ---",
                    f"Name: {m['productName']}",
                    f"Old variants: {m['oldVariants']}",
                    f"New variants: {m['newVariants']}",
                    f"Old codes: {', '.join(d['code'] for d in m['oldDetails'])}",
                    f"New codes: {', '.join(d['code'] for d in m['newDetails'])}",
                ]
            )
    return lines


def format_patch_summary_lines(run: PatchRunResult) -> List[str]:
    s = run.summary
    return [
        "Patch summary:",
        f"- Processing time: {run.processing_time_ms}ms",
        f"- Succeeded files: {s.get('successCount', 0)}",
        f"- Failed files: {s.get('failureCount', 0)}",
        f"- Codes updated: {s.get('totalUpdated', 0)}",
        f"- Codes not found: {s.get('totalNotFound', 0)}",
        f"- Empty cells: {s.get('totalEmpty', 0)}",
    ]


def format_sample_updates(run: PatchRunResult, limit_files: int = 2, limit_rows: int = 3) -> List[str]:
    lines = ["Sample updates:"]
    shown = 0
    for r in run.results:
        if not (r.success and r.update_log):
            continue
        lines.append(f"--- {r.file_name} ---")
        for u in r.update_log[:limit_rows]:
            lines.append(f"  row {u['row']}: {u['old']} -> {u['new']} ({u['productName']})")
        shown += 1
        if shown >= limit_files:
            break
    return lines
