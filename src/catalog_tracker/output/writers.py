"""Run output layer: JSON artifacts, diagnostics workbook and run manifest.

This module provides:
- build_run_dir: create timestamped directories under the output base
- save_comparison_result / save_changed_products_only / save_unmapped_analysis
- save_rename_map: the lookup consumed by the spreadsheet patcher
- write_excel_report: a review workbook (openpyxl)
- write_run_manifest / mark_success / mark_failed

Writers raise on failure; callers decide whether a failed write aborts.
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from ..ingestion_utils import ensure_directory
from ..matching.reconcile import ReconciliationResult
from ..matching.rename_map import RenameMap


FULL_RESULT_NAME = "product_category_comparison_full_{date}.json"
CHANGED_RESULT_NAME = "product_category_comparison_changed_{date}.json"
UNMAPPED_RESULT_NAME = "product_unmapped_analysis_{date}.json"
RENAME_MAP_NAME = "product_code_rename_map_{date}.json"
EXCEL_REPORT_NAME = "comparison_review_{date}.xlsx"


def run_date() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def build_run_dir(base_dir: Path | str = "outputs") -> Path:
    base = ensure_directory(base_dir)
    ts = datetime.now().strftime("run_%Y%m%d_%H%M%S")
    return ensure_directory(base / ts)


def write_json(path: Path, payload: object) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, ensure_ascii=False)
    return path


def save_comparison_result(result: ReconciliationResult, path: Path) -> Path:
    return write_json(path, result.to_dict())


def changed_products_payload(result: ReconciliationResult) -> Dict[str, object]:
    changed = result.changed_products()
    payload = result.to_dict()
    payload["products"] = [p.to_dict() for p in changed]
    payload["summary"] = dict(payload["summary"], filteredCount=len(changed))
    return payload


def save_changed_products_only(result: ReconciliationResult, path: Path) -> Path:
    return write_json(path, changed_products_payload(result))


def save_unmapped_analysis(result: ReconciliationResult, path: Path) -> Path:
    return write_json(path, result.unmapped.to_dict())


def save_rename_map(rename_map: RenameMap, path: Path) -> Path:
    return write_json(path, {"stats": rename_map.stats(), "mappings": rename_map.to_dict()})


def load_comparison_payload(path: Path | str) -> Dict[str, object]:
    """Read a full comparison JSON written by :func:`save_comparison_result`."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Comparison file not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, dict) or not isinstance(payload.get("products"), list):
        raise ValueError(f"{path} is not a comparison result (missing 'products' list)")
    return payload


def _auto_fit_columns(ws) -> None:
    # Simple auto width based on max length per column
    for col_cells in ws.columns:
        max_len = 0
        col = col_cells[0].column_letter
        for cell in col_cells:
            val = "" if cell.value is None else str(cell.value)
            max_len = max(max_len, len(val))
        ws.column_dimensions[col].width = min(max(10, max_len + 2), 60)


def _append_frame(ws, df: pd.DataFrame, empty_note: str) -> None:
    if df.empty:
        ws.append(["note"])
        ws.append([empty_note])
    else:
        ws.append(list(df.columns))
        for row in df.itertuples(index=False):
            ws.append(list(row))
    _auto_fit_columns(ws)
    ws.freeze_panes = "A2"


def _changed_frame(result: ReconciliationResult) -> pd.DataFrame:
    rows = [
        {
            "productName": p.product_name,
            "productKey": p.product_key,
            "changeType": p.changes.change_type,
            "oldCode": p.old.product_code,
            "newCode": p.new.product_code,
            "oldCategories": p.old.categories,
            "newCategories": p.new.categories,
            "added": "|".join(p.changes.added),
            "removed": "|".join(p.changes.removed),
        }
        for p in result.changed_products()
    ]
    return pd.DataFrame(rows)


def _possible_matches_frame(result: ReconciliationResult) -> pd.DataFrame:
    rows: List[Dict[str, object]] = []
    for match in result.unmapped.possible_matches:
        rows.append(
            {
                "productName": match["productName"],
                "oldVariants": match["oldVariants"],
                "newVariants": match["newVariants"],
                "oldCodes": ", ".join(d["code"] for d in match["oldDetails"]),
                "newCodes": ", ".join(d["code"] for d in match["newDetails"]),
            }
        )
    return pd.DataFrame(rows)


def _rename_frame(rename_map: Optional[RenameMap]) -> pd.DataFrame:
    if rename_map is None:
        return pd.DataFrame()
    rows = [dict(oldCode=code, **entry.to_dict()) for code, entry in rename_map.entries.items()]
    return pd.DataFrame(rows)


def write_excel_report(result: ReconciliationResult, path: Path, rename_map: Optional[RenameMap] = None) -> Path:
    """Write a review workbook with one sheet per finding."""
    from openpyxl import Workbook

    wb = Workbook()
    ws1 = wb.active
    ws1.title = "Changed Products"
    _append_frame(ws1, _changed_frame(result), "No category changes")

    _append_frame(wb.create_sheet("Old Only"), pd.DataFrame(result.unmapped.old_only), "No products only in the old file")
    _append_frame(wb.create_sheet("New Only"), pd.DataFrame(result.unmapped.new_only), "No products only in the new file")
    _append_frame(wb.create_sheet("Possible Matches"), _possible_matches_frame(result), "No ambiguous product names")
    _append_frame(wb.create_sheet("Rename Map"), _rename_frame(rename_map), "No product code changes")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


def write_run_manifest(run_dir: Path, status: str, errors: Optional[List[str]] = None, extra: Optional[Dict[str, object]] = None) -> Path:
    manifest = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": status,
        "errors": list(errors or []),
    }
    if extra:
        manifest.update(extra)
    return write_json(Path(run_dir) / "run_manifest.json", manifest)


def mark_success(run_dir: Path, extra: Optional[Dict[str, object]] = None) -> Path:
    return write_run_manifest(run_dir, "SUCCESS", [], extra)


def mark_failed(run_dir: Path, errors: Optional[List[str]] = None, extra: Optional[Dict[str, object]] = None) -> Path:
    return write_run_manifest(run_dir, "FAILED", errors or [], extra)
