"""JSON-lines audit trail for reconciliation and patch runs."""
from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


logger = logging.getLogger("catalog_tracker.audit")


def append_log(
    path: str | os.PathLike[str] | None,
    phase: str,
    message: str,
    severity: str = "INFO",
    extra: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Append one JSON object to the audit file at ``path``.

    Returns the entry dict even when ``path`` is None or the write fails; a
    failed write is logged, not raised.
    """

    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "phase": phase,
        "severity": severity.upper(),
        "message": message,
    }
    if extra:
        entry.update({"extra": extra})

    if path is not None:
        p = Path(path)
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            with p.open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except OSError as exc:
            logger.error("Failed to append audit entry to %s: %s", p, exc)
    return entry


def log_reconcile_summary(path: str | os.PathLike[str] | None, summary: Dict[str, Any]) -> Dict[str, Any]:
    """Record the counts of one reconciliation run."""

    return append_log(
        path,
        phase="reconcile",
        message="Reconciliation completed",
        extra={
            "totalProducts": summary.get("totalProducts"),
            "changedProducts": summary.get("changedProducts"),
            "newProducts": summary.get("newProducts"),
            "removedProducts": summary.get("removedProducts"),
            "unchangedProducts": summary.get("unchangedProducts"),
            "unmappedAnalysis": summary.get("unmappedAnalysis"),
            "fileInfo": summary.get("fileInfo"),
        },
    )


def log_patch_summary(path: str | os.PathLike[str] | None, summary: Dict[str, Any]) -> Dict[str, Any]:
    """Record the counts of one spreadsheet patch batch."""

    return append_log(
        path,
        phase="patch",
        message="Spreadsheet patching completed",
        severity=("WARNING" if summary.get("failureCount") else "INFO"),
        extra=summary,
    )
