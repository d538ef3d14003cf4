"""Spreadsheet patcher: rewrite renamed product codes in upload sheets.

Each workbook's first sheet is scanned over a fixed column and row range.
Codes found in the rename map are replaced by their new code as text; other
codes are reported as unresolved. One bad file never stops the batch: it is
recorded as a failed result and the next file is processed.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from ..common.config_validator import PatcherConfig
from ..ingestion_utils import ensure_directory
from ..matching.rename_map import RenameMap
from .writers import write_json


logger = logging.getLogger("catalog_tracker.output.spreadsheet_patcher")

MISSING_FILE_REASON = "file does not exist"
UPDATE_LOG_NAME = "update_log.json"


@dataclass
class PatchFileResult:
    file_name: str
    success: bool
    updated_count: int = 0
    not_found_count: int = 0
    empty_count: int = 0
    update_log: List[Dict[str, object]] = field(default_factory=list)
    not_found_codes: List[Dict[str, object]] = field(default_factory=list)
    output_path: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failed(cls, file_name: str, reason: str) -> "PatchFileResult":
        return cls(file_name=file_name, success=False, error=reason)

    def to_dict(self) -> Dict[str, object]:
        return {
            "fileName": self.file_name,
            "updatedCount": self.updated_count,
            "notFoundCount": self.not_found_count,
            "emptyCount": self.empty_count,
            "updateLog": list(self.update_log),
            "notFoundCodes": list(self.not_found_codes),
            "outputPath": self.output_path,
            "success": self.success,
            "error": self.error,
        }


@dataclass
class PatchRunResult:
    results: List[PatchFileResult]
    summary: Dict[str, object]
    processing_time_ms: int

    @property
    def success(self) -> bool:
        return self.summary.get("failureCount", 0) == 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "success": self.success,
            "summary": dict(self.summary),
            "results": [r.to_dict() for r in self.results],
            "processingTime": self.processing_time_ms,
        }


def cell_text(value: object) -> str:
    """Text of a cell value as a product code; whole floats lose their ``.0``."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def patch_workbook(
    path: Path | str,
    rename_map: RenameMap,
    output_dir: Path | str,
    settings: Optional[PatcherConfig] = None,
) -> PatchFileResult:
    """Patch one workbook and write it to ``output_dir`` under the same name.

    Missing files and read/write errors come back as failed results.
    """
    from openpyxl import load_workbook

    settings = settings or PatcherConfig()
    path = Path(path)
    if not path.exists():
        logger.warning("File missing: %s", path.name)
        return PatchFileResult.failed(path.name, MISSING_FILE_REASON)

    logger.info("Processing %s", path.name)
    try:
        wb = load_workbook(path)
        ws = wb.worksheets[0]
        result = PatchFileResult(file_name=path.name, success=True)

        for row in range(settings.first_row, settings.last_row + 1):
            cell = ws[f"{settings.column}{row}"]
            code = cell_text(cell.value)
            if not code:
                result.empty_count += 1
                continue

            entry = rename_map.lookup(code)
            if entry is None:
                result.not_found_count += 1
                result.not_found_codes.append({"row": row, "code": code})
                continue

            cell.value = entry.new_code
            cell.number_format = "@"
            result.updated_count += 1
            result.update_log.append(
                {"row": row, "old": code, "new": entry.new_code, "productName": entry.product_name}
            )

        out_dir = ensure_directory(output_dir)
        out_path = out_dir / path.name
        wb.save(out_path)
        result.output_path = str(out_path)
    except Exception as exc:
        logger.error("Failed to patch %s: %s", path.name, exc)
        return PatchFileResult.failed(path.name, str(exc))

    logger.info(
        "%s: %d updated, %d not found, %d empty",
        path.name,
        result.updated_count,
        result.not_found_count,
        result.empty_count,
    )
    if result.not_found_codes:
        logger.debug("%s unresolved codes: %s", path.name, [c["code"] for c in result.not_found_codes])
    return result


def summarize_results(results: Iterable[PatchFileResult]) -> Dict[str, object]:
    summary: Dict[str, object] = {
        "successCount": 0,
        "failureCount": 0,
        "totalUpdated": 0,
        "totalNotFound": 0,
        "totalEmpty": 0,
        "processedFiles": [],
        "failedFiles": [],
    }
    for r in results:
        if r.success:
            summary["successCount"] += 1
            summary["totalUpdated"] += r.updated_count
            summary["totalNotFound"] += r.not_found_count
            summary["totalEmpty"] += r.empty_count
        else:
            summary["failureCount"] += 1
            summary["failedFiles"].append({"fileName": r.file_name, "error": r.error})
        summary["processedFiles"].append(r.file_name)
    return summary


def resolve_batch_paths(input_dir: Path | str, settings: Optional[PatcherConfig] = None) -> List[Path]:
    """Numbered upload sheets expected in ``input_dir``, present or not."""
    settings = settings or PatcherConfig()
    base = Path(input_dir)
    return [base / name for name in settings.batch_file_names()]


def patch_batch(
    paths: Sequence[Path | str],
    rename_map: RenameMap,
    output_dir: Path | str,
    settings: Optional[PatcherConfig] = None,
) -> PatchRunResult:
    """Patch ``paths`` one after another and aggregate the outcome."""
    settings = settings or PatcherConfig()
    started = time.perf_counter()
    results = [patch_workbook(p, rename_map, output_dir, settings) for p in paths]
    elapsed_ms = int((time.perf_counter() - started) * 1000)
    summary = summarize_results(results)
    logger.info(
        "Patched %d files (%d failed): %d updated, %d not found, %d empty cells",
        summary["successCount"],
        summary["failureCount"],
        summary["totalUpdated"],
        summary["totalNotFound"],
        summary["totalEmpty"],
    )
    return PatchRunResult(results=results, summary=summary, processing_time_ms=elapsed_ms)


def save_detailed_log(
    run: PatchRunResult,
    rename_map: RenameMap,
    output_dir: Path | str,
    input_dir: Path | str | None = None,
    comparison_path: Path | str | None = None,
) -> Path:
    """Write update_log.json next to the patched sheets."""
    payload = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "processingTime": run.processing_time_ms,
        "inputDirectory": str(input_dir) if input_dir is not None else None,
        "outputDirectory": str(output_dir),
        "jsonFilePath": str(comparison_path) if comparison_path is not None else None,
        "summary": dict(run.summary),
        "mappingStats": {
            "totalMappings": len(rename_map),
            "sampleMappings": rename_map.sample(5),
            "duplicateOldCodes": dict(rename_map.duplicates),
        },
        "fileResults": [r.to_dict() for r in run.results],
    }
    return write_json(Path(output_dir) / UPDATE_LOG_NAME, payload)
