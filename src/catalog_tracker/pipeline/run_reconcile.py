"""Reconciliation orchestrator.

Responsibilities:
- Read the old and new snapshot exports (a missing file aborts the run)
- Reconcile them and derive the code rename map
- Persist the JSON artifacts and the review workbook into a timestamped run
  directory, recording (not raising) any write failure
- Write the run manifest, audit trail and timing report

This module is designed for programmatic use and simple CLI.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..common.config_validator import load_and_validate_config
from ..ingestion_utils import load_config, read_records
from ..logging_utils import end_phase_timer, get_logger, get_user_logger, start_phase_timer, write_timing_report
from ..matching.reconcile import reconcile
from ..matching.rename_map import build_rename_map
from ..output import writers
from ..output.reporting import format_sample_lines, format_summary_lines
from ..utils.audit_log import log_reconcile_summary


AUDIT_LOG_NAME = "audit_log.jsonl"


def _try_write(label: str, write: Callable[[], Path], paths: Dict[str, str], errors: List[str], logger) -> None:
    try:
        paths[label] = str(write())
    except (OSError, TypeError, ValueError) as exc:
        msg = f"{label}: {exc}"
        logger.error("Failed to write %s", msg)
        errors.append(msg)


def run_reconcile(
    old_path: str | Path,
    new_path: str | Path,
    config_path: Optional[str | Path] = "config.yaml",
    output_dir: Optional[str | Path] = None,
    write_excel: bool = True,
) -> Dict[str, object]:
    """Reconcile two snapshot files and persist the results.

    The returned mapping always carries the in-memory ``result`` and
    ``rename_map``; ``errors`` lists artifacts that could not be written.
    """
    cfg = load_and_validate_config(load_config(config_path))
    logger = get_logger("catalog_tracker", cfg.paths.logs_dir, cfg.logging.level)
    user_logger = get_user_logger(cfg.paths.logs_dir)
    timings: Dict[str, float] = {}

    old_path = Path(old_path)
    new_path = Path(new_path)
    user_logger.info("Starting product category comparison")

    t0 = start_phase_timer("Read snapshots")
    old_records = read_records(old_path, encoding=cfg.input.encoding)
    new_records = read_records(new_path, encoding=cfg.input.encoding)
    end_phase_timer("Read snapshots", t0, timings, user_logger)

    t1 = start_phase_timer("Reconcile")
    result = reconcile(
        old_records,
        new_records,
        fields=cfg.fields,
        file_info={"oldFile": old_path.name, "newFile": new_path.name},
    )
    rename_map = build_rename_map(result.products)
    end_phase_timer("Reconcile", t1, timings, user_logger)

    for line in format_summary_lines(result.summary) + format_sample_lines(result):
        user_logger.info(line)

    paths: Dict[str, str] = {}
    errors: List[str] = []
    run_dir: Optional[Path] = None
    t2 = start_phase_timer("Write outputs")
    try:
        run_dir = writers.build_run_dir(output_dir or cfg.paths.output_dir)
    except OSError as exc:
        logger.error("Failed to create run directory: %s", exc)
        errors.append(f"run_dir: {exc}")

    if run_dir is not None:
        date = writers.run_date()
        _try_write("full", lambda: writers.save_comparison_result(result, run_dir / writers.FULL_RESULT_NAME.format(date=date)), paths, errors, logger)
        _try_write("changed", lambda: writers.save_changed_products_only(result, run_dir / writers.CHANGED_RESULT_NAME.format(date=date)), paths, errors, logger)
        _try_write("unmapped", lambda: writers.save_unmapped_analysis(result, run_dir / writers.UNMAPPED_RESULT_NAME.format(date=date)), paths, errors, logger)
        _try_write("rename_map", lambda: writers.save_rename_map(rename_map, run_dir / writers.RENAME_MAP_NAME.format(date=date)), paths, errors, logger)
        if write_excel:
            _try_write("excel", lambda: writers.write_excel_report(result, run_dir / writers.EXCEL_REPORT_NAME.format(date=date), rename_map), paths, errors, logger)

        log_reconcile_summary(run_dir / AUDIT_LOG_NAME, result.summary)
        extra = {"outputs": dict(paths), "renameStats": rename_map.stats()}
        manifest = writers.mark_failed(run_dir, errors, extra) if errors else writers.mark_success(run_dir, extra)
        paths["manifest"] = str(manifest)
    end_phase_timer("Write outputs", t2, timings, user_logger)
    write_timing_report(timings, cfg.paths.logs_dir)

    for label, p in paths.items():
        user_logger.info(f"Saved {label}: {p}")
    if errors:
        user_logger.info(f"{len(errors)} output(s) could not be written; results are still available in memory")
    else:
        user_logger.info("All outputs written")

    return {
        "result": result,
        "rename_map": rename_map,
        "run_dir": str(run_dir) if run_dir is not None else None,
        "paths": paths,
        "errors": errors,
    }


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Compare product categories and codes between two catalog exports")
    p.add_argument("--old", required=True, help="Path to the older export (CSV/XLSX)")
    p.add_argument("--new", required=True, help="Path to the newer export (CSV/XLSX)")
    p.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    p.add_argument("--output-dir", default=None, help="Base directory for run folders")
    p.add_argument("--no-excel", action="store_true", help="Skip the review workbook")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    outcome = run_reconcile(
        old_path=args.old,
        new_path=args.new,
        config_path=args.config,
        output_dir=args.output_dir,
        write_excel=not args.no_excel,
    )
    return 1 if outcome["errors"] else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
