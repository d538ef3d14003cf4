"""Spreadsheet patch orchestrator.

Loads a full comparison JSON, rebuilds the code rename map from it and
rewrites the upload sheet batch. Per-file failures are reported in the
batch result; only an unreadable comparison file aborts the run.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..common.config_validator import load_and_validate_config
from ..ingestion_utils import load_config
from ..logging_utils import end_phase_timer, get_logger, get_user_logger, start_phase_timer, write_timing_report
from ..matching.reconcile import ComparisonRecord
from ..matching.rename_map import RenameMap, build_rename_map
from ..output.reporting import format_patch_summary_lines, format_sample_updates
from ..output.spreadsheet_patcher import patch_batch, resolve_batch_paths, save_detailed_log
from ..output.writers import load_comparison_payload
from ..utils.audit_log import log_patch_summary


AUDIT_LOG_NAME = "audit_log.jsonl"


def load_rename_map(comparison_path: str | Path) -> RenameMap:
    """Rebuild the rename map from a saved comparison result."""
    payload = load_comparison_payload(comparison_path)
    products = [ComparisonRecord.from_dict(p) for p in payload["products"]]
    return build_rename_map(products)


def run_patch(
    comparison_path: str | Path,
    config_path: Optional[str | Path] = "config.yaml",
    input_dir: Optional[str | Path] = None,
    output_dir: Optional[str | Path] = None,
    files: Optional[Sequence[str | Path]] = None,
) -> Dict[str, object]:
    cfg = load_and_validate_config(load_config(config_path))
    logger = get_logger("catalog_tracker", cfg.paths.logs_dir, cfg.logging.level)
    user_logger = get_user_logger(cfg.paths.logs_dir)
    timings: Dict[str, float] = {}

    in_dir = Path(input_dir or cfg.patcher.input_dir)
    out_dir = Path(output_dir or cfg.patcher.output_dir)
    user_logger.info("Starting spreadsheet code update")

    t0 = start_phase_timer("Load rename map")
    rename_map = load_rename_map(comparison_path)
    end_phase_timer("Load rename map", t0, timings, user_logger)
    user_logger.info(
        f"Mappings loaded: {len(rename_map)} to change, {rename_map.unchanged_count} unchanged, "
        f"{len(rename_map.duplicates)} duplicate old codes"
    )

    paths = [Path(f) for f in files] if files else resolve_batch_paths(in_dir, cfg.patcher)

    t1 = start_phase_timer("Patch spreadsheets")
    run = patch_batch(paths, rename_map, out_dir, cfg.patcher)
    end_phase_timer("Patch spreadsheets", t1, timings, user_logger)

    for line in format_patch_summary_lines(run) + format_sample_updates(run):
        user_logger.info(line)

    errors: List[str] = []
    log_path: Optional[Path] = None
    try:
        log_path = save_detailed_log(run, rename_map, out_dir, input_dir=in_dir, comparison_path=comparison_path)
        user_logger.info(f"Detailed log saved: {log_path}")
    except (OSError, TypeError, ValueError) as exc:
        logger.error("Failed to write update log: %s", exc)
        errors.append(f"update_log: {exc}")

    log_patch_summary(out_dir / AUDIT_LOG_NAME, run.summary)
    write_timing_report(timings, cfg.paths.logs_dir)

    return {
        "run": run,
        "rename_map": rename_map,
        "log_path": str(log_path) if log_path is not None else None,
        "errors": errors,
    }


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Replace renamed product codes in upload spreadsheets")
    p.add_argument("--comparison", required=True, help="Full comparison JSON from catalog-reconcile")
    p.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    p.add_argument("--input-dir", default=None, help="Directory holding the numbered upload sheets")
    p.add_argument("--output-dir", default=None, help="Directory receiving patched sheets")
    p.add_argument("--files", nargs="*", default=None, help="Explicit workbook paths instead of the numbered batch")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    outcome = run_patch(
        comparison_path=args.comparison,
        config_path=args.config,
        input_dir=args.input_dir,
        output_dir=args.output_dir,
        files=args.files,
    )
    return 1 if outcome["errors"] else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
