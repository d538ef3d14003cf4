"""Unified logging utilities for the catalog tracker.

Both pipelines emit:
  - system-readable logs (system.log)
  - user-readable progress lines (console + user_readable.log)
  - timing breakdowns (timing.log)

File handler failures degrade to console logging.
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Dict, Optional


SYSTEM_FMT = "[%(asctime)s] [%(levelname)s] %(message)s"
HUMAN_FMT = "%(message)s"


def _ensure_logs_dir(logs_dir: str | Path) -> Path:
    path = Path(logs_dir).expanduser().resolve()
    path.mkdir(parents=True, exist_ok=True)
    return path


def _safe_add_file_handler(logger: logging.Logger, path: Path, fmt: str, level: int) -> None:
    try:
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(fmt))
        logger.addHandler(fh)
    except OSError as exc:  # pragma: no cover - depends on FS permissions
        logger.warning("[WARNING] Failed to attach file handler %s (%s)", str(path), exc)


def get_logger(name: str, logs_dir: str | Path, level: str = "INFO") -> logging.Logger:
    """Return a system logger with console + system.log handlers.

    Child loggers under ``name`` (e.g. ``catalog_tracker.matching.indexer``)
    propagate into these handlers.
    """
    lvl = getattr(logging, str(level).upper(), logging.INFO)
    logger = logging.getLogger(name)
    logger.setLevel(lvl)
    # Reset handlers to avoid duplication across repeated initializations
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    sh = logging.StreamHandler()
    sh.setLevel(lvl)
    sh.setFormatter(logging.Formatter(SYSTEM_FMT))
    logger.addHandler(sh)

    _safe_add_file_handler(logger, _ensure_logs_dir(logs_dir) / "system.log", SYSTEM_FMT, lvl)
    return logger


def get_user_logger(logs_dir: str | Path) -> logging.Logger:
    """Return a user-facing logger that writes to user_readable.log and console."""
    logger = logging.getLogger("catalog_tracker_user")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    sh = logging.StreamHandler()
    sh.setLevel(logging.INFO)
    sh.setFormatter(logging.Formatter(HUMAN_FMT))
    logger.addHandler(sh)

    _safe_add_file_handler(logger, _ensure_logs_dir(logs_dir) / "user_readable.log", HUMAN_FMT, logging.INFO)
    return logger


def start_phase_timer(phase_name: str) -> float:
    """Start a timer for a given phase and return the perf counter."""
    return time.perf_counter()


def end_phase_timer(phase_name: str, start_time: float, timing_dict: Dict[str, float], user_logger: Optional[logging.Logger] = None) -> float:
    """End timer, record to ``timing_dict`` and log to the user logger."""
    elapsed = time.perf_counter() - float(start_time)
    timing_dict[phase_name] = float(elapsed)
    if user_logger is not None:
        user_logger.info(f"{phase_name} completed in {elapsed:.2f} seconds")
    return elapsed


def write_timing_report(timing_dict: Dict[str, float], logs_dir: str | Path) -> Path | None:
    """Write a timing breakdown to timing.log; returns None when the write fails."""
    out_path = _ensure_logs_dir(logs_dir) / "timing.log"
    lines = ["---- CATALOG TRACKER TIMING REPORT ----"]
    total = 0.0
    for key, val in timing_dict.items():
        total += float(val)
        lines.append(f"{key}: {float(val):.2f} seconds")
    lines.append(f"Total Duration: {total:.2f} seconds")
    try:
        out_path.write_text("\n".join(lines), encoding="utf-8")
        return out_path
    except OSError as exc:
        logging.getLogger("catalog_tracker").warning("[WARNING] Failed to write timing report (%s): %s", str(out_path), exc)
        return None
