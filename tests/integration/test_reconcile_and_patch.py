"""End-to-end: reconcile two exports, then patch an upload sheet batch."""
from __future__ import annotations

import json
from pathlib import Path
from textwrap import dedent

import pytest
from openpyxl import Workbook, load_workbook

from catalog_tracker.pipeline import run_patch, run_reconcile


def _config(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        dedent(
            f"""
            fields:
              product_name: name
              category: categories
              product_code: code
              image: image
            paths:
              output_dir: {tmp_path / 'outputs'}
              logs_dir: {tmp_path / 'logs'}
            patcher:
              input_dir: {tmp_path / 'split'}
              output_dir: {tmp_path / 'updated'}
              max_file_number: 2
            """
        ),
        encoding="utf-8",
    )
    return path


def _exports(tmp_path: Path) -> tuple[Path, Path]:
    old = tmp_path / "old.csv"
    new = tmp_path / "new.csv"
    old.write_text(
        "name,categories,code,image\n"
        "Widget,Cat1|Cat2,OLD1,x/foo.jpg\n"
        "Lamp,Home,L1,l.jpg\n"
        "Shoe,Wear,S1,a.jpg\n"
        "Shoe,Wear,S2,b.jpg\n",
        encoding="utf-8-sig",
    )
    new.write_text(
        "name,categories,code,image\n"
        "Widget,Cat1|Cat3,NEW1,x/foo.jpg\n"
        "Shoe,Wear,S1,a.jpg\n",
        encoding="utf-8-sig",
    )
    return old, new


def test_reconcile_then_patch(tmp_path: Path):
    config = _config(tmp_path)
    old, new = _exports(tmp_path)

    outcome = run_reconcile.run_reconcile(old, new, config_path=config)
    assert outcome["errors"] == []
    result = outcome["result"]
    assert result.summary["totalProducts"] == 4
    assert result.summary["fileInfo"] == {"oldFile": "old.csv", "newFile": "new.csv"}
    assert [p.product_name for p in result.products] == ["Lamp", "Shoe", "Widget", "Shoe"]
    assert outcome["rename_map"].lookup("OLD1").new_code == "NEW1"

    full_path = Path(outcome["paths"]["full"])
    for label in ("full", "changed", "unmapped", "rename_map", "excel", "manifest"):
        assert Path(outcome["paths"][label]).exists()
    unmapped = json.loads(Path(outcome["paths"]["unmapped"]).read_text(encoding="utf-8"))
    assert unmapped["possibleMatches"][0]["productName"] == "Shoe"
    assert unmapped["possibleMatches"][0]["oldVariants"] == 2
    manifest = json.loads(Path(outcome["paths"]["manifest"]).read_text(encoding="utf-8"))
    assert manifest["status"] == "SUCCESS"
    assert (Path(outcome["run_dir"]) / "audit_log.jsonl").exists()
    assert (tmp_path / "logs" / "timing.log").exists()

    split = tmp_path / "split"
    split.mkdir()
    wb = Workbook()
    wb.active["C5"] = "OLD1"
    wb.active["C6"] = "OLDX"
    wb.save(split / "review_upload_part_01.xlsx")

    patched = run_patch.run_patch(full_path, config_path=config)
    run = patched["run"]
    assert patched["errors"] == []
    assert run.summary["successCount"] == 1
    # review_upload_part_02.xlsx was never created
    assert run.summary["failureCount"] == 1
    assert run.summary["totalUpdated"] == 1
    assert run.summary["totalNotFound"] == 1

    ws = load_workbook(tmp_path / "updated" / "review_upload_part_01.xlsx").worksheets[0]
    assert ws["C5"].value == "NEW1"
    assert ws["C6"].value == "OLDX"
    log = json.loads(Path(patched["log_path"]).read_text(encoding="utf-8"))
    assert log["mappingStats"]["totalMappings"] == 1
    assert log["fileResults"][1]["error"] == "file does not exist"


def test_missing_snapshot_aborts_run(tmp_path: Path):
    config = _config(tmp_path)
    old, _ = _exports(tmp_path)
    with pytest.raises(FileNotFoundError):
        run_reconcile.run_reconcile(old, tmp_path / "absent.csv", config_path=config)
    assert not (tmp_path / "outputs").exists()


def test_write_failure_keeps_results(tmp_path: Path):
    config = _config(tmp_path)
    old, new = _exports(tmp_path)
    blocker = tmp_path / "blocked"
    blocker.write_text("a file where the output directory should be", encoding="utf-8")

    outcome = run_reconcile.run_reconcile(old, new, config_path=config, output_dir=blocker)

    assert outcome["errors"]
    assert outcome["run_dir"] is None
    assert outcome["result"].summary["totalProducts"] == 4
    assert len(outcome["rename_map"]) == 1


def test_cli_exit_codes(tmp_path: Path):
    config = _config(tmp_path)
    old, new = _exports(tmp_path)
    assert run_reconcile.main(["--old", str(old), "--new", str(new), "--config", str(config), "--no-excel"]) == 0
