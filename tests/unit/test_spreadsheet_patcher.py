from pathlib import Path

from openpyxl import Workbook, load_workbook

from catalog_tracker.common.config_validator import PatcherConfig
from catalog_tracker.matching.rename_map import RenameEntry, RenameMap
from catalog_tracker.output.spreadsheet_patcher import (
    MISSING_FILE_REASON,
    cell_text,
    patch_batch,
    patch_workbook,
    resolve_batch_paths,
    save_detailed_log,
)


def _rename_map() -> RenameMap:
    return RenameMap(entries={"OLD1": RenameEntry(new_code="NEW1", product_name="Widget", product_key="Widget|foo.jpg")})


def _sheet(path: Path, cells: dict) -> Path:
    wb = Workbook()
    ws = wb.active
    ws["A1"] = "header"
    for ref, value in cells.items():
        ws[ref] = value
    wb.save(path)
    return path


def test_patch_replaces_mapped_code_and_counts_misses(tmp_path: Path):
    src = _sheet(tmp_path / "review_upload_part_01.xlsx", {"C5": "OLD1", "C6": "OLDX"})
    out_dir = tmp_path / "out"

    result = patch_workbook(src, _rename_map(), out_dir)

    assert result.success is True
    assert result.updated_count == 1
    assert result.not_found_count == 1
    assert result.empty_count == 98
    assert result.update_log == [{"row": 5, "old": "OLD1", "new": "NEW1", "productName": "Widget"}]
    assert result.not_found_codes == [{"row": 6, "code": "OLDX"}]

    ws = load_workbook(out_dir / src.name).worksheets[0]
    assert ws["C5"].value == "NEW1"
    assert ws["C5"].data_type == "s"
    assert ws["C6"].value == "OLDX"
    # Source stays untouched
    assert load_workbook(src).worksheets[0]["C5"].value == "OLD1"


def test_patch_respects_configured_column_and_rows(tmp_path: Path):
    src = _sheet(tmp_path / "sheet.xlsx", {"D3": " OLD1 ", "D9": "OLD1"})
    settings = PatcherConfig(column="D", first_row=2, last_row=4)
    result = patch_workbook(src, _rename_map(), tmp_path / "out", settings)
    assert result.updated_count == 1
    assert result.empty_count == 2
    ws = load_workbook(tmp_path / "out" / "sheet.xlsx").worksheets[0]
    assert ws["D9"].value == "OLD1"


def test_missing_file_is_a_soft_failure(tmp_path: Path):
    result = patch_workbook(tmp_path / "absent.xlsx", _rename_map(), tmp_path / "out")
    assert result.success is False
    assert result.error == MISSING_FILE_REASON


def test_batch_continues_past_failures(tmp_path: Path):
    good = _sheet(tmp_path / "good.xlsx", {"C2": "OLD1"})
    broken = tmp_path / "broken.xlsx"
    broken.write_text("not a workbook", encoding="utf-8")
    missing = tmp_path / "missing.xlsx"

    run = patch_batch([broken, missing, good], _rename_map(), tmp_path / "out")

    assert [r.file_name for r in run.results] == ["broken.xlsx", "missing.xlsx", "good.xlsx"]
    assert run.summary["successCount"] == 1
    assert run.summary["failureCount"] == 2
    assert run.summary["totalUpdated"] == 1
    assert run.results[0].error
    assert run.results[1].error == MISSING_FILE_REASON
    assert run.success is False

    log_path = save_detailed_log(run, _rename_map(), tmp_path / "out", input_dir=tmp_path)
    assert log_path.name == "update_log.json"
    assert log_path.exists()


def test_resolve_batch_paths(tmp_path: Path):
    paths = resolve_batch_paths(tmp_path, PatcherConfig(max_file_number=2, file_prefix="part_"))
    assert paths == [tmp_path / "part_01.xlsx", tmp_path / "part_02.xlsx"]


def test_cell_text():
    assert cell_text(None) == ""
    assert cell_text(12345.0) == "12345"
    assert cell_text(" P0001 ") == "P0001"
