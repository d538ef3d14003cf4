import json
from pathlib import Path

from openpyxl import load_workbook

from catalog_tracker.matching.reconcile import reconcile
from catalog_tracker.matching.rename_map import build_rename_map
from catalog_tracker.output import writers


def _result(fields, make_row):
    old = [
        make_row(name="Widget", code="A1", categories="Cat1|Cat2", image="x/foo.jpg"),
        make_row(name="Lamp", code="L1", categories="Home", image="l.jpg"),
    ]
    new = [
        make_row(name="Widget", code="A2", categories="Cat1|Cat3", image="x/foo.jpg"),
        make_row(name="Lamp", code="L1", categories="Home", image="l.jpg"),
    ]
    return reconcile(old, new, fields=fields)


def test_changed_products_payload_filters_and_counts(fields, make_row):
    payload = writers.changed_products_payload(_result(fields, make_row))
    assert [p["productName"] for p in payload["products"]] == ["Widget"]
    assert payload["summary"]["filteredCount"] == 1
    assert payload["summary"]["totalProducts"] == 2


def test_full_result_round_trips_through_loader(tmp_path: Path, fields, make_row):
    result = _result(fields, make_row)
    path = writers.save_comparison_result(result, tmp_path / "full.json")
    payload = writers.load_comparison_payload(path)
    assert payload["summary"]["totalProducts"] == 2
    assert payload["products"][0]["changes"]["changeType"] == "modified"
    assert set(payload["unmappedAnalysis"]) == {"oldOnlyProducts", "newOnlyProducts", "possibleMatches"}


def test_load_comparison_payload_rejects_other_json(tmp_path: Path):
    path = tmp_path / "other.json"
    path.write_text(json.dumps({"rows": []}), encoding="utf-8")
    try:
        writers.load_comparison_payload(path)
    except ValueError as exc:
        assert "products" in str(exc)
    else:
        raise AssertionError("expected ValueError")


def test_excel_report_sheets(tmp_path: Path, fields, make_row):
    result = _result(fields, make_row)
    path = writers.write_excel_report(result, tmp_path / "review.xlsx", build_rename_map(result.products))
    wb = load_workbook(path)
    assert wb.sheetnames == ["Changed Products", "Old Only", "New Only", "Possible Matches", "Rename Map"]
    changed = wb["Changed Products"]
    assert changed["A1"].value == "productName"
    assert changed["A2"].value == "Widget"
    assert wb["Old Only"]["A2"].value == "No products only in the old file"
    assert wb["Rename Map"]["A2"].value == "A1"


def test_run_manifest_status(tmp_path: Path):
    ok = json.loads(writers.mark_success(tmp_path).read_text(encoding="utf-8"))
    assert ok["status"] == "SUCCESS" and ok["errors"] == []
    failed = json.loads(writers.mark_failed(tmp_path, ["excel: disk full"]).read_text(encoding="utf-8"))
    assert failed["status"] == "FAILED"
    assert failed["errors"] == ["excel: disk full"]
