from catalog_tracker.standards.naming import field_text, normalize_field_name, normalize_record


def test_normalize_field_name_strips_bom_and_whitespace():
    assert normalize_field_name("\ufeff상품명") == "상품명"
    assert normalize_field_name("  code \t") == "code"
    assert normalize_field_name("\ufeff  name  ") == "name"


def test_normalize_field_name_strips_only_one_bom():
    assert normalize_field_name("\ufeff\ufeffname") == "\ufeffname"


def test_normalize_field_name_handles_none():
    assert normalize_field_name(None) == ""


def test_normalize_record_preserves_values_and_field_count():
    raw = {"\ufeffname": " Widget ", "code ": "A1", "image": None, "price": float("nan")}
    out = normalize_record(raw)
    assert out == {"name": " Widget ", "code": "A1", "image": "", "price": ""}
    assert len(out) == len(raw)


def test_normalize_record_is_idempotent():
    raw = {"\ufeff name": "x", " categories": "A|B", "image": "dir/f.jpg"}
    once = normalize_record(raw)
    assert normalize_record(once) == once


def test_field_text_defaults_to_empty():
    assert field_text({}, "name") == ""
    assert field_text({"name": "  Shoe "}, "name") == "Shoe"
