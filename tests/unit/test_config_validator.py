import pytest
from pydantic import ValidationError

from catalog_tracker.common.config_validator import (
    DEFAULT_PRODUCT_NAME_FIELD,
    PatcherConfig,
    load_and_validate_config,
)


def test_defaults_match_export_headers():
    cfg = load_and_validate_config(None)
    assert cfg.fields.product_name == DEFAULT_PRODUCT_NAME_FIELD
    assert cfg.fields.image == "이미지등록(상세)"
    assert cfg.patcher.column == "C"
    assert (cfg.patcher.first_row, cfg.patcher.last_row) == (2, 101)


def test_partial_sections_are_merged_with_defaults():
    cfg = load_and_validate_config({"fields": {"product_name": "name"}, "patcher": {"column": "d"}})
    assert cfg.fields.product_name == "name"
    assert cfg.fields.category == "상품분류 번호"
    assert cfg.patcher.column == "D"


def test_batch_file_names_are_zero_padded():
    names = PatcherConfig(max_file_number=3).batch_file_names()
    assert names == ["review_upload_part_01.xlsx", "review_upload_part_02.xlsx", "review_upload_part_03.xlsx"]


@pytest.mark.parametrize(
    "patcher",
    [
        {"column": "C1"},
        {"first_row": 10, "last_row": 5},
        {"max_file_number": 0},
    ],
)
def test_invalid_patcher_settings_raise(patcher):
    with pytest.raises(ValidationError):
        load_and_validate_config({"patcher": patcher})


def test_blank_field_name_raises():
    with pytest.raises(ValidationError):
        load_and_validate_config({"fields": {"category": "  "}})
