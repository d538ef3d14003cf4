import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from catalog_tracker.common.config_validator import FieldMapping  # noqa: E402


@pytest.fixture
def fields() -> FieldMapping:
    return FieldMapping(product_name="name", category="categories", product_code="code", image="image")


@pytest.fixture
def make_row():
    def _make(name="", code="", categories="", image=""):
        return {"name": name, "code": code, "categories": categories, "image": image}

    return _make
