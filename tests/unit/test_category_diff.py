import itertools

import pytest

from catalog_tracker.matching.category_diff import (
    ABSENT_BOTH,
    APPEARED,
    CHANGE_TYPES,
    DISAPPEARED,
    MODIFIED,
    UNCHANGED,
    diff_categories,
    split_categories,
)


def test_set_arithmetic():
    d = diff_categories("A|B", "B|C")
    assert d.added == ("C",)
    assert d.removed == ("A",)
    assert d.retained == ("B",)
    assert d.changed is True
    assert d.change_type == MODIFIED


def test_split_drops_blank_segments():
    assert split_categories("A||  |B|") == ["A", "B"]
    assert split_categories("") == []


@pytest.mark.parametrize(
    "old,new,expected",
    [
        ("", "", ABSENT_BOTH),
        ("", "A", APPEARED),
        ("A", "", DISAPPEARED),
        ("A|B", "A|C", MODIFIED),
        ("A|B", "A|B", UNCHANGED),
    ],
)
def test_change_type_classification(old, new, expected):
    assert diff_categories(old, new).change_type == expected


def test_reordered_list_counts_as_modified():
    d = diff_categories("A|B", "B|A")
    assert d.changed is True
    assert d.change_type == MODIFIED
    assert d.added == () and d.removed == ()
    assert d.retained == ("A", "B")


def test_classification_is_exhaustive():
    samples = ["", "A", "A|B", "B|A", " ", "A||B"]
    for old, new in itertools.product(samples, repeat=2):
        d = diff_categories(old, new)
        assert d.change_type in CHANGE_TYPES
        assert d.changed == (old != new)


def test_to_dict_shape():
    payload = diff_categories("Cat1|Cat2", "Cat1|Cat3").to_dict()
    assert payload == {
        "hasChanged": True,
        "changeType": "modified",
        "addedCategories": ["Cat3"],
        "removedCategories": ["Cat2"],
        "unchangedCategories": ["Cat1"],
    }
