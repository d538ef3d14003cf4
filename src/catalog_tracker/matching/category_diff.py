"""Category change classification between two snapshots of one product."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple


CATEGORY_SEPARATOR = "|"

UNCHANGED = "unchanged"
MODIFIED = "modified"
APPEARED = "appeared"
DISAPPEARED = "disappeared"
ABSENT_BOTH = "absent-both"

CHANGE_TYPES: Tuple[str, ...] = (UNCHANGED, MODIFIED, APPEARED, DISAPPEARED, ABSENT_BOTH)


@dataclass(frozen=True)
class ChangeDescriptor:
    changed: bool
    change_type: str
    added: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()
    retained: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, object]:
        return {
            "hasChanged": self.changed,
            "changeType": self.change_type,
            "addedCategories": list(self.added),
            "removedCategories": list(self.removed),
            "unchangedCategories": list(self.retained),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, object]) -> "ChangeDescriptor":
        return cls(
            changed=bool(payload.get("hasChanged", False)),
            change_type=str(payload.get("changeType", UNCHANGED)),
            added=tuple(payload.get("addedCategories") or ()),
            removed=tuple(payload.get("removedCategories") or ()),
            retained=tuple(payload.get("unchangedCategories") or ()),
        )


def split_categories(categories: str) -> List[str]:
    """Split a category string on ``|``, dropping blank segments."""
    if not categories:
        return []
    return [c for c in categories.split(CATEGORY_SEPARATOR) if c.strip()]


def classify_change(old_categories: str, new_categories: str) -> str:
    if not old_categories and not new_categories:
        return ABSENT_BOTH
    if not old_categories:
        return APPEARED
    if not new_categories:
        return DISAPPEARED
    if old_categories != new_categories:
        return MODIFIED
    return UNCHANGED


def diff_categories(old_categories: str, new_categories: str) -> ChangeDescriptor:
    """Compare two category strings.

    ``changed`` is raw string inequality, so a reordered list counts as
    modified even when the members are identical.
    """
    old_categories = old_categories or ""
    new_categories = new_categories or ""
    old_list = split_categories(old_categories)
    new_list = split_categories(new_categories)

    return ChangeDescriptor(
        changed=old_categories != new_categories,
        change_type=classify_change(old_categories, new_categories),
        added=tuple(c for c in new_list if c not in old_list),
        removed=tuple(c for c in old_list if c not in new_list),
        retained=tuple(c for c in old_list if c in new_list),
    )
