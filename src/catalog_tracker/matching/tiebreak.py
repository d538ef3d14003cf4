"""Collision tie-break shared by the dataset indexer and the rename mapper."""
from __future__ import annotations


def prefer_candidate(stored_image_detail: str, candidate_image_detail: str) -> bool:
    """Return True when the candidate should replace the stored entry.

    The candidate wins only if it carries image detail the stored entry
    lacks. When both have it, or neither does, the first-seen entry stays.
    """
    stored = (stored_image_detail or "").strip()
    candidate = (candidate_image_detail or "").strip()
    return bool(candidate) and not stored
