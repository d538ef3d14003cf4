"""Catalog tracker: reconcile product snapshots and patch renamed codes into upload sheets."""

__version__ = "0.3.0"
