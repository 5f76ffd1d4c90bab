"""Domain port definitions for adapters."""

from __future__ import annotations

from .reconcile import Reconciler
from .store import RemoteStore, Watch

__all__ = [
    "Reconciler",
    "RemoteStore",
    "Watch",
]
