"""Domain port definitions for adapters."""

from __future__ import annotations

from .authority import AuthorityClient
from .observer import EventKind, Observer, ReconcileEvent, discard_event, log_event

__all__ = [
    "AuthorityClient",
    "EventKind",
    "Observer",
    "ReconcileEvent",
    "discard_event",
    "log_event",
]
