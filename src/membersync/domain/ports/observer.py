"""Side channel for reconciliation telemetry.

The controller never logs through ambient hooks: it reports what happens to an
injected ``Observer`` callable. ``log_event`` is the default observer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from membersync.domain.model import GroupHandle

log = getLogger(__name__)


class EventKind(StrEnum):
    STATE_CHANGED = "state_changed"
    REMOTE_CALL = "remote_call"
    RETRY_SCHEDULED = "retry_scheduled"
    MEMBER_DROPPED = "member_dropped"
    MEMBER_UNRESOLVED = "member_unresolved"
    SETTLING = "settling"
    STALE_SNAPSHOT = "stale_snapshot"


_LEVELS: Mapping[EventKind, int] = {
    EventKind.STATE_CHANGED: logging.INFO,
    EventKind.REMOTE_CALL: logging.DEBUG,
    EventKind.RETRY_SCHEDULED: logging.WARNING,
    EventKind.MEMBER_DROPPED: logging.INFO,
    EventKind.MEMBER_UNRESOLVED: logging.ERROR,
    EventKind.SETTLING: logging.DEBUG,
    EventKind.STALE_SNAPSHOT: logging.WARNING,
}


@dataclass(frozen=True, slots=True)
class ReconcileEvent:
    kind: EventKind
    group: GroupHandle
    detail: Mapping[str, object] = field(default_factory=dict)


type Observer = Callable[[ReconcileEvent], None]


def log_event(event: ReconcileEvent) -> None:
    """Default observer: write the event to the module logger."""

    details = " ".join(f"{key}={value}" for key, value in sorted(event.detail.items()))
    log.log(_LEVELS[event.kind], "[%s] %s %s", event.group, event.kind, details)


def discard_event(_event: ReconcileEvent) -> None:
    return None


__all__ = ["EventKind", "Observer", "ReconcileEvent", "discard_event", "log_event"]
