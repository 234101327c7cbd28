"""Shared logging helpers for membersync."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

_log = logging.getLogger(__name__)


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: we default
    to INFO level and a terse format suitable for CLI output. Pass ``force=True`` to
    reconfigure during tests or specialised entry points.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )


@contextmanager
def log_elapsed(operation: str, *, logger: logging.Logger | None = None) -> Iterator[None]:
    """Log how long the wrapped block took, whether it succeeded or not."""

    target = logger or _log
    started = time.perf_counter()
    try:
        yield
    except Exception:
        target.warning("%s failed after %.3fs", operation, time.perf_counter() - started)
        raise
    target.info("%s finished in %.3fs", operation, time.perf_counter() - started)
