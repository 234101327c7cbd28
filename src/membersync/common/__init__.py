from __future__ import annotations

from .logging import configure_logging, log_elapsed

__all__ = ["configure_logging", "log_elapsed"]
