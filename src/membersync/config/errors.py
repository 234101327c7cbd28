"""Errors raised while loading membersync settings from the environment."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but unusable, e.g. a non-numeric retry budget."""


class MissingConfigurationError(ConfigurationError):
    """A required ``MEMBERSYNC_*`` variable is absent or blank."""
