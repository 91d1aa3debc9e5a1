"""Exceptions raised by docshim."""

from __future__ import annotations


class DocshimError(Exception):
    """Base class for docshim errors."""


class ConfigError(DocshimError):
    """Raised when plugin options cannot be loaded or are invalid."""


class ArtifactError(DocshimError):
    """Raised when the search artifact is missing or unreadable."""
