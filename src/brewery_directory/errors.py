"""Exception hierarchy for the brewery directory."""

from __future__ import annotations


class DirectoryError(Exception):
    """Base class for errors raised by the directory core."""


class ConfigurationError(DirectoryError):
    """Backing-store credentials or endpoints are missing."""


class TransportError(DirectoryError):
    """The backing store could not be reached or returned an unusable response."""


class FetchTimeoutError(TransportError):
    """The backing store did not answer within the configured timeout."""
