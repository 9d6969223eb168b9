from __future__ import annotations


class OCSubmitError(Exception):
    """Base error for the OC submission system."""


class ConfigError(OCSubmitError, ValueError):
    pass


class RosterFetchError(OCSubmitError):
    """Raised when the published roster sheet cannot be fetched or parsed."""
