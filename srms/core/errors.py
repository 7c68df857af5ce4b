"""Exception types shared by the SRMS scripts."""

from __future__ import annotations


class SRMSError(Exception):
    """Base class for toolkit errors."""


class ConfigurationError(SRMSError, RuntimeError):
    """A required setting is missing or malformed."""
