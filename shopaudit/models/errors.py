"""Failure categories that can end a run early.

Per-probe and per-check failures never raise: they are recorded in the
result objects. Only the errors below escape to the CLI or HTTP layer.
"""

from __future__ import annotations


class ShopAuditError(Exception):
    """Base class for every run-terminating failure."""


class ConfigError(ShopAuditError):
    """Missing required fields or an unreadable config document."""


class SetupError(ShopAuditError):
    """The browser or browsing context could not be acquired."""


class CheckExhaustedError(ShopAuditError):
    """A check kept raising after its whole retry budget was spent."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class RunError(ShopAuditError):
    """Any other unexpected failure while the run was in progress."""
