from __future__ import annotations

from typing import Any, Dict, Optional


class SubsError(RuntimeError):
    """Base for every failure raised by subs_core."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        extra = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({extra})"


class ConfigError(SubsError):
    pass


class InvalidAmount(SubsError):
    pass


class DeploymentFailed(SubsError):
    pass


class TransactionReverted(SubsError):
    pass


class EventNotFound(SubsError):
    pass


class InvalidTransition(SubsError):
    """Lifecycle move that the subscription state machine does not allow."""
