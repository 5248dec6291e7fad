"""
================================================================================
Framework Errors
================================================================================

Error taxonomy shared by the element, wait, session and navigation layers.

Every remote failure is first reported as an ``ErrorKind`` inside an ``Err``
result (see ``remote_driver``). It becomes one of the exceptions below only
at a contract boundary, via ``error_for``.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Classified failure reported by the remote capability interface."""

    NOT_FOUND = "not_found"
    STALE_REFERENCE = "stale_reference"
    NOT_INTERACTABLE = "not_interactable"
    INVALID_LOCATOR = "invalid_locator"
    SCRIPT_ERROR = "script_error"
    SESSION_DEAD = "session_dead"
    UNKNOWN = "unknown"


class FrameworkError(Exception):
    """Base class for all UI framework errors."""
    pass


class NotFoundError(FrameworkError):
    """No remote object matched a locator at evaluation time."""
    pass


class StaleReferenceError(FrameworkError):
    """A previously resolved remote reference is no longer attached."""
    pass


class UnrecoverableReferenceError(StaleReferenceError):
    """A stale reference that has no locator to re-resolve from."""
    pass


class ElementNotInteractableError(FrameworkError):
    """The remote object exists but refused the requested interaction."""
    pass


class InvalidLocatorError(FrameworkError):
    """The locator could not be parsed by the remote engine."""
    pass


class ScriptExecutionError(FrameworkError):
    """A script raised inside the page or was rejected by the engine."""
    pass


class SessionDeadError(FrameworkError):
    """The remote session stopped answering."""
    pass


class SessionInitError(FrameworkError):
    """Creating or replacing an automation session failed."""
    pass


class DriverError(FrameworkError):
    """Unclassified remote failure."""
    pass


class WaitTimeoutError(FrameworkError, TimeoutError):
    """
    Raised when a wait condition's deadline passes without success.

    Attributes:
        description: Human-readable condition description
        timeout: Configured timeout in seconds
        elapsed: Seconds spent polling
        attempts: Number of predicate evaluations
        last_error: Message of the last tolerated error, if any
    """

    def __init__(
        self,
        description: str,
        timeout: float,
        elapsed: float,
        attempts: int = 0,
        last_error: Optional[str] = None,
    ):
        self.description = description
        self.timeout = timeout
        self.elapsed = elapsed
        self.attempts = attempts
        self.last_error = last_error

        message = (
            f"Timed out after {elapsed:.2f}s (timeout={timeout}s, "
            f"attempts={attempts}) waiting for: {description}"
        )
        if last_error:
            message += f". Last error: {last_error}"
        super().__init__(message)


_KIND_TO_ERROR = {
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.STALE_REFERENCE: StaleReferenceError,
    ErrorKind.NOT_INTERACTABLE: ElementNotInteractableError,
    ErrorKind.INVALID_LOCATOR: InvalidLocatorError,
    ErrorKind.SCRIPT_ERROR: ScriptExecutionError,
    ErrorKind.SESSION_DEAD: SessionDeadError,
    ErrorKind.UNKNOWN: DriverError,
}


def error_for(kind: ErrorKind, message: str) -> FrameworkError:
    """Build the exception that represents ``kind``."""
    return _KIND_TO_ERROR.get(kind, DriverError)(message)


__all__ = [
    "ErrorKind",
    "FrameworkError",
    "NotFoundError",
    "StaleReferenceError",
    "UnrecoverableReferenceError",
    "ElementNotInteractableError",
    "InvalidLocatorError",
    "ScriptExecutionError",
    "SessionDeadError",
    "SessionInitError",
    "DriverError",
    "WaitTimeoutError",
    "error_for",
]
