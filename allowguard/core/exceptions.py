"""
AllowGuard Exception Hierarchy

All exceptions inherit from AllowGuardError for easy catching.
"""

from enum import Enum
from typing import List, Optional


class CallFailure(Enum):
    """Classification of a failed authorization-setting call"""
    REVERTED = "reverted"
    OTHER = "other"


class AllowGuardError(Exception):
    """Base exception for all AllowGuard errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ValidationError(AllowGuardError):
    """Raised when input data (address, log record, amount text) is malformed"""
    pass


class ConfigError(AllowGuardError):
    """Raised when configuration cannot be loaded or is invalid"""
    pass


class TransportError(AllowGuardError):
    """Raised when the node is unreachable or a read request fails"""
    pass


class ConfirmationError(TransportError):
    """Raised when a submitted change is never confirmed or fails on-chain"""
    pass


class InvalidStateTransition(AllowGuardError):
    """Raised when a terminal update state is advanced"""
    pass


class ApprovalCallError(AllowGuardError):
    """
    Raised by an authorization-setting call.

    `failure` is the CallFailure classification that drives the
    update strategy chain; `cause` is the library exception, if any.
    """

    def __init__(
        self,
        message: str,
        failure: CallFailure,
        details: dict = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, details)
        self.failure = failure
        self.cause = cause

    @property
    def reverted(self) -> bool:
        return self.failure is CallFailure.REVERTED


class UpdateFailedError(AllowGuardError):
    """Raised when the update strategy chain ends without success"""

    def __init__(self, message: str, last_error: ApprovalCallError, attempts: List[str]):
        super().__init__(message, {"attempts": " -> ".join(attempts)})
        self.last_error = last_error
        self.attempts = attempts
