"""Pitchlab exception hierarchy.

Every error raised by the pipeline maps onto one HTTP status and one JSON
payload shape: ``{"error": str, "details"?: list[str], ...}``. Routers never
build error responses by hand; ``main.py`` renders these through exception
handlers.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class PitchLabError(Exception):
    """Base exception for all pipeline failures."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.details:
            payload["details"] = list(self.details)
        return payload


class InputError(PitchLabError):
    """Malformed request input, rejected before any I/O."""

    status_code = 400


class InvalidRange(InputError):
    """Start date after end date, or an unusable window size."""


class PitchValidationError(InputError):
    """One or more batch rows failed validation; nothing was committed."""


class OwnerNotFound(PitchLabError):
    status_code = 404


class DuplicateConflict(PitchLabError):
    """Not a failure: the caller must resubmit with an explicit decision."""

    status_code = 409
    code = "DUPLICATE_BATCH"

    def __init__(self, duplicate_count: int, total_count: int):
        super().__init__("Duplicate batch detected")
        self.duplicate_count = duplicate_count
        self.total_count = total_count

    def to_payload(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "code": self.code,
            "hasDuplicates": True,
            "duplicateCount": self.duplicate_count,
            "totalCount": self.total_count,
            "message": (
                f"This batch of {self.total_count} pitches appears to have already been uploaded. "
                "Resubmit with skipDuplicates or forceInsert to decide."
            ),
        }


class UpstreamFailure(PitchLabError):
    """External data source unreachable, slow, or returned garbage."""

    def __init__(self, message: str, details: Optional[List[str]] = None, partial: Any = None):
        super().__init__(message, details)
        self.partial = partial

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        if self.partial is not None:
            payload["partial"] = self.partial.to_dict()
        return payload


class StorageFailure(PitchLabError):
    """The persistence layer rejected a write or read."""

    def __init__(self, message: str, details: Optional[List[str]] = None, partial: Any = None):
        super().__init__(message, details)
        self.partial = partial

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        if self.partial is not None:
            payload["partial"] = self.partial.to_dict()
        return payload


class PartialCommitError(StorageFailure):
    """Batch insert stopped partway; earlier chunks stay committed."""

    def __init__(self, message: str, committed: int, total: int):
        super().__init__(message, details=[f"{committed} of {total} pitches were committed before the failure"])
        self.committed = committed
        self.total = total

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["success"] = False
        payload["committed"] = self.committed
        return payload


class RateLimited(PitchLabError):
    status_code = 429

    def __init__(self, retry_after: int, limit: int, reset_at: int):
        super().__init__("Too many requests. Please try again later.")
        self.retry_after = retry_after
        self.limit = limit
        self.reset_at = reset_at

    def headers(self) -> Dict[str, str]:
        return {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(self.reset_at),
        }

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message, "retryAfter": self.retry_after}


class Unauthorized(PitchLabError):
    """Deliberately says nothing about why."""

    status_code = 401

    def __init__(self, message: str = "Authentication required."):
        super().__init__(message)


class Forbidden(Unauthorized):
    """Authenticated but lacking the role; rendered exactly like Unauthorized."""
