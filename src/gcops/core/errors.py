"""Error taxonomy shared by the gcops core.

Every error raised by the core derives from GcopsError so frontends can
catch one type and render a message. Lookups by id never raise NotFoundError
to their callers; they translate it into None instead.
"""

from __future__ import annotations


class GcopsError(RuntimeError):
    """Base class for all gcops errors."""


class ConfigError(GcopsError):
    """Raised when required configuration (such as the project) is missing."""


class AuthError(GcopsError):
    """Raised when Google Cloud credentials cannot be loaded or refreshed."""


class RemoteCallFailed(GcopsError):
    """
    A transport-level failure or a non-success API response.

    Attributes:
        status_code: HTTP status, or None when the request never got a response.
        reason: Machine readable reason from the Google error envelope.
        message: Human readable message from the API (or the transport).
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        reason: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.reason = reason

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.status_code} {self.reason or 'error'}: {self.message}"


class NotFoundError(RemoteCallFailed):
    """The requested resource does not exist (HTTP 404)."""


class PreconditionViolation(GcopsError):
    """An operation was called on an object that cannot honor it."""


class MalformedResponse(GcopsError):
    """A response body or row value does not match what its schema declares."""


class JobTimeout(GcopsError):
    """Waiting for a job crossed the caller supplied deadline."""

    def __init__(self, job_id: str, waited: float):
        super().__init__(f"Job {job_id} not done after {waited:.1f}s")
        self.job_id = job_id
        self.waited = waited
