"""Authentication helpers for Google Cloud REST APIs.

This module centralizes creation of the HTTP client used by the adapters.
Credentials come from Application Default Credentials; emulator endpoints
get a plain client without any credentials.
"""

from __future__ import annotations

import google.auth
import httpx
from google.auth import exceptions as google_auth_exceptions
from google.auth.credentials import Credentials
from google.auth.transport.requests import Request

from gcops.core.config import CLOUD_PLATFORM_SCOPE, Settings
from gcops.core.errors import AuthError

_LOGIN_HINT = "gcloud auth application-default login"


def _format_auth_error(message: str) -> str:
    """Return a user-friendly auth error message."""
    return (
        f"Google Cloud authentication failed: {message}\n"
        f"Re-authenticate with:\n  $ {_LOGIN_HINT}"
    )


class GoogleCredentialsAuth(httpx.Auth):
    """httpx auth flow that attaches (and refreshes) an OAuth2 bearer token."""

    def __init__(self, credentials: Credentials):
        self.credentials = credentials

    def auth_flow(self, request: httpx.Request):
        if not self.credentials.valid:
            try:
                self.credentials.refresh(Request())
            except google_auth_exceptions.RefreshError as exc:
                raise AuthError(_format_auth_error(str(exc))) from exc
        request.headers["Authorization"] = f"Bearer {self.credentials.token}"
        yield request


def load_credentials() -> tuple[Credentials, str | None]:
    """Load Application Default Credentials with the cloud-platform scope."""
    try:
        return google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])
    except google_auth_exceptions.DefaultCredentialsError as exc:
        raise AuthError(_format_auth_error(str(exc))) from exc


def get_client(settings: Settings) -> httpx.Client:
    """
    Create and return an HTTP client ready to call Google Cloud APIs.

    The client carries the configured timeout and, outside emulator mode,
    a bearer-token auth flow backed by Application Default Credentials.
    """
    if settings.emulator:
        return httpx.Client(timeout=settings.timeout_seconds)
    credentials, _ = load_credentials()
    return httpx.Client(
        timeout=settings.timeout_seconds,
        auth=GoogleCredentialsAuth(credentials),
    )
