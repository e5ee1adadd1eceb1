from __future__ import annotations

from typing import Any, Mapping

import httpx
import structlog

from gcops.core.errors import MalformedResponse, NotFoundError, RemoteCallFailed

logger = structlog.get_logger(__name__)


def _error_details(response: httpx.Response) -> tuple[str, str | None]:
    """
    Extract (message, reason) from a Google API error response.

    Google APIs answer with `{"error": {"code", "message", "errors": [{"reason"}]}}`.
    Anything else falls back to the HTTP reason phrase.
    """
    try:
        payload = response.json()
    except ValueError:
        return response.reason_phrase or "request failed", None

    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        message = str(error.get("message") or response.reason_phrase)
        reason = error.get("status")
        details = error.get("errors")
        if isinstance(details, list) and details and isinstance(details[0], dict):
            reason = details[0].get("reason") or reason
        return message, reason
    if isinstance(error, str):
        return error, None
    return response.reason_phrase or "request failed", None


class RestGateway:
    """
    Minimal JSON-over-HTTP gateway for one Google Cloud REST API.

    Subclasses describe endpoints; this class owns request execution and the
    translation of HTTP failures into the gcops error taxonomy.
    """

    service_name = "Google Cloud API"

    def __init__(self, client: httpx.Client, base_url: str, project: str):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.project = project

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        query = {k: v for k, v in (params or {}).items() if v is not None}
        for key, value in query.items():
            if isinstance(value, bool):
                query[key] = "true" if value else "false"
        url = self._url(path)
        logger.debug("request_started", method=method, url=url, params=query)
        try:
            response = self.client.request(method, url, params=query, json=body)
        except httpx.HTTPError as exc:
            logger.warning("request_failed", method=method, url=url, error=str(exc))
            raise RemoteCallFailed(f"{self.service_name} request failed: {exc}") from exc
        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> dict[str, Any]:
        """Decode a successful response or raise the matching gcops error."""
        if 200 <= response.status_code < 300:
            if not response.content:
                return {}
            try:
                payload = response.json()
            except ValueError as exc:
                raise MalformedResponse(
                    f"{self.service_name} returned a body that is not JSON"
                ) from exc
            if not isinstance(payload, dict):
                raise MalformedResponse(
                    f"{self.service_name} returned {type(payload).__name__}, expected an object"
                )
            return payload

        message, reason = _error_details(response)
        logger.debug(
            "request_rejected",
            status_code=response.status_code,
            reason=reason,
            message=message,
        )
        if response.status_code == 404:
            raise NotFoundError(message, status_code=404, reason=reason or "notFound")
        raise RemoteCallFailed(message, status_code=response.status_code, reason=reason)

    def _get(self, path: str, **params: Any) -> dict[str, Any]:
        return self._request("GET", path, params=params)

    def _post(
        self, path: str, body: Mapping[str, Any] | None = None, **params: Any
    ) -> dict[str, Any]:
        return self._request("POST", path, params=params, body=body)
