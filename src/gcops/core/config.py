"""Runtime configuration resolved from the environment.

Settings are read once and then passed around as an immutable value. The
lookup order for the project mirrors what the Google Cloud tooling does, so
an environment already set up for gcloud works without extra variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from gcops.core.errors import ConfigError

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"

_DEFAULT_BIGQUERY_ENDPOINT = "https://bigquery.googleapis.com/bigquery/v2"
_DEFAULT_STORAGE_ENDPOINT = "https://storage.googleapis.com/storage/v1"


def _sanitize_endpoint(endpoint: str) -> str:
    """
    Normalize an API endpoint.

    - Adds an http:// scheme to bare emulator hosts ('localhost:9050')
    - Removes query strings and trailing slashes
    """
    endpoint = endpoint.strip().split("?", 1)[0]
    if "://" not in endpoint:
        endpoint = f"http://{endpoint}"
    return endpoint.rstrip("/")


def _first_env(*names: str) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


@dataclass(frozen=True)
class Settings:
    """
    Resolved configuration for one gcops session.

    Attributes:
        project: Google Cloud project that owns jobs, datasets and buckets.
        bigquery_endpoint: Base URL of the BigQuery v2 REST API.
        storage_endpoint: Base URL of the Cloud Storage JSON API.
        timeout_seconds: Per-request HTTP timeout.
        log_level: Level name passed to the logging setup.
        emulator: True when an emulator endpoint is used (no credentials).
    """

    _PROJECT_ENVS = (
        "GCOPS_PROJECT",
        "BIGQUERY_PROJECT",
        "GCLOUD_PROJECT",
        "GOOGLE_CLOUD_PROJECT",
    )
    _BIGQUERY_ENDPOINT_ENV = "GCOPS_BIGQUERY_ENDPOINT"
    _BIGQUERY_EMULATOR_ENV = "BIGQUERY_EMULATOR_HOST"
    _STORAGE_ENDPOINT_ENV = "GCOPS_STORAGE_ENDPOINT"
    _STORAGE_EMULATOR_ENV = "STORAGE_EMULATOR_HOST"
    _TIMEOUT_ENV = "GCOPS_HTTP_TIMEOUT"
    _LOG_LEVEL_ENV = "GCOPS_LOG_LEVEL"
    _DEFAULT_TIMEOUT_SECONDS = 30.0

    project: str
    bigquery_endpoint: str = _DEFAULT_BIGQUERY_ENDPOINT
    storage_endpoint: str = _DEFAULT_STORAGE_ENDPOINT
    timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS
    log_level: str = "WARNING"
    emulator: bool = False

    @classmethod
    def _timeout_from_env(cls) -> float:
        raw = os.getenv(cls._TIMEOUT_ENV)
        if raw is None:
            return cls._DEFAULT_TIMEOUT_SECONDS
        try:
            value = float(raw)
        except ValueError:
            return cls._DEFAULT_TIMEOUT_SECONDS
        return value if value > 0 else cls._DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls, project: str | None = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            project: Explicit project id; overrides every environment variable.

        Raises:
            ConfigError: If no project can be determined.
        """
        project = (project or _first_env(*cls._PROJECT_ENVS) or "").strip()
        if not project:
            raise ConfigError(
                "No Google Cloud project configured. Pass --project or set "
                "GCOPS_PROJECT (or GOOGLE_CLOUD_PROJECT)."
            )

        emulator = False
        bigquery = os.getenv(cls._BIGQUERY_ENDPOINT_ENV)
        if not bigquery:
            emulator_host = os.getenv(cls._BIGQUERY_EMULATOR_ENV)
            if emulator_host:
                bigquery = f"{_sanitize_endpoint(emulator_host)}/bigquery/v2"
                emulator = True
        storage = os.getenv(cls._STORAGE_ENDPOINT_ENV)
        if not storage:
            emulator_host = os.getenv(cls._STORAGE_EMULATOR_ENV)
            if emulator_host:
                storage = f"{_sanitize_endpoint(emulator_host)}/storage/v1"
                emulator = True

        return cls(
            project=project,
            bigquery_endpoint=_sanitize_endpoint(bigquery or _DEFAULT_BIGQUERY_ENDPOINT),
            storage_endpoint=_sanitize_endpoint(storage or _DEFAULT_STORAGE_ENDPOINT),
            timeout_seconds=cls._timeout_from_env(),
            log_level=(os.getenv(cls._LOG_LEVEL_ENV) or "WARNING").upper(),
            emulator=emulator,
        )
