"""Application context management for the CLI."""

from dataclasses import dataclass

import httpx

from gcops.cli.common.exits import die
from gcops.core.adapters.bigquery import BigQueryAdapter
from gcops.core.adapters.storage import StorageAdapter
from gcops.core.auth import get_client
from gcops.core.config import Settings
from gcops.core.errors import AuthError, ConfigError
from gcops.core.logging import configure_logging


@dataclass
class AppContext:
    """Application context holding settings, the HTTP client and the service adapters."""

    settings: Settings
    client: httpx.Client
    bigquery: BigQueryAdapter
    storage: StorageAdapter


def build_context(project: str | None) -> AppContext:
    """Build and return the application context.

    Args:
        project: Optional project id; overrides the environment.

    Returns:
        AppContext: Context with configured client and adapters.
    """
    try:
        settings = Settings.from_env(project)
    except ConfigError as exc:
        die(str(exc), code=2)
    configure_logging(settings.log_level)
    try:
        client = get_client(settings)
    except AuthError as exc:
        die(str(exc), code=1)
    return AppContext(
        settings=settings,
        client=client,
        bigquery=BigQueryAdapter(client, settings.bigquery_endpoint, settings.project),
        storage=StorageAdapter(client, settings.storage_endpoint, settings.project),
    )
