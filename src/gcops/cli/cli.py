"""CLI application for Google Cloud operations tooling."""

import typer

from gcops.cli.commands.catalog import catalog_app
from gcops.cli.commands.jobs import app as jobs_app
from gcops.cli.commands.query import app as query_app

app = typer.Typer(
    help="gcops - BigQuery and Cloud Storage operations tooling",
    no_args_is_help=True,
)

app.add_typer(jobs_app, name="jobs", help="List / wait for / re-run BigQuery jobs.")
app.add_typer(query_app, name="query", help="Run or submit queries.")
app.add_typer(catalog_app, name="catalog")


if __name__ == "__main__":
    app()
