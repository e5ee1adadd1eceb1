"""Commands for browsing datasets, tables and buckets."""

import typer

from gcops.cli.common.context import AppContext, build_context
from gcops.cli.common.exits import exit_from_exc, warn_exit
from gcops.cli.common.options import MaxOpt, PagesOpt, ProjectOpt
from gcops.cli.common.output import out
from gcops.core.catalog import list_buckets, list_datasets, list_tables
from gcops.core.errors import GcopsError

catalog_app = typer.Typer(
    help="Browse BigQuery datasets and tables and Cloud Storage buckets.",
    no_args_is_help=False,
    invoke_without_command=True,
)


@catalog_app.callback()
def _init(ctx: typer.Context, project: str | None = ProjectOpt):
    """Initialize catalog context."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)
    ctx.obj = build_context(project)


@catalog_app.command()
def datasets(
    ctx: typer.Context,
    show_all: bool = typer.Option(False, "--all", "-a", help="Include hidden datasets"),
    max_results: int = MaxOpt,
    pages: int = PagesOpt,
):
    """List datasets of the project."""
    appctx: AppContext = ctx.obj

    try:
        with out.status("Loading datasets..."):
            first = list_datasets(
                appctx.bigquery, all_datasets=show_all or None, max_results=max_results
            )
            items = list(first.all(request_limit=pages))
    except GcopsError as exc:
        exit_from_exc(exc)

    if not items:
        warn_exit("No datasets found", code=0)

    out.datasets_table(items)


@catalog_app.command()
def tables(
    ctx: typer.Context,
    dataset: str = typer.Argument(..., help="Dataset id"),
    max_results: int = MaxOpt,
    pages: int = PagesOpt,
):
    """List tables and views of a dataset."""
    appctx: AppContext = ctx.obj

    try:
        with out.status("Loading tables..."):
            first = list_tables(appctx.bigquery, dataset, max_results=max_results)
            items = list(first.all(request_limit=pages))
    except GcopsError as exc:
        exit_from_exc(exc)

    if not items:
        warn_exit(f"No tables found in {dataset}", code=0)

    out.tables_table(items, title=f"Tables in {dataset}")
    if first.total is not None:
        out.kv({"total": first.total, "shown": len(items)})


@catalog_app.command()
def buckets(
    ctx: typer.Context,
    prefix: str | None = typer.Option(None, "--prefix", help="Only buckets starting with this"),
    max_results: int = MaxOpt,
    pages: int = PagesOpt,
):
    """List Cloud Storage buckets of the project."""
    appctx: AppContext = ctx.obj

    try:
        with out.status("Loading buckets..."):
            first = list_buckets(appctx.storage, prefix=prefix, max_results=max_results)
            items = list(first.all(request_limit=pages))
    except GcopsError as exc:
        exit_from_exc(exc)

    if not items:
        warn_exit("No buckets found", code=0)

    out.buckets_table(items)
