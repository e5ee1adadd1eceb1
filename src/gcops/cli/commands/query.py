"""Commands for running BigQuery queries."""

import typer

from gcops.cli.common.context import AppContext, build_context
from gcops.cli.common.exits import die, exit_from_exc, warn_exit
from gcops.cli.common.options import (
    DatasetOpt,
    DeadlineOpt,
    DryRunOpt,
    MaxOpt,
    PagesOpt,
    ProjectOpt,
    TimeoutOpt,
    WaitOpt,
)
from gcops.cli.common.output import out
from gcops.cli.common.progress import wait_for_jobs_with_progress
from gcops.core.errors import GcopsError
from gcops.core.jobs import query_job
from gcops.core.results import query

app = typer.Typer(
    help="Run BigQuery queries",
    no_args_is_help=False,
    invoke_without_command=True,
)


@app.callback()
def _init(ctx: typer.Context, project: str | None = ProjectOpt):
    """Initialize query context."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)
    ctx.obj = build_context(project)


@app.command()
def run(
    ctx: typer.Context,
    sql: str = typer.Argument(..., help="SQL text"),
    dataset: str | None = DatasetOpt,
    max_results: int = MaxOpt,
    pages: int = PagesOpt,
    timeout_ms: int = TimeoutOpt,
    cache: bool = typer.Option(True, "--cache/--no-cache", help="Use the query cache"),
    dry_run: bool = DryRunOpt,
):
    """
    Run a query and print its rows (blocks until the first page is ready).
    """
    appctx: AppContext = ctx.obj

    try:
        with out.status("Running query..."):
            first = query(
                appctx.bigquery,
                sql,
                max_results=max_results,
                timeout_ms=timeout_ms,
                dry_run=dry_run or None,
                cache=cache,
                dataset=dataset,
            )
            rows = [] if dry_run else list(first.all(request_limit=pages))
    except GcopsError as exc:
        exit_from_exc(exc)

    if dry_run:
        out.success("Query is valid")
        out.kv({"bytes processed": first.total_bytes_processed})
        return

    out.rows_table(first.headers, rows, title="Query results")
    out.kv(
        {
            "job": first.job_reference.job_id if first.job_reference else None,
            "total rows": first.total_rows,
            "shown": len(rows),
            "bytes processed": first.total_bytes_processed,
            "cache hit": first.cache_hit,
        }
    )


@app.command()
def submit(
    ctx: typer.Context,
    sql: str = typer.Argument(..., help="SQL text"),
    table: str | None = typer.Option(
        None, "--table", "-t", help="Destination table (dataset.table or project:dataset.table)"
    ),
    dataset: str | None = DatasetOpt,
    batch: bool = typer.Option(False, "--batch", help="Run with BATCH priority"),
    create: str | None = typer.Option(None, "--create", help="Create disposition: needed or never"),
    write: str | None = typer.Option(
        None, "--write", help="Write disposition: truncate, append or empty"
    ),
    large_results: bool = typer.Option(
        False, "--large-results", help="Allow large results (needs --table)"
    ),
    cache: bool = typer.Option(True, "--cache/--no-cache", help="Use the query cache"),
    wait: bool = WaitOpt,
    deadline: float | None = DeadlineOpt,
    dry_run: bool = DryRunOpt,
):
    """
    Submit a query as an asynchronous job.
    """
    appctx: AppContext = ctx.obj

    if large_results and not table:
        die("--large-results needs a destination --table", code=2)

    try:
        job = query_job(
            appctx.bigquery,
            sql,
            priority="BATCH" if batch else "INTERACTIVE",
            cache=cache,
            table=table,
            create=create,
            write=write,
            large_results=large_results or None,
            dataset=dataset,
            dry_run=dry_run,
        )
    except ValueError as e:
        die(str(e), code=2)
    except GcopsError as exc:
        exit_from_exc(exc)

    if dry_run:
        out.success("Query is valid")
        out.kv({"bytes processed": job.bytes_processed})
        return

    out.success(f"Job submitted: {job.job_id}")

    if not wait:
        return

    try:
        wait_for_jobs_with_progress([job], deadline=deadline)
    except GcopsError as exc:
        exit_from_exc(exc)

    out.job_detail(job)
    if job.failed:
        warn_exit(f"Job {job.job_id} failed", code=1)
