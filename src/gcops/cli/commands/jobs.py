"""Commands for managing BigQuery jobs."""

import typer

from gcops.cli.common.context import AppContext, build_context
from gcops.cli.common.exits import die, exit_from_exc, ok_exit, warn_exit
from gcops.cli.common.options import (
    AllUsersOpt,
    ConfirmOpt,
    DeadlineOpt,
    DryRunOpt,
    FailedOpt,
    IdOpt,
    KindOpt,
    MaxOpt,
    PagesOpt,
    ProjectOpt,
    RawOpt,
    StateOpt,
    UseOrOpt,
    WaitOpt,
)
from gcops.cli.common.output import out
from gcops.cli.common.progress import wait_for_jobs_with_progress
from gcops.cli.common.selector_builder import build_selector
from gcops.cli.tui import select_jobs as tui_select_jobs
from gcops.core.errors import GcopsError
from gcops.core.jobs import Job, get_job, list_jobs
from gcops.core.jobs import select_jobs as core_select_jobs
from gcops.core.results import iter_raw_records
from gcops.core.runs import rerun_jobs

app = typer.Typer(
    help="Work with BigQuery jobs",
    no_args_is_help=False,
    invoke_without_command=True,
)


@app.callback()
def _init(ctx: typer.Context, project: str | None = ProjectOpt):
    """Initialize jobs context."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)
    ctx.obj = build_context(project)


def _get_job_or_exit(appctx: AppContext, job_id: str) -> Job:
    try:
        job = get_job(appctx.bigquery, job_id)
    except GcopsError as exc:
        exit_from_exc(exc)
    if job is None:
        die(f"Job not found: {job_id}", code=1)
    return job


def _find_jobs(
    appctx: AppContext,
    *,
    kind: list[str],
    state: list[str],
    job_id: str | None,
    failed: bool | None,
    use_or: bool,
    all_users: bool,
    max_results: int,
    pages: int,
) -> list[Job]:
    try:
        selector = build_selector(
            kinds=kind, states=state, id_regex=job_id, failed=failed, use_or=use_or
        )
    except ValueError as e:
        die(str(e), code=2)

    # The API filters on a single state only; anything else is matched locally.
    state_filter = state[0] if len(state) == 1 and not use_or else None
    try:
        with out.status("Loading jobs..."):
            first = list_jobs(
                appctx.bigquery,
                all_users=all_users or None,
                max_results=max_results,
                state_filter=state_filter,
            )
            return core_select_jobs(list(first.all(request_limit=pages)), selector)
    except ValueError as e:
        die(str(e), code=2)
    except GcopsError as exc:
        exit_from_exc(exc)


def _wait_or_exit(jobs: list[Job], deadline: float | None) -> None:
    try:
        jobs = wait_for_jobs_with_progress(jobs, deadline=deadline)
    except GcopsError as exc:
        exit_from_exc(exc)

    out.jobs_table(jobs, title="Job status")
    if any(job.failed for job in jobs):
        raise typer.Exit(1)


@app.command("list")
def list_(
    ctx: typer.Context,
    kind: list[str] = KindOpt,
    state: list[str] = StateOpt,
    job_id: str | None = IdOpt,
    failed: bool | None = FailedOpt,
    use_or: bool = UseOrOpt,
    all_users: bool = AllUsersOpt,
    max_results: int = MaxOpt,
    pages: int = PagesOpt,
):
    """
    List recent jobs, optionally filtered by selectors.
    """
    appctx: AppContext = ctx.obj
    jobs = _find_jobs(
        appctx,
        kind=kind,
        state=state,
        job_id=job_id,
        failed=failed,
        use_or=use_or,
        all_users=all_users,
        max_results=max_results,
        pages=pages,
    )
    if not jobs:
        warn_exit("No jobs found", code=0)

    out.jobs_table(jobs, title="Matched jobs")


@app.command()
def show(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Job id"),
    raw: bool = RawOpt,
):
    """Show the state, statistics and tables of one job."""
    appctx: AppContext = ctx.obj
    job = _get_job_or_exit(appctx, job_id)
    if raw:
        out.raw_json(job.snapshot.raw)
        return
    out.job_detail(job)


@app.command()
def wait(
    ctx: typer.Context,
    job_ids: list[str] = typer.Argument(..., help="Job id(s)"),
    deadline: float | None = DeadlineOpt,
):
    """
    Wait until the given jobs are done. Exits with 1 if any of them failed.
    """
    appctx: AppContext = ctx.obj
    jobs = [_get_job_or_exit(appctx, job_id) for job_id in job_ids]
    _wait_or_exit(jobs, deadline)


@app.command()
def rerun(
    ctx: typer.Context,
    job_ids: list[str] = typer.Argument(None, help="Job id(s); select interactively if omitted"),
    kind: list[str] = KindOpt,
    state: list[str] = StateOpt,
    job_id: str | None = IdOpt,
    failed: bool | None = FailedOpt,
    use_or: bool = UseOrOpt,
    max_results: int = MaxOpt,
    confirm: bool = ConfirmOpt,
    wait: bool = WaitOpt,
    deadline: float | None = DeadlineOpt,
    dry_run: bool = DryRunOpt,
):
    """
    Submit the configuration of earlier jobs again as new jobs.
    """
    appctx: AppContext = ctx.obj

    if job_ids:
        selected = [_get_job_or_exit(appctx, j) for j in job_ids]
    else:
        jobs = _find_jobs(
            appctx,
            kind=kind,
            state=state,
            job_id=job_id,
            failed=failed,
            use_or=use_or,
            all_users=False,
            max_results=max_results,
            pages=0,
        )
        if not jobs:
            warn_exit("No jobs found", code=0)
        selected = tui_select_jobs(jobs)

    if not selected:
        warn_exit("No jobs selected", code=0)

    out.header("Selected jobs")
    out.jobs_table(selected, title="Selected")

    if dry_run:
        warn_exit("Dry-run enabled: no jobs were submitted", code=0)

    if confirm and not out.confirm("Submit the selected jobs again?"):
        ok_exit("Cancelled")

    try:
        with out.status("Submitting jobs..."):
            new_jobs = rerun_jobs(selected)
    except GcopsError as exc:
        exit_from_exc(exc)

    out.success(f"Jobs submitted: {len(new_jobs)}")
    out.jobs_table(new_jobs, title="New jobs")

    if wait:
        _wait_or_exit(new_jobs, deadline)


@app.command()
def cancel(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Job id"),
    confirm: bool = ConfirmOpt,
):
    """Request cancellation of a running job."""
    appctx: AppContext = ctx.obj
    job = _get_job_or_exit(appctx, job_id)

    if job.done:
        warn_exit(f"Job {job_id} is already done", code=0)

    if confirm and not out.confirm(f"Cancel job {job_id}?"):
        ok_exit("Cancelled")

    try:
        job.cancel()
    except GcopsError as exc:
        exit_from_exc(exc)

    out.success(f"Cancellation requested for {job_id} (state: {job.state.value})")


@app.command()
def results(
    ctx: typer.Context,
    job_id: str = typer.Argument(..., help="Query job id"),
    max_results: int = MaxOpt,
    pages: int = PagesOpt,
    start: int | None = typer.Option(None, "--start", help="Zero-based index of the first row"),
    raw: bool = RawOpt,
):
    """Print the result rows of a query job."""
    appctx: AppContext = ctx.obj
    job = _get_job_or_exit(appctx, job_id)

    try:
        with out.status("Loading results..."):
            first = job.query_results(max_results=max_results, start_index=start)
            if raw:
                rows = list(iter_raw_records(first, request_limit=pages))
            else:
                rows = list(first.all(request_limit=pages))
    except GcopsError as exc:
        exit_from_exc(exc)

    if not first.job_complete:
        warn_exit(f"Job {job_id} has not completed yet", code=0)

    out.rows_table(first.headers, rows, title=f"Results of {job_id}")
    out.kv({"total rows": first.total_rows, "shown": len(rows)})
