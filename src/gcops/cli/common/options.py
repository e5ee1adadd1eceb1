"""Common CLI options for the CLI."""

import typer

ProjectOpt = typer.Option(
    None,
    "--project",
    "-p",
    help="Google Cloud project (defaults to GCOPS_PROJECT / GOOGLE_CLOUD_PROJECT)",
)

AllUsersOpt = typer.Option(
    False,
    "--all-users",
    help="Include jobs of every user in the project",
)

StateOpt = typer.Option(
    [],
    "--state",
    "-s",
    help="Job state (pending, running, done). This is reusable.",
    show_default=False,
)

KindOpt = typer.Option(
    [],
    "--kind",
    "-k",
    help="Job kind (query, load, copy, extract). This is reusable.",
    show_default=False,
)

IdOpt = typer.Option(
    None,
    "--id",
    help="Regex on job id",
)

FailedOpt = typer.Option(
    None,
    "--failed/--succeeded",
    help="Only failed jobs, or only jobs without an error result",
    show_default=False,
)

UseOrOpt = typer.Option(
    False,
    "--or",
    help="Use OR instead of AND between selectors",
)

MaxOpt = typer.Option(
    50,
    "--max",
    "-m",
    help="Page size requested from the API",
)

PagesOpt = typer.Option(
    0,
    "--pages",
    help="Extra pages to fetch after the first one",
)

ConfirmOpt = typer.Option(
    True,
    "--confirm/--no-confirm",
    help="Ask for confirmation before submitting or cancelling jobs",
)

WaitOpt = typer.Option(
    False,
    "--wait",
    "-w",
    help="Wait until the jobs are done",
)

DeadlineOpt = typer.Option(
    None,
    "--deadline",
    help="Stop waiting after this many seconds (default: no limit)",
)

DryRunOpt = typer.Option(
    False,
    "--dry-run",
    help="Validate only; don't run anything",
)

TimeoutOpt = typer.Option(
    10000,
    "--timeout-ms",
    help="Server-side wait per request, in milliseconds",
)

DatasetOpt = typer.Option(
    None,
    "--dataset",
    "-d",
    help="Default dataset for unqualified table names",
)

RawOpt = typer.Option(
    False,
    "--raw",
    help="Print wire values as BigQuery returned them",
)
