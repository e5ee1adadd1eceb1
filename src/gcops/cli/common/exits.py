"""Exit helpers shared by the gcops commands.

Exit codes:
    0  success, or nothing to do
    1  remote failure, or a job that ended with an error result
    2  invalid input or missing configuration (project, selectors, table names)
    3  a wait crossed its --deadline
"""

from typing import NoReturn

import typer

from gcops.cli.common.output import out
from gcops.core.errors import ConfigError, GcopsError, JobTimeout

_EXIT_CODES: dict[type[GcopsError], int] = {
    ConfigError: 2,
    JobTimeout: 3,
}


def exit_code_for(exc: BaseException) -> int:
    """Return the process exit code for an error raised by the gcops core."""
    for error_type, code in _EXIT_CODES.items():
        if isinstance(exc, error_type):
            return code
    return 1


def ok_exit(msg: str | None = None) -> NoReturn:
    """Exit with 0, printing `msg` as info (used for "Cancelled" and similar)."""
    if msg:
        out.info(msg)
    raise typer.Exit(0)


def die(msg: str, code: int = 1) -> NoReturn:
    """Print `msg` as an error and exit; input validation passes code 2."""
    out.error(msg)
    raise typer.Exit(code)


def warn_exit(msg: str, code: int = 0) -> NoReturn:
    """Print `msg` as a warning and exit; empty listings exit with 0."""
    out.warn(msg)
    raise typer.Exit(code)


def exit_from_exc(exc: Exception, *, message: str | None = None, code: int | None = None) -> NoReturn:
    """
    Print an error for a core exception and exit.

    The message defaults to the exception text and the code to
    `exit_code_for(exc)`. The exception is chained as the cause.
    """
    out.error(message or str(exc))
    raise typer.Exit(exit_code_for(exc) if code is None else code) from exc
