"""Output formatting utilities for the CLI."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping

import questionary
from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from gcops.cli.common.tui_style import (
    QUESTIONARY_STYLE_CONFIRM,
    QUESTIONARY_STYLE_SELECT,
)

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME)


def _fmt_time(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else ""


def _fmt_cell(value: Any) -> str:
    if value is None:
        return "[meta]NULL[/]"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _state_style(job: Any) -> str:
    if getattr(job, "failed", False):
        return "err"
    if getattr(job, "done", False):
        return "ok"
    return "warn"


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    def _q_try(self, fn, *args, **kwargs):
        """Call questionary prompts and drop unsupported kwargs on older versions."""
        try:
            return fn(*args, **kwargs)
        except TypeError:
            for k in ("pointer", "checked_icon", "unchecked_icon", "auto_enter"):
                kwargs.pop(k, None)
            return fn(*args, **kwargs)

    def _q(self, message: str) -> str:
        return f"[gcops] {message}"

    def info(self, msg: str) -> None:
        """Print an info message."""
        console.print(f"[title]›[/] {msg}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def success(self, msg: str) -> None:
        """Print a success message."""
        console.print(f"[ok]✓[/] {msg}")

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        console.print(f"[err]✗[/] {msg}")

    def header(self, title: str) -> None:
        """Print a header message."""
        console.print(f"[title]{title}[/]")

    def kv(self, items: Mapping[str, Any]) -> None:
        """Print key-value pairs, skipping empty values."""
        for k, v in items.items():
            if v is None or v == "":
                continue
            console.print(f"[meta]{k}[/]: {v}")

    def select_many(self, message: str, choices: list[Any]) -> list[Any]:
        """
        Prompt the user to select multiple items from a list.

        `choices` may be plain strings or questionary.Choice objects.
        Returns the selected values.
        """
        if not choices:
            return []

        prompt = self._q_try(
            questionary.checkbox,
            self._q(message),
            choices=choices,
            style=QUESTIONARY_STYLE_SELECT,
            qmark="✦",
            instruction="Use ↑/↓, space, a (all), i (invert), enter",
            pointer="❯",
            checked_icon="▣",
            unchecked_icon="▢",
        )
        picked = prompt.ask()
        return list(picked or [])

    def confirm(self, message: str, *, default: bool = False) -> bool:
        """
        Ask the user for confirmation using a standardized Questionary prompt.

        Args:
            message: Confirmation question shown to the user.
            default: Default answer if the user just presses enter.

        Returns:
            True if the user confirms, False otherwise.
        """
        # Questionary renders `instruction=...` inline, next to the echoed answer.
        console.print("[meta]Use y/n then Enter[/]")

        prompt = self._q_try(
            questionary.confirm,
            self._q(message),
            default=default,
            style=QUESTIONARY_STYLE_CONFIRM,
            qmark="✦",
            auto_enter=False,
            pointer="❯",
        )
        return bool(prompt.ask())

    def jobs_table(self, jobs: Iterable[Any], title: str = "Jobs") -> None:
        """
        Expects objects with .job_id .kind .state .failed .created_at .error
        (like gcops.core.jobs.Job)
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Job ID", style="ok", no_wrap=True)
        t.add_column("Kind")
        t.add_column("State")
        t.add_column("Created", style="meta")
        t.add_column("Error", style="err")

        for j in jobs:
            style = _state_style(j)
            t.add_row(
                j.job_id,
                j.kind,
                f"[{style}]{j.state.value}[/{style}]",
                _fmt_time(j.created_at),
                str(j.error or ""),
            )

        console.print(t)

    def job_detail(self, job: Any) -> None:
        """Print the state, timing, statistics and tables of one job."""
        config = job.config
        destination = config.destination_table
        sources = ", ".join(ref.full_name for ref in config.source_tables)
        self.header(f"Job {job.project_id}:{job.job_id}")
        self.kv(
            {
                "kind": job.kind,
                "state": job.state.value,
                "error": job.error,
                "created": _fmt_time(job.created_at),
                "started": _fmt_time(job.started_at),
                "ended": _fmt_time(job.ended_at),
                "query": getattr(config, "query", None),
                "source": sources,
                "destination": destination.full_name if destination else None,
                "cache hit": job.cache_hit if job.kind == "query" else None,
                "bytes processed": job.bytes_processed,
                "input files": job.input_files,
                "output rows": job.output_rows,
            }
        )
        for detail in job.errors[1:]:
            console.print(f"[err]  - {detail}[/]")

    def raw_json(self, data: Any) -> None:
        """Print a wire resource as indented JSON."""
        console.print_json(data=data, default=str)

    def rows_table(self, headers: list[str], rows: Iterable[Mapping[str, Any]], title: str = "Rows") -> None:
        """Render query rows (dicts keyed by field name) under the schema headers."""
        t = Table(title=title, show_lines=False)
        for h in headers:
            t.add_column(h)

        for row in rows:
            t.add_row(*(_fmt_cell(row.get(h)) for h in headers))

        console.print(t)

    def datasets_table(self, datasets: Iterable[Any], title: str = "Datasets") -> None:
        """Expects objects with .full_name .friendly_name .location"""
        t = Table(title=title, show_lines=False)
        t.add_column("Dataset", style="ok")
        t.add_column("Name")
        t.add_column("Location", style="meta")

        for d in datasets:
            t.add_row(d.full_name, d.friendly_name or "", d.location or "")

        console.print(t)

    def tables_table(self, tables: Iterable[Any], title: str = "Tables") -> None:
        """Expects objects with .full_name .table_type .num_rows"""
        t = Table(title=title, show_lines=False)
        t.add_column("Full name", style="ok")
        t.add_column("Type", style="meta")
        t.add_column("Rows", justify="right")

        for item in tables:
            rows = "" if item.num_rows is None else str(item.num_rows)
            t.add_row(item.full_name, item.table_type or "", rows)

        console.print(t)

    def buckets_table(self, buckets: Iterable[Any], title: str = "Buckets") -> None:
        """Expects objects with .name .location .storage_class .created_at"""
        t = Table(title=title, show_lines=False)
        t.add_column("Bucket", style="ok")
        t.add_column("Location", style="meta")
        t.add_column("Class", style="meta")
        t.add_column("Created", style="meta")

        for b in buckets:
            t.add_row(b.name, b.location or "", b.storage_class or "", _fmt_time(b.created_at))

        console.print(t)


out = Out()
