#!/usr/bin/env python3
"""HAR Perf CLI.

Summarize HAR files: totals, slowest and largest requests, per-host stats.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from har_perf import __version__
from har_perf.har import load_har
from har_perf.report import (
    DEFAULT_TOP,
    GroupBy,
    PerfAnalyzer,
    Report,
    format_bytes,
)

logger = logging.getLogger(__name__)
console = Console(highlight=False)


# =============================================================================
# Output Formatter
# =============================================================================


class OutputFormatter:
    """Render reports as line-oriented text or JSON.

    Each request or group is printed on a single line so the text output stays
    greppable regardless of terminal width.
    """

    def print_report(self, report: Report) -> None:
        """Print the report to the terminal."""
        console.print(f"entries: {report.entries}")
        console.print(f"total_time_ms: {report.total_time_ms:.2f}")
        console.print(f"total_bytes: {format_bytes(report.total_bytes)}")

        console.print(f"\nslowest {report.top_returned}:")
        for row in report.top_slowest:
            self._print_line(f"[yellow]{row.time_ms:>8.2f} ms[/yellow] {escape(row.url)}")

        console.print(f"\nlargest {report.top_returned} by bytes:")
        for row in report.top_largest:
            self._print_line(f"[yellow]{format_bytes(row.bytes):>10}[/yellow]  {escape(row.url)}")

        if report.group_by is not None:
            self._print_groups(report)

    def render_json(self, report: Report) -> str:
        """Serialize the report as pretty-printed JSON."""
        return report.model_dump_json(indent=2)

    def _print_groups(self, report: Report) -> None:
        console.print(f"\ngroups by {report.group_by.value} (top {len(report.top_groups)}):")
        for group in report.top_groups:
            self._print_line(
                f"{group.count:>4} req  "
                f"{group.total_time_ms:>8.2f} ms total  "
                f"{group.avg_time_ms:>8.2f} ms avg  "
                f"[yellow]{group.p95_time_ms:>8.2f} ms p95[/yellow]  "
                f"{format_bytes(group.total_bytes):>10}  "
                f"[cyan]{escape(group.key)}[/cyan]"
            )

    def _print_line(self, line: str) -> None:
        # soft_wrap disables both wrapping and cropping at the console width
        console.print(line, soft_wrap=True)


# =============================================================================
# CLI
# =============================================================================

app = typer.Typer(
    name="har-perf",
    help="Analyze HAR files",
    add_completion=False,
)


@app.callback()
def callback() -> None:
    """Summarize HAR captures: totals, slowest and largest requests, per-host timings."""


@app.command()
def version() -> None:
    """Print the installed har-perf version."""
    typer.echo(f"har-perf version {__version__}")


def setup_logging(verbose: bool) -> None:
    """Send log records to stderr so report output on stdout stays clean."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@app.command()
def analyze(
    har_file: Path = typer.Argument(..., dir_okay=False, help="Path to HAR file"),  # noqa: B008
    top: int = typer.Option(DEFAULT_TOP, "--top", min=0, help="Show top N requests and groups"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
    group_by: GroupBy | None = typer.Option(  # noqa: B008
        None, "--group-by", case_sensitive=False, help="Group request metrics by dimension"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Analyze a HAR file and summarize request performance."""
    setup_logging(verbose)

    try:
        logger.info(f"Parsing HAR file: {har_file}")
        har = load_har(har_file)
        logger.info(f"Parsed {len(har.log.entries)} entries")

        analyzer = PerfAnalyzer()
        report = analyzer.analyze(har.log.entries, top=top, group_by=group_by)

        formatter = OutputFormatter()
        if json_output:
            typer.echo(formatter.render_json(report))
        else:
            formatter.print_report(report)

    except KeyboardInterrupt:
        typer.echo("\n\nInterrupted by user", err=True)
        raise typer.Exit(130) from None
    except Exception as e:
        typer.echo(f"\nError: {e}", err=True)
        raise typer.Exit(1) from e


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
