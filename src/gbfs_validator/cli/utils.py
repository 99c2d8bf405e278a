"""
CLI utility helpers: consoles and report rendering.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from gbfs_validator.feeds.report import FileValidationResult, ValidationReport

console = Console()
err_console = Console(stderr=True)

MAX_UNIQUE_MESSAGES = 5


def file_status(result: FileValidationResult) -> str:
    """Status marker shown in front of each file."""
    if result.has_errors:
        return "[red]✗[/red]"
    if not result.exists:
        return "[red]✗ MISSING (required)[/red]" if result.required else "[dim]- (optional, not present)[/dim]"
    return "[green]✓[/green]"


def render_report(report: ValidationReport, url: str, *, lenient: bool = False) -> None:
    """Print a human-readable report, listing up to five unique messages per file."""
    summary = report.summary

    console.print(f"Validating GBFS feed: {escape(url)}")
    if lenient:
        console.print("Mode: [yellow]LENIENT[/yellow] (data coercion enabled)")
    console.rule()

    console.print(
        f"\nVersion: detected={summary.version.detected or '-'}, validated={summary.version.validated or '-'}"
    )
    if summary.version_unimplemented:
        console.print("[yellow]Manifest could not be read; no other files were checked.[/yellow]")
    if summary.has_errors:
        console.print(f"Status: [bold red]INVALID[/bold red] ({summary.errors_count} errors)")
    else:
        console.print("Status: [bold green]VALID[/bold green]")

    if summary.coercion_summary is not None and summary.coercion_summary.total_coercions:
        console.print(f"\nCoercions applied: {summary.coercion_summary.total_coercions}")

    console.print("\nFiles:")
    for result in report.files:
        coercions = f" [dim]\\[{result.coercion_count} coercions][/dim]" if result.coercion_count else ""
        console.print(f"  {file_status(result)} {result.file}{coercions}")
        if not result.has_errors:
            continue

        seen: dict[str, int] = {}
        for issue in result.issues:
            seen[issue.message] = seen.get(issue.message, 0) + 1
            if seen[issue.message] == 1 and len(seen) <= MAX_UNIQUE_MESSAGES:
                console.print(f"      {issue.severity.value}: {escape(issue.message)}")
        if len(seen) > MAX_UNIQUE_MESSAGES:
            console.print(f"      ... and {len(seen) - MAX_UNIQUE_MESSAGES} more unique error types")
