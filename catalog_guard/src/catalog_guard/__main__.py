"""
Command-line interface for the catalog quality engine.

Usage:
    python -m catalog_guard score record.json               # Score a record
    python -m catalog_guard assess record.json -f condition # Sparse-data gate
    python -m catalog_guard diff "repor" "repor vid foten"  # Hallucination diff
    python -m catalog_guard enhance record.json -f all      # Generate with correction
    python -m catalog_guard policy                          # Show deduction table
    python -m catalog_guard config                          # Show current configuration
"""

import asyncio
import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from .config import get_settings
from .correction import run_correction_cycle
from .errors import GenerationError
from .gate import assess as assess_record
from .generation import OpenAIGenerationService
from .hallucination import diff as diff_texts
from .logging_conf import setup_logging, get_logger
from .models import CatalogRecord, FieldTarget, Severity
from .policy import COMPLIANCE_CODES, CORRECTION_THRESHOLD, DEDUCTIONS
from .scorer import score as score_record

console = Console()
logger = get_logger(__name__)

FIELD_CHOICES = click.Choice([t.value for t in FieldTarget])

SEVERITY_STYLES = {
    Severity.HIGH: "bold red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "dim",
}


def _load_record(path: str) -> CatalogRecord:
    """Read a record from a JSON file ("-" for stdin)."""
    if path == "-":
        data = json.loads(click.get_text_stream("stdin").read())
    else:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise click.BadParameter("record file must contain a JSON object")
    return CatalogRecord.from_dict(data)


def _score_style(value: int) -> str:
    if value >= 80:
        return "green"
    if value >= CORRECTION_THRESHOLD:
        return "yellow"
    return "red"


def _warnings_table(warnings, title: str = "Warnings") -> Table:
    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Severity")
    table.add_column("Code", style="magenta")
    table.add_column("-", justify="right")
    table.add_column("Message")

    for w in warnings:
        style = SEVERITY_STYLES[w.severity]
        table.add_row(
            w.field,
            f"[{style}]{w.severity.value}[/{style}]",
            w.code,
            str(w.deduction) if w.deduction else "",
            w.message,
        )
    return table


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def cli(debug: bool):
    """Auction catalog quality and anti-hallucination CLI."""
    settings = get_settings()
    level = "DEBUG" if debug else settings.log_level
    setup_logging(level=level, json_output=settings.log_json)


@cli.command()
@click.argument("record_file", type=click.Path(allow_dash=True))
@click.option("--json-output", "-j", is_flag=True, help="Output results as JSON")
def score(record_file: str, json_output: bool):
    """
    Score a catalog record (JSON file) from 0 to 100.

    Examples:
      python -m catalog_guard score item.json
      cat item.json | python -m catalog_guard score - --json-output
    """
    record = _load_record(record_file)
    result = score_record(record)

    if json_output:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    style = _score_style(result.score)
    console.print(Panel(f"[bold {style}]Quality score: {result.score}/100[/bold {style}]"))
    if result.warnings:
        console.print(_warnings_table(result.warnings))
    else:
        console.print("[green]No warnings[/green]")


@cli.command()
@click.argument("record_file", type=click.Path(allow_dash=True))
@click.option("--field", "-f", "field_target", type=FIELD_CHOICES, default="all", help="Field about to be generated")
@click.option("--ignore-artist", "ignored_artists", multiple=True, help="Artist name to treat as absent")
@click.option("--json-output", "-j", is_flag=True, help="Output results as JSON")
def assess(record_file: str, field_target: str, ignored_artists: tuple, json_output: bool):
    """
    Check whether a record holds enough data to generate a field.

    Examples:
      python -m catalog_guard assess item.json --field condition
      python -m catalog_guard assess item.json --ignore-artist "Okänd"
    """
    record = _load_record(record_file)
    decision = assess_record(record, FieldTarget(field_target), ignored_artists=ignored_artists)

    if json_output:
        click.echo(json.dumps(decision.to_dict(), indent=2, ensure_ascii=False))
        return

    if decision.needs_more_info:
        codes = ", ".join(sorted(decision.missing_info_codes))
        console.print(Panel(
            f"[bold red]More information needed[/bold red] for {field_target}\n"
            f"Missing: {codes}\nQuality score: {decision.quality_score}"
        ))
    else:
        console.print(Panel(
            f"[bold green]Enough data[/bold green] to generate {field_target}\n"
            f"Quality score: {decision.quality_score}"
        ))


@cli.command()
@click.argument("original")
@click.argument("candidate")
@click.option("--json-output", "-j", is_flag=True, help="Output results as JSON")
def diff(original: str, candidate: str, json_output: bool):
    """
    List specifics in CANDIDATE that ORIGINAL never mentioned.

    Examples:
      python -m catalog_guard diff "repor" "repor i metallramen"
    """
    findings = diff_texts(original, candidate)

    if json_output:
        click.echo(json.dumps([f.to_dict() for f in findings], indent=2, ensure_ascii=False))
        return

    if not findings:
        console.print("[green]No hallucinations found[/green]")
        return

    table = Table(title="Hallucination Findings")
    table.add_column("Category", style="cyan")
    table.add_column("Text", style="red")
    for finding in findings:
        table.add_row(finding.category.value, finding.text)
    console.print(table)


@cli.command()
@click.argument("record_file", type=click.Path(allow_dash=True))
@click.option("--field", "-f", "field_target", type=FIELD_CHOICES, default="all", help="Field(s) to generate")
@click.option("--ignore-artist", "ignored_artists", multiple=True, help="Artist name to treat as absent")
@click.option("--force", is_flag=True, help="Generate even when the gate asks for more information")
@click.option("--json-output", "-j", is_flag=True, help="Output results as JSON")
def enhance(record_file: str, field_target: str, ignored_artists: tuple, force: bool, json_output: bool):
    """
    Generate improved field values, correcting once if they score low.

    Runs the sparse-data gate first and stops when more information is
    needed (unless --force).

    Examples:
      python -m catalog_guard enhance item.json --field condition
    """
    record = _load_record(record_file)
    target = FieldTarget(field_target)

    decision = assess_record(record, target, ignored_artists=ignored_artists)
    if decision.needs_more_info and not force:
        if json_output:
            click.echo(json.dumps({"gate": decision.to_dict()}, indent=2, ensure_ascii=False))
        else:
            codes = ", ".join(sorted(decision.missing_info_codes))
            console.print(Panel(f"[bold yellow]More information needed before generating[/bold yellow]\n{codes}"))
        return

    try:
        service = OpenAIGenerationService()
        outcome = asyncio.run(run_correction_cycle(service, record, target))
    except GenerationError as e:
        logger.error("enhance_failed", error=str(e))
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise click.Abort()

    if json_output:
        click.echo(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))
        return

    table = Table(title="Accepted Fields")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for name, value in outcome.fields.items():
        table.add_row(name, value)
    console.print(table)

    style = _score_style(outcome.score_result.score)
    summary = f"[bold {style}]Score: {outcome.score_result.score}/100[/bold {style}]  calls: {outcome.calls}"
    if outcome.corrected:
        summary += f"  (draft scored {outcome.first_score})"
    console.print(Panel(summary))

    if outcome.score_result.warnings:
        console.print(_warnings_table(outcome.score_result.warnings, title="Remaining Warnings"))
    for finding in outcome.findings:
        console.print(f"[red]Hallucination[/red] {finding}")
    for error in outcome.title_errors:
        console.print(f"[red]Title[/red] {error}")


@cli.command()
def policy():
    """Show the deduction table."""
    table = Table(title="Deductions")
    table.add_column("Code", style="cyan")
    table.add_column("Points", justify="right", style="green")

    for code, points in DEDUCTIONS.items():
        table.add_row(code, str(points))
    for code in COMPLIANCE_CODES:
        table.add_row(code, "[dim]advisory[/dim]")

    console.print(table)


@cli.command()
def config():
    """Show current configuration (excluding secrets)."""
    settings = get_settings()

    console.print(Panel("[bold blue]Current Configuration[/bold blue]"))

    console.print("\n[cyan]Generation:[/cyan]")
    console.print(f"  model:          {settings.openai_model}")
    console.print(f"  api_key_set:    {bool(settings.openai_api_key)}")
    console.print(f"  temperature:    {settings.generation_temperature}")
    console.print(f"  max_tokens:     {settings.generation_max_tokens}")
    console.print(f"  timeout:        {settings.generation_timeout}")
    console.print(f"  max_retries:    {settings.generation_max_retries}")

    console.print("\n[cyan]Correction:[/cyan]")
    console.print(f"  correction_threshold:     {settings.correction_threshold}")
    console.print(f"  correct_on_hallucination: {settings.correct_on_hallucination}")

    console.print("\n[cyan]Logging:[/cyan]")
    console.print(f"  log_level: {settings.log_level}")
    console.print(f"  log_json:  {settings.log_json}")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
