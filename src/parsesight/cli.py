"""
ParseSight CLI - Command Line Interface for parse diagnostics

Provides commands for:
- Extracting metrics from CMX screenshots (single or batch)
- Parsing timestamped cast logs for gaps and weaving
- Rating a metrics file against the diagnostic rules
- Checking a metrics file for missing fields
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from parsesight import __version__
from parsesight.analysis.diagnostics import analyze_parse
from parsesight.core.config import (
    configure_logging,
    generate_default_config,
    get_config,
    load_config,
    set_config,
)
from parsesight.core.constants import ScreenType, Severity
from parsesight.core.errors import IncompleteMetricsError
from parsesight.core.models import (
    AnalysisResult,
    OCRResult,
    ParseMetrics,
    ScreenshotInput,
    ValidationResult,
)
from parsesight.logs.parser import parse_combat_log
from parsesight.logs.weaving import validate_weaving
from parsesight.ocr.screenshot import ScreenshotParser
from parsesight.ocr.validation import validate_ocr_data

app = typer.Typer(
    name="parsesight",
    help="Extract Combat Metrics parses from screenshots or logs and diagnose them",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.MAJOR: "yellow",
    Severity.MINOR: "cyan",
}


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]ParseSight[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose output"),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (YAML, TOML or JSON)",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """ParseSight - Combat Metrics parse analyzer"""
    config = load_config(config_file)
    if verbose:
        config.logging.level = "DEBUG"
    set_config(config)
    configure_logging(config.logging)


# ============================================================================
# Helpers
# ============================================================================


def _load_metrics_file(path: Path) -> ParseMetrics:
    """Read a JSON or YAML metrics file into ParseMetrics."""
    text = path.read_text()
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    return ParseMetrics.from_dict(data)


def _print_json(data: Any) -> None:
    console.print_json(json.dumps(data))


def _display_metrics(metrics: ParseMetrics, title: str = "Extracted Metrics") -> None:
    table = Table(title=title, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    for name, value in metrics.to_dict().items():
        if name == "abilities":
            value = f"{len(value)} ability row(s)"
        table.add_row(name, str(value))

    console.print(table)

    if metrics.abilities:
        abilities = Table(title="Abilities")
        abilities.add_column("Ability", style="cyan")
        abilities.add_column("Share", justify="right")
        abilities.add_column("Damage", justify="right")
        for ability in metrics.abilities:
            abilities.add_row(
                ability.name,
                f"{ability.percent_of_total:.1f}%",
                f"{ability.total_damage:,.0f}",
            )
        console.print(abilities)
    console.print()


def _display_validation(validation: ValidationResult) -> None:
    if validation.is_complete:
        console.print("[green]All critical fields present.[/green]\n")
        return

    console.print(
        f"[yellow]Missing fields:[/yellow] {', '.join(validation.missing_fields)}"
    )
    for suggestion in validation.suggestions:
        console.print(f"  - {suggestion}")
    console.print()


def _display_analysis(result: AnalysisResult) -> None:
    table = Table(title="Issues")
    table.add_column("Severity")
    table.add_column("Category", style="cyan")
    table.add_column("Message")
    table.add_column("Current", justify="right")
    table.add_column("Target", justify="right")

    for issue in result.issues:
        style = SEVERITY_STYLES[issue.severity]
        table.add_row(
            f"[{style}]{issue.severity.value}[/{style}]",
            issue.category.value,
            issue.message,
            "" if issue.current_value is None else str(issue.current_value),
            issue.target_value or "",
        )

    if result.issues:
        console.print(table)
    console.print(Panel(result.summary, title=f"Rating: {result.rating.value}"))


def _report_ocr(result: OCRResult, as_json: bool, analyze: bool) -> None:
    if not result.success:
        if as_json:
            _print_json(result.to_dict())
        else:
            console.print(f"[red]Extraction failed:[/red] {result.error}")
        raise typer.Exit(1)

    metrics = result.data or ParseMetrics()
    validation = validate_ocr_data(metrics)

    analysis: AnalysisResult | None = None
    if analyze:
        try:
            analysis = analyze_parse(metrics)
        except IncompleteMetricsError as e:
            logger.warning(f"Skipping diagnostics: {e}")

    if as_json:
        payload = result.to_dict()
        payload["validation"] = validation.to_dict()
        if analysis is not None:
            payload["analysis"] = analysis.to_dict()
        _print_json(payload)
        return

    console.print(f"OCR confidence: [bold]{result.confidence or 0:.1f}[/bold]\n")
    _display_metrics(metrics)
    _display_validation(validation)
    if analysis is not None:
        _display_analysis(analysis)
    elif analyze:
        console.print("[yellow]Diagnostics need DPS and active time.[/yellow]")


def _parse_batch_item(item: str) -> ScreenshotInput:
    """``path[:type]`` to ScreenshotInput."""
    path, sep, suffix = item.rpartition(":")
    if sep and suffix in {t.value for t in ScreenType}:
        return ScreenshotInput(Path(path), ScreenType(suffix))
    return ScreenshotInput(Path(item), ScreenType.AUTO)


# ============================================================================
# Commands
# ============================================================================


@app.command()
def screenshot(
    image_path: Path = typer.Argument(
        ..., help="CMX screenshot to read", exists=True, dir_okay=False, resolve_path=True
    ),
    screen_type: ScreenType = typer.Option(
        ScreenType.AUTO, "--type", "-t", help="Overlay layout: info, parse or auto"
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Save the preprocessed image next to the screenshot"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
    analyze: bool = typer.Option(False, "--analyze", "-a", help="Run diagnostics too"),
) -> None:
    """Extract metrics from one CMX screenshot."""
    config = get_config()
    parser = ScreenshotParser(config.ocr, config.batch)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"Reading {image_path.name}...", total=None)
        result = parser.parse(image_path, screen_type, debug=debug)

    if not as_json and result.raw_text is not None and debug:
        console.print(Panel(result.raw_text, title="Raw OCR text"))
    _report_ocr(result, as_json, analyze)


@app.command()
def batch(
    items: list[str] = typer.Argument(
        ..., help="Screenshots as PATH or PATH:TYPE (type: info, parse, auto)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
    analyze: bool = typer.Option(False, "--analyze", "-a", help="Run diagnostics too"),
) -> None:
    """Extract and merge metrics from several screenshots (fails if any fails)."""
    config = get_config()
    parser = ScreenshotParser(config.ocr, config.batch)
    inputs = [_parse_batch_item(item) for item in items]

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"Reading {len(inputs)} screenshot(s)...", total=None)
        result = parser.parse_batch(inputs)

    _report_ocr(result, as_json, analyze)


@app.command()
def log(
    log_path: Path = typer.Argument(
        ..., help="Timestamped cast log", exists=True, dir_okay=False, resolve_path=True
    ),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
) -> None:
    """Find gaps and classify light attack weaving in a cast log."""
    config = get_config()
    parsed = parse_combat_log(
        log_path.read_text(), gap_threshold=config.logs.gap_threshold_seconds
    )
    weaving = validate_weaving(parsed.events)

    if as_json:
        payload = parsed.to_dict()
        payload["weaving"] = weaving.to_dict()
        _print_json(payload)
        return

    info = Table(title="Cast Log", show_header=False)
    info.add_column("Property", style="cyan")
    info.add_column("Value", style="green")
    info.add_row("Events", str(len(parsed.events)))
    info.add_row("Light attacks", str(sum(1 for e in parsed.events if e.is_light_attack)))
    info.add_row("Gaps", str(parsed.analysis.total_gaps))
    info.add_row("Largest gap", f"{parsed.analysis.largest_gap:.2f}s")
    info.add_row("Average gap", f"{parsed.analysis.average_gap_size:.2f}s")
    if parsed.analysis.out_of_order_events:
        info.add_row("Out-of-order events", str(parsed.analysis.out_of_order_events))
    console.print(info)

    if parsed.gaps:
        gaps = Table(title="Gaps")
        gaps.add_column("Start", justify="right")
        gaps.add_column("End", justify="right")
        gaps.add_column("Duration", justify="right")
        for gap in parsed.gaps:
            gaps.add_row(
                f"{gap.start_seconds:.2f}s",
                f"{gap.end_seconds:.2f}s",
                f"{gap.duration_seconds:.2f}s",
            )
        console.print(gaps)

    weave = Table(title="Weaving")
    weave.add_column("Good", justify="right", style="green")
    weave.add_column("Missed", justify="right", style="yellow")
    weave.add_column("Double", justify="right", style="yellow")
    weave.add_column("Efficiency", justify="right")
    weave.add_row(
        str(weaving.good_weaves),
        str(weaving.missed_weaves),
        str(weaving.double_weaves),
        f"{weaving.weave_efficiency:.1f}%",
    )
    console.print(weave)


@app.command()
def analyze(
    metrics_path: Path = typer.Argument(
        ..., help="Metrics file (JSON or YAML)", exists=True, dir_okay=False, resolve_path=True
    ),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
) -> None:
    """Rate a parse from a metrics file."""
    try:
        metrics = _load_metrics_file(metrics_path)
        result = analyze_parse(metrics)
    except (ValueError, TypeError, yaml.YAMLError) as e:
        console.print(f"[red]Cannot analyze {metrics_path.name}:[/red] {e}")
        raise typer.Exit(1)

    if as_json:
        _print_json(result.to_dict())
    else:
        _display_analysis(result)


@app.command()
def validate(
    metrics_path: Path = typer.Argument(
        ..., help="Metrics file (JSON or YAML)", exists=True, dir_okay=False, resolve_path=True
    ),
) -> None:
    """Check a metrics file for missing critical fields."""
    try:
        metrics = _load_metrics_file(metrics_path)
    except (ValueError, TypeError, yaml.YAMLError) as e:
        console.print(f"[red]Cannot read {metrics_path.name}:[/red] {e}")
        raise typer.Exit(1)

    validation = validate_ocr_data(metrics)
    _display_validation(validation)
    if not validation.is_complete:
        raise typer.Exit(2)


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(Path("parsesight.yaml"), help="Where to write the config"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """Write a default configuration file."""
    if path.exists() and not force:
        console.print(f"[yellow]{path} already exists[/yellow] (use --force to overwrite)")
        raise typer.Exit(1)
    generate_default_config(path)
    console.print(f"[green]Wrote config to:[/green] {path}")


if __name__ == "__main__":
    app()
