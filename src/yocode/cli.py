"""Yocode command-line interface."""

from __future__ import annotations

import logging
import re
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import manifest as manifest_model
from . import source as source_model
from .augment import augment
from .config import load_settings
from .exceptions import AugmentationError, YocodeError
from .models import VARIANT_LAYOUTS, LanguageVariant, Stage
from .source import Found, find_anchor

app = typer.Typer(
    name="yocode",
    help="Yocode: scaffolding for editor extension projects",
    add_completion=False,
)
console = Console()

STAGE_MESSAGES = {
    Stage.PRECONDITIONS: "Checking project files...",
    Stage.RENDER: "Generating command file...",
    Stage.WRITE_MODULE: "Staging command file...",
    Stage.LOAD_ENTRY: "Reading extension file...",
    Stage.INJECT_IMPORT: "Adding command import...",
    Stage.REGISTER_COMMAND: "Registering command...",
    Stage.UPDATE_MANIFEST: "Updating package.json...",
    Stage.COMMIT: "Writing files...",
}


def _get_version_string() -> str:
    """Get version string from package metadata or pyproject.toml."""
    try:
        return get_version("yocode")
    except PackageNotFoundError:
        pass

    pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
    if pyproject_path.exists():
        content = pyproject_path.read_text()
        match = re.search(r'version\s*=\s*["\']([^"\']+)["\']', content)
        if match:
            return f"{match.group(1)} (development)"

    return "unknown"


def version_callback(value: bool) -> None:
    """Callback for --version flag."""
    if value:
        console.print(f"Yocode version {_get_version_string()}")
        raise typer.Exit


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log engine details to stderr",
    ),
) -> None:
    """Yocode: scaffolding for editor extension projects."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(message)s", stream=sys.stderr)


@app.command("add-command")
def add_command(
    command_name: str = typer.Argument(..., help="Name of the command to add"),
    project: Path = typer.Option(
        Path.cwd(),
        "--project",
        "-p",
        help="Extension project directory",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
    variant: LanguageVariant | None = typer.Option(
        None,
        "--variant",
        help="Project language (detected from package.json by default)",
        case_sensitive=False,
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Run every step without writing files",
    ),
) -> None:
    """Add a new command module and wire it into the extension."""
    try:
        with console.status("Starting command generation...") as status:
            report = augment(
                project,
                command_name,
                variant,
                dry_run=dry_run,
                on_stage=lambda stage: status.update(STAGE_MESSAGES[stage]),
            )
    except AugmentationError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    for warning in report.warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")

    if dry_run:
        console.print(f"[bold blue]Dry run - would add command {report.command_id}[/bold blue]")
    else:
        console.print(f'[green]✓[/green] Command "{escape(command_name)}" successfully added!')

    console.print(f"  • {escape(str(report.module_path))} (new module)")
    console.print(
        f"  • {escape(str(report.entry_path))} "
        f"(collector {report.collector_state.value})",
    )
    console.print(f"  • {escape(str(report.manifest_path))} (command {report.command_id})")


@app.command()
def inspect(
    project: Path = typer.Option(
        Path.cwd(),
        "--project",
        "-p",
        help="Extension project directory",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
) -> None:
    """Show how yocode sees an extension project."""
    try:
        settings = load_settings(project)
        manifest = manifest_model.load(project / manifest_model.MANIFEST_FILENAME)
    except YocodeError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    variant = settings.variant or manifest_model.detect_variant(manifest)
    entry_path = project / VARIANT_LAYOUTS[variant].entry_source

    table = Table(title="Yocode Project")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Package Name", manifest.name)
    table.add_row("Language Variant", variant.value)
    table.add_row("Entry Source", VARIANT_LAYOUTS[variant].entry_source)

    if entry_path.exists():
        try:
            text = source_model.load(entry_path).text
        except YocodeError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1) from e
        markers = settings.markers
        checks = [
            ("Import Anchor", markers.import_anchor[variant]),
            ("Activation Routine", markers.activation),
            ("Subscriptions Collector", markers.collector),
        ]
        for label, marker in checks:
            found = isinstance(find_anchor(text, marker), Found)
            table.add_row(label, "found" if found else "missing")
    else:
        table.add_row("Entry Source Status", "missing")

    table.add_row("Registered Commands", str(len(manifest.command_ids())))
    console.print(table)

    if manifest.commands:
        console.print("\n[bold]Commands:[/bold]")
        for entry in manifest.commands:
            console.print(f"  {escape(entry['command'])}: {escape(entry['title'])}")


@app.command()
def version() -> None:
    """Show Yocode version information."""
    console.print(f"Yocode version {_get_version_string()}")


def main() -> None:
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
