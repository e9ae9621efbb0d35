"""Command line interface for the safe file organizer."""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .core.categories import (
    BLOCKED_EXTENSIONS,
    FALLBACK_CATEGORY,
    CategoryResolver,
    CategoryRuleSet,
    parse_extension_list,
    validate_category_name,
)
from .core.move_logger import MoveLogger
from .core.organizer import FileOrganizer, FileOutcome, OrganizeReport, OrganizeRequest, OutcomeAction
from .exceptions import ConfigurationError, InvalidRootError, OrganizerError, PathValidationError
from .models.config import Config, resolve_config

console = Console(soft_wrap=True)
error_console = Console(stderr=True, soft_wrap=True)

CustomCategory = Tuple[str, List[str]]


def setup_logging(verbose: bool) -> None:
    """Route the package's log records to stderr.

    Per-file problems are already printed, so without --verbose only errors
    get through.
    """
    package_logger = logging.getLogger("safe_organizer")
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)

    handler = RichHandler(console=error_console, show_path=False, show_time=verbose)
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.ERROR)


def parse_category_option(value: str) -> CustomCategory:
    """Parse ``NAME=ext1,ext2`` into a category name and its extensions."""
    if "=" not in value:
        raise ConfigurationError(f"Expected NAME=EXT[,EXT...], got {value!r}")
    name, extensions = value.split("=", 1)
    return validate_category_name(name), parse_extension_list(extensions)


def _category_callback(ctx, param, values) -> List[CustomCategory]:
    try:
        return [parse_category_option(value) for value in values]
    except ConfigurationError as e:
        raise click.BadParameter(str(e))


def ask_yes(message: str) -> bool:
    """Prompt with ``(Y/n)``; only an explicit yes counts."""
    answer = click.prompt(f"{message} (Y/n)", default="", show_default=False)
    return answer.strip().lower() in ("y", "yes")


def prompt_custom_categories() -> List[CustomCategory]:
    """Ask for custom categories until the user stops."""
    categories: List[CustomCategory] = []

    answer = ask_yes("Do you want to add custom categories?")
    while answer:
        name = click.prompt("Enter folder name for the new category")
        try:
            name = validate_category_name(name)
        except ConfigurationError as e:
            error_console.print(f"[red]{escape(str(e))}[/red]")
            continue

        extensions = parse_extension_list(click.prompt(
            "Enter file extensions for this category (comma separated, e.g. .pdf,.docx)"
        ))
        if not extensions:
            error_console.print("[yellow]No extensions given; category will match nothing[/yellow]")
        categories.append((name, extensions))

        answer = ask_yes("Add another custom category?")

    return categories


def build_rule_set(cfg: Config, custom: List[CustomCategory]) -> CategoryRuleSet:
    """Built-in table, then config categories, then command line categories."""
    entries = list(cfg.custom_categories.items()) + list(custom)
    return CategoryResolver.build_rule_set(entries)


def warn_duplicates(rule_set: CategoryRuleSet) -> None:
    for extension, names in rule_set.duplicate_extensions().items():
        message = f"Warning: {extension} is listed under {', '.join(names)}; files go to {names[0]}/"
        error_console.print(f"[yellow]{escape(message)}[/yellow]")


def printable(text: str) -> str:
    """Escape rich markup and the surrogates left by undecodable file names."""
    return escape(text.encode("utf-8", "backslashreplace").decode("utf-8"))


def print_outcome(outcome: FileOutcome) -> None:
    if outcome.action is OutcomeAction.FAILED:
        error_console.print(f"[red]{printable(outcome.message)}[/red]")
        return
    console.print(printable(outcome.message))
    if outcome.log_error:
        error_console.print(f"[yellow]{printable(outcome.log_error)}[/yellow]")


def print_results(report: OrganizeReport) -> None:
    counts = report.by_category
    if counts:
        results_table = Table(title="Results")
        results_table.add_column("Category", style="cyan")
        results_table.add_column("Would move" if report.dry_run else "Moved", justify="right")
        for category, count in sorted(counts.items()):
            results_table.add_row(escape(category), str(count))
        console.print(results_table)

    if report.errors:
        error_console.print(f"[red]{len(report.errors)} file(s) could not be processed[/red]")

    console.print(f"[bold]{report.summary}[/bold]")


@click.group()
@click.version_option(package_name="safe-file-organizer")
def cli():
    """Sort the files of a whitelisted folder into category subfolders."""
    pass


@cli.command()
@click.argument('path', required=False)
@click.option(
    '--dry-run',
    is_flag=True,
    help='Show what would be done without making changes'
)
@click.option(
    '--category', 'categories',
    multiple=True,
    metavar='NAME=EXT[,EXT...]',
    callback=_category_callback,
    help='Custom category; replaces a built-in category of the same name'
)
@click.option(
    '--log-file',
    type=click.Path(dir_okay=False, path_type=Path),
    help='Move log file (default: organizer.log in the working directory)'
)
@click.option(
    '--config',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Configuration file path'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Verbose output'
)
def organize(
    path: Optional[str],
    dry_run: bool,
    categories: List[CustomCategory],
    log_file: Optional[Path],
    config: Optional[Path],
    verbose: bool
):
    """Organize the files directly inside PATH by extension.

    Without PATH the folder, dry run mode and custom categories are asked for
    interactively.
    """
    setup_logging(verbose)

    try:
        cfg = resolve_config(config)
        validator = cfg.safety.build_validator()
        interactive = path is None

        if interactive:
            path = click.prompt("Enter folder path to organize (must be whitelisted)")

        try:
            root = validator.validate_root(path.strip())
        except PathValidationError:
            console.print("[red]Path is unsafe or not whitelisted. Exiting.[/red]")
            sys.exit(1)
        except InvalidRootError:
            console.print("[red]Invalid directory.[/red]")
            sys.exit(1)

        if interactive:
            dry_run = ask_yes("Do a dry run first?")
            categories = list(categories) + prompt_custom_categories()

        rule_set = build_rule_set(cfg, categories)
        warn_duplicates(rule_set)
        organizer = FileOrganizer(move_logger=MoveLogger(log_file or cfg.log_file))
        request = OrganizeRequest(root=root, dry_run=dry_run, rule_set=rule_set)

        report = organizer.run(request, on_outcome=print_outcome)
        print_results(report)

    except (click.ClickException, click.Abort):
        raise
    except OrganizerError as e:
        console.print(f"\n[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[red]Unexpected error: {escape(str(e))}[/red]")
        if verbose:
            import traceback
            console.print(escape(traceback.format_exc()))
        sys.exit(1)


@cli.command(name='categories')
@click.option(
    '--category', 'categories',
    multiple=True,
    metavar='NAME=EXT[,EXT...]',
    callback=_category_callback,
    help='Custom category to include'
)
@click.option(
    '--config',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Configuration file path'
)
def show_categories(categories: List[CustomCategory], config: Optional[Path]):
    """Show the category rules a run would use."""
    try:
        rule_set = build_rule_set(resolve_config(config), categories)
    except OrganizerError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    warn_duplicates(rule_set)

    table = Table(title="Categories")
    table.add_column("Category", style="cyan")
    table.add_column("Extensions")
    for name, extensions in rule_set:
        table.add_row(escape(name), ", ".join(sorted(extensions)) or "[dim](none)[/dim]")
    table.add_row(FALLBACK_CATEGORY, "[dim]anything else[/dim]")
    console.print(table)

    console.print(f"\nNever moved: {', '.join(sorted(BLOCKED_EXTENSIONS))}")


@cli.command()
@click.argument('path')
@click.option(
    '--config',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Configuration file path'
)
def check(path: str, config: Optional[Path]):
    """Check whether PATH may be organized."""
    try:
        validator = resolve_config(config).safety.build_validator()
    except OrganizerError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    if validator.is_safe(path):
        console.print(f"[green]✓ Safe:[/green] {printable(path)}")
        return

    console.print(f"[red]✗ Unsafe or not whitelisted:[/red] {printable(path)}")
    console.print("Allowed directories:")
    for directory in validator.safe_directories:
        console.print(f"  {escape(str(directory))}")
    sys.exit(1)


@cli.command()
@click.option(
    '--log-file',
    type=click.Path(dir_okay=False, path_type=Path),
    help='Move log file (default: organizer.log in the working directory)'
)
@click.option(
    '--config',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Configuration file path'
)
@click.option('--limit', type=click.IntRange(min=1), default=20, show_default=True,
              help='Number of recent moves to show')
def history(log_file: Optional[Path], config: Optional[Path], limit: int):
    """Show the most recent moves from the move log."""
    try:
        cfg = resolve_config(config)
        records = MoveLogger(log_file or cfg.log_file).read_records(limit=limit)
    except (OrganizerError, OSError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    if not records:
        console.print("[yellow]No moves recorded[/yellow]")
        return

    table = Table(title="Move History")
    table.add_column("When", style="cyan")
    table.add_column("From")
    table.add_column("To")
    for record in records:
        table.add_row(
            record.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            escape(str(record.source_path)),
            escape(str(record.target_path))
        )
    console.print(table)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
