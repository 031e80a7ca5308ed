"""CLI entrypoint for calnotes."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
import pendulum

from . import __version__
from .config import STATE_DIRNAME
from .errors import CalnotesError
from .models import GRANULARITIES, Granularity
from .settings.providers import OBSIDIAN_DIRNAME

GRANULARITY_CHOICE = click.Choice([g.value for g in GRANULARITIES])


def _auto_detect_vault(start: Path) -> Path | None:
    """Find a vault (a folder with .obsidian or .calnotes) by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        if (p / OBSIDIAN_DIRNAME).is_dir() or (p / STATE_DIRNAME).is_dir():
            return p
    return None


def _configure_logging(verbose: bool) -> None:
    from rich.console import Console
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _parse_target(value: str | None) -> pendulum.DateTime:
    """A date argument: ISO date/datetime, 'today', 'yesterday' or 'tomorrow'."""
    today = pendulum.today().naive()
    if value is None or value.lower() == "today":
        return today
    if value.lower() == "yesterday":
        return today.subtract(days=1)
    if value.lower() == "tomorrow":
        return today.add(days=1)
    try:
        parsed = pendulum.parse(value, exact=True)
    except ValueError as e:
        raise click.BadParameter(f"Not a date: {value!r}", param_hint="DATE") from e
    if isinstance(parsed, pendulum.DateTime):
        return parsed.naive()
    if isinstance(parsed, pendulum.Date):
        return pendulum.naive(parsed.year, parsed.month, parsed.day)
    raise click.BadParameter(f"Not a date: {value!r}", param_hint="DATE")


def _run(fn, *args, **kwargs) -> int:
    """Call a command, turning calnotes and config errors into click errors."""
    try:
        return fn(*args, **kwargs)
    except CalnotesError as e:
        raise click.ClickException(str(e)) from e
    except ValueError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(__version__, prog_name="calnotes")
@click.option(
    "--vault",
    "-v",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Path to the vault (defaults to the nearest folder containing .obsidian)",
)
@click.option("--verbose", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx: click.Context, vault: Path | None, verbose: bool) -> None:
    """calnotes - Calendar index of a vault's periodic notes.

    Finds daily, weekly, monthly, quarterly and yearly notes, keeps the
    index in sync while watching, and creates missing notes from templates.
    """
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    if vault is None:
        detected = _auto_detect_vault(Path.cwd())
        if detected is None:
            raise click.ClickException("Vault not found. Pass --vault /path/to/vault or run from inside a vault.")
        vault = detected

    if not vault.exists() or not vault.is_dir():
        raise click.BadParameter(f"Directory '{vault}' does not exist.", param_hint="--vault / -v")

    ctx.obj["vault"] = vault.resolve()


# -----------------------------------------------------------------------------
# Index commands
# -----------------------------------------------------------------------------


@cli.command()
@click.option(
    "--granularity",
    "-g",
    "granularities",
    type=GRANULARITY_CHOICE,
    multiple=True,
    help="Only list this granularity (repeatable)",
)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def scan(ctx: click.Context, granularities: tuple[str, ...], output_json: bool) -> None:
    """Scan the vault and list its periodic notes.

    Examples:

        calnotes scan

        calnotes scan -g day -g week --json
    """
    from .commands.index_cmd import run_scan

    exit_code = _run(
        run_scan,
        ctx.obj["vault"],
        granularities=[Granularity(g) for g in granularities] or None,
        output_json=output_json,
    )
    sys.exit(exit_code)


@cli.command()
@click.argument("date", required=False)
@click.option("--granularity", "-g", type=GRANULARITY_CHOICE, default="day", show_default=True)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def get(ctx: click.Context, date: str | None, granularity: str, output_json: bool) -> None:
    """Show the periodic note for DATE (default: today)."""
    from .commands.index_cmd import run_get

    exit_code = _run(
        run_get,
        ctx.obj["vault"],
        _parse_target(date),
        Granularity(granularity),
        output_json=output_json,
    )
    sys.exit(exit_code)


# -----------------------------------------------------------------------------
# Creation commands
# -----------------------------------------------------------------------------


@cli.command()
@click.argument("date", required=False)
@click.option("--granularity", "-g", type=GRANULARITY_CHOICE, default="day", show_default=True)
@click.pass_context
def create(ctx: click.Context, date: str | None, granularity: str) -> None:
    """Create the periodic note for DATE (default: today) from its template.

    Fails if the note already exists.

    Examples:

        calnotes create

        calnotes create 2024-03-10 -g week
    """
    from .commands.create_cmd import run_create

    exit_code = _run(run_create, ctx.obj["vault"], _parse_target(date), Granularity(granularity))
    sys.exit(exit_code)


@cli.command("open")
@click.argument("date", required=False)
@click.option("--granularity", "-g", type=GRANULARITY_CHOICE, default="day", show_default=True)
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Create without asking")
@click.pass_context
def open_note(ctx: click.Context, date: str | None, granularity: str, assume_yes: bool) -> None:
    """Print the path of the note for DATE, creating it if missing."""
    from .commands.create_cmd import run_open

    exit_code = _run(
        run_open,
        ctx.obj["vault"],
        _parse_target(date),
        Granularity(granularity),
        assume_yes=assume_yes,
    )
    sys.exit(exit_code)


# -----------------------------------------------------------------------------
# Settings commands
# -----------------------------------------------------------------------------


@cli.command()
@click.option("--notes/--no-notes", "show_notes", default=True, show_default=True, help="Explain which source is in effect")
@click.pass_context
def settings(ctx: click.Context, show_notes: bool) -> None:
    """Show the resolved folder, format and template per granularity."""
    from .commands.settings_cmd import run_settings

    sys.exit(_run(run_settings, ctx.obj["vault"], show_notes=show_notes))


@cli.command()
@click.option(
    "--granularity",
    "-g",
    "granularities",
    type=GRANULARITY_CHOICE,
    multiple=True,
    help="Only show this granularity (repeatable)",
)
@click.pass_context
def formats(ctx: click.Context, granularities: tuple[str, ...]) -> None:
    """Show the formats note names are parsed with, in the order tried."""
    from .commands.settings_cmd import run_formats

    exit_code = _run(
        run_formats,
        ctx.obj["vault"],
        granularities=[Granularity(g) for g in granularities] or None,
    )
    sys.exit(exit_code)


@cli.command()
@click.option("--url", default=None, help="Locale list URL (defaults to the config's locales_url)")
@click.option("--retries", type=int, default=3, show_default=True, help="Retries after the first attempt")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.pass_context
def locales(ctx: click.Context, url: str | None, retries: int, output_json: bool) -> None:
    """List calendar locales, falling back to the bundled list when offline."""
    from .commands.locales_cmd import run_locales

    sys.exit(_run(run_locales, ctx.obj["vault"], url=url, retries=retries, output_json=output_json))


# -----------------------------------------------------------------------------
# Watch command
# -----------------------------------------------------------------------------


@cli.command()
@click.pass_context
def watch(ctx: click.Context) -> None:
    """Keep the index in sync with the vault until interrupted.

    Runs until interrupted (Ctrl+C).
    """
    from .commands.watch_cmd import run_watch

    _run(run_watch, ctx.obj["vault"])


if __name__ == "__main__":
    cli()
