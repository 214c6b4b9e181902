"""
Command-Line Interface for the sACN test generator.

Provides commands for driving the generator interactively or from a
script file, running a single test preset, and listing the presets.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, TextIO

import click
import structlog

from sacn_testgen import __version__
from sacn_testgen.core.exceptions import TestGenError

logger = structlog.get_logger()

HELP_TOKENS = ("h", "help")


def _configure_logging(level: int) -> None:
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


def _load_settings(ctx: click.Context):
    """Load settings and reconfigure logging from their level."""
    from sacn_testgen.core.config import Settings

    if ctx.obj["config_path"]:
        settings = Settings.from_yaml(ctx.obj["config_path"])
    else:
        settings = Settings()

    overrides = {}
    if ctx.obj["bind_ip"]:
        overrides["bind_ip"] = ctx.obj["bind_ip"]
    if ctx.obj["source_name"]:
        overrides["source_name"] = ctx.obj["source_name"]
    transmitter = settings.transmitter.model_copy(update=overrides)
    settings = settings.model_copy(
        update={"transmitter": transmitter, "debug": ctx.obj["debug"] or settings.debug}
    )
    _configure_logging(settings.logging_level)
    return settings


def _terminate_registered(transmitter) -> None:
    """Stream-terminate whatever is still registered before the sender closes."""
    if transmitter.registered_universes:
        transmitter.terminate()


def run_commands(dispatcher, lines: Iterable[str], interactive: bool = False) -> int:
    """
    Parse and dispatch each line in turn.

    A failed command is reported and the loop moves on to the next line.
    Returns the number of failed commands.
    """
    from sacn_testgen.engine import USAGE, DispatchOutcome, parse_command

    failures = 0
    for line_number, line in enumerate(lines, start=1):
        if line.strip().lower() in HELP_TOKENS:
            click.echo(USAGE)
            continue
        try:
            outcome = dispatcher.dispatch(parse_command(line))
        except TestGenError as e:
            failures += 1
            logger.warning(
                "Command failed",
                line=line_number,
                error_type=type(e).__name__,
                error=e.message,
            )
            click.echo(f"Error ({type(e).__name__}): {e.message}", err=True)
            continue

        if outcome is DispatchOutcome.HALT:
            break
        if interactive:
            click.echo("ok")

    return failures


@click.group()
@click.version_option(version=__version__)
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    type=click.Path(exists=True),
    help="Path to configuration file",
)
@click.option("--bind-ip", default=None, help="Local interface address to send from")
@click.option("--source-name", default=None, help="sACN source name")
@click.pass_context
def cli(
    ctx: click.Context,
    debug: bool,
    config: Optional[str],
    bind_ip: Optional[str],
    source_name: Optional[str],
) -> None:
    """
    sACN Test Generator - driven test traffic for E1.31 receivers

    Sends static, stepped and time-varying universe data, including the
    sender interoperability test presets.
    """
    ctx.ensure_object(dict)

    _configure_logging(logging.DEBUG if debug else logging.INFO)

    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config) if config else None
    ctx.obj["bind_ip"] = bind_ip
    ctx.obj["source_name"] = source_name


@cli.command()
@click.option(
    "--script",
    type=click.File("r"),
    default=None,
    help="Read commands from a file instead of standard input",
)
@click.pass_context
def run(ctx: click.Context, script: Optional[TextIO]) -> None:
    """Read commands and send the requested traffic."""
    from sacn_testgen.dmx.e131 import E131Transmitter
    from sacn_testgen.engine import ActionDispatcher

    settings = _load_settings(ctx)
    interactive = script is None and sys.stdin.isatty()
    source = script if script is not None else click.get_text_stream("stdin")

    click.echo(f"sACN Test Generator v{__version__}")
    if interactive:
        click.echo("Type 'h' for help, 'q' to quit.")

    try:
        with E131Transmitter(settings.transmitter) as transmitter:
            try:
                dispatcher = ActionDispatcher(settings, transmitter)
                failures = run_commands(dispatcher, source, interactive=interactive)
            finally:
                _terminate_registered(transmitter)
    except KeyboardInterrupt:
        click.echo("\nShutting down...")
        return
    except TestGenError as e:
        click.echo(f"Error: {e.message}", err=True)
        if settings.debug:
            raise
        sys.exit(1)

    if failures and script is not None:
        sys.exit(1)


@cli.command()
@click.argument("preset_id", type=int)
@click.option("--destination", "-d", default=None, help="Receiver address for unicast presets")
@click.option("--duration", type=float, default=None, help="Override the preset duration (s)")
@click.pass_context
def preset(
    ctx: click.Context,
    preset_id: int,
    destination: Optional[str],
    duration: Optional[float],
) -> None:
    """Run one test preset, then terminate its universes."""
    from sacn_testgen.dmx.e131 import E131Transmitter
    from sacn_testgen.engine import PresetRunner

    settings = _load_settings(ctx)

    try:
        with E131Transmitter(settings.transmitter) as transmitter:
            try:
                runner = PresetRunner(settings, transmitter)
                selected = runner.get(preset_id)
                click.echo(f"Running preset {preset_id} ({selected.name})...")
                click.echo("Press Ctrl+C to stop.")
                state = runner.run(preset_id, destination=destination, duration_s=duration)
            finally:
                _terminate_registered(transmitter)
    except KeyboardInterrupt:
        click.echo("\nStopped.")
        return
    except TestGenError as e:
        click.echo(f"Error: {e.message}", err=True)
        if settings.debug:
            raise
        sys.exit(1)

    click.echo(f"Done: {state.ticks} updates in {state.elapsed_s:.1f}s")


@cli.command(name="list-presets")
@click.pass_context
def list_presets(ctx: click.Context) -> None:
    """List the available test presets."""
    from sacn_testgen.engine import build_presets

    settings = _load_settings(ctx)

    click.echo("Available test presets:")
    click.echo("-" * 60)
    for preset_id, definition in build_presets(settings).items():
        universes = ", ".join(str(u) for u in definition.universes)
        click.echo(f"  [{int(preset_id):3d}] {definition.name}")
        click.echo(f"        Universes: {universes}")
        click.echo(f"        Duration: {definition.duration_s:g}s")
        if definition.unicast:
            click.echo("        Needs: --destination")


def main() -> None:
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
