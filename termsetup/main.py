"""
termsetup — CLI entrypoint.

Usage:
    termsetup                 # same as `termsetup run`
    termsetup run --dry-run
    termsetup plan
    termsetup detect --json
"""

from __future__ import annotations

import json
import signal
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from termsetup import __version__
from termsetup.core.models.result import StepOutcome
from termsetup.core.observability.logging_config import configure_cli_logging

_OUTCOME_COLORS = {
    StepOutcome.SUCCEEDED: "green",
    StepOutcome.SKIPPED: "white",
    StepOutcome.DEGRADED: "yellow",
    StepOutcome.FAILED: "red",
}


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="termsetup")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to config.yml (default: $TERMSETUP_CONFIG or ~/.config/termsetup/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """termsetup — provision a zsh terminal environment, idempotently."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    configure_cli_logging(debug=debug, verbose=verbose, quiet=quiet)

    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@contextmanager
def _cancel_on_signal(event: threading.Event) -> Iterator[None]:
    """Turn SIGINT/SIGTERM into a cooperative cancel for the duration."""

    def handler(signum, frame):
        if event.is_set():
            raise KeyboardInterrupt
        click.secho(
            "\n⚠  Cancelling after the current step (press Ctrl-C again to abort)",
            fg="yellow",
            err=True,
        )
        event.set()

    if threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = {sig: signal.signal(sig, handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)


@cli.command()
@click.option("--dry-run", is_flag=True, help="Check and validate only, change nothing.")
@click.option("--mock", is_flag=True, help="Use mock adapters (touch nothing, report success).")
@click.option("--no-chsh", is_flag=True, help="Don't change the login shell.")
@click.option("--skip", "skip", multiple=True, help="Step name or glob to skip (repeatable).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def run(
    ctx: click.Context,
    dry_run: bool = False,
    mock: bool = False,
    no_chsh: bool = False,
    skip: tuple[str, ...] = (),
    as_json: bool = False,
) -> None:
    """Provision the terminal environment (default command)."""
    from termsetup.core.services.report import render_line, render_summary
    from termsetup.core.use_cases.provision import run_provisioning

    cancel = threading.Event()
    with _cancel_on_signal(cancel):
        result = run_provisioning(
            config_path=ctx.obj.get("config_path"),
            dry_run=dry_run,
            mock_mode=mock,
            change_shell=False if no_chsh else None,
            skip=list(skip),
            cancel_event=cancel,
        )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(result.exit_code)

    report = result.report
    assert report is not None and result.platform is not None
    quiet = ctx.obj.get("quiet", False)
    verbose = ctx.obj.get("verbose", False)

    if not quiet:
        mode = " [dry-run]" if dry_run else " [mock]" if mock else ""
        click.secho(f"\n🐚 termsetup{mode} on {result.platform.label}", fg="cyan", bold=True)
        click.echo()

    for step_result in report.results:
        if quiet and not step_result.is_problem:
            continue
        click.secho(f"   {render_line(step_result)}", fg=_OUTCOME_COLORS[step_result.outcome])
        if verbose:
            for receipt in step_result.attempts:
                if receipt.error:
                    click.echo(f"     │ {receipt.action_id}: {receipt.error}")

    click.echo()
    summary_color = "red" if report.has_failures else "yellow" if report.problems else "green"
    click.secho(render_summary(report), fg=summary_color, bold=True)

    if not quiet and not report.has_failures and not dry_run and not mock:
        click.echo("   Restart your terminal or run: exec zsh")

    sys.exit(report.exit_code)


@cli.command()
@click.option("--no-chsh", is_flag=True, help="Leave out the login shell step.")
@click.option("--skip", "skip", multiple=True, help="Step name or glob to skip (repeatable).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(ctx: click.Context, no_chsh: bool, skip: tuple[str, ...], as_json: bool) -> None:
    """Show the steps and which ones still need to run."""
    from termsetup.core.use_cases.provision import plan_provisioning

    result = plan_provisioning(
        config_path=ctx.obj.get("config_path"),
        change_shell=False if no_chsh else None,
        skip=list(skip),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(2 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(2)

    assert result.platform is not None
    click.secho(f"\n📋 Plan for {result.platform.label}", fg="cyan", bold=True)
    for entry in result.entries:
        marker = "⊘" if entry.satisfied else "•"
        required = " (required)" if entry.required else ""
        line = f"   {marker} {entry.name}{required}"
        if entry.satisfied:
            click.secho(f"{line} — already satisfied", fg="white", dim=True)
            continue
        click.echo(line)
        for i, label in enumerate(entry.actions):
            prefix = "→" if i == 0 else "↳"
            click.echo(f"       {prefix} {label}")
        if not entry.actions:
            click.secho("       (no install method on this platform)", fg="yellow")

    click.echo()
    click.echo(f"   {len(result.pending)} of {len(result.entries)} step(s) would run")
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def detect(as_json: bool) -> None:
    """Show the detected platform and available tools."""
    from termsetup.core.use_cases.detect import run_detect

    result = run_detect()

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(2 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(2)

    platform = result.platform
    assert platform is not None
    click.secho(f"\n🔍 {platform.label}", fg="cyan", bold=True)
    click.echo(f"   OSTYPE:          {platform.ostype}")
    click.echo(f"   Package manager: {platform.package_manager or '(none)'}")
    click.echo(f"   Login shell:     {result.login_shell or '(unknown)'}")
    click.echo()
    click.secho("   Adapters:", fg="white", bold=True)
    for name, status in result.adapters.items():
        mark = click.style("✓", fg="green") if status["available"] else click.style("✗", fg="red")
        click.echo(f"     {mark} {name}")
    click.echo()


if __name__ == "__main__":
    cli()
