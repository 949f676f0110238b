"""
AI pen-testing host provisioner — CLI entrypoint.

Usage:
    sudo aipt-setup                 # provision (same as `run`)
    sudo aipt-setup run --dry-run
    aipt-setup plan
    aipt-setup status
    python -m aipt.main --help
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from aipt import __version__
from aipt.core.models.action import Action, Receipt
from aipt.core.observability.logging_config import resolve_level, setup_logging

_STATUS_COLORS = {"ok": "green", "degraded": "yellow", "aborted": "red"}


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="aipt-setup")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Profile override YAML (default: $AIPT_CONFIG or /etc/aipt/profile.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """AI pen-testing host provisioner — trim the desktop and install the toolkit."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(level=resolve_level(debug=debug, verbose=verbose, quiet=quiet))

    # Bare invocation provisions the host
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--dry-run", is_flag=True, help="Validate every action but change nothing.")
@click.option("--mock", is_flag=True, help="Use mock adapters (no real execution).")
@click.pass_context
def run(ctx: click.Context, as_json: bool, dry_run: bool, mock: bool) -> None:
    """Provision this host (requires root unless --dry-run or --mock)."""
    from aipt.core.use_cases.provision import run_provision

    verbose = ctx.obj.get("verbose", False)
    quiet = ctx.obj.get("quiet", False)
    show_progress = not as_json and not quiet

    def on_step(step: str, title: str) -> None:
        if show_progress:
            click.echo(f"[*] {title}")

    def on_receipt(action: Action, receipt: Receipt) -> None:
        if not show_progress:
            return
        if receipt.failed:
            note = " (ignored)" if not action.required else ""
            click.secho(f"   ✗ {action.id}{note}", fg="red" if action.required else "yellow")
            for line in (receipt.error or "").splitlines()[-5:]:
                click.echo(f"     │ {line}")
        elif verbose:
            marker, color = ("✓", "green") if receipt.ok else ("⊘", "white")
            detail = f" — {receipt.output.splitlines()[-1]}" if receipt.skipped and receipt.output else ""
            click.secho(f"   {marker} {action.id}{detail}", fg=color)

    result = run_provision(
        config_path=ctx.obj.get("config_path"),
        dry_run=dry_run,
        mock_mode=mock,
        on_step=on_step,
        on_receipt=on_receipt,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(1)

    report = result.report
    profile = result.profile
    if report is None or profile is None:
        click.secho("❌ Provisioning produced no report", fg="red", err=True)
        sys.exit(1)

    click.echo()
    mode_label = "[dry-run] " if dry_run else "[mock] " if mock else ""
    click.secho(
        f"   {mode_label}Result: {report.status} — "
        f"{report.succeeded} changed, {report.skipped} unchanged/skipped, "
        f"{report.failed} failed, {len(report.not_run)} not run",
        fg=_STATUS_COLORS.get(report.status, "white"),
        bold=True,
    )

    tolerated = report.tolerated_failures
    if tolerated:
        click.secho("   Tolerated failures:", fg="yellow")
        for receipt in tolerated:
            click.echo(f"     • {receipt.action_id}")

    if report.aborted:
        click.secho(f"   Aborted at required action: {report.aborted_by}", fg="red")
        sys.exit(1)

    if not (dry_run or mock):
        from aipt.core.services.templates import render_summary

        tools = [w.command for w in profile.wrappers] + list(profile.linked_commands)
        for line in render_summary(profile.venv_path, tools, profile.menu.name):
            click.echo(line)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(ctx: click.Context, as_json: bool) -> None:
    """Show the planned actions without touching the host."""
    from aipt.core.config.loader import ConfigError
    from aipt.core.use_cases.provision import prepare_plan

    try:
        _profile, execution_plan = prepare_plan(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if as_json:
        data = {
            "operation_id": execution_plan.operation_id,
            "steps": [
                {
                    "step": step,
                    "title": title,
                    "actions": [
                        a.model_dump(mode="json", exclude={"params"})
                        for a in execution_plan.step_actions(step)
                    ],
                }
                for step, title in execution_plan.steps.items()
            ],
        }
        click.echo(json.dumps(data, indent=2))
        return

    click.secho(f"\n📋 Provisioning plan — {execution_plan.total_actions} actions", fg="cyan", bold=True)
    for step, title in execution_plan.steps.items():
        actions = execution_plan.step_actions(step)
        if not actions:
            continue
        click.echo()
        click.secho(f"   {title}", fg="white", bold=True)
        for action in actions:
            policy = "required" if action.required else "best-effort"
            guard = ""
            if action.only_if_exists:
                guard = f"  (if {action.only_if_exists} exists)"
            elif action.only_if_command:
                guard = f"  (if `{action.only_if_command}` on PATH)"
            color = "white" if action.required else "yellow"
            click.secho(f"     • {action.id} [{policy}]{guard}", fg=color)
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show the last provisioning run and host tool availability."""
    from aipt.core.use_cases.status import get_status

    result = get_status(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(1)

    click.secho("\n🛠  Host tools", fg="cyan", bold=True)
    for name, info in result.adapters.items():
        icon = "✅" if info["available"] else "❌"
        click.echo(f"   {icon} {name}")

    click.echo()
    if result.state is None or not result.provisioned:
        click.secho("   Not provisioned yet.", fg="yellow")
        click.echo()
        return

    op = result.state.last_operation
    click.secho("   Last run:", fg="white", bold=True)
    click.echo(f"     {op.operation_id} — ", nl=False)
    click.secho(op.status, fg=_STATUS_COLORS.get(op.status, "white"))
    if op.ended_at:
        click.echo(f"     at {op.ended_at}")
    click.echo(
        f"     {op.actions_succeeded} changed, {op.actions_skipped} skipped, "
        f"{op.actions_failed} failed, {op.actions_not_run} not run"
    )
    for action_id in op.failed_actions:
        click.echo(f"     ✗ {action_id}")

    if result.state.checkouts:
        click.echo()
        click.secho("   Source checkouts:", fg="white", bold=True)
        for checkout in result.state.checkouts.values():
            revision = checkout.revision[:12] if checkout.revision else "unknown"
            click.echo(f"     • {checkout.name} @ {revision}  → {checkout.path}")

    click.echo()


if __name__ == "__main__":
    cli()
