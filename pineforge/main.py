"""
pineforge — CLI entrypoint.

Usage:
    python -m pineforge.main --help
    python -m pineforge.main process reply.yml --project demo --user alice
    python -m pineforge.main serve --script reply.yml
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from pineforge import __version__
from pineforge.core.config.settings import ConfigError, PipelineSettings, load_settings
from pineforge.core.observability.logging_config import level_from_flags, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="pineforge")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to pineforge.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """pineforge — apply generated replies to sandboxed projects."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=level_from_flags(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get("PINEFORGE_LOG_FILE"),
        log_file_level=os.environ.get("PINEFORGE_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


def _settings(ctx: click.Context) -> PipelineSettings:
    try:
        return load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


@cli.command()
@click.argument("script", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--prompt", default="(scripted)", help="Prompt text recorded for the request.")
@click.option("--project", "project_id", default=None, help="Target project id.")
@click.option("--user", "user_id", default=None, help="Act as this user (enables side effects).")
@click.option("--key", "idempotency_key", default=None, help="Idempotency key for rewards.")
@click.option(
    "--tag",
    type=click.Choice(["plan", "feature", "customer", "revenue", "ask"]),
    default=None,
    help="Classification tag (feature/customer/revenue earn a bonus).",
)
@click.pass_context
def process(
    ctx: click.Context,
    script: Path,
    prompt: str,
    project_id: str | None,
    user_id: str | None,
    idempotency_key: str | None,
    tag: str | None,
) -> None:
    """Run a scripted reply through the pipeline and print the response."""
    from pineforge.adapters.scripted import ScriptedGeneration
    from pineforge.core.engine.pipeline import build_local_pipeline
    from pineforge.core.errors import PipelineError
    from pineforge.core.models.response import Credential, GenerationRequest

    settings = _settings(ctx)
    try:
        generation = ScriptedGeneration.from_file(script)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    pipeline = build_local_pipeline(settings, generation)
    request = GenerationRequest(
        prompt=prompt,
        project_id=project_id,
        idempotency_key=idempotency_key,
        tag=tag,
    )
    credential = Credential(token=f"cli:{user_id}", user_id=user_id) if user_id else None

    try:
        report = pipeline.run(request, credential)
    except PipelineError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    click.echo(json.dumps(report.response.to_payload(), indent=2, ensure_ascii=False))


@cli.command()
@click.argument("project_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def activity(ctx: click.Context, project_id: str, as_json: bool) -> None:
    """Show a project's recent activity, newest first."""
    from pineforge.core.persistence.activity_store import ActivityStore

    settings = _settings(ctx)
    store = ActivityStore(settings.state_path, capacity=settings.activity_capacity)
    events = list(reversed(store.history(project_id)))

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json", by_alias=True) for e in events], indent=2))
        return

    if not events:
        click.echo(f"No activity for {project_id}.")
        return

    click.secho(f"\n📋 {project_id} — {len(events)} events", fg="cyan", bold=True)
    for e in events:
        earned = e.metadata.get("pineapplesEarned", 0)
        tag = e.metadata.get("tag")
        tag_label = f" [{tag}]" if tag else ""
        click.echo(f"   {e.created_at}  {e.type}{tag_label}  +{earned}  {e.description}")
    click.echo()


@cli.command()
@click.argument("user_id")
@click.pass_context
def balance(ctx: click.Context, user_id: str) -> None:
    """Show a user's reward balance from the local ledger."""
    from pineforge.core.persistence.reward_ledger import DEFAULT_LEDGER_FILE, RewardLedger

    settings = _settings(ctx)
    ledger = RewardLedger(settings.state_path / DEFAULT_LEDGER_FILE)
    entries = ledger.entries(user_id)

    click.echo(f"{user_id}: {ledger.balance(user_id)} 🍍 ({len(entries)} ledger entries)")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address.")
@click.option("--port", "-p", default=8000, type=int, help="Port number.")
@click.option(
    "--script",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Scripted reply served for every prompt.",
)
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, script: Path | None) -> None:
    """Start the chat API and realtime stream."""
    from pineforge.adapters.scripted import ScriptedGeneration
    from pineforge.ui.web.server import create_app, run_server

    settings = _settings(ctx)
    generation = ScriptedGeneration.from_file(script) if script else ScriptedGeneration()
    app = create_app(settings, generation=generation)

    debug = ctx.obj.get("debug", False)

    click.echo()
    click.secho("🍍 pineforge", bold=True)
    click.echo(f"   Chat API:  http://{host}:{port}/api/chat")
    click.echo(f"   Realtime:  http://{host}:{port}/api/realtime")
    click.echo(f"   Workspace: {settings.workspace_dir}")
    if script:
        click.secho(f"   Generation: scripted ({script})", fg="yellow")
    click.echo()

    run_server(app, host=host, port=port, debug=debug)


if __name__ == "__main__":
    cli()
