# cli.py
from __future__ import annotations

import json
import sys
from pathlib import Path
from types import SimpleNamespace

import click

from stagerunner.compiler import ACTIONS, compile_commands
from stagerunner.errors import StageError
from stagerunner.handler import handler
from stagerunner.model import ArtifactLocation, ParameterSet
from stagerunner.ui.console import Console, get_console, redact, set_console


def _parse_params(pairs: tuple[str, ...]) -> ParameterSet:
    values = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--param")
        values[key] = value
    return ParameterSet(values)


def _parse_artifact(value: str | None) -> ArtifactLocation | None:
    if value is None:
        return None
    bucket, sep, key = value.removeprefix("s3://").partition("/")
    if not sep or not bucket or not key:
        raise click.BadParameter(f"expected bucket/key, got {value!r}", param_hint="--artifact")
    return ArtifactLocation(bucket=bucket, key=key)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """stagerunner — CodePipeline stage executor for Habitat packages."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
def actions():
    """List the pipeline actions this stage understands."""
    for name in ACTIONS:
        click.echo(name)


@cli.command(name="compile")
@click.argument("action")
@click.option("--param", "params", multiple=True, help="User parameter as key=value (repeatable)")
@click.option("--artifact", default=None, help="Input artifact as bucket/key (or s3://bucket/key)")
@click.option("--show-secrets", is_flag=True, default=False, help="Do not mask tokens in the output")
def compile_cmd(action, params, artifact, show_secrets):
    """Print the shell commands ACTION would send, without running anything."""
    console = get_console()
    try:
        commands = compile_commands(action, _parse_params(params), _parse_artifact(artifact))
    except StageError as e:
        console.print_error(
            "Cannot compile action",
            str(e),
            details=[f"Known actions: {', '.join(ACTIONS)}"] if e.kind == "invalid_action" else None,
        )
        sys.exit(1)

    for cmd in commands:
        click.echo(cmd if show_secrets else redact(cmd))


@cli.command()
@click.argument("event_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--request-id", default="local", show_default=True, help="Invocation id sent with failure reports")
@click.pass_context
def invoke(ctx, event_file, request_id):
    """Run a saved CodePipeline job event against AWS, as the Lambda would."""
    console = get_console()

    try:
        event = json.loads(event_file.read_text())
    except json.JSONDecodeError as e:
        console.print_error(
            "Invalid event file",
            f"Could not parse JSON from {event_file}",
            details=[str(e)],
        )
        sys.exit(1)

    try:
        result = handler(event, SimpleNamespace(aws_request_id=request_id))
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    click.echo(json.dumps(result, indent=2))
    if result.get("status") != "succeeded":
        sys.exit(1)


if __name__ == "__main__":
    cli()
