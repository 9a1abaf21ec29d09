"""CLI entry point for the build-credentials manager."""

import asyncio
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import click
import structlog

from build_credentials import workflows
from build_credentials.config.settings import CredentialsSettings
from build_credentials.context import Context, ContextOptions
from build_credentials.exceptions import BuildCredentialsError, CancelledByOperatorError, ConfigurationError
from build_credentials.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)

Workflow = Callable[[Context], Awaitable[Any]]


@click.group()
@click.option(
    "--project-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Project directory containing app.json",
)
@click.option("--config", type=click.Path(dir_okay=False, path_type=Path), help="Optional YAML settings file")
@click.option("--log-level", default=None, help="Logging level (overrides settings)")
@click.pass_context
def cli(ctx: click.Context, project_dir: Path, config: Path | None, log_level: str | None) -> None:
    """buildcreds: manage Android build credentials for a project."""
    try:
        settings = CredentialsSettings.from_yaml(config) if config else CredentialsSettings()
    except ConfigurationError as e:
        click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
        sys.exit(1)
    except ValueError as e:
        click.echo(click.style(f"Error: invalid settings: {e}", fg="red"), err=True)
        sys.exit(1)

    configure_logging(log_level or settings.log_level)
    ctx.obj = {"settings": settings, "project_dir": project_dir}


def _run_workflow(ctx: click.Context, workflow: Workflow, options: ContextOptions | None = None) -> None:
    """Build the context, run ``workflow`` and map errors to exit codes."""

    async def runner() -> None:
        context = Context.init(ctx.obj["project_dir"], settings=ctx.obj["settings"], options=options)
        try:
            await workflow(context)
        finally:
            await context.close()

    try:
        asyncio.run(runner())
    except CancelledByOperatorError as e:
        click.echo(click.style(e.message, fg="yellow"), err=True)
        sys.exit(0)
    except BuildCredentialsError as e:
        click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
        suggestion = getattr(e, "suggestion", None)
        if suggestion:
            click.echo(click.style(f"Suggestion: {suggestion}", fg="yellow"), err=True)
        log.debug("workflow_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)


@cli.command()
@click.option("--clear-credentials", is_flag=True, help="Back up and remove stored credentials first")
@click.option("--keystore-path", type=click.Path(dir_okay=False), help="Upload this keystore without prompting")
@click.option("--keystore-alias", help="Key alias inside --keystore-path")
@click.pass_context
def prepare(ctx: click.Context, clear_credentials: bool, keystore_path: str | None, keystore_alias: str | None) -> None:
    """Make sure a valid keystore is stored before a build."""

    async def workflow(context: Context) -> None:
        keystore = await workflows.prepare_build_credentials(context, clear_credentials=clear_credentials)
        click.echo(click.style(f"Android keystore ready (key alias {keystore.key_alias})", fg="green"))

    _run_workflow(ctx, workflow, ContextOptions(keystore_path=keystore_path, keystore_alias=keystore_alias))


@cli.command(name="fetch-keystore")
@click.pass_context
def fetch_keystore(ctx: click.Context) -> None:
    """Download the keystore to <slug>.jks and print its credentials."""
    _run_workflow(ctx, workflows.fetch_android_keystore)


@cli.command(name="fetch-hashes")
@click.pass_context
def fetch_hashes(ctx: click.Context) -> None:
    """Print the upload certificate fingerprints."""
    _run_workflow(ctx, workflows.fetch_android_hashes)


@cli.command(name="fetch-upload-cert")
@click.pass_context
def fetch_upload_cert(ctx: click.Context) -> None:
    """Export the upload certificate as PEM."""
    _run_workflow(ctx, workflows.fetch_android_upload_cert)


@cli.command()
@click.pass_context
def manage(ctx: click.Context) -> None:
    """Show stored credentials and choose what to update."""
    _run_workflow(ctx, workflows.manage_android_credentials)


@cli.command(name="update-fcm-key")
@click.pass_context
def update_fcm_key(ctx: click.Context) -> None:
    """Store a new FCM server key."""
    _run_workflow(ctx, workflows.update_push_key)


@cli.command()
@click.pass_context
def clear(ctx: click.Context) -> None:
    """Back up and permanently delete the stored credentials."""
    _run_workflow(ctx, workflows.clear_android_credentials)


if __name__ == "__main__":
    cli()
