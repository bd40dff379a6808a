"""Entry point for the bot host CLI."""

import asyncio
import os
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from dotenv import load_dotenv
from rich.console import Console

from app_factory import create_bot_controller
from application.orchestrators import BotHost
from domain.exceptions import InvalidInstanceData
from infrastructure.config import StorageConfig, SystemConfig, get_config
from infrastructure.logging import get_logger, setup_logging

from .display import show_instances, show_start_results, show_verdict

logger = get_logger(__name__)

store_dir_option = click.option(
    "--store-dir",
    type=click.Path(file_okay=False),
    help="Keep instance records as JSON files in this directory",
)


def _load_config(store_dir: Optional[str] = None, debug: bool = False) -> SystemConfig:
    config = get_config()
    if store_dir:
        config.storage_settings = StorageConfig(backend="json", base_path=store_dir)
    setup_logging(config.logging_settings, debug=debug, force=True)
    return config


@click.group()
def cli() -> None:
    """Host Discord bots written by users, one sandbox per instance."""
    load_dotenv()


@cli.command()
@click.option("--instance", "instance_ids", multiple=True, help="Instance to start (repeatable)")
@store_dir_option
@click.option("--debug", is_flag=True, help="Enable debug logging")
def serve(instance_ids: Tuple[str, ...], store_dir: Optional[str], debug: bool) -> None:
    """Start bots and keep them connected until interrupted.

    Without --instance, every instance persisted as active is resumed.
    """
    config = _load_config(store_dir, debug)
    controller = create_bot_controller(config)
    host = BotHost(controller)

    logger.info(f"Starting bot host (environment={config.environment}, debug={debug})")
    results = asyncio.run(host.run(list(instance_ids) or None))

    console = Console()
    show_start_results(console, results)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def review(file: str) -> None:
    """Check bot code for dangerous patterns without running it."""
    controller = create_bot_controller(_load_config())
    verdict = controller.review_code(Path(file).read_text(encoding="utf-8"))

    show_verdict(Console(), verdict, source=file)
    if not verdict.is_valid:
        sys.exit(1)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--in-place", is_flag=True, help="Overwrite FILE instead of printing")
def sanitize(file: str, in_place: bool) -> None:
    """Replace credential-shaped literals in FILE with a placeholder."""
    controller = create_bot_controller(_load_config())
    path = Path(file)
    original = path.read_text(encoding="utf-8")
    cleaned = controller.sanitize_code(original)

    if not in_place:
        click.echo(cleaned, nl=False)
        return

    if cleaned != original:
        path.write_text(cleaned, encoding="utf-8")
        click.echo(f"Sanitized {file}")
    else:
        click.echo(f"Nothing to sanitize in {file}")


@cli.command()
@store_dir_option
def instances(store_dir: Optional[str]) -> None:
    """List stored instances with their running and persisted state."""
    controller = create_bot_controller(_load_config(store_dir))
    rows = asyncio.run(controller.status_report())
    show_instances(Console(), rows)


@cli.command()
@click.argument("name")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--token-env", required=True, help="Environment variable holding the bot token")
@click.option("--description", default=None, help="Free-form description")
@store_dir_option
def add(name: str, file: str, token_env: str, description: Optional[str], store_dir: Optional[str]) -> None:
    """Store FILE as the entry file of a new instance called NAME."""
    token = os.getenv(token_env)
    if not token:
        raise click.BadParameter(f"{token_env} is not set", param_hint="--token-env")

    config = _load_config(store_dir)
    controller = create_bot_controller(config)
    data = {
        "name": name,
        "token": token,
        "description": description,
        "files": {config.security_settings.entry_file: Path(file).read_text(encoding="utf-8")},
    }

    try:
        instance = asyncio.run(controller.create_instance(data))
    except InvalidInstanceData as e:
        raise click.ClickException(str(e)) from e

    if config.storage_settings.backend == "memory":
        click.echo("Warning: memory storage is not kept after this command; use --store-dir", err=True)
    click.echo(instance.instance_id)


if __name__ == "__main__":
    cli()
