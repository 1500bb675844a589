"""Main CLI entry point for lmstudio-oss."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lmstudio_oss import __version__
from lmstudio_oss.core.client import LMStudioClient
from lmstudio_oss.core.config import (
    LMSTUDIO_OSS_PROVIDER_ID,
    ConfigManager,
    ModelProviderInfo,
    OssConfig,
    config_manager,
    get_config,
)
from lmstudio_oss.core.errors import LMStudioError
from lmstudio_oss.core.readiness import ReadinessStatus, ensure_oss_ready
from lmstudio_oss.utils.log import get_logger, init_logger

console = Console()
logger = get_logger()


def _effective_config(ctx: click.Context, model: Optional[str] = None) -> OssConfig:
    config = ctx.obj["load_config"]().model_copy(deep=True)
    base_url = ctx.obj.get("base_url")
    if base_url:
        existing = config.model_providers.get(LMSTUDIO_OSS_PROVIDER_ID)
        name = existing.name if existing else "LM Studio"
        config.model_providers[LMSTUDIO_OSS_PROVIDER_ID] = ModelProviderInfo(
            name=name, base_url=base_url
        )
    if model:
        config.model = model
    return config


async def _check(config: OssConfig) -> str:
    async with await LMStudioClient.try_from_provider(config) as client:
        return client.base_url


async def _list_models(config: OssConfig) -> List[str]:
    async with await LMStudioClient.try_from_provider(config) as client:
        return await client.list_models()


@click.group()
@click.version_option(version=__version__)
@click.option("--base-url", type=str, help="Override the LM Studio base URL")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to the JSON config file",
)
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Also write debug logs to a dated file in this directory",
)
@click.option("--verbose", is_flag=True, help="Verbose output")
@click.pass_context
def cli(
    ctx: click.Context,
    base_url: Optional[str],
    config_path: Optional[Path],
    log_dir: Optional[Path],
    verbose: bool,
) -> None:
    """lmstudio-oss - check and prepare a local LM Studio server"""
    if verbose or log_dir:
        init_logger(log_dir, console_level=logging.DEBUG if verbose else None)
    ctx.ensure_object(dict)
    ctx.obj["base_url"] = base_url
    if config_path:
        manager = ConfigManager(config_path)
        ctx.obj["config_manager"] = manager
        ctx.obj["load_config"] = manager.load
    else:
        ctx.obj["config_manager"] = config_manager
        ctx.obj["load_config"] = get_config
    logger.debug(
        "[cli] Starting CLI invocation",
        extra={
            "base_url": base_url,
            "config_path": str(config_path) if config_path else None,
            "log_dir": str(log_dir) if log_dir else None,
        },
    )


@cli.command(name="check")
@click.pass_context
def check_cmd(ctx: click.Context) -> None:
    """Check that the LM Studio server is reachable."""
    config = _effective_config(ctx)
    try:
        base_url = asyncio.run(_check(config))
    except LMStudioError as e:
        raise click.ClickException(str(e)) from e
    console.print(f"[green]LM Studio is reachable at {escape(base_url)}[/green]")


@cli.command(name="models")
@click.pass_context
def models_cmd(ctx: click.Context) -> None:
    """List models available on the LM Studio server."""
    config = _effective_config(ctx)
    try:
        models = asyncio.run(_list_models(config))
    except LMStudioError as e:
        raise click.ClickException(str(e)) from e

    if not models:
        console.print("[yellow]No models available[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Model")
    table.add_column("Default", justify="center")
    for model in models:
        table.add_row(escape(model), "✓" if model == config.model else "")
    console.print(table)


@cli.command(name="ensure")
@click.option("-m", "--model", type=str, help="Model to make available")
@click.pass_context
def ensure_cmd(ctx: click.Context, model: Optional[str]) -> None:
    """Make sure the model is downloaded, fetching it with `lms` if needed."""
    config = _effective_config(ctx, model)
    try:
        report = asyncio.run(ensure_oss_ready(config))
    except LMStudioError as e:
        raise click.ClickException(str(e)) from e

    if report.status == ReadinessStatus.PRESENT:
        console.print(f"[green]Model {escape(report.model)} is available[/green]")
    elif report.status == ReadinessStatus.DOWNLOADED:
        console.print(f"[green]Downloaded model {escape(report.model)}[/green]")
    else:
        # The listing failure itself was already logged as a warning.
        console.print(
            f"[yellow]Could not verify that {escape(report.model)} is downloaded; continuing[/yellow]"
        )


@cli.command(name="config")
@click.option("--set-model", type=str, help="Save a new default model")
@click.pass_context
def config_cmd(ctx: click.Context, set_model: Optional[str]) -> None:
    """Show the effective configuration."""
    if set_model:
        manager: ConfigManager = ctx.obj["config_manager"]
        manager.set_default_model(set_model)
        console.print(f"[green]Default model set to {escape(set_model)}[/green]")
    config = _effective_config(ctx)
    console.print("\n[bold]Configuration[/bold]\n")
    console.print(f"Model: {escape(config.model)}")
    console.print("[bold]Model Providers:[/bold]")
    for provider_id, provider in config.model_providers.items():
        console.print(f"  {escape(provider_id)}:")
        console.print(f"    Name: {escape(provider.name)}")
        console.print(f"    Base URL: {escape(provider.base_url or 'Not set')}")
    console.print()


@cli.command(name="version")
def version_cmd() -> None:
    """Show version information"""
    console.print(f"lmstudio-oss version {__version__}")


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
