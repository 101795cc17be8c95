"""CLI for the product card extractor."""
from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace
from typing import Optional

import click

from .cache import MemoryCache
from .config import ExtractorConfig
from .errors import ExtractorError
from .service import ExtractionService


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )


@click.group()
@click.option("--log-level", default=None, help="Override EXTRACT_LOG_LEVEL")
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str]) -> None:
    """Product card extraction CLI."""
    config = ExtractorConfig.from_env()
    _configure_logging(log_level or config.log_level)
    ctx.obj = config


@cli.command()
@click.argument("url")
@click.option("--no-cache", is_flag=True, help="Skip the configured cache backend")
@click.option("--attempts", type=int, help="Maximum fetch attempts")
@click.option("--show-state", is_flag=True, help="Print state transitions to stderr")
@click.pass_obj
def extract(
    config: ExtractorConfig,
    url: str,
    no_cache: bool,
    attempts: Optional[int],
    show_state: bool,
) -> None:
    """Extract a product card from URL and print it as JSON."""
    if attempts is not None:
        if attempts < 1:
            raise click.BadParameter("must be at least 1", param_hint="--attempts")
        config = replace(config, max_attempts=attempts)

    service = ExtractionService(config, cache=MemoryCache() if no_cache else None)
    try:
        run = service.run(url)
    except ExtractorError as exc:
        click.echo(json.dumps({"error": str(exc)}), err=True)
        sys.exit(1)

    if show_state:
        click.echo(" -> ".join(state.value for state in run.history), err=True)
    click.echo(json.dumps(run.result.to_public(), ensure_ascii=False, indent=2))


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, type=int, show_default=True)
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the HTTP API."""
    import uvicorn

    click.echo(f"🚀 Serving extractor on http://{host}:{port}")
    uvicorn.run("api.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    cli()
