"""CLI interface for the news digest.

Usage:
    python -m newsdigest.pipeline.cli digest
    python -m newsdigest.pipeline.cli digest --json --output data/digest.json
    python -m newsdigest.pipeline.cli show data/digest.json
    python -m newsdigest.pipeline.cli interests
    python -m newsdigest.pipeline.cli serve --port 3000
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from newsdigest.config import DEFAULT_CONFIG_PATH, ConfigError, api_keys, load_config, missing_keys
from newsdigest.digest.generator import DigestGenerator
from newsdigest.digest.interests import load_interests
from newsdigest.digest.models import DigestStatus, NewsDigest

console = Console()

SUMMARY_PREVIEW_CHARS = 160


def run_async(coro):
    """Run an async function to completion on a fresh event loop."""
    return asyncio.run(coro)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


@click.group()
@click.option("--config", default=DEFAULT_CONFIG_PATH, help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx, config: str, verbose: bool):
    """News digest CLI."""
    ctx.ensure_object(dict)
    try:
        cfg = load_config(config)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    setup_logging("DEBUG" if verbose else str(cfg.get("logging", {}).get("level", "INFO")))
    ctx.obj["config"] = cfg


@cli.command()
@click.option("--output", "-o", "output_path", type=click.Path(dir_okay=False), help="Write the digest JSON here")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
@click.pass_context
def digest(ctx, output_path: Optional[str], as_json: bool):
    """Run one generation pass over all configured interests."""
    config = ctx.obj["config"]
    missing = missing_keys(config)
    if missing:
        console.print(f"[red]Error:[/red] missing API keys: {', '.join(missing)}")
        sys.exit(1)

    async def _run() -> NewsDigest:
        gen = DigestGenerator(config)
        with console.status("[bold green]Generating digest (search, synthesize)..."):
            return await gen.generate_digest(*api_keys(config))

    result = run_async(_run())
    payload = result.to_dict()

    if output_path:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        console.print(f"[green]Saved digest to {path}[/green]")

    if as_json:
        click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        _print_digest(result)

    if result.status == DigestStatus.ERROR:
        sys.exit(1)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def show(path: str):
    """Render a digest previously saved with ``digest --output``."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        saved = NewsDigest.from_dict(data)
    except (ValueError, TypeError, AttributeError) as e:
        console.print(f"[red]Invalid digest file {path}:[/red] {e}")
        sys.exit(1)
    _print_digest(saved)


@cli.command()
@click.pass_context
def interests(ctx):
    """List configured interests in processing order."""
    path = ctx.obj["config"]["digest"]["interests_path"]
    topics = load_interests(path)
    if not topics:
        console.print(f"[yellow]No interests configured in {path}[/yellow]")
        return
    for i, topic in enumerate(topics, 1):
        console.print(f"{i:>3}. {topic}")


@cli.command()
@click.option("--host", default=None, help="Bind address (default: server.host)")
@click.option("--port", default=None, type=int, help="Port (default: server.port)")
@click.pass_context
def serve(ctx, host: Optional[str], port: Optional[int]):
    """Serve the digest HTTP API."""
    from aiohttp import web

    from newsdigest.api.app import create_app

    config = ctx.obj["config"]
    server = config.get("server", {})
    web.run_app(
        create_app(config),
        host=host or server.get("host", "0.0.0.0"),
        port=port or int(server.get("port", 3000)),
    )


def _print_digest(result: NewsDigest) -> None:
    if result.status == DigestStatus.ERROR:
        console.print(f"[red]Digest failed:[/red] {result.error}")
        return

    table = Table(title=f"News digest ({result.generated_at})")
    table.add_column("#", style="dim", width=4)
    table.add_column("Topic", style="cyan")
    table.add_column("Articles", justify="right")
    table.add_column("Summary", max_width=80)

    for i, topic in enumerate(result.topics, 1):
        summary = topic.summary.replace("\n", " ")
        if len(summary) > SUMMARY_PREVIEW_CHARS:
            summary = summary[:SUMMARY_PREVIEW_CHARS].rstrip() + "..."
        table.add_row(str(i), topic.topic, str(topic.article_count), summary)

    table.add_section()
    table.add_row("", "[bold]Total", f"[bold]{result.total_articles}", "")
    console.print(table)


def main():
    cli()


if __name__ == "__main__":
    main()
