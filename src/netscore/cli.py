"""CLI entry point for netscore."""

import asyncio
import json
from pathlib import Path

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv()

import typer
from rich.console import Console

from netscore import __version__
from netscore.analyzers.pipeline import NetScorePipeline
from netscore.config import Settings
from netscore.errors import ConfigurationError
from netscore.log_config import configure_logging
from netscore.models.schemas import EvaluationResult

app = typer.Typer(help="Trust and quality scoring for open-source packages.")

# Stdout carries one JSON record per line, so everything else goes to stderr
console = Console(stderr=True)


def read_url_file(path: Path) -> list[str]:
    """Read non-empty, stripped lines from a newline-delimited URL file."""
    text = path.read_text(encoding="utf-8")
    return [line.strip() for line in text.splitlines() if line.strip()]


@app.command()
def score(
    url_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="File with one URL per line"
    ),
    indent: int | None = typer.Option(None, "--indent", "-i", help="Pretty-print JSON records"),
) -> None:
    """Score every GitHub or npm URL listed in URL_FILE."""
    try:
        settings = Settings.from_env()
        configure_logging(settings.log_level, settings.log_file)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(1)

    urls = read_url_file(url_file)
    results = asyncio.run(_score_urls(settings, urls, indent))

    failed = [r for r in results if not r.ok]
    if failed:
        console.print(f"[yellow]{len(failed)} of {len(results)} URL(s) could not be scored[/yellow]")
        raise typer.Exit(1)


async def _score_urls(settings: Settings, urls: list[str], indent: int | None) -> list[EvaluationResult]:
    """Async implementation of score: evaluate sequentially, print as we go."""
    results = []
    async with NetScorePipeline(settings) as pipeline:
        for url in urls:
            result = await pipeline.evaluate_identifier(url)
            results.append(result)
            if result.ok:
                typer.echo(json.dumps(result.record.to_output(), indent=indent))
            else:
                console.print(result.error, style="red", markup=False)
    return results


@app.command()
def version() -> None:
    """Show the netscore version."""
    typer.echo(__version__)


if __name__ == "__main__":
    app()
