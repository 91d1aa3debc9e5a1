"""Command line interface for docshim."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from docshim.config import PluginConfig, load_config
from docshim.errors import ArtifactError, ConfigError
from docshim.hooks import ShorthandPlugin
from docshim.index.search import DEFAULT_LIMIT, SearchIndex
from docshim.models import Page
from docshim.transform import Transpiler
from docshim.utils.files import iter_markdown_paths
from docshim.utils.text import extract_title

console = Console()
app = typer.Typer(help="docshim - markdown shorthand transpiler and page search index")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load_config(config_path: Optional[Path]) -> PluginConfig:
    try:
        return load_config(config_path)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def build(
    source: Path = typer.Argument(..., help="Directory of markdown sources.", resolve_path=True),
    output: Path = typer.Argument(..., help="Output root for transformed pages.", resolve_path=True),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML options file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Transform every markdown page and export the search index."""
    _setup_logging(verbose)
    config = _load_config(config_path)
    if not source.is_dir():
        raise typer.BadParameter(f"Source directory not found: {source}")

    plugin = ShorthandPlugin(config)
    plugin.on_build_init()

    sources = list(iter_markdown_paths([source]))
    if not sources:
        console.print("[yellow]No markdown pages found.[/yellow]")

    for path in sources:
        relative = path.relative_to(source).as_posix()
        text = path.read_text(encoding="utf-8")
        page = Page(path=relative, title=extract_title(text, fallback=path.stem), content=text)
        plugin.on_before_page_render(page)

        target = output / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(page.content, encoding="utf-8")

    artifact = plugin.on_build_finish(output)
    console.print(f"Processed {len(sources)} pages, index written to [bold]{artifact}[/bold]")


@app.command()
def transform(
    file: Path = typer.Argument(..., help="Markdown file to transform.", exists=True, dir_okay=False),
    page_path: Optional[str] = typer.Option(None, "--path", help="Page identifier (defaults to file name)"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML options file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Print the transformed content of a single page."""
    _setup_logging(verbose)
    config = _load_config(config_path)
    transpiler = Transpiler(config)
    result = transpiler.run(file.read_text(encoding="utf-8"), page_path or file.name)
    if not result.ok:
        console.print(f"[yellow]Stage {result.failed_stage} failed, output is partial.[/yellow]")
    typer.echo(result.content)


@app.command()
def search(
    query: str = typer.Argument(..., help="Query text"),
    artifact: Path = typer.Option(
        Path("_book") / "assets" / "search_pages.json", "--artifact", help="Search artifact path"
    ),
    limit: int = typer.Option(DEFAULT_LIMIT, help="Per-field result cap"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Query an exported search artifact."""
    _setup_logging(verbose)
    try:
        index = SearchIndex.load(artifact)
    except ArtifactError as exc:
        raise typer.BadParameter(str(exc)) from exc

    results = index.query(query, limit=limit)
    if not results:
        console.print("[yellow]No results found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Title")
    table.add_column("Path")
    for result in results:
        table.add_row(result.title, result.path)
    console.print(table)


@app.command()
def serve(
    site: Path = typer.Argument(Path("_book"), help="Built site directory"),
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML options file"),
) -> None:
    """Start the preview server."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - defensive
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    from docshim.web.app import create_app

    config = _load_config(config_path)
    if not config.resolve_index_path(site).exists():
        console.print("[yellow]Warning: search index not found, searches will fail.[/yellow]")

    console.print(f"Starting preview on http://{host}:{port} (site: {site})")
    uvicorn.run(create_app(site, config), host=host, port=port, reload=False, log_level="info")


if __name__ == "__main__":  # pragma: no cover
    app()
