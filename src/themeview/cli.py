"""themeview CLI

Usage:
    themeview render posts/index                 # render a view in the default layout
    themeview render posts/index -l minimal      # pick a layout
    themeview render posts/item --partial        # render the posts/_item partial
    themeview render home --locals locals.yaml   # variables from a YAML mapping
    themeview resolve posts/index                # show which file a name resolves to
    themeview compile                            # refresh every compiled template
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from themeview._version import __version__
from themeview.config import Theme, resolve_theme
from themeview.exceptions import TemplateRenderError, ThemeConfigError
from themeview.renderer import Renderer
from themeview.resolver import Dialect, PathResolver

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(help="Render theme views, layouts and partials.")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the themeview CLI.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose (-v): INFO level - shows template compilation
    - Debug (THEMEVIEW_DEBUG=1): DEBUG level - shows everything
    """
    if os.environ.get("THEMEVIEW_DEBUG"):
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=err_console,
        show_time=verbose,
        show_path=bool(os.environ.get("THEMEVIEW_DEBUG")),
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("themeview")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False


def load_theme(theme_dir: Optional[Path]) -> Theme:
    try:
        return resolve_theme(theme_dir)
    except ThemeConfigError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def load_locals(path: Optional[Path]) -> dict[str, Any]:
    """Load template variables from a YAML mapping."""
    if path is None:
        return {}
    if not path.exists():
        err_console.print(f"[red]Error:[/red] Locals file not found: {path}")
        raise typer.Exit(1)

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        err_console.print(f"[red]Error:[/red] {path} must contain a mapping")
        raise typer.Exit(1)
    return data


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"themeview {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Render theme views, layouts and partials."""


@app.command()
def render(
    name: str = typer.Argument(..., help="Logical template name, e.g. posts/index"),
    theme_dir: Optional[Path] = typer.Option(
        None, "-t", "--theme", help="Theme directory (default: cwd)."
    ),
    layout: Optional[str] = typer.Option(
        None, "-l", "--layout", help="Layout under views/layouts/."
    ),
    locals_file: Optional[Path] = typer.Option(
        None, "--locals", help="YAML file with template variables."
    ),
    partial: bool = typer.Option(
        False, "--partial", help="Render NAME as a partial, without a layout."
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging."),
) -> None:
    """Render a view inside its layout and print it."""
    setup_logging(verbose)
    theme = load_theme(theme_dir)
    bindings = load_locals(locals_file)
    renderer = Renderer(theme, out=sys.stdout)

    if partial:
        failure = renderer.render_partial(name, bindings)
    else:
        options: dict[str, Any] = {"locals": bindings}
        if layout:
            options["layout"] = layout
        failure = renderer.render_view(name, options)

    if failure is not None:
        raise typer.Exit(1)


@app.command()
def resolve(
    name: str = typer.Argument(..., help="Logical template name"),
    theme_dir: Optional[Path] = typer.Option(
        None, "-t", "--theme", help="Theme directory (default: cwd)."
    ),
) -> None:
    """Show which file a template name resolves to."""
    theme = load_theme(theme_dir)
    resolver = PathResolver(theme.views_path, theme.config.template_suffixes)

    template = resolver.resolve(name)
    if template is None:
        err_console.print(f"[red]Template missing:[/red] {name}")
        for candidate in resolver.candidates(name):
            err_console.print(f"  [dim]tried {candidate}[/dim]")
        raise typer.Exit(1)

    typer.echo(f"{template.path}\t{template.dialect.value}")


@app.command(name="compile")
def compile_templates(
    theme_dir: Optional[Path] = typer.Option(
        None, "-t", "--theme", help="Theme directory (default: cwd)."
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging."),
) -> None:
    """Compile every jade and haml template whose cache is stale."""
    setup_logging(verbose)
    theme = load_theme(theme_dir)
    renderer = Renderer(theme)
    cache = renderer.cache
    suffixes = theme.config.template_suffixes

    table = Table()
    table.add_column("Template", style="cyan")
    table.add_column("Status")
    table.add_column("Artifact")

    failed = 0
    sources = sorted(p for p in theme.views_path.rglob("*") if p.is_file())
    for source in sources:
        if not source.name.endswith(suffixes):
            continue
        dialect = Dialect.from_path(source)
        if not dialect.compiled:
            continue

        relative = source.relative_to(theme.views_path)
        artifact = cache.artifact_path(source)
        stale = cache.is_expired(source, artifact)
        try:
            cache.ensure_compiled(source, dialect)
        except TemplateRenderError as e:
            failed += 1
            table.add_row(str(relative), f"[red]{e.title}[/red]", e.message)
            continue

        status = "[green]compiled[/green]" if stale else "[dim]fresh[/dim]"
        table.add_row(str(relative), status, str(artifact))

    console.print(table)
    if failed:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
