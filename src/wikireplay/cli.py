"""CLI interface for wikireplay.

Command-line tool for replaying wiki page revisions into a git repository.
"""

import logging
import signal
import sys
import threading
from pathlib import Path

import click

from wikireplay.config import Config
from wikireplay.core.errors import ReplayError


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@click.group()
@click.version_option(package_name="wikireplay")
def cli() -> None:
    """Replay wiki page revisions into a git repository."""


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("destination", type=click.Path(path_type=Path), required=False)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover wikireplay.toml)",
)
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite an existing destination",
)
@click.option(
    "--resume",
    is_flag=True,
    help="Continue the history of an existing destination",
)
@click.option(
    "--offset",
    type=click.IntRange(min=0),
    default=0,
    help="Skip the first N revisions of the source",
)
@click.option(
    "--limit",
    "-n",
    type=click.IntRange(min=0),
    default=None,
    help="Replay only the first N revisions (overrides config)",
)
@click.option(
    "--dialect",
    type=click.Choice(["markdown", "html", "confluence"]),
    default=None,
    help="Output format of rendered pages (overrides config, default: markdown)",
)
@click.option(
    "--keep-source/--no-keep-source",
    default=None,
    help="Append the original markup to each page as a comment (overrides config)",
)
@click.option(
    "--main-page",
    default=None,
    help='Page the site root redirects to (overrides config, default: "Main Page")',
)
@click.option(
    "--strict",
    is_flag=True,
    help="Abort on the first rendering failure instead of skipping the revision",
)
@click.option(
    "--render-ahead",
    type=click.IntRange(min=0),
    default=None,
    help="Render up to N revisions ahead on a worker thread (overrides config)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
def replay(
    source: Path,
    destination: Path | None,
    config_path: Path | None,
    force: bool,
    resume: bool,
    offset: int,
    limit: int | None,
    dialect: str | None,
    keep_source: bool | None,
    main_page: str | None,
    strict: bool,
    render_ahead: int | None,
    verbose: bool,
) -> None:
    """Replay revisions from a JSON Lines SOURCE into DESTINATION."""
    from wikireplay.core.engine import replay as run_replay
    from wikireplay.render import get_renderer
    from wikireplay.sources import JsonLinesSource

    _configure_logging(verbose)

    try:
        config = Config.load(config_path).with_overrides(
            repository_path=destination,
            force=force or None,
            resume=resume or None,
            dialect=dialect,
            keep_source=keep_source,
            main_page=main_page,
            strict=strict or None,
            limit=limit,
            render_ahead=render_ahead,
        )
        options = config.replay_options()
    except (FileNotFoundError, ValueError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    if config.repository.path is None:
        click.echo(
            click.style("Error: destination required (via argument or config)", fg="red"),
            err=True,
        )
        sys.exit(1)

    renderer = get_renderer(config.render.dialect)
    revisions = JsonLinesSource(source, offset=offset)

    cancel = threading.Event()

    def request_stop(signum: int, frame: object) -> None:
        click.echo("\nStopping after the current revision...", err=True)
        cancel.set()

    def show_progress(index: int, commit: str | None) -> None:
        if not verbose:
            click.echo("." if commit else "s", nl=False)

    click.echo(f"Replaying {source} into {config.repository.path} ({renderer.name})")
    previous_handler = signal.signal(signal.SIGINT, request_stop)
    try:
        result = run_replay(
            revisions,
            renderer,
            config.repository.path,
            options,
            cancel=cancel,
            progress=show_progress,
        )
    except ReplayError as e:
        click.echo("", err=True)
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        if e.last_commit:
            click.echo(f"Last commit: {e.last_commit}", err=True)
        else:
            click.echo("No commits were made.", err=True)
        sys.exit(1)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    if not verbose:
        click.echo()
    click.echo(click.style("Replay complete!", fg="green", bold=True))
    click.echo(f"Revisions: {result.processed}")
    click.echo(f"Commits: {len(result.commits)}")
    click.echo(f"Head: {result.head or '(none)'}")
    if result.notices:
        click.echo(click.style(f"\nNotices: {len(result.notices)}", fg="yellow"))
        for notice in result.notices:
            click.echo(f"  #{notice.index} {notice.title}: {notice.kind} ({notice.detail})")


@cli.command()
@click.argument("titles", nargs=-1, required=True)
def slug(titles: tuple[str, ...]) -> None:
    """Show the path key each TITLE maps to."""
    from wikireplay.core.slugs import slugify

    for title in titles:
        key = slugify(title)
        click.echo(f"{title} -> {key or '(unmappable)'}")


@cli.command()
@click.argument("markup_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--dialect",
    type=click.Choice(["markdown", "html", "confluence"]),
    default="markdown",
    help="Output format (default: markdown)",
)
def render(markup_file: Path, dialect: str) -> None:
    """Render a MediaWiki markup file and display the result."""
    from wikireplay.core.errors import RenderError
    from wikireplay.render import get_renderer

    renderer = get_renderer(dialect)
    try:
        output = renderer.render(markup_file.read_bytes())
    except RenderError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style(f"Rendered {markup_file} as {renderer.name}:", fg="green", bold=True))
    click.echo(output.decode("utf-8"))


if __name__ == "__main__":
    cli()
