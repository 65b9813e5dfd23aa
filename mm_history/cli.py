import asyncio
import logging
from typing import Optional

import typer
from dateutil import parser as date_parser
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from mm_history.errors import HistoryError

load_dotenv()
app = typer.Typer(add_completion=False)
err_console = Console(stderr=True, soft_wrap=True)

_log = logging.getLogger("mm_history")


def parse_since(value: Optional[str]) -> Optional[int]:
    """Parse a --since date/time string into epoch milliseconds (naive = local time)."""
    if value is None:
        return None
    try:
        parsed = date_parser.parse(value)
        return int(parsed.timestamp() * 1000)
    except (ValueError, OverflowError, OSError) as exc:
        raise typer.BadParameter(f"cannot parse date {value!r}", param_hint="'--since'") from exc


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.command()
def history(
    channel: str = typer.Argument(..., help="Channel name (the URL name, e.g. town-square)"),
    since: Optional[str] = typer.Option(None, "--since", "-s", metavar="DATE", help="Only posts created at or after this date/time"),
    team: Optional[str] = typer.Option(None, "--team", "-t", help="Team name (default: MATTERMOST_TEAM)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log each request to stderr"),
):
    """Print the history of CHANNEL, oldest post first."""
    since_ms = parse_since(since)
    _setup_logging(verbose)

    from mm_history.pipeline.core import fetch_transcript
    try:
        lines = asyncio.run(fetch_transcript(channel, since_ms=since_ms, team=team))
    except HistoryError as exc:
        _log.debug("run failed", exc_info=exc)
        err_console.print(f"[bold red]Error:[/] {escape(str(exc))}")
        raise typer.Exit(1)

    for line in lines:
        typer.echo(line)
