# src/simpleget/cli.py
"""simpleget Command Line Interface.

Entry point for the simpleget CLI tool.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from simpleget import __version__
from simpleget.client import concat
from simpleget.contracts import Response, SimpleGetError
from simpleget.core.config import load_settings

__all__ = ["app"]

app = typer.Typer(
    name="simpleget",
    help="simpleget: fetch a URL, following redirects and decoding gzip/deflate bodies.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"simpleget version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables (SIMPLEGET_*) from a .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # We handle existence check ourselves for better error message
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging (redirect hops, decoding decisions).",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """simpleget: fetch a URL, following redirects and decoding gzip/deflate bodies."""
    from simpleget.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "WARNING")

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _parse_headers(raw_headers: list[str]) -> dict[str, str]:
    """Parse repeated 'Name: value' options, keeping the name's case."""
    headers: dict[str, str] = {}
    for raw in raw_headers:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected 'Name: value', got {raw!r}", param_hint="--header")
        headers[name.strip()] = value.strip()
    return headers


def _echo_head(response: Response) -> None:
    typer.echo(f"{response.http_version} {response.status_code} {response.reason_phrase}".rstrip())
    for name, value in response.headers.multi_items():
        typer.echo(f"{name}: {value}")
    typer.echo("")


@app.command()
def fetch(
    url: str = typer.Argument(..., help="URL to fetch (http or https)."),
    method: str = typer.Option(
        "GET",
        "--request",
        "-X",
        help="HTTP method.",
    ),
    header: list[str] = typer.Option(
        [],
        "--header",
        "-H",
        help="Request header as 'Name: value' (repeatable).",
    ),
    data: str | None = typer.Option(
        None,
        "--data",
        "-d",
        help="Request body, sent as-is.",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Per-attempt timeout in seconds.",
    ),
    max_redirects: int | None = typer.Option(
        None,
        "--max-redirects",
        help="Redirect hops to follow before failing (default from settings, 10).",
    ),
    no_follow: bool = typer.Option(
        False,
        "--no-follow",
        help="Return the first response even if it is a redirect.",
    ),
    include: bool = typer.Option(
        False,
        "--include",
        "-i",
        help="Print the status line and response headers before the body.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the decoded body to this file instead of stdout.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to settings YAML file (SIMPLEGET_* env vars override it).",
    ),
) -> None:
    """Fetch a URL and print its decoded body."""
    try:
        settings = load_settings(config)
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {config}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None

    options: dict[str, Any] = {
        "url": url,
        "method": method,
        "headers": _parse_headers(header),
        "body": data,
        "timeout": timeout,
        "max_redirects": max_redirects,
        "follow_redirects": not no_follow,
    }

    try:
        response, body = asyncio.run(concat(options, settings=settings))
    except SimpleGetError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    if include:
        _echo_head(response)
    if output is not None:
        output.write_bytes(body)
    else:
        typer.echo(body, nl=False)
