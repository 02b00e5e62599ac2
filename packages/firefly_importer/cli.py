# ruff: noqa: I001
"""CLI for the ``firefly_importer`` package.

This module exposes callable command handlers (``cmd_test_auth``,
``cmd_import_piraeus_data``) and a Typer-based console interface. Connection
settings come from ``--url``/``--token`` or, when omitted, from the
``FIREFLY_URL``/``FIREFLY_TOKEN`` environment variables, which may be set in a
local ``.env`` (loaded with ``python-dotenv`` before any command runs).
Business logic lives in :mod:`firefly_importer.api` and related modules.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import typer
from dotenv import load_dotenv

from . import __version__
from .api import format_transaction, import_piraeus_file
from .firefly_client import FireflyApiError, FireflyClient
from .ingest.adapters.piraeus_tsv import PiraeusFormatError
from .ingest.utils import EmptyStatementError
from .logging_setup import configure_logging, get_logger
from .models import SameAccountTransactionError

URL_ENV_VAR = "FIREFLY_URL"
TOKEN_ENV_VAR = "FIREFLY_TOKEN"

_logger = get_logger("firefly_importer.cli")


# ---- Small module‑level helpers used by CLI commands -------------------------


def _resolve_connection(url: str | None, token: str | None) -> tuple[str, str] | None:
    """Return ``(url, token)`` from options or env, reporting what is missing."""

    url = url or os.getenv(URL_ENV_VAR)
    token = token or os.getenv(TOKEN_ENV_VAR)
    if not url:
        print(
            f"Error: Firefly III URL is required (use --url or set {URL_ENV_VAR}).",
            file=sys.stderr,
        )
        return None
    if not token:
        print(
            f"Error: Firefly III API token is required (use --token or set {TOKEN_ENV_VAR}).",
            file=sys.stderr,
        )
        return None
    return url, token


# ---- Command handlers ---------------------------------------------------------


def cmd_test_auth(url: str | None, token: str | None) -> int:
    """Check that the token is accepted by the Firefly III instance.

    Prints the instance information reported by ``/api/v1/about`` and returns
    ``0`` on success; errors go to stderr with a non-zero return.
    """

    conn = _resolve_connection(url, token)
    if conn is None:
        return 1
    base_url, api_token = conn

    print(f"Testing authentication with Firefly III instance at: {base_url}")
    try:
        about = FireflyClient(base_url, api_token).about()
    except FireflyApiError as e:
        print(f"✗ Authentication failed: {e}", file=sys.stderr)
        if e.body:
            print(f"Response: {e.body}", file=sys.stderr)
        return 1

    print("\nFirefly III Instance Information:")
    if about.version is not None:
        print(f"  Version: {about.version}")
    if about.api_version is not None:
        print(f"  API Version: {about.api_version}")
    if about.php_version is not None:
        print(f"  PHP Version: {about.php_version}")
    if about.os is not None:
        print(f"  OS: {about.os}")
    print("✓ Authentication successful!")
    return 0


def cmd_import_piraeus_data(
    data_file: str,
    *,
    url: str | None,
    token: str | None,
    dry_run: bool = False,
) -> int:
    """Parse a Piraeus unified transactions export and report the transactions.

    Behavior
    --------
    - Resolves every row's product number to a Firefly III account.
    - Prints the parsed/prepared counts and one line per transaction
      (``type | date | amount | description | source -> destination``).
    - Submission to Firefly III is not implemented; ``--dry-run`` only changes
      the closing note.

    Fatal input errors (missing/empty file, missing or malformed header) and
    same-account transactions are written to stderr with a return of ``1``.
    """

    conn = _resolve_connection(url, token)
    if conn is None:
        return 1
    base_url, api_token = conn

    print(f"Importing data from: {data_file}")
    try:
        result = import_piraeus_file(data_file, FireflyClient(base_url, api_token))
    except FileNotFoundError:
        print(f"✗ File not found: {data_file}", file=sys.stderr)
        return 1
    except EmptyStatementError:
        print("✗ File is empty", file=sys.stderr)
        return 1
    except PiraeusFormatError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    except SameAccountTransactionError as e:
        _logger.error("Refusing to build transaction: %s", e)
        print(f"✗ Invalid transaction: {e}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"✗ Error reading file: {e}", file=sys.stderr)
        return 1

    print(f"\n✓ Successfully parsed {result.rows_parsed} data rows")
    print(f"✓ Prepared {len(result.transactions)} transactions for import")
    for tx in result.transactions:
        print(format_transaction(tx))

    if dry_run:
        print("Dry run: no transactions were submitted to Firefly III")
    else:
        print("Note: Import to Firefly III not yet implemented")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "CLI tool for importing data into Firefly III. Loads FIREFLY_URL and "
        "FIREFLY_TOKEN from a local .env before running."
    ),
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"firefly-importer {__version__}")
        raise typer.Exit()


@app.command("test-auth")
def test_auth_cmd(
    url: str | None = typer.Option(
        None, "--url", "-u", help=f"Firefly III instance URL (falls back to {URL_ENV_VAR})."
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        "-t",
        help=f"Firefly III Personal Access Token (falls back to {TOKEN_ENV_VAR}).",
    ),
) -> None:
    """Test authentication with the Firefly III API."""

    raise typer.Exit(cmd_test_auth(url, token))


@app.command("import-piraeus-data")
def import_piraeus_data_cmd(
    data_file: Path = typer.Argument(
        ...,
        metavar="DATA_FILE",
        help="Path to the Piraeus unified transactions export (tab separated).",
        dir_okay=False,
    ),
    url: str | None = typer.Option(
        None, "--url", "-u", help=f"Firefly III instance URL (falls back to {URL_ENV_VAR})."
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        "-t",
        help=f"Firefly III Personal Access Token (falls back to {TOKEN_ENV_VAR}).",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Parse the file but do not import into Firefly III."
    ),
) -> None:
    """Import Piraeus unified transactions data into Firefly III."""

    raise typer.Exit(
        cmd_import_piraeus_data(str(data_file), url=url, token=token, dry_run=dry_run)
    )


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING...). Defaults to FIREFLY_IMPORTER_LOG_LEVEL or INFO.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging(log_level)

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    main()
