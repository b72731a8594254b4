"""PayLink CLI Entry Point.

Command-line access to consumer session lookups, saved payment details and
polled financial connections results. Output is JSON on stdout; logs go to
stderr.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog
import typer

from paylink.api import APIClient, ConsumerSessionAPI, FinancialConnectionsAPI
from paylink.core.config import get_settings
from paylink.core.exceptions import ConfigurationError, PayLinkError
from paylink.core.log_setup import configure_logging
from paylink.link import LinkAccount

log = structlog.get_logger()

T = TypeVar("T")

app = typer.Typer(
    name="paylink",
    help="PayLink - consumer payment account client",
    no_args_is_help=True,
)


def load_config_callback(config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to configuration file", is_eager=True)) -> Optional[Path]:
    """Load configuration file if provided."""
    if config and not config.exists():
        typer.echo(f"Error: Config file '{config}' not found", err=True)
        raise typer.Exit(code=1)

    try:
        settings = get_settings(force_reload=True, system_config_path=config)
    except ConfigurationError as e:
        typer.echo(f"Error loading config: {e}", err=True)
        raise typer.Exit(code=1)

    configure_logging(settings.logging)
    if config:
        log.info("config_loaded", path=str(config))
    return config


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c",
        callback=load_config_callback,
        is_eager=True,
        help="Path to global configuration file"
    ),
) -> None:
    """PayLink CLI."""
    pass


def _make_client() -> APIClient:
    try:
        return APIClient.from_settings(get_settings())
    except ValueError:
        typer.echo(
            "Error: No publishable key configured (set PAYLINK_API__PUBLISHABLE_KEY)",
            err=True,
        )
        raise typer.Exit(code=1)


def _run(factory: Callable[[APIClient], Awaitable[T]]) -> T:
    """Run ``factory`` with a fresh client, mapping library errors to exit 1."""
    client = _make_client()

    async def _main() -> T:
        async with client:
            return await factory(client)

    try:
        return asyncio.run(_main())
    except PayLinkError as e:
        log.error("command_failed", error_class=type(e).__name__, **e.context)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


def _emit(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


@app.command("lookup")
def lookup(
    email: Optional[str] = typer.Argument(None, help="Email to look up; omit to use the session cookie"),
) -> None:
    """Look up a consumer session."""

    async def _lookup(client: APIClient) -> dict:
        api = ConsumerSessionAPI(client)
        response = await api.lookup_session(email)
        if not response.exists:
            return {
                "exists": False,
                "error_message": response.error_message,
                "no_available_lookup_params": response.no_available_lookup_params,
            }
        account = LinkAccount(
            email=response.session.email_address,
            session=response.session,
            publishable_key=response.publishable_key,
            api=api,
        )
        return {
            "exists": True,
            "email": account.email,
            "redacted_phone_number": account.redacted_phone_number,
            "session_state": account.session_state.value,
        }

    _emit(_run(_lookup))


@app.command("payment-details")
def payment_details(
    email: str = typer.Argument(..., help="Email of the consumer"),
) -> None:
    """List the saved payment details of a consumer."""

    async def _list(client: APIClient) -> list:
        api = ConsumerSessionAPI(client)
        response = await api.lookup_session(email)
        account = LinkAccount(
            email=email,
            session=response.session,
            publishable_key=response.publishable_key,
            api=api,
        )
        details = await account.list_payment_details()
        return [asdict(d) for d in details]

    _emit(_run(_list))


@app.command("poll-accounts")
def poll_accounts(
    auth_session_id: str = typer.Argument(..., help="Financial connections auth session id"),
    client_secret: str = typer.Argument(..., help="Client secret of the session"),
) -> None:
    """Wait for the accounts of an auth session to become available."""

    async def _poll(client: APIClient) -> dict:
        accounts = await FinancialConnectionsAPI(client).poll_accounts(
            auth_session_id, client_secret
        )
        return asdict(accounts)

    _emit(_run(_poll))


if __name__ == "__main__":
    app()
