from __future__ import annotations

import asyncio
import json
from typing import Any

import click

from config.settings import get_safe_config_report
from dashboard_client.api.auth_api import AuthApi
from dashboard_client.api.client import ApiClient
from dashboard_client.api.errors import ApiError, classify_error
from dashboard_client.config import get_settings
from dashboard_client.utils.log import set_log_level

_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def _make_client() -> ApiClient:
    return ApiClient()


async def _run_request(
    *, method: str, path: str, body: Any, email: str, password: str
) -> Any:
    async with _make_client() as client:
        await AuthApi(client).login(email=email, password=password)
        return await client.request_json(method, path, json=body)


@click.group(name="dashboard-client", help="Authenticated client for the dashboard API")
@click.option("--log-level", default=None, help="Override LOG_LEVEL for this run.")
def cli(log_level: str | None) -> None:
    if log_level:
        set_log_level(log_level)


@cli.command(name="config")
def show_config() -> None:
    """
    Print the effective configuration (secrets shown as SET/UNSET only).
    """
    click.echo(json.dumps(get_safe_config_report(), indent=2, sort_keys=True, default=str))


@cli.command(name="request")
@click.argument("method", type=click.Choice(_METHODS, case_sensitive=False))
@click.argument("path")
@click.option("--json", "json_body", default=None, help="JSON request body.")
@click.option("--email", default=None, help="Login email (default: DASHBOARD_EMAIL).")
@click.option("--password", default=None, help="Login password (default: DASHBOARD_PASSWORD).")
def request_cmd(
    method: str, path: str, json_body: str | None, email: str | None, password: str | None
) -> None:
    """
    Log in and perform one authenticated call, printing the JSON response.
    """
    body = None
    if json_body:
        try:
            body = json.loads(json_body)
        except ValueError as ex:
            raise click.BadParameter(f"invalid JSON: {ex}", param_hint="--json") from None

    s = get_settings()
    email = email or s.dashboard_email
    if password is None and s.dashboard_password is not None:
        password = s.dashboard_password.get_secret_value()
    if not email or not password:
        raise click.UsageError("credentials required: pass --email/--password or set DASHBOARD_EMAIL/DASHBOARD_PASSWORD")

    try:
        data = asyncio.run(
            _run_request(method=method.upper(), path=path, body=body, email=email, password=password)
        )
    except ApiError as ex:
        err = classify_error(ex)
        click.echo(f"{err.title}: {err.description}", err=True)
        raise SystemExit(2) from None

    click.echo(json.dumps(data, indent=2, sort_keys=True, default=str))


if __name__ == "__main__":  # pragma: no cover
    cli()
