"""Webhook CLI utilities (signing and replaying test deliveries)."""

from __future__ import annotations

from typing import Any

import anyio
import click
import httpx

from videosync.cli.ui import console
from videosync.config import settings
from videosync.services.mux_signature import SIGNATURE_HEADER, sign_mux_payload


def _resolve_secret(secret: str | None) -> str:
    secret = secret or settings.mux_webhook_secret
    if not secret:
        raise click.ClickException("No secret given and MUX_WEBHOOK_SECRET is not set")
    return secret


@click.group()
def webhooks() -> None:
    """Webhook utilities (signing payloads for local testing)."""


@webhooks.command("sign")
@click.argument("payload_file", type=click.File("rb"))
@click.option("--secret", default=None, help="Signing secret (defaults to MUX_WEBHOOK_SECRET)")
@click.option("--timestamp", default=None, type=int, help="Unix timestamp (defaults to now)")
def webhooks_sign(payload_file, secret: str | None, timestamp: int | None) -> None:
    """Print a mux-signature header for PAYLOAD_FILE (use - for stdin)."""
    payload = payload_file.read()
    header = sign_mux_payload(payload, _resolve_secret(secret), timestamp=timestamp)
    console.print(f"{SIGNATURE_HEADER}: {header}", highlight=False, soft_wrap=True)


@webhooks.command("send")
@click.argument("payload_file", type=click.File("rb"))
@click.option(
    "--url",
    default=None,
    help="Webhook endpoint (defaults to http://API_HOST:API_PORT/api/videos/webhook)",
)
@click.option("--secret", default=None, help="Signing secret (defaults to MUX_WEBHOOK_SECRET)")
def webhooks_send(payload_file, url: str | None, secret: str | None) -> None:
    """Sign PAYLOAD_FILE and POST it to a running videosync API."""
    payload = payload_file.read()
    header = sign_mux_payload(payload, _resolve_secret(secret))
    target = url or f"http://{settings.api_host}:{settings.api_port}/api/videos/webhook"

    async def _run() -> tuple[int, Any]:
        async with httpx.AsyncClient(timeout=httpx.Timeout(10.0)) as client:
            response = await client.post(
                target,
                content=payload,
                headers={SIGNATURE_HEADER: header, "Content-Type": "application/json"},
            )
        try:
            body: Any = response.json()
        except ValueError:
            body = {"raw": response.text}
        return response.status_code, body

    try:
        status_code, body = anyio.run(_run)
    except httpx.HTTPError as exc:
        raise click.ClickException(f"Delivery failed: {exc}") from exc

    color = "green" if status_code < 400 else "red"
    console.print(f"[{color}]HTTP {status_code}[/{color}]")
    console.print_json(data=body)
    if status_code >= 400:
        raise click.ClickException(f"Webhook rejected with HTTP {status_code}")


def register(cli: click.Group) -> None:
    cli.add_command(webhooks)
