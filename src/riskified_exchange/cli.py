from __future__ import annotations

import json
import logging
import os
from pathlib import Path

import typer

from .client import RiskifiedClient
from .codec import deserialize
from .config import ConfigError, load_exchange_config
from .errors import ExchangeError
from .inbound import signature_matches
from .signing import calc_hmac

app = typer.Typer(add_completion=False, help="riskified-exchange: signed JSON exchange tools")


def _read_secret(secret_env: str) -> str:
    secret = os.environ.get(secret_env)
    if not secret:
        typer.secho(f"Error: environment variable {secret_env} is not set", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    return secret


def _read_body(path: Path) -> bytes:
    if not path.exists():
        typer.secho(f"Error: file not found: {path}", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    return path.read_bytes()


@app.command("sign")
def sign_cmd(
    file: Path = typer.Argument(..., help="File whose exact bytes are signed"),
    secret_env: str = typer.Option("RISKIFIED_AUTH_TOKEN", "--secret-env", help="Env var holding the shared secret"),
) -> None:
    """Print the HMAC-SHA256 signature of a body file."""
    typer.echo(calc_hmac(_read_body(file), _read_secret(secret_env)))


@app.command("verify")
def verify_cmd(
    file: Path = typer.Argument(..., help="File whose exact bytes were signed"),
    signature: str = typer.Option(..., "--signature", help="Value of the X-RISKIFIED-HMAC-SHA256 header"),
    secret_env: str = typer.Option("RISKIFIED_AUTH_TOKEN", "--secret-env", help="Env var holding the shared secret"),
) -> None:
    """Check a signature against a body file. Exits 1 when it does not match."""
    if signature_matches(signature, _read_body(file), _read_secret(secret_env)):
        typer.secho("Signature OK", fg=typer.colors.GREEN)
        return
    typer.secho("Signature mismatch", fg=typer.colors.RED)
    raise typer.Exit(code=1)


@app.command("send")
def send_cmd(
    path: str = typer.Argument(..., help="Relative endpoint path, e.g. /api/create"),
    file: Path = typer.Argument(..., help="JSON payload file"),
    config: Path | None = typer.Option(None, "--config", help="Path to exchange config JSON"),
) -> None:
    """POST a JSON payload file through a signed exchange and print the response."""
    logging.basicConfig(level=logging.INFO)
    try:
        exchange_config = load_exchange_config(config)
        payload = deserialize(_read_body(file), object)
        with RiskifiedClient.from_config(exchange_config) as client:
            result = client.post_and_parse(path, payload, object)
    except ConfigError as exc:
        typer.secho(f"Config error: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    except ExchangeError as exc:
        typer.secho(f"Exchange failed ({exc.kind.value}): {exc.message}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    typer.echo(json.dumps(result, indent=2, ensure_ascii=False))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
