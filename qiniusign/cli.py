"""
QiniuSign Command-Line Interface

Signs data, request authorization headers and private download URLs.

Author: QiniuSign Contributors
"""

import sys
import logging
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
from pydantic import ValidationError

from qiniusign import __version__
from qiniusign.auth.exceptions import SigningError
from qiniusign.core.config_manager import ConfigManager
from qiniusign.core.logging_config import setup_logging
from qiniusign.storage.download import (
    sign_download_url_with_deadline,
    sign_download_url_with_lifetime,
)

logger = logging.getLogger("qiniusign.cli")


def _fail(message: str) -> None:
    click.echo(f"[ERROR] {message}", err=True)
    sys.exit(1)


def _read_body(body: Optional[str], body_file: Optional[Path]) -> bytes:
    if body is not None and body_file is not None:
        raise click.UsageError("--body and --body-file are mutually exclusive")
    if body_file is not None:
        return body_file.read_bytes()
    if body is not None:
        return body.encode("utf-8")
    return b""


def _parse_headers(values: Tuple[str, ...]) -> List[Tuple[str, str]]:
    headers = []
    for value in values:
        name, sep, header_value = value.partition(":")
        if not sep or not name.strip():
            raise click.BadParameter(f"expected 'Name: value', got {value!r}", param_hint="--header")
        headers.append((name.strip(), header_value.strip()))
    return headers


def _credential(ctx: click.Context):
    manager: ConfigManager = ctx.obj["config_manager"]
    try:
        return manager.credential()
    except ValueError as e:
        logger.error(f"Cannot build credential: {e}")
        _fail(str(e))


@click.group()
@click.version_option(version=__version__, prog_name="qiniusign")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (YAML or JSON)",
)
@click.option("--access-key", help="Access key (overrides config and QINIU_ACCESS_KEY)")
@click.option("--secret-key", help="Secret key (overrides config and QINIU_SECRET_KEY)")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    access_key: Optional[str],
    secret_key: Optional[str],
    log_level: Optional[str],
):
    """
    QiniuSign - access tokens for Qiniu object storage

    Credentials come from --access-key/--secret-key, the QINIU_ACCESS_KEY and
    QINIU_SECRET_KEY environment variables, or a configuration file.
    """
    overrides: Dict[str, Any] = {}
    if access_key is not None:
        overrides.setdefault("credentials", {})["access_key"] = access_key
    if secret_key is not None:
        overrides.setdefault("credentials", {})["secret_key"] = secret_key
    if log_level is not None:
        overrides.setdefault("logging", {})["level"] = log_level.upper()

    manager = ConfigManager()
    try:
        settings = manager.load(
            config_file=str(config) if config else None,
            cli_overrides=overrides,
        )
    except (ValidationError, ValueError) as e:
        _fail(f"Invalid configuration: {e}")

    setup_logging(
        level=settings.logging.level,
        format_type=settings.logging.format,
        log_file=settings.logging.file,
        rotation_size=settings.logging.rotation_size,
        rotation_count=settings.logging.rotation_count,
        module_levels=settings.logging.module_levels,
    )

    ctx.ensure_object(dict)
    ctx.obj["config_manager"] = manager


@cli.command()
@click.argument("data")
@click.option("--with-data", is_flag=True, help="Embed the base64 encoded data in the token")
@click.pass_context
def sign(ctx: click.Context, data: str, with_data: bool):
    """
    Sign DATA with the secret key.

    Examples:
        qiniusign sign hello
        qiniusign sign --with-data '{"scope":"bucket","deadline":1451491200}'
    """
    credential = _credential(ctx)
    payload = data.encode("utf-8")
    if with_data:
        click.echo(credential.sign_with_data(payload))
    else:
        click.echo(credential.sign(payload))


@cli.command("authorization-v1")
@click.argument("url")
@click.option("--content-type", default="", help="Request Content-Type")
@click.option("--body", help="Request body text")
@click.option(
    "--body-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read the request body from a file",
)
@click.pass_context
def authorization_v1(
    ctx: click.Context,
    url: str,
    content_type: str,
    body: Optional[str],
    body_file: Optional[Path],
):
    """Print the QBox Authorization header value for a request to URL."""
    credential = _credential(ctx)
    try:
        click.echo(credential.authorization_v1(url, content_type, _read_body(body, body_file)))
    except SigningError as e:
        logger.error(f"Signing failed: {e.message}")
        _fail(e.message)


@cli.command("authorization-v2")
@click.argument("url")
@click.option("--method", "-X", default="GET", show_default=True, help="HTTP method")
@click.option("--header", "-H", "header_values", multiple=True, help="Header as 'Name: value' (repeatable)")
@click.option("--body", help="Request body text")
@click.option(
    "--body-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read the request body from a file",
)
@click.pass_context
def authorization_v2(
    ctx: click.Context,
    url: str,
    method: str,
    header_values: Tuple[str, ...],
    body: Optional[str],
    body_file: Optional[Path],
):
    """
    Print the Qiniu Authorization header value for a request to URL.

    Examples:
        qiniusign authorization-v2 http://upload.qiniup.com/ -X POST \\
            -H 'Content-Type: application/json' --body '{"name":"test"}'
    """
    credential = _credential(ctx)
    headers = _parse_headers(header_values)
    try:
        click.echo(
            credential.authorization_v2(method.upper(), url, headers, _read_body(body, body_file))
        )
    except SigningError as e:
        logger.error(f"Signing failed: {e.message}")
        _fail(e.message)


@cli.command("download-url")
@click.argument("url")
@click.option("--deadline", type=int, help="Absolute expiry in Unix seconds")
@click.option("--lifetime", type=int, help="Validity in seconds from now (default from config)")
@click.option("--only-path/--full-url", default=None, help="Sign only path and query")
@click.pass_context
def download_url(
    ctx: click.Context,
    url: str,
    deadline: Optional[int],
    lifetime: Optional[int],
    only_path: Optional[bool],
):
    """
    Print a time-limited signed download URL.

    Examples:
        qiniusign download-url 'http://example.com/file.jpg' --lifetime 600
        qiniusign download-url 'http://example.com/file.jpg?imageView2/1' --deadline 1893456000
    """
    if deadline is not None and lifetime is not None:
        raise click.UsageError("--deadline and --lifetime are mutually exclusive")

    credential = _credential(ctx)
    settings = ctx.obj["config_manager"].get_config().download
    if only_path is None:
        only_path = settings.only_path

    try:
        if deadline is not None:
            signed = sign_download_url_with_deadline(credential, url, deadline, only_path)
        else:
            seconds = lifetime if lifetime is not None else settings.lifetime_seconds
            signed = sign_download_url_with_lifetime(
                credential, url, timedelta(seconds=seconds), only_path
            )
    except SigningError as e:
        logger.error(f"Signing failed: {e.message}")
        _fail(e.message)
    click.echo(signed)


@cli.command()
def version():
    """Show QiniuSign version."""
    click.echo(f"QiniuSign version {__version__}")


def main():
    """Main entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
