"""
Command-line interface for the license shim.
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from licshim.common.config import Config
from licshim.common.exceptions import LicshimError
from licshim.common.keyfile import KeyData, KeyFile
from licshim.common.signing import rsa_sign
from licshim.server import start_server
from licshim.server.keygen import KeyGenerator

PEM_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


@click.group()
def cli() -> None:
    """License shim CLI"""


@cli.command()
@click.option(
    "--keys-dir",
    default=None,
    help="Directory to save keys (default: ./keys)",
)
def keygen(keys_dir: str | None) -> None:
    """Generate an RSA key pair (PKCS#1 PEM)"""
    if keys_dir:
        os.environ["LICSHIM_KEYS_DIR"] = keys_dir

    keygen = KeyGenerator()
    keygen.generate_keys()
    click.echo("Keys generated and saved")


@cli.command()
@click.option(
    "--config",
    "config_path",
    default=None,
    help="TOML file with protocol sections (default: from LICSHIM_CONFIG or ./config.toml)",
)
@click.option(
    "--host",
    default=None,
    help="Host to bind server to (default: from LICSHIM_SERVER_HOST env or 127.0.0.1)",
)
@click.option(
    "--port",
    default=None,
    type=int,
    help="Port to bind server to (default: from LICSHIM_SERVER_PORT env or 8000)",
)
def serve(config_path: str | None, host: str | None, port: int | None) -> None:
    """Start the license shim server"""
    # Set environment variables before building the config
    if config_path:
        os.environ["LICSHIM_CONFIG"] = config_path
    if host:
        os.environ["LICSHIM_SERVER_HOST"] = host
    if port:
        os.environ["LICSHIM_SERVER_PORT"] = str(port)

    config = Config()
    try:
        config.load_settings()
    except LicshimError as e:
        raise click.ClickException(str(e)) from e

    start_server(config)


@cli.group()
def keyfile() -> None:
    """Build and inspect keyfile artifacts"""


@keyfile.command("export")
@click.option("--checksum", required=True, help="Base64 checksum blob")
@click.option("--key-file", required=True, type=PEM_FILE, help="RSA private key PEM")
@click.option("--user-id", default=1, type=int, show_default=True)
@click.option("--hwid", required=True, help="Hardware binding string")
@click.option("--role", default=31, type=int, show_default=True)
@click.option("--cardstr", default="", help="Opaque marker string")
@click.option("--data-id", default=1, type=int, show_default=True)
@click.option("--expiry-time", default=4102444800, type=int, show_default=True)
def keyfile_export(  # noqa: PLR0913
    checksum: str,
    key_file: Path,
    user_id: int,
    hwid: str,
    role: int,
    cardstr: str,
    data_id: int,
    expiry_time: int,
) -> None:
    """Wrap a license payload into a keyfile artifact"""
    try:
        data = KeyData(
            user_id=user_id,
            hwid=hwid,
            role=role,
            cardstr=cardstr,
            data_id=data_id,
            expiry_time=expiry_time,
        )
        artifact = KeyFile(
            checksum=checksum, rsa_key=key_file.read_text(), data=data
        ).export()
    except (LicshimError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    click.echo(artifact.to_json())


@keyfile.command("inspect")
@click.argument("artifact", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def keyfile_inspect(artifact: Path) -> None:
    """Unwrap a keyfile artifact and print its payload"""
    try:
        unwrapped = KeyFile.from_string(artifact.read_text())
    except LicshimError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"key: {unwrapped.get_key().decode('ascii')}")
    click.echo(unwrapped.data.model_dump_json(indent=2))


@cli.command()
@click.argument("message")
@click.option("--key-file", required=True, type=PEM_FILE, help="RSA private key PEM")
def sign(message: str, key_file: Path) -> None:
    """Sign MESSAGE with RSA PKCS#1 v1.5 / SHA-256"""
    try:
        click.echo(rsa_sign(message, key_file.read_text()))
    except LicshimError as e:
        raise click.ClickException(str(e)) from e


if __name__ == "__main__":
    cli()
