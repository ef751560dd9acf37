"""
Augury CLI

Command-line helpers around the multi-chain signing-request orchestrator.

Commands:
  methods   - List the RPC method tables per namespace
  keygen    - Generate a local secp256k1 key for the CLI
  sign      - Sign an EIP-191 personal message with the local key
  recover   - Recover the signer of an EIP-191 personal message
  xjson     - Convert between plain and extended JSON
  info      - Show configuration
"""

from __future__ import annotations

import json
import sys
from typing import Optional

import click

from . import xjson
from .config import AUGURY_ENV, Settings
from .namespaces import NAMESPACES, get_namespace
from .sigil.eth import (
    SignatureError,
    generate_eoa,
    get_account,
    hash_personal_message,
    load_private_key,
    recover_hash,
    save_private_key,
    sign_message,
)


# ============ Constants ============

VERSION = "0.3.0"


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="augury")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Augury - multi-chain signing request orchestrator."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ============ Method tables ============


@cli.command()
@click.argument("namespace", required=False)
def methods(namespace: Optional[str]) -> None:
    """List supported RPC methods and operations."""
    if namespace:
        try:
            selected = [get_namespace(namespace)]
        except KeyError as exc:
            click.secho(f"ERROR: {exc.args[0]}", fg="red")
            sys.exit(1)
    else:
        selected = list(NAMESPACES.values())

    for ns in selected:
        click.secho(ns.name, fg="cyan", bold=True)
        for method in ns.method_names():
            click.echo(f"  {method}")
        click.echo(click.style("  operations: ", dim=True) + ", ".join(ns.operations))


# ============ EIP-191 ============


@cli.command()
@click.option("--force", is_flag=True, help="Overwrite an existing PRIVATE_KEY")
def keygen(force: bool) -> None:
    """Generate a key and store it in ~/.augury/.env."""
    env_path = AUGURY_ENV
    if not force:
        try:
            existing = load_private_key(env_path)
        except ValueError:
            existing = None
        if existing:
            address = get_account(existing).address
            click.secho(
                f"A key already exists for {address}. Use --force to replace it.", fg="yellow"
            )
            sys.exit(1)

    private_key, address = generate_eoa()
    path = save_private_key(private_key, env_path)
    click.echo(f"Address: {address}")
    click.echo(click.style("  Saved to: ", dim=True) + str(path))


@cli.command()
@click.argument("message")
def sign(message: str) -> None:
    """Sign MESSAGE with PRIVATE_KEY (personal_sign)."""
    try:
        private_key = load_private_key()
    except ValueError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(1)
    click.echo(sign_message(message, private_key))


@cli.command()
@click.argument("message")
@click.argument("signature")
@click.option("--address", default=None, help="Expected signer address")
def recover(message: str, signature: str, address: Optional[str]) -> None:
    """Recover the signer of a personal_sign SIGNATURE over MESSAGE."""
    try:
        signer = recover_hash(hash_personal_message(message), signature)
    except SignatureError as exc:
        click.secho(f"Invalid signature: {exc}", fg="red")
        sys.exit(1)

    click.echo(f"Signer: {signer}")
    if address is not None:
        valid = signer.lower() == address.lower()
        click.secho(f"Valid: {str(valid).lower()}", fg="green" if valid else "red")
        if not valid:
            sys.exit(1)


# ============ Extended JSON ============


@cli.group("xjson")
def xjson_group() -> None:
    """Convert between plain and extended JSON."""
    pass


@xjson_group.command("decode")
@click.option("--indent", default=2, type=int)
def xjson_decode(indent: int) -> None:
    """Read extended JSON on stdin and print it with tagged values expanded."""
    try:
        value = xjson.loads(sys.stdin.read())
    except json.JSONDecodeError as exc:
        click.secho(f"ERROR: Invalid JSON: {exc}", fg="red")
        sys.exit(1)
    click.echo(json.dumps(_describe(value), indent=indent))


@xjson_group.command("encode")
@click.option("--bigint", "bigint_keys", multiple=True, help="Keys whose integer values are BigInt")
@click.option("--indent", default=None, type=int)
def xjson_encode(bigint_keys: tuple[str, ...], indent: Optional[int]) -> None:
    """Read plain JSON on stdin and print extended JSON."""
    try:
        value = json.loads(sys.stdin.read())
    except json.JSONDecodeError as exc:
        click.secho(f"ERROR: Invalid JSON: {exc}", fg="red")
        sys.exit(1)
    click.echo(xjson.dumps(_promote(value, set(bigint_keys)), indent=indent))


def _promote(value, keys: set[str]):
    if isinstance(value, dict):
        return {
            k: xjson.BigInt(v) if k in keys and isinstance(v, int) and not isinstance(v, bool)
            else _promote(v, keys)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [_promote(v, keys) for v in value]
    return value


def _describe(value):
    if isinstance(value, bytes):
        return {"bytes": value.hex()}
    if isinstance(value, xjson.BigInt):
        return {"bigint": str(int(value))}
    if isinstance(value, dict):
        return {k: _describe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_describe(v) for v in value]
    return value


# ============ Info ============


@cli.command()
def info() -> None:
    """Show configuration."""
    settings = Settings.from_env()
    network = "testnet" if settings.testnet else "mainnet"
    click.echo(click.style("  Network:     ", dim=True) + click.style(network, fg="bright_white"))
    click.echo(click.style("  Solana:      ", dim=True) + settings.solana_cluster_url())
    click.echo(click.style("  Tron:        ", dim=True) + settings.tron_host())
    refs = ", ".join(str(ref) for ref in sorted(settings.rpc_providers))
    click.echo(click.style("  EVM RPCs:    ", dim=True) + refs)
    click.echo(click.style("  Namespaces:  ", dim=True) + ", ".join(NAMESPACES))


# ============ Entry Points ============


def main() -> None:
    """Augury CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
