"""CLI entry point for delegation-toolkit.

Invoked as::

    delegation-toolkit [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m delegation_toolkit.cli.main

Commands
--------
caveats list          List caveat types and their enforcer contracts
scope build           Resolve a scope file into caveats
delegation create     Create an unsigned delegation
delegation hash       Print the struct hash and signable digest of a delegation
delegation sign       Sign a delegation with a private key
delegation encode     Encode a delegation chain as a permission context
delegation decode     Decode a permission context

Environments are read from a JSON file (``--environment-file``) holding
one entry per chain; see :mod:`delegation_toolkit.environment`.
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.table import Table

from delegation_toolkit import __version__
from delegation_toolkit.errors import DelegationToolkitError

console = Console()

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="delegation-toolkit")
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging level for library output.",
)
def cli(log_level: str) -> None:
    """Build, sign and encode smart account delegations"""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    console.print(f"[bold]delegation-toolkit[/bold] v{__version__}")


# ------------------------------------------------------------------
# Shared options and helpers
# ------------------------------------------------------------------


def _environment_options(required: bool):  # type: ignore[no-untyped-def]
    def decorator(func):  # type: ignore[no-untyped-def]
        func = click.option(
            "--version-tag",
            default=None,
            help="Deployment version in the environment file (default: preferred version).",
        )(func)
        func = click.option(
            "--chain-id",
            type=int,
            required=required,
            default=None,
            help="Chain id of the environment to use.",
        )(func)
        func = click.option(
            "--environment-file",
            type=click.Path(exists=True, dir_okay=False),
            required=required,
            default=None,
            help="JSON file of deployed contract addresses per chain.",
        )(func)
        return func

    return decorator


def _fail(message: object) -> None:
    console.print(f"[red]Error:[/red] {message}")
    sys.exit(1)


def _load_environment(
    environment_file: Optional[str], chain_id: Optional[int], version_tag: Optional[str]
):  # type: ignore[no-untyped-def]
    """Return the environment for *chain_id* from *environment_file*."""
    from delegation_toolkit.environment import PREFERRED_VERSION, EnvironmentRegistry

    if environment_file is None or chain_id is None:
        _fail("--environment-file and --chain-id are required for this command.")
    registry = EnvironmentRegistry.from_file(environment_file)  # type: ignore[arg-type]
    return registry.get(chain_id, version_tag or PREFERRED_VERSION)  # type: ignore[arg-type]


def _load_json(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        _fail(f"{path} is not valid JSON: {exc}")


def _load_delegation(path: str):  # type: ignore[no-untyped-def]
    from delegation_toolkit.delegation.model import Delegation

    data = _load_json(path)
    if not isinstance(data, dict):
        _fail(f"{path} must contain a single delegation object.")
    return Delegation.from_dict(data)


def _emit_json(data: Any, output: Optional[str]) -> None:
    text = json.dumps(data, indent=2)
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
        console.print(f"[green]Wrote[/green] {output}")
    else:
        click.echo(text)


# ------------------------------------------------------------------
# caveats command group
# ------------------------------------------------------------------


@cli.group(name="caveats")
def caveats_group() -> None:
    """Inspect the supported caveat types."""


@caveats_group.command(name="list")
@_environment_options(required=False)
def caveats_list_command(
    environment_file: Optional[str], chain_id: Optional[int], version_tag: Optional[str]
) -> None:
    """List caveat types, their enforcer contracts and, with an environment, addresses."""
    from delegation_toolkit.caveats.types import CaveatType

    environment = None
    if environment_file is not None:
        try:
            environment = _load_environment(environment_file, chain_id, version_tag)
        except DelegationToolkitError as exc:
            _fail(exc)

    table = Table(title="Caveat Types", show_header=True)
    table.add_column("Type", style="cyan")
    table.add_column("Enforcer")
    if environment is not None:
        table.add_column("Address")

    for caveat_type in CaveatType:
        row = [caveat_type.value, caveat_type.enforcer_name]
        if environment is not None:
            address = environment.caveat_enforcers.get(caveat_type.enforcer_name)
            row.append(address or "[red]missing[/red]")
        table.add_row(*row)

    console.print(table)


# ------------------------------------------------------------------
# scope command group
# ------------------------------------------------------------------


@cli.group(name="scope")
def scope_group() -> None:
    """Resolve delegation scopes."""


@scope_group.command(name="build")
@click.argument("scope_file", type=click.Path(exists=True, dir_okay=False))
@_environment_options(required=True)
@click.option("--output", "-o", type=click.Path(), default=None, help="Write caveats JSON here.")
def scope_build_command(
    scope_file: str,
    environment_file: str,
    chain_id: int,
    version_tag: Optional[str],
    output: Optional[str],
) -> None:
    """Resolve the scope in SCOPE_FILE into an ordered caveat list."""
    from delegation_toolkit.scope import create_caveat_builder_from_scope, scope_from_dict

    try:
        environment = _load_environment(environment_file, chain_id, version_tag)
        scope = scope_from_dict(_load_json(scope_file))
        caveats = create_caveat_builder_from_scope(environment, scope).build()
    except DelegationToolkitError as exc:
        _fail(exc)
        return

    _emit_json([caveat.to_dict() for caveat in caveats], output)


# ------------------------------------------------------------------
# delegation command group
# ------------------------------------------------------------------


@cli.group(name="delegation")
def delegation_group() -> None:
    """Create, sign and encode delegations."""


@delegation_group.command(name="create")
@click.option("--delegate", default=None, help="Delegate address (omit with --open).")
@click.option("--delegator", required=True, help="Delegator address.")
@click.option("--open", "open_delegation", is_flag=True, help="Create an open delegation.")
@click.option(
    "--scope-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON scope configuration to resolve into caveats.",
)
@click.option(
    "--caveats-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON list of additional caveats ({type, ...config} or raw caveats).",
)
@click.option(
    "--parent-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Parent delegation JSON; its hash becomes the authority.",
)
@click.option("--salt", default="0", show_default=True, help="Salt as decimal or 0x hex.")
@click.option(
    "--allow-unrestricted",
    is_flag=True,
    help="Allow a delegation without caveats.",
)
@_environment_options(required=False)
@click.option("--output", "-o", type=click.Path(), default=None, help="Write delegation JSON here.")
def delegation_create_command(
    delegate: Optional[str],
    delegator: str,
    open_delegation: bool,
    scope_file: Optional[str],
    caveats_file: Optional[str],
    parent_file: Optional[str],
    salt: str,
    allow_unrestricted: bool,
    environment_file: Optional[str],
    chain_id: Optional[int],
    version_tag: Optional[str],
    output: Optional[str],
) -> None:
    """Create an unsigned delegation from DELEGATOR."""
    from delegation_toolkit.delegation.model import (
        ANY_BENEFICIARY,
        create_delegation,
    )
    from delegation_toolkit.scope import resolve_caveats

    if open_delegation == (delegate is not None):
        _fail("Pass exactly one of --delegate or --open.")

    try:
        parent = _load_delegation(parent_file) if parent_file else None
        extra = _load_json(caveats_file) if caveats_file else None
        if scope_file is not None:
            environment = _load_environment(environment_file, chain_id, version_tag)
            caveats = resolve_caveats(environment, _load_json(scope_file), extra)
        elif extra and any(isinstance(item, dict) and "type" in item for item in extra):
            from delegation_toolkit.caveats.builder import create_caveat_builder, snake_case_config

            environment = _load_environment(environment_file, chain_id, version_tag)
            builder = create_caveat_builder(environment, allow_unrestricted)
            for item in extra:
                if "type" in item:
                    config = {k: v for k, v in item.items() if k != "type"}
                    builder.add_caveat(item["type"], **snake_case_config(config))
                else:
                    builder.add_caveat(item)
            caveats = builder.build()
        else:
            caveats = extra or []

        delegation = create_delegation(
            ANY_BENEFICIARY if open_delegation else delegate,  # type: ignore[arg-type]
            delegator,
            caveats,
            parent=parent,
            salt=salt,
            allow_insecure_unrestricted_delegation=allow_unrestricted,
        )
    except (DelegationToolkitError, TypeError) as exc:
        _fail(exc)
        return

    _emit_json(delegation.to_dict(), output)


@delegation_group.command(name="hash")
@click.argument("delegation_file", type=click.Path(exists=True, dir_okay=False))
@_environment_options(required=False)
def delegation_hash_command(
    delegation_file: str,
    environment_file: Optional[str],
    chain_id: Optional[int],
    version_tag: Optional[str],
) -> None:
    """Print the struct hash of DELEGATION_FILE, and its digest given an environment."""
    from delegation_toolkit.delegation.hashing import delegation_digest, hash_delegation

    try:
        delegation = _load_delegation(delegation_file)
        click.echo(f"hash:   0x{hash_delegation(delegation).hex()}")
        if environment_file is not None:
            environment = _load_environment(environment_file, chain_id, version_tag)
            digest = delegation_digest(delegation, chain_id, environment.delegation_manager)  # type: ignore[arg-type]
            click.echo(f"digest: 0x{digest.hex()}")
    except DelegationToolkitError as exc:
        _fail(exc)


@delegation_group.command(name="sign")
@click.argument("delegation_file", type=click.Path(exists=True, dir_okay=False))
@_environment_options(required=True)
@click.option(
    "--private-key",
    envvar="DELEGATION_TOOLKIT_PRIVATE_KEY",
    required=True,
    help="Delegator private key (or DELEGATION_TOOLKIT_PRIVATE_KEY).",
)
@click.option(
    "--allow-unrestricted",
    is_flag=True,
    help="Allow signing a delegation without caveats.",
)
@click.option("--output", "-o", type=click.Path(), default=None, help="Write signed JSON here.")
def delegation_sign_command(
    delegation_file: str,
    environment_file: str,
    chain_id: int,
    version_tag: Optional[str],
    private_key: str,
    allow_unrestricted: bool,
    output: Optional[str],
) -> None:
    """Sign DELEGATION_FILE and output the delegation with its signature."""
    from delegation_toolkit.delegation.signing import LocalAccountSigner, sign_delegation
    from delegation_toolkit.hexutils import same_address

    try:
        environment = _load_environment(environment_file, chain_id, version_tag)
        delegation = _load_delegation(delegation_file)
        signer = LocalAccountSigner.from_key(private_key)
        if not same_address(signer.address, delegation.delegator):
            console.print(
                f"[yellow]Warning:[/yellow] key address {signer.address} is not the delegator"
            )
        signature = sign_delegation(
            signer,
            delegation,
            environment.delegation_manager,
            chain_id,
            allow_insecure_unrestricted_delegation=allow_unrestricted,
        )
    except (DelegationToolkitError, ValueError) as exc:
        _fail(exc)
        return

    _emit_json(delegation.with_signature(signature).to_dict(), output)


@delegation_group.command(name="encode")
@click.argument("delegation_files", nargs=-1, required=True, type=click.Path(exists=True))
def delegation_encode_command(delegation_files: tuple[str, ...]) -> None:
    """Encode a delegation chain, leaf first, as a permission context.

    Each of DELEGATION_FILES holds one delegation object or a list of them.
    """
    from delegation_toolkit.delegation.codec import encode_delegations
    from delegation_toolkit.delegation.model import Delegation

    chain = []
    try:
        for path in delegation_files:
            data = _load_json(path)
            items = data if isinstance(data, list) else [data]
            chain.extend(Delegation.from_dict(item) for item in items)
        encoded = encode_delegations(chain)
    except (DelegationToolkitError, TypeError) as exc:
        _fail(exc)
        return

    click.echo(f"0x{encoded.hex()}")


@delegation_group.command(name="decode")
@click.argument("permission_context")
@click.option("--output", "-o", type=click.Path(), default=None, help="Write delegations JSON here.")
def delegation_decode_command(permission_context: str, output: Optional[str]) -> None:
    """Decode PERMISSION_CONTEXT (hex) into a list of delegations."""
    from delegation_toolkit.delegation.codec import decode_delegations

    try:
        delegations = decode_delegations(permission_context)
    except DelegationToolkitError as exc:
        _fail(exc)
        return

    _emit_json([delegation.to_dict() for delegation in delegations], output)


if __name__ == "__main__":
    cli()
