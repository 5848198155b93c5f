"""
Command-Line Interface for the Kósmos trust protocol.

Runs the DID registry, issuer whitelist and proof gate against a local CBOR
ledger snapshot. Mutating commands are authorized with Ed25519 signing keys
passed via ``--key`` (hex seeds).
"""

import logging
import sys
from typing import Any, Callable, Dict, Optional, Tuple

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from kosmos_trust import __version__, print_disclaimer
from kosmos_trust.deployment import Deployment, DeploymentConfig, load_config
from kosmos_trust.trust_protocol.auth import (
    Ed25519Authority,
    Keyring,
    generate_identity,
    signing_key_from_seed,
)
from kosmos_trust.trust_protocol.exceptions import TrustProtocolError

console = Console()


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--state',
    type=click.Path(dir_okay=False),
    envvar='KOSMOS_STATE',
    help='Ledger snapshot file (overrides the config file)'
)
@click.option(
    '--config',
    'config_path',
    type=click.Path(exists=True, dir_okay=False),
    envvar='KOSMOS_CONFIG',
    help='YAML deployment config'
)
@click.option(
    '--key',
    'keys',
    multiple=True,
    envvar='KOSMOS_SIGNING_KEY',
    help='Hex signing-key seed used to authorize calls (repeatable)'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Enable verbose output'
)
@click.pass_context
def main(ctx, state, config_path, keys, verbose):
    """
    Kósmos trust protocol - DID registry, issuer whitelist and proof gate.

    State is kept in a CBOR ledger snapshot between invocations.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )
    ctx.ensure_object(dict)
    ctx.obj["state"] = state
    ctx.obj["config_path"] = config_path
    ctx.obj["keys"] = keys
    ctx.obj["verbose"] = verbose


def _fail(message: str) -> None:
    click.echo(click.style(f"✗ Error: {message}", fg="red"), err=True)
    sys.exit(1)


def _open_deployment(obj: Dict[str, Any]) -> Deployment:
    config = load_config(obj["config_path"]) if obj["config_path"] else DeploymentConfig()
    if obj["state"]:
        config.state_path = obj["state"]
    keyring = Keyring(*(signing_key_from_seed(seed) for seed in obj["keys"]))
    return Deployment.open(config, Ed25519Authority(signer=keyring))


def _run(ctx: click.Context, action: Callable[[Deployment], Any], save: bool = True) -> Any:
    try:
        deployment = _open_deployment(ctx.obj)
        result = action(deployment)
        if save:
            deployment.save()
        return result
    except (TrustProtocolError, ValueError, TypeError) as e:
        if ctx.obj.get("verbose"):
            import traceback
            traceback.print_exc()
        _fail(str(e))


def _parse_entries(entries: Tuple[str, ...]) -> Dict[str, Any]:
    document: Dict[str, Any] = {}
    for entry in entries:
        label, sep, value = entry.partition("=")
        if not sep:
            raise click.BadParameter(f"expected label=value, got {entry!r}")
        document[label] = value
    return document


def _parse_input(value: str) -> Any:
    # YAML scalars: "700" -> 700, "vc_hash" -> "vc_hash"
    return yaml.safe_load(value)


def _ok(message: str) -> None:
    click.echo(click.style(f"✓ {message}", fg="green"))


@main.command()
def keygen():
    """Generate a signing key and print its seed and identity."""
    key, identity = generate_identity()
    click.echo(f"seed:     {bytes(key).hex()}")
    click.echo(f"identity: {identity}")


@main.command()
def version():
    """Show version and disclaimer information."""
    click.echo(f"\nKósmos trust protocol v{__version__}\n")
    print_disclaimer()


# ============================================================================
# DID REGISTRY
# ============================================================================


@main.group()
def did():
    """Register, update, revoke and resolve DIDs."""


@did.command('register')
@click.argument('did_id')
@click.option('--controller', required=True, help='Controller identity (must sign)')
@click.option('--entry', 'entries', multiple=True, help='Document entry label=value (repeatable)')
@click.pass_context
def did_register(ctx, did_id, controller, entries):
    """Register DID_ID controlled by --controller."""
    document = _parse_entries(entries)
    _run(ctx, lambda d: d.registry.register(controller, did_id, document))
    _ok(f"Registered {did_id}")


@did.command('update')
@click.argument('did_id')
@click.option('--entry', 'entries', multiple=True, help='Document entry label=value (repeatable)')
@click.pass_context
def did_update(ctx, did_id, entries):
    """Replace the document of DID_ID."""
    document = _parse_entries(entries)
    _run(ctx, lambda d: d.registry.update_document(did_id, document))
    _ok(f"Updated {did_id}")


@did.command('revoke')
@click.argument('did_id')
@click.pass_context
def did_revoke(ctx, did_id):
    """Permanently revoke DID_ID."""
    _run(ctx, lambda d: d.registry.revoke(did_id))
    _ok(f"Revoked {did_id}")


@did.command('resolve')
@click.argument('did_id')
@click.pass_context
def did_resolve(ctx, did_id):
    """Show status and document of DID_ID."""
    status, document = _run(ctx, lambda d: d.registry.resolve(did_id), save=False)
    table = Table(title=f"{did_id} ({status.name})")
    table.add_column("label", style="cyan")
    table.add_column("value")
    for label, value in document.items():
        table.add_row(label, str(value))
    console.print(table)


@did.command('controller')
@click.argument('did_id')
@click.pass_context
def did_controller(ctx, did_id):
    """Print the controller of DID_ID."""
    click.echo(_run(ctx, lambda d: d.registry.get_controller(did_id), save=False))


# ============================================================================
# ISSUER WHITELIST
# ============================================================================


@main.group()
def whitelist():
    """Manage the trusted issuer whitelist."""


@whitelist.command('init')
@click.option('--admin', required=True, help='Whitelist admin identity')
@click.pass_context
def whitelist_init(ctx, admin):
    """Initialize the whitelist with an admin."""
    _run(ctx, lambda d: d.whitelist.initialize(admin))
    _ok(f"Whitelist initialized (admin {admin})")


@whitelist.command('add')
@click.argument('issuer')
@click.pass_context
def whitelist_add(ctx, issuer):
    """Whitelist ISSUER (admin must sign)."""
    _run(ctx, lambda d: d.whitelist.add_issuer(issuer))
    _ok(f"Whitelisted {issuer}")


@whitelist.command('remove')
@click.argument('issuer')
@click.pass_context
def whitelist_remove(ctx, issuer):
    """Remove ISSUER from the whitelist (admin must sign)."""
    _run(ctx, lambda d: d.whitelist.remove_issuer(issuer))
    _ok(f"Removed {issuer}")


@whitelist.command('set-admin')
@click.argument('new_admin')
@click.pass_context
def whitelist_set_admin(ctx, new_admin):
    """Hand the admin role to NEW_ADMIN (current admin must sign)."""
    _run(ctx, lambda d: d.whitelist.set_admin(new_admin))
    _ok(f"Admin is now {new_admin}")


@whitelist.command('list')
@click.pass_context
def whitelist_list(ctx):
    """List whitelisted issuers."""
    issuers = _run(ctx, lambda d: d.whitelist.get_issuers(), save=False)
    table = Table(title=f"Trusted issuers ({len(issuers)})")
    table.add_column("#", justify="right")
    table.add_column("issuer", style="cyan")
    for index, issuer in enumerate(issuers, start=1):
        table.add_row(str(index), issuer)
    console.print(table)


@whitelist.command('check')
@click.argument('issuer')
@click.pass_context
def whitelist_check(ctx, issuer):
    """Exit 0 if ISSUER is whitelisted, 1 otherwise."""
    trusted = _run(ctx, lambda d: d.whitelist.is_whitelisted(issuer), save=False)
    if trusted:
        _ok(f"{issuer} is trusted")
    else:
        click.echo(click.style(f"✗ {issuer} is not trusted", fg="yellow"))
        sys.exit(1)


# ============================================================================
# PROOF GATE
# ============================================================================


@main.group()
def gate():
    """Configure the proof gate and verify proofs."""


@gate.command('init')
@click.option('--admin', required=True, help='Gate admin identity')
@click.option('--ref', 'ref', default=None, help='Whitelist handle (default: configured whitelist)')
@click.pass_context
def gate_init(ctx, admin, ref):
    """Point the gate at a whitelist."""
    def action(d: Deployment) -> str:
        handle = ref or d.config.whitelist_instance
        d.gate.initialize(handle, admin)
        return handle

    handle = _run(ctx, action)
    _ok(f"Gate consults {handle}")


@gate.command('set-ref')
@click.argument('ref')
@click.pass_context
def gate_set_ref(ctx, ref):
    """Repoint the gate at whitelist REF (gate admin must sign)."""
    _run(ctx, lambda d: d.gate.set_issuer_authority_reference(ref))
    _ok(f"Gate consults {ref}")


@gate.command('verify')
@click.option('--issuer', required=True, help='Issuer identity')
@click.option('--proof', 'proof_hex', required=True, help='Proof bytes (hex)')
@click.option('--input', 'inputs', multiple=True, help='Public input (repeatable)')
@click.pass_context
def gate_verify(ctx, issuer, proof_hex, inputs):
    """Verify a proof from a whitelisted issuer."""
    try:
        proof = bytes.fromhex(proof_hex)
    except ValueError:
        raise click.BadParameter("proof must be hex", param_hint="--proof")
    public_inputs = [_parse_input(value) for value in inputs]

    is_valid = _run(ctx, lambda d: d.gate.verify_proof(issuer, proof, public_inputs))
    if is_valid:
        _ok("Proof verified")
    else:
        click.echo(click.style("✗ Proof rejected", fg="yellow"))
        sys.exit(1)


@gate.command('prove')
@click.option('--input', 'inputs', multiple=True, help='Public input (repeatable)')
@click.pass_context
def gate_prove(ctx, inputs):
    """Produce an HMAC proof for the given inputs (hmac backend only)."""
    public_inputs = [_parse_input(value) for value in inputs]

    def action(d: Deployment) -> Optional[bytes]:
        prove = getattr(d.gate.verifier, "prove", None)
        if prove is None:
            raise ValueError(
                f"{d.gate.verifier.backend_name} verifier cannot produce proofs"
            )
        return prove(public_inputs)

    click.echo(_run(ctx, action, save=False).hex())


# ============================================================================
# EVENTS
# ============================================================================


@main.command()
@click.option('--tag', default=None, help='Only show events with this tag')
@click.pass_context
def events(ctx, tag):
    """Show the event log."""
    log = _run(ctx, lambda d: d.ledger.events.all(), save=False)
    table = Table(title="Events")
    table.add_column("tag", style="magenta")
    table.add_column("subject", style="cyan")
    table.add_column("payload")
    for event in log:
        if tag is None or event.tag == tag:
            table.add_row(event.tag, event.subject, str(event.payload))
    console.print(table)


if __name__ == "__main__":
    main()
