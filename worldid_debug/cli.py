"""
Command-Line Interface for the World ID debugging tools

Generate identities, request inclusion proofs, produce Semaphore proofs and
check them locally, with the sequencer, the Developer Portal and on-chain.
"""

import json
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import click

from worldid_debug import __version__
from worldid_debug.records import StoredProof, read_stored_proof, write_stored_proof
from worldid_debug.services.diagnostics import ProofSubmission, check_proof
from worldid_debug.services.onchain import OnChainVerifier
from worldid_debug.services.portal import DevPortalClient
from worldid_debug.services.sequencer import SequencerClient
from worldid_debug.settings import Settings, load_settings
from worldid_debug.zk_protocol.encoding import EncodingMode, parse_field_element
from worldid_debug.zk_protocol.exceptions import (
    ConfigurationError,
    HashingInputError,
    WorldIDDebugError,
)
from worldid_debug.zk_protocol.hashing import generate_external_nullifier, generate_signal, to_digest
from worldid_debug.zk_protocol.identity import Identity
from worldid_debug.zk_protocol.snark.assets import (
    CircuitArtifacts,
    load_verification_key,
    resolve_artifacts,
    resolve_verification_key,
)
from worldid_debug.zk_protocol.snark.prover import NodeIdentityHasher, SnarkjsBackend
from worldid_debug.zk_protocol.snark.verifier import assert_verified_locally
from worldid_debug.zk_protocol.witness import FullProofRecord, generate_proof

logger = logging.getLogger(__name__)

_ENCODING_CHOICES = [mode.value for mode in EncodingMode]


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--env-file',
    type=click.Path(dir_okay=False),
    default='.env',
    show_default=True,
    help='dotenv file with SEQUENCER_URI, AUTH_TOKEN, APP_ID, ...'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Enable debug logging'
)
@click.pass_context
def main(ctx, env_file, verbose):
    """
    World ID debugging tools.

    Walks a Semaphore identity through insertion, inclusion proof, proof
    generation and verification, reporting the stage that fails.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["env_file"] = env_file
    ctx.obj["verbose"] = verbose


@main.command()
@click.option(
    '--seed',
    type=str,
    help='Derive the identity from this seed instead of randomly'
)
@click.option(
    '--no-insert',
    is_flag=True,
    help='Do not insert the commitment with the sequencer'
)
@click.option(
    '--commitment',
    type=str,
    help='Known identity commitment (skips the identity library)'
)
@click.pass_context
def identity(ctx, seed, no_insert, commitment):
    """
    Generate a Semaphore identity and insert its commitment.

    Examples:

        # Random identity, inserted into the staging tree
        worldid-debug identity

        # Reproducible identity, not inserted
        worldid-debug identity --seed alice --no-insert
    """
    settings = _load(ctx)

    if not no_insert:
        with _stage("configuration"):
            settings.require_auth_token()

    new_identity = Identity.from_message(seed) if seed else Identity.random()
    with _stage("computing identity commitment"):
        new_identity = _with_commitment(new_identity, commitment, settings)

    click.echo(f"ℹ️  encoded identity commitment: {new_identity.encoded_commitment}")

    if not no_insert:
        sequencer = _sequencer(settings)
        with _stage("inserting identity commitment"):
            sequencer.insert_identity(new_identity.commitment, group_id=settings.group_id)
        click.echo(click.style("✓ identity commitment inserted!", fg="green"))

    click.echo(f"ℹ️  serialized identity: {new_identity.serialize()}")


@main.command()
@click.option(
    '--id',
    'raw_id',
    required=True,
    type=str,
    help='Serialized identity, as printed by the identity command'
)
@click.option(
    '--commitment',
    type=str,
    help='Known identity commitment (skips the identity library)'
)
@click.option(
    '--signal',
    type=str,
    default='0x0000000000000000000000000000000000000000',
    show_default=True,
    help='Signal to bind to the proof (e.g. a wallet address)'
)
@click.option(
    '--app-id',
    type=str,
    help='App id (default: APP_ID)'
)
@click.option(
    '--action',
    type=str,
    help='Action (default: ACTION, empty for app-wide)'
)
@click.option(
    '--depth',
    type=int,
    help='Merkle tree depth (default: TREE_DEPTH, 30)'
)
@click.option(
    '--no-verify',
    is_flag=True,
    help='Skip sequencer, Developer Portal and on-chain verification'
)
@click.option(
    '--out',
    type=click.Path(dir_okay=False),
    help='Write the proof record (CBOR) to this file'
)
@click.pass_context
def prove(ctx, raw_id, commitment, signal, app_id, action, depth, no_verify, out):
    """
    Fetch an inclusion proof, generate a proof and verify it.

    Examples:

        worldid-debug prove --id '["0x1f..","0x2a.."]'

        worldid-debug prove --id '["0x1f..","0x2a.."]' --no-verify --out proof.cbor
    """
    settings = _load(ctx, app_id=app_id, action=action, tree_depth=depth)

    with _stage("configuration"):
        settings.require_auth_token()
        app_id = settings.require_app_id()
    action = settings.action

    with _stage("reading identity"):
        try:
            user_identity = Identity.deserialize(raw_id)
        except ValueError as exc:
            raise ConfigurationError(f"invalid identity: {exc}") from exc
        user_identity = _with_commitment(user_identity, commitment, settings)

    click.echo(
        f"ℹ️  fetching inclusion proof for commitment {user_identity.encoded_commitment}"
    )
    sequencer = _sequencer(settings)
    with _stage("fetching inclusion proof"):
        inclusion = sequencer.inclusion_proof(user_identity.commitment)
    if inclusion is None:
        click.echo(
            click.style(
                "⚠️  inclusion proof not ready yet, try again in a few seconds",
                fg="yellow",
            )
        )
        return
    click.echo("ℹ️  inclusion proof fetched, continuing...")

    with _stage("adapting inclusion proof"):
        merkle_proof = inclusion.to_merkle_proof(depth=settings.tree_depth)

    with _stage("hashing public inputs"):
        signal_hash = generate_signal(signal)
        external_nullifier = generate_external_nullifier(app_id, action)

    artifacts = _artifacts(settings)
    with _stage("generating proof"):
        record = generate_proof(
            user_identity,
            merkle_proof,
            external_nullifier,
            signal_hash,
            SnarkjsBackend(),
            artifacts,
        )

    click.echo(click.style("🔑 proof generated!", fg="green"))
    _echo_record(record, inclusion.root)

    _verify_local(record, artifacts.verification_key_path, artifacts.depth)

    if not no_verify:
        _verify_remote(
            record,
            settings,
            merkle_root=inclusion.root,
            raw_signal=signal,
            action=action,
            sequencer=True,
            portal=True,
            onchain=True,
        )

    if out:
        stored = StoredProof(
            record=record,
            app_id=app_id,
            action=action,
            raw_signal=signal,
            depth=merkle_proof.depth,
        )
        with _stage("saving proof record"):
            write_stored_proof(stored, out)
        click.echo(click.style(f"✓ proof record saved to: {out}", fg="green"))


@main.command()
@click.argument('record_path', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--local/--no-local',
    default=True,
    help='Verify with the local verification key'
)
@click.option(
    '--sequencer',
    is_flag=True,
    help='Verify with the sequencer'
)
@click.option(
    '--portal',
    is_flag=True,
    help='Verify with the Developer Portal'
)
@click.option(
    '--onchain',
    is_flag=True,
    help='Verify with the on-chain verifier'
)
@click.pass_context
def verify(ctx, record_path, local, sequencer, portal, onchain):
    """
    Verify a saved proof record.

    Examples:

        worldid-debug verify proof.cbor --portal --onchain
    """
    with _stage("reading proof record"):
        stored = read_stored_proof(record_path)
    settings = _load(ctx, tree_depth=stored.depth)
    record = stored.record
    _echo_record(record, record.encoded_merkle_root)

    if local:
        with _stage("resolving verification key"):
            try:
                vk_path = resolve_verification_key(settings.artifacts_dir, stored.depth)
            except ValueError as exc:
                raise ConfigurationError(str(exc)) from exc
        _verify_local(record, vk_path, stored.depth)

    _verify_remote(
        record,
        settings,
        merkle_root=record.encoded_merkle_root,
        raw_signal=stored.raw_signal,
        action=stored.action,
        app_id=stored.app_id,
        sequencer=sequencer,
        portal=portal,
        onchain=onchain,
    )


@main.command(name='check-proof')
@click.option('--root', required=True, type=str, help='Merkle root as submitted')
@click.option('--nullifier-hash', required=True, type=str, help='Nullifier hash as submitted')
@click.option('--signal', required=True, type=str, help='Raw signal, before any encoding')
@click.option(
    '--external-nullifier',
    required=True,
    type=str,
    help='Raw external nullifier, before any encoding'
)
@click.option(
    '--proof',
    required=True,
    nargs=8,
    type=str,
    help='The eight proof values as submitted'
)
@click.option(
    '--signal-encoding',
    type=click.Choice(_ENCODING_CHOICES, case_sensitive=False),
    default=EncodingMode.HASHED_BYTES.value,
    show_default=True,
    help='How the signal was encoded when the proof was generated'
)
@click.option(
    '--nullifier-encoding',
    type=click.Choice(_ENCODING_CHOICES, case_sensitive=False),
    default=EncodingMode.HASHED_STRING.value,
    show_default=True,
    help='How the external nullifier was encoded when the proof was generated'
)
@click.option(
    '--group-id',
    type=int,
    help='Group id (default: GROUP_ID)'
)
@click.pass_context
def check_proof_command(
    ctx,
    root,
    nullifier_hash,
    signal,
    external_nullifier,
    proof,
    signal_encoding,
    nullifier_encoding,
    group_id,
):
    """
    Check a submitted proof on-chain with explicit input encodings.

    Examples:

        worldid-debug check-proof --root 0x0fbf.. --nullifier-hash 0x15b5.. \\
            --signal 0x0000000000000000000000000000000000000000 \\
            --external-nullifier 0 --proof 9874.. 8525.. ... \\
            --signal-encoding bytes --nullifier-encoding string
    """
    settings = _load(ctx, group_id=group_id)
    submission = ProofSubmission(
        root=root,
        nullifier_hash=nullifier_hash,
        signal=signal,
        external_nullifier=external_nullifier,
        proof=proof,
    )

    with _stage("connecting to verifier"):
        verifier = OnChainVerifier.from_settings(settings)
    with _stage("checking proof on-chain"):
        result = check_proof(
            verifier,
            submission,
            signal_mode=signal_encoding,
            nullifier_mode=nullifier_encoding,
            group_id=settings.group_id,
        )

    click.echo(f"  signal hash:             {to_digest(result.signal_hash)}")
    click.echo(f"  external nullifier hash: {to_digest(result.external_nullifier_hash)}")
    if result.ok:
        click.echo(click.style("✓ all good, no error!", fg="green"))
        return

    click.echo(click.style(f"✗ verifier rejected the proof: {result.error}", fg="red"), err=True)
    if result.hint:
        click.echo(f"  {result.hint}", err=True)
    sys.exit(1)


@main.command()
def version():
    """Show version information."""
    click.echo(f"\nworldid-debug v{__version__}")
    click.echo("Developer tooling, not for production use\n")


@contextmanager
def _stage(name: str):
    try:
        yield
    except WorldIDDebugError as exc:
        _report_failure(name, exc)
        sys.exit(1)


def _report_failure(stage: str, exc: WorldIDDebugError) -> None:
    click.echo(click.style(f"\n✗ {stage} failed: {exc}", fg="red"), err=True)
    payload = getattr(exc, "payload", None)
    if payload is not None:
        if isinstance(payload, (dict, list)):
            payload = json.dumps(payload, indent=2)
        click.echo(f"{payload}", err=True)
    logger.debug("stage %r failed", stage, exc_info=exc)


def _load(ctx, **overrides) -> Settings:
    with _stage("configuration"):
        return load_settings(env_file=ctx.obj["env_file"], **overrides)


def _with_commitment(
    identity_: Identity, commitment: Optional[str], settings: Settings
) -> Identity:
    if commitment is not None:
        try:
            value = parse_field_element(commitment)
        except HashingInputError as exc:
            raise ConfigurationError(f"invalid commitment: {exc}") from exc
        return Identity(identity_.trapdoor, identity_.nullifier, value)
    return identity_.with_commitment(NodeIdentityHasher(cwd=settings.artifacts_dir.parent))


def _sequencer(settings: Settings) -> SequencerClient:
    return SequencerClient(
        settings.sequencer_uri,
        settings.auth_token,
        timeout=settings.http_timeout,
    )


def _artifacts(settings: Settings) -> CircuitArtifacts:
    with _stage("resolving circuit artifacts"):
        try:
            return resolve_artifacts(settings.artifacts_dir, settings.tree_depth)
        except (FileNotFoundError, ValueError) as exc:
            raise ConfigurationError(str(exc)) from exc


def _echo_record(record: FullProofRecord, merkle_root: str) -> None:
    click.echo(f"  nullifier hash: {record.encoded_nullifier_hash}")
    click.echo(f"  merkle root:    {merkle_root}")
    click.echo(f"  packed proof:   {record.encoded_proof}")
    click.echo(f"  proof:          {[str(v) for v in record.proof]}")


def _verify_local(
    record: FullProofRecord, vk_path: Optional[Path], depth: int
) -> None:
    if vk_path is None:
        click.echo(
            click.style("⚠️  no verification_key.json found, skipping local check", fg="yellow")
        )
        return
    with _stage("verifying proof locally"):
        try:
            vk = load_verification_key(vk_path)
        except (OSError, ValueError) as exc:
            raise ConfigurationError(f"unreadable verification key: {exc}") from exc
        try:
            assert_verified_locally(record, vk, depth)
        except ValueError as exc:
            raise ConfigurationError(f"unusable verification key {vk_path}: {exc}") from exc
    click.echo(click.style("☑️  proof verified locally!", fg="green"))


def _verify_remote(
    record: FullProofRecord,
    settings: Settings,
    *,
    merkle_root: str,
    raw_signal: str,
    action: str,
    app_id: Optional[str] = None,
    sequencer: bool,
    portal: bool,
    onchain: bool,
) -> None:
    if sequencer:
        click.echo("Verifying proof with the sequencer...")
        with _stage("sequencer verification"):
            _sequencer(settings).verify_semaphore_proof(record)
        click.echo(click.style("✓ proof verified with the sequencer!", fg="green"))

    if portal:
        click.echo("Verifying proof with the Developer Portal...")
        with _stage("Developer Portal verification"):
            DevPortalClient(settings.dev_portal_url, timeout=settings.http_timeout).verify(
                app_id or settings.require_app_id(),
                record,
                merkle_root=merkle_root,
                signal=raw_signal,
                action=action,
                credential_type=settings.credential_type,
            )
        click.echo(click.style("✓ proof verified with the Developer Portal!", fg="green"))

    if onchain:
        click.echo("Verifying proof on-chain...")
        with _stage("on-chain verification"):
            OnChainVerifier.from_settings(settings).verify(record, settings.group_id)
        click.echo(click.style("✓ proof verified on-chain!", fg="green"))


if __name__ == "__main__":
    main()
