import functools
import json
import logging
import random
from pathlib import Path

import click

from circbridge.contract.verifier import create_verifier_sol_file
from circbridge.core.errors import CircBridgeError
from circbridge.core.r1cs_io import load_r1cs, summarize_r1cs
from circbridge.core.witness_io import load_inputs_json, load_witness, witness_to_json
from circbridge.groth.backend import Groth16Backend, load_backend
from circbridge.groth.prover import generate_random_parameters, prove, verify
from circbridge.groth.serialize import (load_proof_json, proof_to_json_file,
                                        proving_key_json_file, verification_key_json_file)
from circbridge.synth.cs import TestConstraintSystem

logger = logging.getLogger("circbridge")

ENV_PREFIX = "CIRCBRIDGE"

_in_file = click.Path(exists=True, dir_okay=False)
_out_file = click.Path(dir_okay=False)


def _handle_errors(fn):
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except CircBridgeError as e:
            raise click.ClickException(f"{type(e).__name__}: {e}") from e
    return wrapper


def _rng(seed):
    # fixed seed for reproducible runs, OS randomness otherwise
    return random.Random(seed) if seed is not None else random.SystemRandom()


def _backend(ctx: click.Context) -> Groth16Backend:
    obj = ctx.ensure_object(dict)
    if obj.get("backend") is None:
        path = obj.get("backend_path")
        if not path:
            raise click.UsageError(
                f"No proving backend configured: pass --backend module:attr or set {ENV_PREFIX}_BACKEND"
            )
        try:
            obj["backend"] = load_backend(path)
        except (ImportError, ValueError, TypeError) as e:
            raise click.ClickException(str(e)) from e
    return obj["backend"]


def _read_params(backend: Groth16Backend, path):
    with open(path, "rb") as f:
        return backend.read_parameters(f)


@click.group()
@click.option("--backend", "backend_path", default=None,
              help="Groth16 backend implementation, as module:attr")
@click.option("-v", "--verbose", count=True, help="-v for progress, -vv for codec details")
@click.pass_context
def cli(ctx, backend_path, verbose):
    """circbridge command line interface"""
    level = logging.DEBUG if verbose > 1 else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    obj = ctx.ensure_object(dict)
    if backend_path:
        obj["backend_path"] = backend_path


@cli.command(name="info")
@click.option("--circuit", type=_in_file, default="circuit.r1cs", show_default=True,
              help="Circuit in binary .r1cs or JSON form")
@_handle_errors
def info_cmd(circuit):
    """Summarize an R1CS file."""
    r, mapping = load_r1cs(circuit)
    summary = summarize_r1cs(r)
    summary["has_wire_mapping"] = mapping is not None
    click.echo(json.dumps(summary, indent=2))


@cli.command(name="check")
@click.option("--circuit", type=_in_file, default="circuit.r1cs", show_default=True)
@click.option("--witness", type=_in_file, default="witness.wtns", show_default=True,
              help="Witness in binary .wtns or JSON form")
@_handle_errors
def check_cmd(circuit, witness):
    """Check that a witness satisfies every constraint."""
    r, mapping = load_r1cs(circuit)
    cs = TestConstraintSystem()
    r.circuit(load_witness(witness), mapping).synthesize(cs)
    bad = cs.which_is_unsatisfied()
    if bad is not None:
        raise click.ClickException(f"Witness does not satisfy R1CS (first failing: {bad})")
    click.echo(f"Witness satisfies all {cs.num_constraints} constraints")


@cli.command(name="witness")
@click.option("--witness", type=_in_file, default="witness.wtns", show_default=True)
@click.option("--out", type=_out_file, required=False, help="Write JSON here instead of stdout")
@_handle_errors
def witness_cmd(witness, out):
    """Convert a witness to a JSON array of decimal strings."""
    s = witness_to_json(load_witness(witness))
    if out:
        Path(out).write_text(s)
    else:
        click.echo(s)


@cli.command(name="public")
@click.option("--circuit", type=_in_file, default="circuit.r1cs", show_default=True)
@click.option("--witness", type=_in_file, default="witness.wtns", show_default=True)
@click.option("--public", "public_path", type=_out_file, default="public.json", show_default=True)
@_handle_errors
def public_cmd(circuit, witness, public_path):
    """Extract the public inputs of a witness."""
    r, mapping = load_r1cs(circuit)
    Path(public_path).write_text(r.circuit(load_witness(witness), mapping).public_inputs_json())
    logger.info("Public inputs saved to %s", public_path)


@cli.command(name="setup")
@click.option("--circuit", type=_in_file, default="circuit.r1cs", show_default=True)
@click.option("--params", "params_path", type=_out_file, default="params.bin", show_default=True)
@click.option("--seed", type=int, default=None, help="Seed the RNG (tests and reproducible setups only)")
@click.pass_context
@_handle_errors
def setup_cmd(ctx, circuit, params_path, seed):
    """Generate Groth16 parameters for a circuit."""
    backend = _backend(ctx)
    r, _ = load_r1cs(circuit)
    params = generate_random_parameters(r.circuit(), backend, _rng(seed))
    with open(params_path, "wb") as f:
        backend.write_parameters(params, f)
    logger.info("Parameters saved to %s", params_path)


@cli.command(name="prove")
@click.option("--circuit", type=_in_file, default="circuit.r1cs", show_default=True)
@click.option("--witness", type=_in_file, default="witness.wtns", show_default=True)
@click.option("--params", "params_path", type=_in_file, default="params.bin", show_default=True)
@click.option("--proof", "proof_path", type=_out_file, default="proof.json", show_default=True)
@click.option("--public", "public_path", type=_out_file, default="public.json", show_default=True)
@click.option("--seed", type=int, default=None)
@click.pass_context
@_handle_errors
def prove_cmd(ctx, circuit, witness, params_path, proof_path, public_path, seed):
    """Create a proof and write it with its public inputs."""
    backend = _backend(ctx)
    r, mapping = load_r1cs(circuit)
    params = _read_params(backend, params_path)
    instance = r.circuit(load_witness(witness), mapping)
    # read before proving, synthesis consumes the instance
    public_json = instance.public_inputs_json()
    proof = prove(instance, params, backend, _rng(seed))
    proof_to_json_file(proof, proof_path)
    Path(public_path).write_text(public_json)
    logger.info("Proof saved to %s, public inputs to %s", proof_path, public_path)


@cli.command(name="verify")
@click.option("--params", "params_path", type=_in_file, default="params.bin", show_default=True)
@click.option("--proof", "proof_path", type=_in_file, default="proof.json", show_default=True)
@click.option("--public", "public_path", type=_in_file, default="public.json", show_default=True)
@click.pass_context
@_handle_errors
def verify_cmd(ctx, params_path, proof_path, public_path):
    """Verify a proof against public inputs."""
    backend = _backend(ctx)
    params = _read_params(backend, params_path)
    ok = verify(params, load_proof_json(proof_path), load_inputs_json(public_path), backend)
    if not ok:
        raise click.ClickException("Proof is invalid")
    click.echo("Proof is correct")


@cli.command(name="generate-verifier")
@click.option("--params", "params_path", type=_in_file, default="params.bin", show_default=True)
@click.option("--verifier", "verifier_path", type=_out_file, default="verifier.sol", show_default=True)
@click.option("--strict/--no-strict", default=False, show_default=True,
              help="Fail on points at infinity instead of writing a placeholder")
@click.pass_context
@_handle_errors
def generate_verifier_cmd(ctx, params_path, verifier_path, strict):
    """Render the Solidity verifier contract."""
    params = _read_params(_backend(ctx), params_path)
    create_verifier_sol_file(params.vk, verifier_path, strict=strict)
    logger.info("Verifier contract saved to %s", verifier_path)


@cli.command(name="export-keys")
@click.option("--circuit", type=_in_file, default="circuit.r1cs", show_default=True)
@click.option("--params", "params_path", type=_in_file, default="params.bin", show_default=True)
@click.option("--pk", "pk_path", type=_out_file, default="proving_key.json", show_default=True)
@click.option("--vk", "vk_path", type=_out_file, default="verification_key.json", show_default=True)
@click.pass_context
@_handle_errors
def export_keys_cmd(ctx, circuit, params_path, pk_path, vk_path):
    """Export proving and verification keys as JSON."""
    params = _read_params(_backend(ctx), params_path)
    r, _ = load_r1cs(circuit)
    proving_key_json_file(params, r.circuit(), pk_path)
    verification_key_json_file(params.vk, vk_path)
    logger.info("Keys saved to %s and %s", pk_path, vk_path)


def main():
    cli(auto_envvar_prefix=ENV_PREFIX)

if __name__ == "__main__":
    main()
