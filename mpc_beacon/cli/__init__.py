"""
mpc_beacon.cli
--------------

Command-line entry point for the random-beacon contribution.

Commands:
  - beacon       : Derive the beacon seed and apply the final contribution to a parameters file.
  - verify-chain : Recompute (a slice of) the checkpoints printed by a previous run.
  - seed         : Run the hash chain only; print the final hash and the generator seed words.

Environment:
  MPC_BEACON_INPUT / MPC_BEACON_OUTPUT / MPC_BEACON_FORMAT / MPC_BEACON_QUIET
  provide the defaults for the matching ``beacon`` options; MPC_BEACON_CONFIG
  (or ``--config``) names a JSON/YAML file they override.

Example:
  mpc-beacon beacon -i phase2.params -o phase2.final.params \\
      -h "$BEACON_HEX" -n 10
  mpc-beacon beacon ... | tee transcript.txt
  mpc-beacon verify-chain -t transcript.txt -n 10 --from 0 --to 511
"""

from __future__ import annotations

import dataclasses
import logging
import sys
from typing import List, Optional, Sequence, TextIO

import typer

from mpc_beacon.beacon.chain import checkpoint_interval, derive_beacon, verify_checkpoints
from mpc_beacon.beacon.report import CheckpointLogger
from mpc_beacon.beacon.rng import seed_words
from mpc_beacon.beacon.transcript import parse_checkpoint_lines, parse_final_hash
from mpc_beacon.config import load as load_config
from mpc_beacon.constants import CHECKPOINT_COUNT
from mpc_beacon.errors import BeaconError
from mpc_beacon.params import get_format
from mpc_beacon.pipeline import ContributionPipeline
from mpc_beacon.version import __version__

__all__ = ["app", "main"]

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="mpc-beacon",
    help="Random-beacon contribution for MPC trusted-setup ceremonies.",
    no_args_is_help=True,
    add_completion=False,
)


def _fail(message: str) -> None:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def _root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log diagnostic events to stderr."),
    version: bool = typer.Option(  # noqa: ARG001
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("beacon")
def cmd_beacon(
    input_path: Optional[str] = typer.Option(
        None, "--input", "-i", help="Parameters file to read (default: MPC_BEACON_INPUT or mpc.params)."
    ),
    beacon_hash: str = typer.Option(..., "--hash", "-h", help="Beacon value: 32 bytes as bare hex."),
    iterations: int = typer.Option(..., "--iterations", "-n", help="Hash chain length exponent, in [10, 63]."),
    output_path: Optional[str] = typer.Option(
        None, "--output", "-o", help="Parameters file to write (default: MPC_BEACON_OUTPUT or mpc.params)."
    ),
    tag: int = typer.Option(0, "--tag", help="Progress report interval of the contribution (0 disables)."),
    params_format: Optional[str] = typer.Option(None, "--format", help="Parameters backend name."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not print the 1024 checkpoint lines."),
    config_file: Optional[str] = typer.Option(
        None, "--config", help="JSON/YAML config file (default: MPC_BEACON_CONFIG); env vars override it."
    ),
) -> None:
    """
    Contribute to the parameters with randomness derived from a public beacon.

    The beacon value is hashed 2^n times with SHA-256; the final hash seeds a
    ChaCha20 generator which drives the contribution. Checkpoints printed
    along the way let others re-verify the chain in parallel.
    """
    try:
        cfg = load_config(config_file)
        overrides = {"quiet": quiet or cfg.quiet}
        # an explicit empty value is passed through so validate() rejects it
        if input_path is not None:
            overrides["input_path"] = input_path
        if output_path is not None:
            overrides["output_path"] = output_path
        if params_format is not None:
            overrides["params_format"] = params_format
        cfg = dataclasses.replace(cfg, **overrides)
        cfg.validate()
        fmt = get_format(cfg.params_format)
    except (ValueError, KeyError) as e:
        _fail(f"Invalid configuration: {e.args[0] if e.args else e}")
        return

    pipeline = ContributionPipeline(cfg, params_format=fmt)
    try:
        pipeline.run(beacon_hash, iterations, tag=tag)
    except BeaconError as e:
        logger.debug("beacon run failed in state %s", pipeline.state.value, exc_info=True)
        _fail(str(e))


def _read_transcript(path: str) -> List[str]:
    try:
        if path == "-":
            stream: TextIO = typer.get_text_stream("stdin")
            return stream.read().splitlines()
        with open(path, "r", encoding="utf-8") as f:
            return f.read().splitlines()
    except OSError as e:
        _fail(f"Could not open `{path}`: {e.strerror or e}")
    except UnicodeDecodeError as e:
        _fail(f"Could not read `{path}`: not a UTF-8 text transcript ({e.reason} at byte {e.start})")
    return []


@app.command("verify-chain")
def cmd_verify_chain(
    transcript: str = typer.Option(..., "--transcript", "-t", help="Output of a previous run ('-' for stdin)."),
    iterations: int = typer.Option(..., "--iterations", "-n", help="Hash chain length exponent of that run."),
    first: int = typer.Option(0, "--from", help="First checkpoint number (0-based) of the slice."),
    last: Optional[int] = typer.Option(
        None, "--to", help="Last checkpoint number of the slice (default: through the final hash)."
    ),
) -> None:
    """
    Recompute the hash chain between consecutive checkpoints of a transcript.

    Checkpoint number k sits at chain index k * 2^(n-10). Verifiers can split
    the work with overlapping ranges, e.g. --from 0 --to 511 and --from 511.
    Without --to the segment from the last checkpoint to the printed final
    hash is checked too.
    """
    try:
        interval = checkpoint_interval(iterations)
        lines = _read_transcript(transcript)
        checkpoints = parse_checkpoint_lines(lines)
        final = parse_final_hash(lines) if last is None else None
    except BeaconError as e:
        _fail(str(e))
        return

    upper = CHECKPOINT_COUNT - 1 if last is None else last
    if not (0 <= first <= upper < CHECKPOINT_COUNT):
        _fail(f"Invalid checkpoint range [{first}, {upper}]: expected 0 <= from <= to < {CHECKPOINT_COUNT}")
    selected = [cp for cp in checkpoints if first * interval <= cp.index <= upper * interval]
    segments = len(selected) - 1 + (1 if final is not None and selected else 0)
    if segments < 1:
        _fail("Nothing to verify: the selected range holds fewer than two checkpoints")

    try:
        mismatches = verify_checkpoints(selected, iterations, final=final)
    except ValueError as e:
        _fail(str(e))
        return

    for bad in mismatches:
        typer.echo(str(bad))
    if mismatches:
        _fail(f"FAILED: {len(mismatches)} of {segments} segments do not match")
    typer.echo(f"OK: {segments} segments verified")


@app.command("seed")
def cmd_seed(
    beacon_hash: str = typer.Option(..., "--hash", "-h", help="Beacon value: 32 bytes as bare hex."),
    iterations: int = typer.Option(..., "--iterations", "-n", help="Hash chain length exponent, in [10, 63]."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not print the 1024 checkpoint lines."),
) -> None:
    """Run the beacon chain alone and print the final hash and the 8 seed words."""
    reporter = CheckpointLogger(quiet=quiet)
    try:
        derivation = derive_beacon(beacon_hash, iterations, on_checkpoint=reporter.checkpoint)
    except BeaconError as e:
        _fail(str(e))
        return
    reporter.final_hash(derivation.final)
    typer.echo("Seed words: " + " ".join(f"{w:08x}" for w in seed_words(derivation.final)))


def main(argv: Optional[Sequence[str]] = None) -> None:  # pragma: no cover - thin wrapper
    """Entry-point for the `mpc-beacon` console script and `python -m mpc_beacon.cli`."""
    try:
        app(args=list(argv) if argv is not None else None, prog_name="mpc-beacon")
    except KeyboardInterrupt:
        typer.echo("", err=True)
        sys.exit(130)


if __name__ == "__main__":  # pragma: no cover
    main()
