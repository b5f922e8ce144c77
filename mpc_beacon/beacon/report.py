"""
Operator-facing progress report for a beacon contribution.

The lines printed here form the public transcript of the run: the 1024
``index: hash`` checkpoints can be split between verifiers (see
``mpc-beacon verify-chain``), and the grouped fingerprint is meant to be
compared visually against the ceremony log. Nothing printed here is persisted
by the pipeline, and dropping the reporter does not change any output file.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import typer

from mpc_beacon.constants import FINGERPRINT_GROUP_BYTES, FINGERPRINT_LINE_BYTES
from mpc_beacon.types.core import Checkpoint
from mpc_beacon.utils.bytes import chunks

logger = logging.getLogger(__name__)

Echo = Callable[[str], None]

FINAL_HASH_PREFIX = "Final result of beacon: "
FINGERPRINT_HEADER = "The BLAKE2b hash of your contribution is:"


def format_checkpoint(cp: Checkpoint) -> str:
    return f"{cp.index}: {cp.hex}"


def format_fingerprint(fingerprint: bytes) -> str:
    """
    Render a fingerprint as tab-indented lines of 16 bytes, each split into
    4-byte hex groups followed by a space.
    """
    lines = []
    for line in chunks(fingerprint, FINGERPRINT_LINE_BYTES):
        groups = "".join(g.hex() + " " for g in chunks(line, FINGERPRINT_GROUP_BYTES))
        lines.append("\t" + groups)
    return "\n".join(lines)


class CheckpointLogger:
    """
    Streams chain progress and the contribution outcome to the operator.

    Args:
        echo:  line sink (defaults to ``typer.echo``; tests pass ``list.append``).
        quiet: suppress the per-checkpoint lines, keep everything else.
    """

    def __init__(self, echo: Optional[Echo] = None, *, quiet: bool = False) -> None:
        self._echo: Echo = echo if echo is not None else typer.echo
        self.quiet = quiet
        self.checkpoints_seen = 0

    def creating_rng(self) -> None:
        self._echo("Creating a beacon RNG")

    def checkpoint(self, cp: Checkpoint) -> None:
        self.checkpoints_seen += 1
        if not self.quiet:
            self._echo(format_checkpoint(cp))

    def final_hash(self, digest: bytes) -> None:
        logger.info("beacon final hash %s", digest.hex())
        self._echo(FINAL_HASH_PREFIX + digest.hex())
        self._echo("")

    def contributing(self, source: str) -> None:
        self._echo(f"Contributing to `{source}`...")

    def fingerprint(self, fingerprint: bytes) -> None:
        logger.info("contribution fingerprint %s", fingerprint.hex())
        self._echo(FINGERPRINT_HEADER)
        self._echo("")
        self._echo(format_fingerprint(fingerprint))

    def written(self, destination: str) -> None:
        self._echo("")
        self._echo(f"Your contribution has been written to `{destination}`")


__all__ = [
    "CheckpointLogger",
    "FINAL_HASH_PREFIX",
    "FINGERPRINT_HEADER",
    "format_checkpoint",
    "format_fingerprint",
]
