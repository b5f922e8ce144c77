"""
Parse the checkpoint transcript printed by a beacon run.

A transcript is the stdout of ``mpc-beacon beacon``: lines of the form
``<index>: <64 hex chars>`` plus the ``Final result of beacon: <hex>`` line.
Anything else (banners, fingerprint block) is ignored, so the raw console log
can be fed back in unchanged.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from mpc_beacon.beacon.report import FINAL_HASH_PREFIX
from mpc_beacon.errors import TranscriptFormatError
from mpc_beacon.types.core import Checkpoint

_CHECKPOINT_RE = re.compile(r"^\s*(\d+):\s*(\S*)\s*$")
_HASH_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def parse_checkpoint_lines(lines: Iterable[str]) -> List[Checkpoint]:
    """
    Extract checkpoints from transcript *lines*, in file order.

    Raises TranscriptFormatError when a line looks like a checkpoint
    (``<digits>:``) but does not carry a 32-byte hex hash.
    """
    out: List[Checkpoint] = []
    for line_no, line in enumerate(lines, start=1):
        m = _CHECKPOINT_RE.match(line)
        if not m:
            continue
        index, digest = m.group(1), m.group(2)
        if not _HASH_RE.match(digest):
            raise TranscriptFormatError(line_no=line_no, line=line.rstrip("\n"))
        out.append(Checkpoint(index=int(index), digest=bytes.fromhex(digest)))
    return out


def parse_final_hash(lines: Iterable[str]) -> Optional[bytes]:
    """Return the ``Final result of beacon`` digest, or None if absent."""
    for line_no, line in enumerate(lines, start=1):
        s = line.strip()
        if not s.startswith(FINAL_HASH_PREFIX.strip()):
            continue
        value = s[len(FINAL_HASH_PREFIX.strip()):].strip()
        if not _HASH_RE.match(value):
            raise TranscriptFormatError(line_no=line_no, line=line.rstrip("\n"), reason="malformed final hash")
        return bytes.fromhex(value)
    return None


__all__ = ["parse_checkpoint_lines", "parse_final_hash"]
