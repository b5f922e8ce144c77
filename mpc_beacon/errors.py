"""
Beacon contribution errors.

A small, typed hierarchy of exceptions raised while applying a random-beacon
contribution (load → derive → seed → contribute → persist). Callers can catch
the base `BeaconError` to handle every failure of a run, or the concrete
subclasses for more granular control.

Every error embeds the offending path or value so the message alone tells the
operator what to fix. The first error aborts a run; nothing is retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class BeaconError(Exception):
    """Base class for all beacon contribution errors."""
    pass


@dataclass(eq=False)
class InputOpenError(BeaconError):
    """
    Raised when the parameters file cannot be opened for reading.

    Attributes:
        path: The input path as given by the caller.
        reason: The underlying OS error text.
    """
    path: str
    reason: str

    def __str__(self) -> str:
        return f"Could not open `{self.path}`: {self.reason}"


@dataclass(eq=False)
class ParameterFormatError(BeaconError):
    """
    Raised when serialized parameters are malformed or internally inconsistent.

    Attributes:
        source: Path (or stream label) the parameters were read from.
        reason: What the structural verification rejected.
    """
    source: str
    reason: str

    def __str__(self) -> str:
        return f"Could not read `{self.source}`: {self.reason}"


@dataclass(eq=False)
class BeaconFormatError(BeaconError):
    """
    Raised when the beacon value is not hex or does not decode to 32 bytes.

    Attributes:
        value: The beacon string as supplied.
        reason: 'not-hex' or 'length'.
        length: Decoded byte length when reason == 'length'.
    """
    value: str
    reason: str
    length: Optional[int] = None

    def __str__(self) -> str:
        if self.reason == "length":
            return (
                f"Beacon hash should be 32 bytes long, "
                f"got {self.length} bytes from {self.value!r}"
            )
        return f"Beacon hash should be in hexadecimal format, got {self.value!r}"


@dataclass(eq=False)
class IterationRangeError(BeaconError):
    """
    Raised when the iteration exponent n is outside [10, 63].

    Attributes:
        iterations: The rejected value.
        minimum / maximum: The accepted bounds (inclusive).
    """
    iterations: Any
    minimum: int = 10
    maximum: int = 63

    def __str__(self) -> str:
        return (
            f"Number of hash iterations should be in the [{self.minimum}, {self.maximum}] "
            f"range, got {self.iterations!r}"
        )


@dataclass(eq=False)
class ContributionError(BeaconError):
    """
    Raised when the parameters backend returns an unusable contribution
    fingerprint (not bytes, or empty).

    The parameters may already be transformed in memory; nothing is written.
    """
    source: str
    reason: str

    def __str__(self) -> str:
        return f"Contribution to `{self.source}` failed: {self.reason}"


@dataclass(eq=False)
class OutputCreateError(BeaconError):
    """
    Raised when the output file cannot be created.

    Attributes:
        path: Output path.
        reason: The underlying OS error text.
    """
    path: str
    reason: str

    def __str__(self) -> str:
        return f"Could not create `{self.path}`: {self.reason}"


@dataclass(eq=False)
class SerializationWriteError(BeaconError):
    """
    Raised when writing the updated parameters fails part-way.

    The output file may be partially written; there is no atomic replace.
    """
    path: str
    reason: str

    def __str__(self) -> str:
        return f"Could not write parameters to `{self.path}`: {self.reason}"


@dataclass(eq=False)
class PipelineStateError(BeaconError):
    """
    Raised when a pipeline step is invoked out of order (including a second
    contribution on the same in-memory parameters).
    """
    step: str
    expected: str
    actual: str

    def __str__(self) -> str:
        return (
            f"Cannot run step '{self.step}' in state {self.actual} "
            f"(expected {self.expected})"
        )


@dataclass(eq=False)
class TranscriptFormatError(BeaconError):
    """Raised when a checkpoint transcript line cannot be parsed."""
    line_no: int
    line: str
    reason: str = "malformed checkpoint line"

    def __str__(self) -> str:
        return f"Transcript line {self.line_no}: {self.reason}: {self.line!r}"


__all__ = [
    "BeaconError",
    "InputOpenError",
    "ParameterFormatError",
    "BeaconFormatError",
    "IterationRangeError",
    "ContributionError",
    "OutputCreateError",
    "SerializationWriteError",
    "PipelineStateError",
    "TranscriptFormatError",
]
