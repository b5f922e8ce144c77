"""
Apply one random-beacon contribution to ceremony parameters.

The pipeline owns the parameters for the whole run and walks a fixed state
machine; every step checks it is called from the right state:

    IDLE → LOADED → BEACON_DERIVED → SEEDED → CONTRIBUTED → PERSISTED → DONE
                      (any failure) → FAILED

DONE and FAILED are terminal: a pipeline runs once, never retries and never
resumes. The contribution is not idempotent (a second call would transform
the parameters again), so the state machine is also what guarantees it is
applied exactly once.

:meth:`ContributionPipeline.run` is the file-based driver used by the CLI.
It validates the beacon value and the iteration count before touching any
file, reads and closes the input before any mutation, and creates the output
file only after the contribution succeeded. The individual steps (``load``,
``derive``, ``seed``, ``contribute``, ``persist``) work on caller-provided
streams.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from typing import BinaryIO, Iterator, Optional, Tuple, TypeVar

from mpc_beacon.beacon.chain import BeaconChain, check_iterations, parse_beacon_hash
from mpc_beacon.beacon.report import CheckpointLogger
from mpc_beacon.beacon.rng import ChaChaRng, seed_words
from mpc_beacon.config import BeaconConfig
from mpc_beacon.errors import (
    BeaconError,
    BeaconFormatError,
    ContributionError,
    InputOpenError,
    IterationRangeError,
    OutputCreateError,
    ParameterFormatError,
    PipelineStateError,
    SerializationWriteError,
)
from mpc_beacon.metrics import METRICS, Metrics
from mpc_beacon.params import CeremonyParameters, ParametersFormat, get_format
from mpc_beacon.types.core import BeaconDerivation, ContributionReceipt

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class PipelineState(str, Enum):
    IDLE = "idle"
    LOADED = "loaded"
    BEACON_DERIVED = "beacon_derived"
    SEEDED = "seeded"
    CONTRIBUTED = "contributed"
    PERSISTED = "persisted"
    DONE = "done"
    FAILED = "failed"


_OUTCOMES = (
    (InputOpenError, "input_open"),
    (ParameterFormatError, "parameter_format"),
    (BeaconFormatError, "beacon_format"),
    (IterationRangeError, "iteration_range"),
    (ContributionError, "contribution"),
    (OutputCreateError, "output_create"),
    (SerializationWriteError, "serialization_write"),
)


def _outcome(err: BaseException) -> str:
    for kind, label in _OUTCOMES:
        if isinstance(err, kind):
            return label
    return "error"


def _os_reason(e: OSError) -> str:
    return e.strerror or str(e)


class ContributionPipeline:
    """
    One beacon contribution run.

    Args:
        config:        default paths and backend name (``BeaconConfig()`` if omitted)
        params_format: parameters backend; looked up from ``config.params_format`` if omitted
        reporter:      operator report sink; a ``CheckpointLogger`` honouring ``config.quiet``
        metrics:       Prometheus instruments (module singleton by default)
    """

    def __init__(
        self,
        config: Optional[BeaconConfig] = None,
        *,
        params_format: Optional[ParametersFormat] = None,
        reporter: Optional[CheckpointLogger] = None,
        metrics: Optional[Metrics] = None,
    ) -> None:
        self.config = config if config is not None else BeaconConfig()
        self.config.validate()
        self.params_format = params_format if params_format is not None else get_format(self.config.params_format)
        self.reporter = reporter if reporter is not None else CheckpointLogger(quiet=self.config.quiet)
        self.metrics = metrics if metrics is not None else METRICS

        self.state = PipelineState.IDLE
        self.failure: Optional[BaseException] = None

        self._params: Optional[CeremonyParameters] = None
        self._source = "<stream>"
        self._derivation: Optional[BeaconDerivation] = None
        self._seed: Optional[Tuple[int, ...]] = None
        self._rng: Optional[ChaChaRng] = None
        self._fingerprint: Optional[bytes] = None

    # ---- state machine -------------------------------------------------

    def _fail(self, err: BaseException) -> BaseException:
        if self.state is not PipelineState.FAILED:
            logger.debug("pipeline %s -> failed: %s", self.state.value, err)
            self.state = PipelineState.FAILED
            self.failure = err
            self.metrics.record_run(_outcome(err))
        return err

    @contextmanager
    def _step(self, name: str, expected: PipelineState, target: PipelineState) -> Iterator[None]:
        if self.state is not expected:
            raise PipelineStateError(step=name, expected=expected.value, actual=self.state.value)
        try:
            yield
        except BaseException as e:
            self._fail(e)
            raise
        logger.debug("pipeline %s -> %s", self.state.value, target.value)
        self.state = target

    def _require(self, value: Optional[_T], step: str) -> _T:
        # reachable only if a step's state was forced from outside
        if value is None:
            raise PipelineStateError(step=step, expected="prior steps completed", actual=self.state.value)
        return value

    @property
    def derivation(self) -> Optional[BeaconDerivation]:
        return self._derivation

    @property
    def parameters(self) -> Optional[CeremonyParameters]:
        return self._params

    # ---- steps ---------------------------------------------------------

    def load(self, stream: BinaryIO, source: str = "<stream>") -> None:
        """Deserialize the parameters with full structural verification."""
        with self._step("load", PipelineState.IDLE, PipelineState.LOADED):
            self._source = source
            try:
                self._params = self.params_format.read(stream, verify=True)
            except ValueError as e:
                raise ParameterFormatError(source=source, reason=str(e)) from e
            except OSError as e:
                raise ParameterFormatError(source=source, reason=_os_reason(e)) from e

    def derive(self, beacon_hex: str, iterations: int) -> BeaconDerivation:
        """Run the 2^n beacon chain, streaming checkpoints to the reporter."""
        with self._step("derive", PipelineState.LOADED, PipelineState.BEACON_DERIVED):
            chain = BeaconChain.from_hex(beacon_hex, iterations)
            self.reporter.creating_rng()
            with self.metrics.timer(self.metrics.chain_seconds):
                self._derivation = chain.run(on_checkpoint=self.reporter.checkpoint)
            self.metrics.record_iterations(chain.steps)
            self.reporter.final_hash(self._derivation.final)
        return self._derivation

    def seed(self) -> ChaChaRng:
        """Map the final chain state to the contribution generator."""
        with self._step("seed", PipelineState.BEACON_DERIVED, PipelineState.SEEDED):
            self._seed = seed_words(self._require(self._derivation, "seed").final)
            self._rng = ChaChaRng(self._seed)
        return self._rng

    def contribute(self, tag: int = 0) -> bytes:
        """Apply the contribution exactly once; returns the fingerprint."""
        with self._step("contribute", PipelineState.SEEDED, PipelineState.CONTRIBUTED):
            params = self._require(self._params, "contribute")
            rng = self._require(self._rng, "contribute")
            self.reporter.contributing(self._source)
            with self.metrics.timer(self.metrics.contribute_seconds):
                fingerprint = params.contribute(rng, tag)
            # any fixed-size digest is accepted; its size is the backend's choice
            if not isinstance(fingerprint, (bytes, bytearray)):
                raise ContributionError(
                    source=self._source,
                    reason=f"backend returned {type(fingerprint).__name__}, expected a bytes fingerprint",
                )
            if not fingerprint:
                raise ContributionError(source=self._source, reason="backend returned an empty fingerprint")
            self._fingerprint = bytes(fingerprint)
            self.reporter.fingerprint(self._fingerprint)
        return self._fingerprint

    def persist(self, stream: BinaryIO, destination: str = "<stream>") -> None:
        """Serialize the updated parameters to *stream*."""
        with self._step("persist", PipelineState.CONTRIBUTED, PipelineState.PERSISTED):
            params = self._require(self._params, "persist")
            try:
                params.write(stream)
                stream.flush()
            except (OSError, ValueError) as e:
                reason = _os_reason(e) if isinstance(e, OSError) else str(e)
                raise SerializationWriteError(path=destination, reason=reason) from e

    def finish(self, input_path: Optional[str] = None, output_path: Optional[str] = None) -> ContributionReceipt:
        with self._step("finish", PipelineState.PERSISTED, PipelineState.DONE):
            receipt = ContributionReceipt(
                final_hash=self._require(self._derivation, "finish").final,
                seed=self._require(self._seed, "finish"),
                fingerprint=self._require(self._fingerprint, "finish"),
                input_path=input_path,
                output_path=output_path,
            )
        self.metrics.record_run("ok")
        return receipt

    # ---- file driver ---------------------------------------------------

    def run(
        self,
        beacon_hex: str,
        iterations: int,
        *,
        input_path: Optional[str] = None,
        output_path: Optional[str] = None,
        tag: int = 0,
    ) -> ContributionReceipt:
        """
        Load → derive → seed → contribute → persist, with files.

        Paths default to the configured ones. Raises the first BeaconError
        encountered; the output file is never created when the failure
        happens before the contribution.
        """
        if self.state is not PipelineState.IDLE:
            raise PipelineStateError(step="run", expected=PipelineState.IDLE.value, actual=self.state.value)
        src = input_path or self.config.input_path
        dst = output_path or self.config.output_path

        # cheap checks first: an invalid request never opens a file or hashes
        try:
            check_iterations(iterations)
            parse_beacon_hash(beacon_hex)
        except BeaconError as e:
            raise self._fail(e)

        try:
            reader = open(src, "rb")
        except OSError as e:
            raise self._fail(InputOpenError(path=src, reason=_os_reason(e))) from e
        with reader:
            self.load(reader, source=src)

        self.derive(beacon_hex, iterations)
        self.seed()
        self.contribute(tag)

        try:
            writer = open(dst, "wb")
        except OSError as e:
            raise self._fail(OutputCreateError(path=dst, reason=_os_reason(e))) from e
        try:
            with writer:
                self.persist(writer, destination=dst)
        except OSError as e:
            raise self._fail(SerializationWriteError(path=dst, reason=_os_reason(e))) from e

        self.reporter.written(dst)
        return self.finish(input_path=src, output_path=dst)


__all__ = [
    "PipelineState",
    "ContributionPipeline",
]
