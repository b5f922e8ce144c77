"""
Prometheus metrics for beacon contributions.

Instruments:
  • runs_total             — pipeline runs per outcome
  • hash_iterations_total  — SHA-256 chain steps executed
  • chain_seconds          — wall time of one full beacon chain
  • contribute_seconds     — wall time of the parameters' contribute() call

Label cardinality is kept low: the only label is `outcome`, with the small
vocabulary below (one value per error kind).

Usage
-----
    from mpc_beacon.metrics import METRICS

    with METRICS.timer(METRICS.chain_seconds):
        derive_beacon(...)
    METRICS.record_run("ok")

If you need a custom Prometheus registry (tests do), construct your own
`Metrics` instance.
"""

from __future__ import annotations

from contextlib import contextmanager
from time import perf_counter
from typing import Iterable, Iterator

from prometheus_client import REGISTRY, Counter, Histogram

# --------- Vocabulary ---------

_RUN_OUTCOMES = (
    "ok",
    "input_open",
    "parameter_format",
    "beacon_format",
    "iteration_range",
    "contribution",
    "output_create",
    "serialization_write",
    "error",          # anything else
)

# Chain wall time (seconds): 2^10 steps take microseconds, 2^40 take days.
_CHAIN_BUCKETS = (
    0.001, 0.01, 0.1,
    1.0, 10.0, 60.0,
    600.0, 3600.0, 6 * 3600.0,
    86400.0, 7 * 86400.0,
)

_CONTRIBUTE_BUCKETS = (
    0.01, 0.1, 0.5,
    1.0, 5.0, 30.0,
    120.0, 600.0, 3600.0,
)


class Metrics:
    """
    Container for the beacon Prometheus instruments.

    Args:
        namespace: Prometheus metric namespace (prefix).
        subsystem: Prometheus metric subsystem.
        registry:  Prometheus registry to register the metrics with.
    """

    def __init__(
        self,
        *,
        namespace: str = "mpc",
        subsystem: str = "beacon",
        registry=REGISTRY,
        chain_buckets: Iterable[float] = _CHAIN_BUCKETS,
        contribute_buckets: Iterable[float] = _CONTRIBUTE_BUCKETS,
    ) -> None:
        self.runs_total = Counter(
            "runs_total",
            "Beacon contribution runs, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.hash_iterations_total = Counter(
            "hash_iterations_total",
            "SHA-256 steps executed by the beacon chain.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.chain_seconds = Histogram(
            "chain_seconds",
            "Wall time of a full beacon hash chain (seconds).",
            buckets=tuple(chain_buckets),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.contribute_seconds = Histogram(
            "contribute_seconds",
            "Wall time of the parameters contribution (seconds).",
            buckets=tuple(contribute_buckets),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    def record_run(self, outcome: str) -> None:
        """Increment the run counter; unknown outcomes are folded into 'error'."""
        if outcome not in _RUN_OUTCOMES:
            outcome = "error"
        self.runs_total.labels(outcome=outcome).inc()

    def record_iterations(self, steps: int) -> None:
        self.hash_iterations_total.inc(steps)

    @contextmanager
    def timer(self, histogram: Histogram) -> Iterator[None]:
        """
        Time a block into *histogram*:

            with METRICS.timer(METRICS.chain_seconds):
                chain.run()
        """
        start = perf_counter()
        try:
            yield
        finally:
            histogram.observe(perf_counter() - start)


# Singleton used by the CLI
METRICS = Metrics()

__all__ = [
    "Metrics",
    "METRICS",
    "_RUN_OUTCOMES",
]
