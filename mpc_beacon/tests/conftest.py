from pathlib import Path

import pytest
from prometheus_client import CollectorRegistry

from mpc_beacon.metrics import Metrics
from mpc_beacon.params.bn254 import Phase2Parameters


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> Metrics:
    return Metrics(registry=registry)


@pytest.fixture
def params_file(tmp_path: Path) -> Path:
    path = tmp_path / "phase2.params"
    path.write_bytes(Phase2Parameters.new(h_size=2, l_size=2).to_bytes())
    return path


@pytest.fixture
def lines() -> list:
    """Collects reporter output (``CheckpointLogger(echo=lines.append)``)."""
    return []
