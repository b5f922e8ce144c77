"""
CLI tests for mpc-beacon.

Runs the typer app in-process with ``CliRunner``; parameters files are tiny
reference states created in ``tmp_path``.
"""

from __future__ import annotations

import io
from pathlib import Path

import pytest
import typer.testing

from mpc_beacon import params as params_registry
from mpc_beacon.beacon.report import format_fingerprint
from mpc_beacon.cli import app
from mpc_beacon.params.bn254 import Phase2Parameters
from mpc_beacon.tests.vectors import (
    ZERO_BEACON,
    ZERO_CHECKPOINT_1023,
    ZERO_FINAL_N10,
)
from mpc_beacon.version import __version__

runner = typer.testing.CliRunner()


class _TrimmedDigestParams:
    """Reference parameters reporting only the first *size* fingerprint bytes."""

    def __init__(self, inner: Phase2Parameters, size: int) -> None:
        self.inner = inner
        self.size = size

    def contribute(self, rng, tag):
        return self.inner.contribute(rng, tag)[: self.size]

    def write(self, stream) -> None:
        self.inner.write(stream)


class _TrimmedDigestFormat:
    def __init__(self, size: int) -> None:
        self.name = f"bn254-digest-{size}"
        self.size = size

    def read(self, stream, verify=True):
        return _TrimmedDigestParams(Phase2Parameters.read(stream, verify=verify), self.size)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("INPUT", "OUTPUT", "FORMAT", "QUIET", "CONFIG"):
        monkeypatch.delenv("MPC_BEACON_" + key, raising=False)


@pytest.fixture
def transcript(tmp_path: Path) -> Path:
    result = runner.invoke(app, ["seed", "-h", ZERO_BEACON, "-n", "10"])
    assert result.exit_code == 0, result.output
    path = tmp_path / "transcript.txt"
    path.write_text(result.stdout)
    return path


class TestBasics:
    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("beacon", "verify-chain", "seed"):
            assert name in result.stdout

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestSeed:
    def test_prints_checkpoints_final_and_words(self) -> None:
        result = runner.invoke(app, ["seed", "--hash", ZERO_BEACON, "--iterations", "10"])
        assert result.exit_code == 0
        out = result.stdout.splitlines()
        assert out[0] == "0: " + "00" * 32
        assert out[1023] == "1023: " + ZERO_CHECKPOINT_1023
        assert out[1024] == "Final result of beacon: " + ZERO_FINAL_N10
        assert out[-1] == "Seed words: 73b858b1 c953da71 f6c3949a 9042ce57 ee7c79c0 e564e2c7 632e9ce9 9d73f968"

    def test_quiet(self) -> None:
        result = runner.invoke(app, ["seed", "-h", ZERO_BEACON, "-n", "10", "--quiet"])
        assert result.exit_code == 0
        assert "1023: " not in result.stdout
        assert ZERO_FINAL_N10 in result.stdout

    def test_bad_hash(self) -> None:
        result = runner.invoke(app, ["seed", "-h", "0x" + ZERO_BEACON, "-n", "10"])
        assert result.exit_code == 1
        assert "hexadecimal" in result.output


class TestBeacon:
    def test_contribution(self, tmp_path: Path, params_file: Path) -> None:
        out = tmp_path / "out.params"
        result = runner.invoke(
            app,
            ["beacon", "-i", str(params_file), "-o", str(out), "-h", ZERO_BEACON, "-n", "10", "-q"],
        )
        assert result.exit_code == 0, result.output
        assert "Creating a beacon RNG" in result.stdout
        assert "Final result of beacon: " + ZERO_FINAL_N10 in result.stdout
        assert f"Contributing to `{params_file}`..." in result.stdout
        assert "The BLAKE2b hash of your contribution is:" in result.stdout
        assert f"Your contribution has been written to `{out}`" in result.stdout
        assert "1023: " not in result.stdout

        written = Phase2Parameters.read(io.BytesIO(out.read_bytes()), verify=True)
        fp = written.contribution_hashes()[-1]
        assert "\t" + fp[:4].hex() + " " in result.stdout

    def test_tag_option(self, tmp_path: Path, params_file: Path) -> None:
        out = tmp_path / "out.params"
        result = runner.invoke(
            app,
            ["beacon", "-i", str(params_file), "-o", str(out), "-h", ZERO_BEACON, "-n", "10", "--tag", "1", "-q"],
        )
        assert result.exit_code == 0, result.output
        assert out.exists()

    def test_paths_from_environment(self, tmp_path: Path, params_file: Path, monkeypatch) -> None:
        out = tmp_path / "env-out.params"
        monkeypatch.setenv("MPC_BEACON_INPUT", str(params_file))
        monkeypatch.setenv("MPC_BEACON_OUTPUT", str(out))
        monkeypatch.setenv("MPC_BEACON_QUIET", "1")
        result = runner.invoke(app, ["beacon", "-h", ZERO_BEACON, "-n", "10"])
        assert result.exit_code == 0, result.output
        assert out.exists()
        assert "1023: " not in result.stdout

    @pytest.mark.parametrize(
        "beacon, n, message",
        [
            ("zz" * 32, "10", "Beacon hash should be in hexadecimal format"),
            ("00" * 31, "10", "Beacon hash should be 32 bytes long"),
            (ZERO_BEACON, "9", "[10, 63]"),
            (ZERO_BEACON, "64", "[10, 63]"),
        ],
    )
    def test_invalid_request_creates_nothing(self, tmp_path: Path, params_file: Path, beacon, n, message) -> None:
        out = tmp_path / "out.params"
        result = runner.invoke(app, ["beacon", "-i", str(params_file), "-o", str(out), "-h", beacon, "-n", n])
        assert result.exit_code == 1
        assert message in result.output
        assert not out.exists()
        assert "Creating a beacon RNG" not in result.output

    def test_missing_input(self, tmp_path: Path) -> None:
        out = tmp_path / "out.params"
        missing = tmp_path / "missing.params"
        result = runner.invoke(app, ["beacon", "-i", str(missing), "-o", str(out), "-h", ZERO_BEACON, "-n", "10"])
        assert result.exit_code == 1
        assert f"Could not open `{missing}`" in result.output
        assert not out.exists()

    def test_malformed_input(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.params"
        bad.write_bytes(b"\x00" * 100)
        out = tmp_path / "out.params"
        result = runner.invoke(app, ["beacon", "-i", str(bad), "-o", str(out), "-h", ZERO_BEACON, "-n", "10"])
        assert result.exit_code == 1
        assert f"Could not read `{bad}`" in result.output
        assert not out.exists()

    def test_unknown_format(self, tmp_path: Path, params_file: Path) -> None:
        result = runner.invoke(
            app,
            ["beacon", "-i", str(params_file), "-h", ZERO_BEACON, "-n", "10", "--format", "nope"],
        )
        assert result.exit_code == 1
        assert "unknown parameters format" in result.output

    def test_hash_is_required(self, params_file: Path) -> None:
        result = runner.invoke(app, ["beacon", "-i", str(params_file), "-n", "10"])
        assert result.exit_code != 0

    @pytest.mark.parametrize("flag", ["-i", "-o"])
    def test_empty_path_is_rejected(self, tmp_path: Path, params_file: Path, flag: str) -> None:
        paths = {"-i": str(params_file), "-o": str(tmp_path / "out.params")}
        paths[flag] = ""
        result = runner.invoke(
            app, ["beacon", "-i", paths["-i"], "-o", paths["-o"], "-h", ZERO_BEACON, "-n", "10"]
        )
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        assert "must be a non-empty path" in result.output
        assert not (tmp_path / "out.params").exists()

    def test_backend_with_short_fingerprint(self, tmp_path: Path, params_file: Path, monkeypatch) -> None:
        fmt = _TrimmedDigestFormat(32)
        monkeypatch.setitem(params_registry._REGISTRY, fmt.name, fmt)
        out = tmp_path / "out.params"
        result = runner.invoke(
            app,
            ["beacon", "-i", str(params_file), "-o", str(out), "-h", ZERO_BEACON, "-n", "10", "-q", "--format", fmt.name],
        )
        assert result.exit_code == 0, result.output
        written = Phase2Parameters.read(io.BytesIO(out.read_bytes()), verify=True)
        fp = written.contribution_hashes()[-1][:32]
        assert format_fingerprint(fp) in result.stdout
        assert written.contribution_hashes()[-1][32:36].hex() not in result.stdout

    def test_backend_with_empty_fingerprint(self, tmp_path: Path, params_file: Path, monkeypatch) -> None:
        fmt = _TrimmedDigestFormat(0)
        monkeypatch.setitem(params_registry._REGISTRY, fmt.name, fmt)
        out = tmp_path / "out.params"
        result = runner.invoke(
            app,
            ["beacon", "-i", str(params_file), "-o", str(out), "-h", ZERO_BEACON, "-n", "10", "-q", "--format", fmt.name],
        )
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert f"Contribution to `{params_file}` failed" in result.output
        assert not out.exists()


class TestConfigFile:
    def test_yaml_config_option(self, tmp_path: Path, params_file: Path) -> None:
        out = tmp_path / "from-config.params"
        cfg = tmp_path / "beacon.yaml"
        cfg.write_text(f"input_path: {params_file}\noutput_path: {out}\nquiet: true\n")
        result = runner.invoke(app, ["beacon", "--config", str(cfg), "-h", ZERO_BEACON, "-n", "10"])
        assert result.exit_code == 0, result.output
        assert out.exists()
        assert "1023: " not in result.stdout

    def test_environment_overrides_config_file(self, tmp_path: Path, params_file: Path, monkeypatch) -> None:
        from_file = tmp_path / "file.params"
        from_env = tmp_path / "env.params"
        cfg = tmp_path / "beacon.yaml"
        cfg.write_text(f"input_path: {params_file}\noutput_path: {from_file}\n")
        monkeypatch.setenv("MPC_BEACON_CONFIG", str(cfg))
        monkeypatch.setenv("MPC_BEACON_OUTPUT", str(from_env))
        result = runner.invoke(app, ["beacon", "-h", ZERO_BEACON, "-n", "10", "-q"])
        assert result.exit_code == 0, result.output
        assert from_env.exists()
        assert not from_file.exists()

    def test_unreadable_config_file(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["beacon", "--config", str(tmp_path / "missing.yaml"), "-h", ZERO_BEACON, "-n", "10"]
        )
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestVerifyChain:
    def test_full_transcript(self, transcript: Path) -> None:
        result = runner.invoke(app, ["verify-chain", "-t", str(transcript), "-n", "10"])
        assert result.exit_code == 0, result.output
        assert "OK: 1024 segments verified" in result.stdout

    def test_split_between_verifiers(self, transcript: Path) -> None:
        first = runner.invoke(app, ["verify-chain", "-t", str(transcript), "-n", "10", "--from", "0", "--to", "511"])
        second = runner.invoke(app, ["verify-chain", "-t", str(transcript), "-n", "10", "--from", "511"])
        assert first.exit_code == 0 and second.exit_code == 0
        assert "OK: 511 segments verified" in first.stdout
        assert "OK: 513 segments verified" in second.stdout

    def test_stdin(self, transcript: Path) -> None:
        result = runner.invoke(
            app,
            ["verify-chain", "-t", "-", "-n", "10", "--from", "1000"],
            input=transcript.read_text(),
        )
        assert result.exit_code == 0, result.output
        assert "OK: 24 segments verified" in result.stdout

    def test_beacon_output_is_a_transcript(self, tmp_path: Path, params_file: Path) -> None:
        out = tmp_path / "out.params"
        run = runner.invoke(app, ["beacon", "-i", str(params_file), "-o", str(out), "-h", ZERO_BEACON, "-n", "10"])
        assert run.exit_code == 0, run.output
        log = tmp_path / "run.log"
        log.write_text(run.stdout)
        result = runner.invoke(app, ["verify-chain", "-t", str(log), "-n", "10"])
        assert result.exit_code == 0, result.output

    def test_tampered_checkpoint(self, transcript: Path) -> None:
        text = transcript.read_text().splitlines()
        assert text[5].startswith("5: ")
        text[5] = "5: " + "11" * 32
        transcript.write_text("\n".join(text) + "\n")
        result = runner.invoke(app, ["verify-chain", "-t", str(transcript), "-n", "10"])
        assert result.exit_code == 1
        assert "mismatch 4->5" in result.output
        assert "mismatch 5->6" in result.output
        assert "FAILED: 2 of 1024 segments do not match" in result.output

    def test_wrong_iterations(self, transcript: Path) -> None:
        # every checkpoint index is on the n = 10 grid, but not on the n = 11 one
        result = runner.invoke(app, ["verify-chain", "-t", str(transcript), "-n", "11"])
        assert result.exit_code == 1

    def test_missing_transcript(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["verify-chain", "-t", str(tmp_path / "nope.txt"), "-n", "10"])
        assert result.exit_code == 1
        assert "Could not open" in result.output

    def test_binary_transcript(self, tmp_path: Path) -> None:
        path = tmp_path / "binary.txt"
        path.write_bytes(b"\xff\xfe\x00binary")
        result = runner.invoke(app, ["verify-chain", "-t", str(path), "-n", "10"])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert f"Could not read `{path}`" in result.output

    def test_invalid_range(self, transcript: Path) -> None:
        result = runner.invoke(app, ["verify-chain", "-t", str(transcript), "-n", "10", "--from", "10", "--to", "5"])
        assert result.exit_code == 1
        assert "Invalid checkpoint range" in result.output
