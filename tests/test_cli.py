"""End-to-end tests for the run_random_vector script."""

import importlib.util
from pathlib import Path

import numpy as np
import pytest

from trajectory_sampler.pipeline.catalog import read_catalog

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "run_random_vector.py"


@pytest.fixture
def cli():
    spec = importlib.util.spec_from_file_location("run_random_vector", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module.main


@pytest.fixture
def cube_file(tmp_path):
    data = np.random.default_rng(3).normal(50.0, 5.0, size=(4, 10, 12)).astype(np.float32)
    path = tmp_path / "cube.npy"
    np.save(path, data)
    return path


def test_writes_catalog(cli, cube_file, tmp_path, capsys):
    out = tmp_path / "catalog.csv"
    code = cli([
        "--cube", str(cube_file),
        "--num-vectors", "25",
        "--threads", "2",
        "--output", str(out),
        "--top", "2",
    ])
    assert code == 0

    rows = read_catalog(out)
    assert [r["ID"] for r in rows] == list(range(25))

    printed = capsys.readouterr().out
    assert "#of vectors = 25" in printed
    assert "vectors/sec" in printed
    assert "[1] ID" in printed


def test_environment_sets_vector_count(cli, cube_file, tmp_path, monkeypatch):
    monkeypatch.setenv("NUM_VECTORS", "7")
    out = tmp_path / "catalog.csv"
    assert cli(["--cube", str(cube_file), "--threads", "1", "--output", str(out)]) == 0
    assert len(read_catalog(out)) == 7


def test_metadata_mismatch_emits_no_catalog(cli, cube_file, tmp_path, monkeypatch):
    ts = tmp_path / "ts.txt"
    ts.write_text("0\n1\n2\n")
    monkeypatch.setenv("TIMESTAMP_FILE", str(ts))
    out = tmp_path / "catalog.csv"
    assert cli(["--cube", str(cube_file), "--num-vectors", "5", "--output", str(out)]) == 1
    assert not out.exists()


def test_missing_slope_file_emits_no_catalog(cli, cube_file, tmp_path, monkeypatch):
    monkeypatch.setenv("SLOPE_PDF_FILE", str(tmp_path / "missing.txt"))
    out = tmp_path / "catalog.csv"
    assert cli(["--cube", str(cube_file), "--num-vectors", "5", "--output", str(out)]) == 1
    assert not out.exists()


def test_wrong_pixel_type_is_fatal(cli, tmp_path):
    path = tmp_path / "cube64.npy"
    np.save(path, np.zeros((2, 3, 3), dtype=np.float64))
    out = tmp_path / "catalog.csv"
    assert cli(["--cube", str(path), "--num-vectors", "5", "--output", str(out)]) == 1
    assert not out.exists()


def test_zero_exposure_emits_no_catalog(cli, cube_file, tmp_path, monkeypatch):
    exposure = tmp_path / "exposure.txt"
    exposure.write_text("40\n0\n40\n40\n")
    monkeypatch.setenv("EXPOSURETIME_FILE", str(exposure))
    out = tmp_path / "catalog.csv"
    code = cli(["--cube", str(cube_file), "--num-vectors", "20", "--threads", "2", "--output", str(out)])
    assert code == 1
    assert not out.exists()
