"""
End-to-end tests of the benchmark on a tiny synthetic Galaxy Zoo layout.
"""

import csv
import os

import pytest

import central_pixel.pipeline as pipeline
from central_pixel.cste import BenchmarkConfig
from central_pixel.errors import ConfigurationError, DataIntegrityError, LabelParseError
from central_pixel.main import main
from central_pixel.pipeline import run_central_pixel_benchmark, run_holdout_benchmark

from conftest import HEADER, NUM_CLASSES, one_hot, write_solid_png, write_solutions


def read_rows(path):
    with open(path, newline="") as f:
        return list(csv.reader(f))


def test_benchmark_end_to_end(galaxy_dataset):
    output = galaxy_dataset["tmp_path"] / "lastrun.csv"
    table = run_central_pixel_benchmark(
        train_dir=galaxy_dataset["train_dir"],
        test_dir=galaxy_dataset["test_dir"],
        solutions_csv=galaxy_dataset["solutions_csv"],
        output_csv=str(output),
        num_workers=1,
    )
    assert table.num_hits == 1
    assert table.missed_ids == ["200002"]

    rows = read_rows(output)
    assert rows[0] == HEADER
    by_id = {row[0]: row[1:] for row in rows[1:]}
    assert sorted(by_id) == ["200001", "200002"]
    assert by_id["200001"] == ["0.5", "0.5"] + ["0"] * (NUM_CLASSES - 2)
    assert by_id["200002"] == ["0"] * NUM_CLASSES


def test_benchmark_saves_model_and_report(galaxy_dataset):
    tmp_path = galaxy_dataset["tmp_path"]
    run_central_pixel_benchmark(
        train_dir=galaxy_dataset["train_dir"],
        test_dir=galaxy_dataset["test_dir"],
        solutions_csv=galaxy_dataset["solutions_csv"],
        output_csv=str(tmp_path / "lastrun.csv"),
        num_workers=1,
        model_dir=str(tmp_path / "model"),
        report_dir=str(tmp_path / "report"),
    )
    assert os.path.exists(tmp_path / "model" / "cluster_solutions.npz")
    assert os.path.exists(tmp_path / "model" / "config.json")
    assert os.path.exists(tmp_path / "report" / "clusters.csv")


def test_training_image_without_solution_writes_nothing(galaxy_dataset):
    write_solid_png(os.path.join(galaxy_dataset["train_dir"], "999999.png"), (5, 5, 5))
    output = galaxy_dataset["tmp_path"] / "lastrun.csv"
    with pytest.raises(DataIntegrityError):
        run_central_pixel_benchmark(
            train_dir=galaxy_dataset["train_dir"],
            test_dir=galaxy_dataset["test_dir"],
            solutions_csv=galaxy_dataset["solutions_csv"],
            output_csv=str(output),
            num_workers=1,
        )
    assert not output.exists()


def test_black_galaxy_matches_black_cluster(galaxy_dataset):
    tmp_path = galaxy_dataset["tmp_path"]
    write_solid_png(os.path.join(galaxy_dataset["train_dir"], "100042.png"), (0, 0, 0))
    write_solid_png(os.path.join(galaxy_dataset["test_dir"], "200003.png"), (0, 0, 0))
    solutions_csv = write_solutions(
        tmp_path / "solutions_black.csv",
        [
            ["100008"] + one_hot(0),
            ["100023"] + one_hot(1),
            ["100042"] + one_hot(5),
        ],
    )
    output = tmp_path / "lastrun.csv"
    table = run_central_pixel_benchmark(
        train_dir=galaxy_dataset["train_dir"],
        test_dir=galaxy_dataset["test_dir"],
        solutions_csv=solutions_csv,
        output_csv=str(output),
        num_workers=1,
        report_dir=str(tmp_path / "report"),
    )
    assert table.num_hits == 2
    assert table.missed_ids == ["200002"]

    by_id = {row[0]: row[1:] for row in read_rows(output)[1:]}
    expected = ["0"] * NUM_CLASSES
    expected[5] = "1"
    assert by_id["200003"] == expected

    report = read_rows(tmp_path / "report" / "clusters.csv")
    assert str(BenchmarkConfig.ZERO_INTENSITY_KEY) in [row[0] for row in report[1:]]


def test_black_galaxy_without_black_cluster_gets_zeros(galaxy_dataset):
    write_solid_png(os.path.join(galaxy_dataset["test_dir"], "200003.png"), (0, 0, 0))
    output = galaxy_dataset["tmp_path"] / "lastrun.csv"
    table = run_central_pixel_benchmark(
        train_dir=galaxy_dataset["train_dir"],
        test_dir=galaxy_dataset["test_dir"],
        solutions_csv=galaxy_dataset["solutions_csv"],
        output_csv=str(output),
        num_workers=1,
    )
    assert table.missed_ids == ["200002", "200003"]
    by_id = {row[0]: row[1:] for row in read_rows(output)[1:]}
    assert by_id["200003"] == ["0"] * NUM_CLASSES


def test_duplicate_test_identifier_writes_nothing(galaxy_dataset):
    # same galaxy id under two extensions
    write_solid_png(os.path.join(galaxy_dataset["test_dir"], "200001.jpg"), (90, 90, 90))
    output = galaxy_dataset["tmp_path"] / "lastrun.csv"
    with pytest.raises(DataIntegrityError):
        run_central_pixel_benchmark(
            train_dir=galaxy_dataset["train_dir"],
            test_dir=galaxy_dataset["test_dir"],
            solutions_csv=galaxy_dataset["solutions_csv"],
            output_csv=str(output),
            num_workers=1,
        )
    assert not output.exists()


def test_invalid_hash_factor_fails_before_any_input_is_read(galaxy_dataset, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("input read despite invalid hash factor")

    monkeypatch.setattr(pipeline, "read_training_solutions", fail)
    monkeypatch.setattr(pipeline, "sample_directory", fail)
    with pytest.raises(ConfigurationError):
        run_central_pixel_benchmark(
            train_dir=galaxy_dataset["train_dir"],
            test_dir=galaxy_dataset["test_dir"],
            solutions_csv=galaxy_dataset["solutions_csv"],
            output_csv=str(galaxy_dataset["tmp_path"] / "lastrun.csv"),
            hash_factor=0,
            num_workers=1,
        )
    with pytest.raises(ConfigurationError):
        run_holdout_benchmark(
            train_dir=galaxy_dataset["train_dir"],
            solutions_csv=galaxy_dataset["solutions_csv"],
            val_fraction=1.5,
            num_workers=1,
        )


def test_empty_training_directory(galaxy_dataset, tmp_path):
    empty_dir = tmp_path / "empty"
    empty_dir.mkdir()
    with pytest.raises(DataIntegrityError):
        run_central_pixel_benchmark(
            train_dir=str(empty_dir),
            test_dir=galaxy_dataset["test_dir"],
            solutions_csv=galaxy_dataset["solutions_csv"],
            output_csv=str(tmp_path / "lastrun.csv"),
            num_workers=1,
        )


def test_holdout_benchmark(tmp_path):
    train_dir = tmp_path / "train"
    train_dir.mkdir()
    rows = []
    for i in range(10):
        write_solid_png(train_dir / f"{i}.png", (20 + i, 20 + i, 20 + i))
        rows.append([str(i)] + one_hot(3))
    solutions_csv = write_solutions(tmp_path / "s.csv", rows)

    metrics = run_holdout_benchmark(
        train_dir=str(train_dir), solutions_csv=solutions_csv, num_workers=1
    )
    assert metrics["rmse"] == pytest.approx(0.0)
    assert metrics["num_val"] == 2


# -----------------------------------------------------------------------------
# CLI
# -----------------------------------------------------------------------------

def test_cli_predict(galaxy_dataset, capsys):
    output = galaxy_dataset["tmp_path"] / "cli.csv"
    code = main([
        "predict",
        "--train_dir", galaxy_dataset["train_dir"],
        "--test_dir", galaxy_dataset["test_dir"],
        "--solutions", galaxy_dataset["solutions_csv"],
        "--output", str(output),
        "--workers", "1",
    ])
    assert code == 0
    assert str(output) in capsys.readouterr().out
    assert len(read_rows(output)) == 3


def test_cli_reports_fatal_error(galaxy_dataset, tmp_path):
    bad_csv = tmp_path / "bad.csv"
    bad_csv.write_text("GalaxyID,Class1.1\n1,0.5\n")
    code = main([
        "predict",
        "--train_dir", galaxy_dataset["train_dir"],
        "--test_dir", galaxy_dataset["test_dir"],
        "--solutions", str(bad_csv),
        "--output", str(tmp_path / "out.csv"),
        "--workers", "1",
    ])
    assert code == 1
    assert not (tmp_path / "out.csv").exists()


def test_bad_solutions_raise_before_sampling(galaxy_dataset, tmp_path):
    bad_csv = write_solutions(tmp_path / "bad.csv", [["1", "x"]], header=HEADER[:2])
    with pytest.raises(LabelParseError):
        run_central_pixel_benchmark(
            train_dir=str(tmp_path / "does_not_exist"),
            test_dir=galaxy_dataset["test_dir"],
            solutions_csv=bad_csv,
            output_csv=str(tmp_path / "out.csv"),
            num_workers=1,
        )


def test_cli_missing_train_dir(galaxy_dataset, tmp_path):
    code = main([
        "predict",
        "--train_dir", str(tmp_path / "does_not_exist"),
        "--test_dir", galaxy_dataset["test_dir"],
        "--solutions", galaxy_dataset["solutions_csv"],
        "--output", str(tmp_path / "out.csv"),
        "--workers", "1",
    ])
    assert code == 1
    assert not (tmp_path / "out.csv").exists()


@pytest.mark.parametrize("hash_factor", ["0", "-1"])
def test_cli_invalid_hash_factor(galaxy_dataset, tmp_path, monkeypatch, hash_factor):
    def fail(*args, **kwargs):
        raise AssertionError("images sampled despite invalid hash factor")

    monkeypatch.setattr(pipeline, "sample_directory", fail)
    code = main([
        "predict",
        "--train_dir", galaxy_dataset["train_dir"],
        "--test_dir", galaxy_dataset["test_dir"],
        "--solutions", galaxy_dataset["solutions_csv"],
        "--output", str(tmp_path / "out.csv"),
        "--hash_factor", hash_factor,
        "--workers", "1",
    ])
    assert code == 1
    assert not (tmp_path / "out.csv").exists()


def test_cli_evaluate_invalid_val_fraction(galaxy_dataset):
    code = main([
        "evaluate",
        "--train_dir", galaxy_dataset["train_dir"],
        "--solutions", galaxy_dataset["solutions_csv"],
        "--val_fraction", "1.5",
        "--workers", "1",
    ])
    assert code == 1
