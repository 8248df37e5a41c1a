"""
Central pixel benchmark for Kaggle's Galaxy Zoo competition.

The 10x10 patch at the center of each image is averaged, the training set is
clustered by the hashed normalized color of that patch, and each test galaxy
receives the average class probabilities of its matching cluster (all zeros
when no training cluster matches).
"""

from typing import Any, Dict, Optional

from central_pixel.color_hasher import check_hash_factor
from central_pixel.cste import BenchmarkConfig, DataPath, GeneralConfig
from central_pixel.evaluation import check_val_fraction, holdout_evaluation
from central_pixel.io_utils import read_training_solutions, write_predictions
from central_pixel.logger import get_logger
from central_pixel.model import CentralPixelModel
from central_pixel.patch_sampler import sample_directory
from central_pixel.prediction_assigner import PredictionTable, build_prediction_rows
from central_pixel.report import write_cluster_report

log = get_logger("pipeline")


def run_central_pixel_benchmark(
    train_dir: str = DataPath.IMG_TRAIN,
    test_dir: str = DataPath.IMG_TEST,
    solutions_csv: str = DataPath.SOLUTIONS_TRAIN,
    output_csv: str = DataPath.PREDICTION_CSV,
    hash_factor: int = BenchmarkConfig.HASH_FACTOR,
    num_workers: int = GeneralConfig.NB_JOBS,
    model_dir: Optional[str] = None,
    report_dir: Optional[str] = None,
) -> PredictionTable:
    """
    Run the full benchmark and write the prediction CSV.

    Nothing is written unless every stage succeeds.

    Args:
        train_dir: Directory of training galaxy images
        test_dir: Directory of test galaxy images
        solutions_csv: Training solutions (header + identifier + 37 probabilities)
        output_csv: Prediction file, same header as solutions_csv
        hash_factor: Multiplier combining color ratios into cluster keys
        num_workers: Parallel workers for patch sampling
        model_dir: Optional directory to save the fitted cluster table
        report_dir: Optional directory for the cluster summary CSV and plot

    Returns:
        The prediction table that was written
    """
    check_hash_factor(hash_factor)

    log.info("=" * 60)
    log.info("CENTRAL PIXEL BENCHMARK")
    log.info("=" * 60)
    log.info(f"Training images: {train_dir}")
    log.info(f"Test images: {test_dir}")
    log.info(f"Solutions: {solutions_csv}")
    log.info(f"Hash factor: {hash_factor}")
    log.info(f"Workers: {num_workers}")
    log.info("=" * 60)

    #! Labels first, they are cheap to validate
    header, solutions = read_training_solutions(solutions_csv)

    #! Central patch color of every training and test galaxy
    train_samples = sample_directory(train_dir, num_workers=num_workers)
    test_samples = sample_directory(test_dir, num_workers=num_workers)

    #! Cluster training galaxies and average their solutions
    model = CentralPixelModel(hash_factor=hash_factor)
    fit_summary = model.fit(train_samples, solutions)

    #! Match test galaxies to clusters
    table = model.predict(test_samples)
    rows = build_prediction_rows(table)

    write_predictions(output_csv, header, rows)

    if model_dir is not None:
        model.save(model_dir)
    if report_dir is not None:
        write_cluster_report(model.clusters, model.cluster_solutions, report_dir, hash_factor)

    log.info("=" * 60)
    log.info("Benchmark completed")
    log.info(f"Training galaxies: {fit_summary['num_galaxies']}")
    log.info(f"Clusters: {fit_summary['num_clusters']}")
    log.info(f"Test galaxies: {len(test_samples)}")
    log.info(f"Cluster hits: {table.num_hits}")
    log.info(f"Zero fallbacks: {table.num_misses}")
    log.info(f"Number of predictions made: {len(rows)}")
    log.info("=" * 60)

    return table


def run_holdout_benchmark(
    train_dir: str = DataPath.IMG_TRAIN,
    solutions_csv: str = DataPath.SOLUTIONS_TRAIN,
    hash_factor: int = BenchmarkConfig.HASH_FACTOR,
    num_workers: int = GeneralConfig.NB_JOBS,
    val_fraction: float = BenchmarkConfig.VAL_FRACTION,
    seed: int = GeneralConfig.RANDOM_SEED,
) -> Dict[str, Any]:
    """Score the benchmark on a holdout split of the training galaxies."""
    check_hash_factor(hash_factor)
    check_val_fraction(val_fraction)

    _, solutions = read_training_solutions(solutions_csv)
    samples = sample_directory(train_dir, num_workers=num_workers)
    return holdout_evaluation(
        samples, solutions, hash_factor=hash_factor, val_fraction=val_fraction, seed=seed
    )
