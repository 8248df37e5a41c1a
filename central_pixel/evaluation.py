"""Evaluation of the benchmark on a holdout split of the training galaxies."""

from typing import Any, Dict, Tuple

import numpy as np
from sklearn.metrics import mean_squared_error

from central_pixel.cste import BenchmarkConfig, GeneralConfig
from central_pixel.errors import ConfigurationError, DataIntegrityError
from central_pixel.logger import get_logger
from central_pixel.model import CentralPixelModel
from central_pixel.patch_sampler import ColorSample

log = get_logger("evaluation")


def compute_rmse(
    predictions: Dict[str, np.ndarray],
    solutions: Dict[str, np.ndarray],
) -> float:
    """
    Root mean squared error over every galaxy and every class probability
    (the Galaxy Zoo leaderboard metric).

    Args:
        predictions: Galaxy identifier -> predicted label vector
        solutions: Galaxy identifier -> true label vector

    Raises:
        DataIntegrityError: If a predicted galaxy has no solution, or nothing to score
    """
    if not predictions:
        raise DataIntegrityError("No predictions to evaluate")

    galaxy_ids = sorted(predictions)
    missing = [galaxy_id for galaxy_id in galaxy_ids if galaxy_id not in solutions]
    if missing:
        raise DataIntegrityError(
            f"{len(missing)} predicted galaxies have no solution, e.g. {missing[:5]}"
        )

    y_pred = np.stack([predictions[galaxy_id] for galaxy_id in galaxy_ids])
    y_true = np.stack([solutions[galaxy_id] for galaxy_id in galaxy_ids])
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def check_val_fraction(val_fraction: float) -> float:
    if not 0.0 < val_fraction < 1.0:
        raise ConfigurationError(f"val_fraction must be in (0, 1), got {val_fraction}")
    return val_fraction


def split_holdout(
    galaxy_ids: list,
    val_fraction: float = BenchmarkConfig.VAL_FRACTION,
    seed: int = GeneralConfig.RANDOM_SEED,
) -> Tuple[list, list]:
    """
    Deterministic train/validation split of galaxy identifiers.

    Returns:
        (train_ids, val_ids), both sorted
    """
    check_val_fraction(val_fraction)

    ordered = np.array(sorted(galaxy_ids), dtype=object)
    n_val = int(round(len(ordered) * val_fraction))
    if n_val < 1 or n_val >= len(ordered):
        raise DataIntegrityError(
            f"Cannot split {len(ordered)} galaxies with val_fraction={val_fraction}"
        )

    permutation = np.random.default_rng(seed).permutation(len(ordered))
    val_ids = sorted(ordered[permutation[:n_val]].tolist())
    train_ids = sorted(ordered[permutation[n_val:]].tolist())
    return train_ids, val_ids


def holdout_evaluation(
    samples: Dict[str, ColorSample],
    solutions: Dict[str, np.ndarray],
    hash_factor: int = BenchmarkConfig.HASH_FACTOR,
    val_fraction: float = BenchmarkConfig.VAL_FRACTION,
    seed: int = GeneralConfig.RANDOM_SEED,
) -> Dict[str, Any]:
    """
    Fit on part of the training galaxies and score the rest.

    Returns:
        Dictionary with the benchmark RMSE, the RMSE of an all-zero
        prediction for reference, the cluster hit rate and split sizes
    """
    train_ids, val_ids = split_holdout(list(samples), val_fraction, seed)
    log.info(f"Holdout split: {len(train_ids)} train, {len(val_ids)} validation galaxies")

    model = CentralPixelModel(hash_factor=hash_factor)
    fit_summary = model.fit({gid: samples[gid] for gid in train_ids}, solutions)
    table = model.predict({gid: samples[gid] for gid in val_ids})

    rmse = compute_rmse(table.predictions, solutions)
    zero_rmse = compute_rmse(
        {gid: np.zeros(model.num_classes) for gid in val_ids}, solutions
    )

    metrics = {
        "rmse": rmse,
        "zero_rmse": zero_rmse,
        "hit_rate": table.num_hits / len(table),
        "num_train": len(train_ids),
        "num_val": len(val_ids),
        "num_clusters": fit_summary["num_clusters"],
        "hash_factor": hash_factor,
    }

    log.info("=" * 60)
    log.info("Holdout evaluation completed")
    log.info(f"RMSE: {rmse:.5f} (all-zero prediction: {zero_rmse:.5f})")
    log.info(f"Cluster hit rate: {100.0 * metrics['hit_rate']:.2f}%")
    log.info("=" * 60)
    return metrics
