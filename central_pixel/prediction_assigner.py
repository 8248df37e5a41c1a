"""
Assign a predicted label vector to each test galaxy via cluster key lookup.

A key seen in training gives that cluster's averaged solution. An unseen key
gives the all-zero fallback vector; this is a tolerated miss, not an error.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from central_pixel.color_hasher import compute_cluster_key
from central_pixel.cste import BenchmarkConfig
from central_pixel.errors import DataIntegrityError
from central_pixel.io_utils import format_probability
from central_pixel.logger import get_logger
from central_pixel.patch_sampler import ColorSample

log = get_logger("prediction_assigner")


@dataclass
class PredictionTable:
    """Test galaxy identifier -> predicted label vector, plus lookup statistics."""
    predictions: Dict[str, np.ndarray] = field(default_factory=dict)
    missed_ids: List[str] = field(default_factory=list)

    @property
    def num_hits(self) -> int:
        return len(self.predictions) - len(self.missed_ids)

    @property
    def num_misses(self) -> int:
        return len(self.missed_ids)

    def __len__(self) -> int:
        return len(self.predictions)


def fallback_vector(num_classes: int = BenchmarkConfig.NUM_CLASSES) -> np.ndarray:
    """Read-only all-zero label vector."""
    vector = np.zeros(num_classes, dtype=np.float64)
    vector.flags.writeable = False
    return vector


def lookup_cluster(
    key: int, cluster_solutions: Dict[int, np.ndarray]
) -> Optional[np.ndarray]:
    """Averaged solution of the cluster with this key, None on a miss."""
    return cluster_solutions.get(key)


def assign_predictions(
    test_samples: Dict[str, ColorSample],
    cluster_solutions: Dict[int, np.ndarray],
    hash_factor: int = BenchmarkConfig.HASH_FACTOR,
    num_classes: int = BenchmarkConfig.NUM_CLASSES,
) -> PredictionTable:
    """
    Predict every test galaxy from the cluster matching its central color.

    Args:
        test_samples: Test galaxy identifier -> ColorSample
        cluster_solutions: Cluster key -> averaged label vector
        hash_factor: Must be the one used to build the clusters
        num_classes: Expected label vector length

    Returns:
        PredictionTable with exactly one row per test galaxy. Rows are keyed
        by identifier, so two test images sharing an identifier never reach
        this point: sample_images_batch rejects them.

    Raises:
        DataIntegrityError: A predicted vector has the wrong length
    """
    table = PredictionTable()
    zeros = fallback_vector(num_classes)

    for galaxy_id in sorted(test_samples):
        key = compute_cluster_key(test_samples[galaxy_id], hash_factor)
        prediction = lookup_cluster(key, cluster_solutions)
        if prediction is None:
            log.debug(f"Key not found for galaxy {galaxy_id}, cluster key = {key}")
            table.missed_ids.append(galaxy_id)
            prediction = zeros
        if len(prediction) != num_classes:
            raise DataIntegrityError(
                f"Do not have {num_classes} predictions for galaxy {galaxy_id}"
            )
        table.predictions[galaxy_id] = prediction

    log.info(
        f"Assigned {len(table)} predictions: {table.num_hits} cluster hits, "
        f"{table.num_misses} zero fallbacks"
    )
    return table


def build_prediction_row(
    galaxy_id: str,
    prediction: np.ndarray,
    num_classes: int = BenchmarkConfig.NUM_CLASSES,
) -> List[str]:
    """Identifier followed by the formatted probabilities (num_classes + 1 fields)."""
    line = [galaxy_id] + [format_probability(value) for value in prediction]
    if len(line) != num_classes + 1:
        raise DataIntegrityError(
            f"Prediction row for galaxy {galaxy_id} has {len(line)} fields, "
            f"expected {num_classes + 1}"
        )
    return line


def build_prediction_rows(
    table: PredictionTable, num_classes: int = BenchmarkConfig.NUM_CLASSES
) -> List[List[str]]:
    """CSV rows for every prediction, ordered by galaxy identifier."""
    return [
        build_prediction_row(galaxy_id, table.predictions[galaxy_id], num_classes)
        for galaxy_id in sorted(table.predictions)
    ]
