"""
Per-cluster averaging of training label vectors.

A label vector is a read-only float64 numpy array of exactly NUM_CLASSES
probabilities. Averaging always accumulates into a fresh buffer so the stored
training solutions are never written through.
"""

from typing import Dict, Iterable, List

import numpy as np

from central_pixel.cste import BenchmarkConfig
from central_pixel.errors import DataIntegrityError
from central_pixel.logger import get_logger

log = get_logger("label_aggregator")


def make_label_vector(
    values: Iterable[float], num_classes: int = BenchmarkConfig.NUM_CLASSES
) -> np.ndarray:
    """
    Build a length-checked, read-only label vector.

    The values are always copied, the result never aliases `values`.

    Raises:
        DataIntegrityError: If the vector does not hold exactly `num_classes` values
    """
    vector = np.array(values, dtype=np.float64)
    if vector.ndim != 1 or vector.shape[0] != num_classes:
        raise DataIntegrityError(
            f"Label vector has shape {vector.shape}, expected ({num_classes},)"
        )
    vector.flags.writeable = False
    return vector


def average_cluster_labels(
    galaxy_ids: List[str],
    solutions: Dict[str, np.ndarray],
    num_classes: int = BenchmarkConfig.NUM_CLASSES,
) -> np.ndarray:
    """
    Average the training solutions of every galaxy in a cluster.

    Args:
        galaxy_ids: Cluster members (at least one)
        solutions: Galaxy identifier -> label vector
        num_classes: Expected label vector length

    Returns:
        Element-wise mean label vector. For a single member it is an exact copy
        of that member's vector.

    Raises:
        DataIntegrityError: Empty cluster, member without solution, or member
            vector of the wrong length
    """
    if not galaxy_ids:
        raise DataIntegrityError("Cannot average an empty cluster")

    member_vectors = []
    for galaxy_id in galaxy_ids:
        if galaxy_id not in solutions:
            raise DataIntegrityError(f"No training solution for galaxy {galaxy_id}")
        vector = solutions[galaxy_id]
        if len(vector) != num_classes:
            raise DataIntegrityError(
                f"Galaxy {galaxy_id} has {len(vector)} probabilities, expected {num_classes}"
            )
        member_vectors.append(vector)

    # If only 1 galaxy, no average taken
    if len(member_vectors) == 1:
        return make_label_vector(member_vectors[0], num_classes)

    accumulator = np.zeros(num_classes, dtype=np.float64)
    for vector in member_vectors:
        accumulator += vector
    accumulator /= len(member_vectors)

    accumulator.flags.writeable = False
    return accumulator


def aggregate_clusters(
    clusters: Dict[int, List[str]],
    solutions: Dict[str, np.ndarray],
    num_classes: int = BenchmarkConfig.NUM_CLASSES,
) -> Dict[int, np.ndarray]:
    """
    Average the training solutions over each cluster.

    Args:
        clusters: Cluster key -> member galaxy identifiers
        solutions: Galaxy identifier -> label vector (37 probabilities)

    Returns:
        Cluster key -> averaged label vector
    """
    cluster_solutions = {
        key: average_cluster_labels(galaxy_ids, solutions, num_classes)
        for key, galaxy_ids in clusters.items()
    }
    log.info(f"Aggregated solutions for {len(cluster_solutions)} clusters")
    return cluster_solutions
