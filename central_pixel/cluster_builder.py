"""Group training galaxies sharing a cluster key."""

from typing import Dict, List

from central_pixel.color_hasher import compute_cluster_keys
from central_pixel.cste import BenchmarkConfig
from central_pixel.errors import DataIntegrityError
from central_pixel.logger import get_logger
from central_pixel.patch_sampler import ColorSample

log = get_logger("cluster_builder")


def invert_cluster_keys(galaxy_keys: Dict[str, int]) -> Dict[int, List[str]]:
    """
    Invert galaxy identifier -> key into key -> sorted member identifiers.

    Raises:
        DataIntegrityError: If no cluster is created (no training galaxy)
    """
    clusters: Dict[int, List[str]] = {}
    for galaxy_id in sorted(galaxy_keys):
        clusters.setdefault(galaxy_keys[galaxy_id], []).append(galaxy_id)

    if len(clusters) < 1:
        raise DataIntegrityError("Created zero galaxy clusters")
    return clusters


def build_clusters(
    train_samples: Dict[str, ColorSample],
    hash_factor: int = BenchmarkConfig.HASH_FACTOR,
) -> Dict[int, List[str]]:
    """
    Cluster training galaxies by the hashed normalized color of their center.

    Clusters are formed by exact key equality only.
    """
    clusters = invert_cluster_keys(compute_cluster_keys(train_samples, hash_factor))

    largest = max(len(members) for members in clusters.values())
    log.info(
        f"Built {len(clusters)} clusters from {len(train_samples)} training galaxies "
        f"(hash factor {hash_factor}, largest cluster {largest})"
    )
    if BenchmarkConfig.ZERO_INTENSITY_KEY in clusters:
        log.warning(
            f"{len(clusters[BenchmarkConfig.ZERO_INTENSITY_KEY])} training galaxies "
            f"have a zero intensity center"
        )
    return clusters
