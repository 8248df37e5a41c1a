"""
Intensity normalization and cluster key hashing of color samples.

The same functions serve training and test samples, so two samples with the
same normalized ratios always get the same key.
"""

from typing import Dict, Optional, Tuple

from central_pixel.cste import BenchmarkConfig
from central_pixel.errors import ConfigurationError
from central_pixel.patch_sampler import ColorSample


def check_hash_factor(hash_factor: int) -> int:
    """Reject hash factors that cannot separate the color ratios."""
    if hash_factor < 1:
        raise ConfigurationError(f"hash_factor must be >= 1, got {hash_factor}")
    return hash_factor


def normalize_color(sample: ColorSample) -> Optional[Tuple[int, int, int]]:
    """
    Divide each channel by the average intensity (integer division).

    Returns:
        (red, green, blue) ratios, or None when the average intensity is zero
    """
    avg_intensity = (sample.red + sample.green + sample.blue) // 3
    if avg_intensity == 0:
        return None
    return (
        sample.red // avg_intensity,
        sample.green // avg_intensity,
        sample.blue // avg_intensity,
    )


def compute_cluster_key(
    sample: ColorSample,
    hash_factor: int = BenchmarkConfig.HASH_FACTOR,
    zero_intensity_key: int = BenchmarkConfig.ZERO_INTENSITY_KEY,
) -> int:
    """
    Hash a color sample into an integer cluster key.

    key = r' * H^2 + g' * H + b' with (r', g', b') the normalized ratios.
    All-black patches map to `zero_intensity_key`.
    """
    check_hash_factor(hash_factor)

    ratios = normalize_color(sample)
    if ratios is None:
        return zero_intensity_key

    red, green, blue = ratios
    return red * hash_factor * hash_factor + green * hash_factor + blue


def compute_cluster_keys(
    samples: Dict[str, ColorSample],
    hash_factor: int = BenchmarkConfig.HASH_FACTOR,
) -> Dict[str, int]:
    """Galaxy identifier -> cluster key for every sample."""
    return {
        galaxy_id: compute_cluster_key(sample, hash_factor)
        for galaxy_id, sample in samples.items()
    }
