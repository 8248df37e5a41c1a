"""
Constants and configuration for the Galaxy Zoo central pixel benchmark.
"""

import multiprocessing as mp
from typing import List, Tuple

# ============================================================================
# PATH CONFIGURATION
# ============================================================================
class GeneralConfig:
    """General project configuration."""
    RANDOM_SEED: int = 42
    NB_JOBS: int = mp.cpu_count()  # Number of parallel jobs for patch sampling


class GeneralPath:
    """General project paths."""
    LOG_PATH: str = r".logs/"


class DataPath:
    """Data directory paths (Kaggle Galaxy Zoo archive layout)."""
    IMG_TRAIN: str = r"images_training/"
    IMG_TEST: str = r"images_test/"

    SOLUTIONS_TRAIN: str = r"solutions_training.csv"
    PREDICTION_CSV: str = r"lastrun.csv"


# ============================================================================
# CLASS DEFINITIONS
# ============================================================================

class ClassInfo:
    """Galaxy Zoo decision tree answers, one probability column per answer."""

    # (question, number of answers) in decision tree order
    QUESTIONS: List[Tuple[int, int]] = [
        (1, 3), (2, 2), (3, 2), (4, 2), (5, 4), (6, 2),
        (7, 3), (8, 7), (9, 3), (10, 3), (11, 6),
    ]

    CLASS_NAMES: List[str] = [
        f"Class{question}.{answer}"
        for question, nb_answers in QUESTIONS
        for answer in range(1, nb_answers + 1)
    ]
    NUM_CLASSES: int = len(CLASS_NAMES)  # 37


# ============================================================================
# BENCHMARK PARAMETERS
# ============================================================================

class BenchmarkConfig:
    """Default parameters for sampling, hashing and aggregation."""

    # Multiplier combining normalized channel ratios into one cluster key
    HASH_FACTOR: int = 10

    # Half width of the central square patch (10x10 window)
    PATCH_HALF_WIDTH: int = 5

    # Length of every label vector
    NUM_CLASSES: int = ClassInfo.NUM_CLASSES

    # 8-bit channels are expanded to 16 bits (0-65535), x * 257.
    # Approximates a native 16-bit JPEG decode, exact for gray pixels only
    CHANNEL_SCALE: int = 257

    IMAGE_SUFFIXES: Tuple[str, ...] = (".jpg", ".jpeg", ".png")

    # Cluster key reserved for patches whose average intensity is zero
    ZERO_INTENSITY_KEY: int = -1

    # Name of the identifier column in the solutions file
    ID_COLUMN: str = "GalaxyID"

    # Fraction of training galaxies kept aside by the holdout evaluation
    VAL_FRACTION: float = 0.2
