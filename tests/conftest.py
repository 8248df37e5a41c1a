"""
Shared fixtures: synthetic galaxy images and solutions files.
"""

import csv
import os

import numpy as np
import pytest
from PIL import Image

from central_pixel.cste import BenchmarkConfig, ClassInfo

NUM_CLASSES = BenchmarkConfig.NUM_CLASSES
HEADER = [BenchmarkConfig.ID_COLUMN] + ClassInfo.CLASS_NAMES


def one_hot(index: int) -> list:
    vector = [0.0] * NUM_CLASSES
    vector[index] = 1.0
    return vector


def write_solid_png(path, color, size=(24, 24)) -> str:
    """Write an RGB PNG filled with a single color (lossless, exact values)."""
    width, height = size
    pixels = np.zeros((height, width, 3), dtype=np.uint8)
    pixels[...] = color
    Image.fromarray(pixels).save(path)
    return str(path)


def write_solutions(path, rows, header=HEADER) -> str:
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for row in rows:
            writer.writerow(row)
    return str(path)


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def galaxy_dataset(tmp_path):
    """
    Two training galaxies with ratio (1, 1, 1), one test galaxy with the same
    ratio and one test galaxy with ratio (2, 0, 1), unseen in training.
    """
    train_dir = tmp_path / "images_training"
    test_dir = tmp_path / "images_test"
    os.makedirs(train_dir)
    os.makedirs(test_dir)

    write_solid_png(train_dir / "100008.png", (120, 120, 120))
    write_solid_png(train_dir / "100023.png", (60, 60, 60))
    write_solid_png(test_dir / "200001.png", (90, 90, 90))
    write_solid_png(test_dir / "200002.png", (200, 0, 100))

    solutions_csv = write_solutions(
        tmp_path / "solutions_training.csv",
        [
            ["100008"] + one_hot(0),
            ["100023"] + one_hot(1),
        ],
    )
    return {
        "train_dir": str(train_dir),
        "test_dir": str(test_dir),
        "solutions_csv": solutions_csv,
        "tmp_path": tmp_path,
    }
