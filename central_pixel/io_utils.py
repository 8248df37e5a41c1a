"""
Input/Output utilities for image loading, solutions parsing and prediction writing.
"""

import csv
import os
import tempfile
from typing import Dict, List, Optional, Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from central_pixel.cste import BenchmarkConfig
from central_pixel.errors import (
    DataIntegrityError,
    ImageDecodeError,
    InputPathError,
    LabelParseError,
)
from central_pixel.label_aggregator import make_label_vector
from central_pixel.logger import get_logger

log = get_logger("io_utils")


def load_image(img_path: str) -> np.ndarray:
    """
    Load an image file as an RGBA pixel grid.

    Args:
        img_path: Path to image file

    Returns:
        RGBA image as numpy array, shape (H, W, 4), dtype uint8, range [0, 255]

    Raises:
        ImageDecodeError: If the path does not exist or cannot be decoded
    """
    if not os.path.exists(img_path):
        raise ImageDecodeError(f"Image not found: {img_path}")

    try:
        with Image.open(img_path) as img:
            img_array = np.array(img.convert("RGBA"), dtype=np.uint8)
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDecodeError(f"Failed to load image {img_path}: {e}")

    return img_array


def list_dir_endwith(
    dir_path: str, suffixes: Optional[tuple] = BenchmarkConfig.IMAGE_SUFFIXES
) -> List[str]:
    """
    List files in directory with specific suffixes.
    Args:
        dir_path: Directory path
        suffixes: Tuple of file extensions to filter by (case insensitive)

    Returns:
        Sorted list of file paths matching the suffixes (initial given directory + filename)

    Raises:
        InputPathError: If dir_path is not an existing directory
    """
    if not os.path.isdir(dir_path):
        raise InputPathError(f"Not a directory: {dir_path}")

    list_files_names = sorted(os.listdir(dir_path))
    list_selected_files = [
        f for f in list_files_names if os.path.splitext(f)[1].lower() in suffixes
    ]
    return [os.path.join(dir_path, f) for f in list_selected_files]


def get_filename_noext(path: str) -> str:
    """Return the file name without its extension from a given path.
    Example : '/path/to/images_training/100008.jpg' -> '100008'
    """
    filename = os.path.basename(path)
    name, _ = os.path.splitext(filename)
    return name


def read_training_solutions(
    csv_path: str, num_classes: int = BenchmarkConfig.NUM_CLASSES
) -> Tuple[List[str], Dict[str, np.ndarray]]:
    """
    Read the training solutions file.

    The file has a header row, then one row per galaxy: the identifier followed
    by exactly `num_classes` probabilities in [0, 1].

    Args:
        csv_path: Path to the solutions CSV
        num_classes: Expected number of probability columns

    Returns:
        (header, solutions) where header is the list of column names and
        solutions maps each galaxy identifier to a read-only label vector

    Raises:
        LabelParseError: Unreadable file, wrong field count, non-numeric or
            out of range value
        DataIntegrityError: Duplicate galaxy identifier
    """
    log.info(f"Reading training solutions from {csv_path}")
    expected_fields = num_classes + 1
    solutions: Dict[str, np.ndarray] = {}

    try:
        with open(csv_path, mode="r", newline="") as f:
            reader = csv.reader(f)
            header = next(reader, None)
            if header is None:
                raise LabelParseError(f"Solutions file is empty: {csv_path}")
            if len(header) != expected_fields:
                raise LabelParseError(
                    f"Solutions header has {len(header)} fields, expected {expected_fields}"
                )

            for row in reader:
                if not row:
                    continue
                if len(row) != expected_fields:
                    raise LabelParseError(
                        f"{csv_path} line {reader.line_num}: {len(row)} fields, "
                        f"expected {expected_fields}"
                    )

                galaxy_id = row[0].strip()
                try:
                    values = [float(field) for field in row[1:]]
                except ValueError as e:
                    raise LabelParseError(
                        f"{csv_path} line {reader.line_num}: non-numeric probability ({e})"
                    )

                #! NaN fails both comparisons and is rejected here too
                if not all(0.0 <= value <= 1.0 for value in values):
                    raise LabelParseError(
                        f"{csv_path} line {reader.line_num}: probability outside [0, 1] "
                        f"for galaxy {galaxy_id}"
                    )
                if galaxy_id in solutions:
                    raise DataIntegrityError(
                        f"Duplicate galaxy identifier in solutions: {galaxy_id}"
                    )

                solutions[galaxy_id] = make_label_vector(values, num_classes)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise LabelParseError(f"Failed to read solutions file {csv_path}: {e}")

    log.info(f"Loaded {len(solutions)} training solutions")
    return header, solutions


def format_probability(value: float) -> str:
    """Shortest positional representation, no forced trailing zeros.
    Example : 0.5 -> '0.5', 0.0 -> '0', 1.0 -> '1'
    """
    return np.format_float_positional(float(value), trim="-")


def write_predictions(
    output_csv_path: str, header: List[str], rows: List[List[str]]
) -> None:
    """
    Write prediction rows to CSV.

    The file is first written next to its destination then moved in place, so
    a failure never leaves a partial prediction file behind.

    Args:
        output_csv_path: Destination CSV path
        header: Header row (same as the solutions file)
        rows: Prediction rows, identifier followed by formatted probabilities
    """
    output_dir = os.path.dirname(os.path.abspath(output_csv_path))
    os.makedirs(output_dir, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=output_dir, suffix=".csv.tmp")
    try:
        with os.fdopen(fd, mode="w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            writer.writerows(rows)
        os.replace(tmp_path, output_csv_path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    log.info(f"Wrote {len(rows)} predictions to {output_csv_path}")
