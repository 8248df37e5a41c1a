"""
Central patch sampling: reduce each galaxy image to one averaged color sample.

Images are independent, so batch sampling runs on a multiprocessing pool.
"""

import multiprocessing as mp
from dataclasses import dataclass
from functools import partial
from typing import Dict, List

import numpy as np
from tqdm import tqdm

from central_pixel.cste import BenchmarkConfig, GeneralConfig
from central_pixel.errors import DataIntegrityError, ImageDecodeError, PatchBoundsError
from central_pixel.io_utils import get_filename_noext, list_dir_endwith, load_image
from central_pixel.logger import get_logger

log = get_logger("patch_sampler")


@dataclass(frozen=True)
class ColorSample:
    """Average channel values of the central patch, in the decoder's range."""
    galaxy_id: str
    red: int
    green: int
    blue: int
    alpha: int


def sample_center_patch(
    img: np.ndarray,
    galaxy_id: str,
    half_width: int = BenchmarkConfig.PATCH_HALF_WIDTH,
    channel_scale: int = BenchmarkConfig.CHANNEL_SCALE,
) -> ColorSample:
    """
    Average the channels of the square window centred on the image.

    The window covers columns [cx - half_width, cx + half_width) and rows
    [cy - half_width, cy + half_width), with cx = W // 2 and cy = H // 2.
    Averages use integer division by the pixel count.

    Args:
        img: Pixel grid, shape (H, W, 3) or (H, W, 4), integer channels
        galaxy_id: Identifier carried by the sample
        half_width: Half the window side
        channel_scale: Multiplier applied to every channel value before averaging

    Raises:
        ImageDecodeError: If the grid is not RGB or RGBA
        PatchBoundsError: If the window does not fit inside the image
    """
    if img.ndim != 3 or img.shape[2] not in (3, 4):
        raise ImageDecodeError(
            f"Galaxy {galaxy_id}: expected an RGB(A) grid, got shape {img.shape}"
        )

    height, width = img.shape[:2]
    center_x, center_y = width // 2, height // 2
    x0, x1 = center_x - half_width, center_x + half_width
    y0, y1 = center_y - half_width, center_y + half_width
    if x0 < 0 or y0 < 0 or x1 > width or y1 > height:
        raise PatchBoundsError(
            f"Galaxy {galaxy_id}: image {width}x{height} too small for a "
            f"{2 * half_width}x{2 * half_width} central patch"
        )

    patch = img[y0:y1, x0:x1].astype(np.int64) * channel_scale
    count = patch.shape[0] * patch.shape[1]
    sums = patch.reshape(count, -1).sum(axis=0)
    averages = [int(s) // count for s in sums]

    # Opaque when the decoder gives no alpha channel
    alpha = averages[3] if len(averages) == 4 else 255 * channel_scale
    return ColorSample(
        galaxy_id=galaxy_id,
        red=averages[0],
        green=averages[1],
        blue=averages[2],
        alpha=alpha,
    )


def sample_image(
    img_path: str,
    half_width: int = BenchmarkConfig.PATCH_HALF_WIDTH,
    channel_scale: int = BenchmarkConfig.CHANNEL_SCALE,
) -> ColorSample:
    """
    Worker function for sampling a single image.
    Must be at module level for multiprocessing pickling.
    """
    img = load_image(img_path)
    return sample_center_patch(
        img, get_filename_noext(img_path), half_width, channel_scale
    )


def sample_images_batch(
    img_paths: List[str],
    num_workers: int = GeneralConfig.NB_JOBS,
    half_width: int = BenchmarkConfig.PATCH_HALF_WIDTH,
    channel_scale: int = BenchmarkConfig.CHANNEL_SCALE,
    desc: str = "Sampling patches",
) -> Dict[str, ColorSample]:
    """
    Sample the central patch of many images, in parallel when num_workers > 1.

    Any decode or bounds error aborts the whole batch.

    Returns:
        Galaxy identifier -> ColorSample

    Raises:
        DataIntegrityError: If two files map to the same identifier
    """
    worker_fn = partial(
        sample_image, half_width=half_width, channel_scale=channel_scale
    )
    total_images = len(img_paths)

    if num_workers <= 1 or total_images <= 1:
        samples = [worker_fn(path) for path in tqdm(img_paths, desc=desc)]
    else:
        with mp.Pool(processes=num_workers) as pool:
            samples = list(
                tqdm(
                    pool.imap(worker_fn, img_paths, chunksize=64),
                    total=total_images,
                    desc=desc,
                )
            )

    galaxy_samples = {sample.galaxy_id: sample for sample in samples}
    if len(galaxy_samples) != total_images:
        raise DataIntegrityError(
            f"Missing galaxy somewhere: {len(galaxy_samples)} identifiers "
            f"for {total_images} image files"
        )

    return galaxy_samples


def sample_directory(
    img_dir: str,
    num_workers: int = GeneralConfig.NB_JOBS,
    half_width: int = BenchmarkConfig.PATCH_HALF_WIDTH,
    channel_scale: int = BenchmarkConfig.CHANNEL_SCALE,
) -> Dict[str, ColorSample]:
    """Sample every image of a directory (see sample_images_batch)."""
    img_paths = list_dir_endwith(img_dir)
    log.info(f"Found {len(img_paths)} images in {img_dir}")
    return sample_images_batch(
        img_paths,
        num_workers=num_workers,
        half_width=half_width,
        channel_scale=channel_scale,
        desc=f"Sampling {img_dir}",
    )
