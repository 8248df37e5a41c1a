"""
Cluster statistics for the central pixel benchmark: summary table and plot.
"""

import os
from typing import Dict, List, Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from central_pixel.cste import BenchmarkConfig, ClassInfo
from central_pixel.logger import get_logger

log = get_logger("report")


def decode_cluster_key(
    key: int, hash_factor: int = BenchmarkConfig.HASH_FACTOR
) -> Optional[tuple]:
    """
    Recover the (red, green, blue) ratios from a cluster key.
    Only meaningful when every ratio is below hash_factor. None for the
    zero intensity key.
    """
    if key == BenchmarkConfig.ZERO_INTENSITY_KEY:
        return None
    red, rest = divmod(key, hash_factor * hash_factor)
    green, blue = divmod(rest, hash_factor)
    return red, green, blue


def summarize_clusters(
    clusters: Dict[int, List[str]],
    cluster_solutions: Optional[Dict[int, np.ndarray]] = None,
    hash_factor: int = BenchmarkConfig.HASH_FACTOR,
) -> pd.DataFrame:
    """
    One row per cluster, largest first.

    Columns: cluster_key, ratio, size, and the name of the most probable class when
    cluster solutions are given.
    """
    rows = []
    for key, members in clusters.items():
        ratios = decode_cluster_key(key, hash_factor)
        row = {
            "cluster_key": key,
            "ratio": "zero_intensity" if ratios is None else "{}:{}:{}".format(*ratios),
            "size": len(members),
        }
        if cluster_solutions is not None:
            row["top_class"] = ClassInfo.CLASS_NAMES[int(np.argmax(cluster_solutions[key]))]
        rows.append(row)

    df = pd.DataFrame(rows, columns=["cluster_key", "ratio", "size"] + (
        ["top_class"] if cluster_solutions is not None else []
    ))
    return df.sort_values(["size", "cluster_key"], ascending=[False, True]).reset_index(drop=True)


def plot_cluster_sizes(
    clusters: Dict[int, List[str]],
    save_path: str,
    hash_factor: int = BenchmarkConfig.HASH_FACTOR,
) -> None:
    """
    Bar chart of cluster sizes, one bar per cluster key.

    Args:
        clusters: Cluster key -> member galaxy identifiers
        save_path: Output image path
    """
    df = summarize_clusters(clusters, hash_factor=hash_factor)

    os.makedirs(os.path.dirname(os.path.abspath(save_path)), exist_ok=True)
    fig, ax = plt.subplots(figsize=(12, 6))
    ax.bar(df["ratio"].astype(str), df["size"], color="steelblue")
    ax.set_xlabel("Normalized color ratio (R:G:B)")
    ax.set_ylabel("Number of training galaxies")
    ax.set_title(f"Central pixel clusters ({len(df)} clusters)")
    ax.tick_params(axis="x", rotation=90)
    ax.grid(True, axis="y", alpha=0.3)

    fig.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    log.info(f"Saved cluster size plot to: {save_path}")


def write_cluster_report(
    clusters: Dict[int, List[str]],
    cluster_solutions: Dict[int, np.ndarray],
    output_dir: str,
    hash_factor: int = BenchmarkConfig.HASH_FACTOR,
) -> pd.DataFrame:
    """Save the cluster summary CSV and size plot under output_dir."""
    os.makedirs(output_dir, exist_ok=True)
    df = summarize_clusters(clusters, cluster_solutions, hash_factor)

    csv_path = os.path.join(output_dir, "clusters.csv")
    df.to_csv(csv_path, index=False)
    log.info(f"Saved cluster summary to: {csv_path}")

    plot_cluster_sizes(clusters, os.path.join(output_dir, "cluster_sizes.png"), hash_factor)
    return df
