"""Central pixel cluster model: fit on training samples, predict test samples."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

from central_pixel.cluster_builder import build_clusters
from central_pixel.color_hasher import check_hash_factor
from central_pixel.cste import BenchmarkConfig
from central_pixel.errors import ArtifactError, DataIntegrityError
from central_pixel.label_aggregator import aggregate_clusters, make_label_vector
from central_pixel.logger import get_logger
from central_pixel.patch_sampler import ColorSample
from central_pixel.prediction_assigner import PredictionTable, assign_predictions

log = get_logger("model")


class CentralPixelModel:
    """
    Piecewise-constant model over hashed central colors.

    Each training cluster (galaxies sharing a cluster key) stores the mean of
    its members' solutions; a test galaxy receives the mean of its cluster.
    """

    def __init__(
        self,
        hash_factor: int = BenchmarkConfig.HASH_FACTOR,
        num_classes: int = BenchmarkConfig.NUM_CLASSES,
    ):
        """
        Initialize model.

        Args:
            hash_factor: Multiplier used to combine color ratios into a key
            num_classes: Label vector length
        """
        check_hash_factor(hash_factor)

        self.model_name = "CentralPixel"
        self.hash_factor = hash_factor
        self.num_classes = num_classes
        self.clusters: Optional[Dict[int, List[str]]] = None
        self.cluster_solutions: Optional[Dict[int, np.ndarray]] = None
        self.cluster_sizes: Dict[int, int] = {}

        self.config = {
            "hash_factor": hash_factor,
            "num_classes": num_classes,
        }

    @property
    def is_fitted(self) -> bool:
        return self.cluster_solutions is not None

    def fit(
        self,
        train_samples: Dict[str, ColorSample],
        solutions: Dict[str, np.ndarray],
    ) -> Dict[str, Any]:
        """
        Cluster the training galaxies and average their solutions.

        Returns:
            Training summary dictionary
        """
        log.info(f"Fitting {self.model_name} on {len(train_samples)} galaxies")
        self.clusters = build_clusters(train_samples, self.hash_factor)
        self.cluster_solutions = aggregate_clusters(
            self.clusters, solutions, self.num_classes
        )

        self.cluster_sizes = {key: len(members) for key, members in self.clusters.items()}
        sizes = list(self.cluster_sizes.values())
        return {
            "num_galaxies": len(train_samples),
            "num_clusters": len(self.clusters),
            "largest_cluster": max(sizes),
            "singleton_clusters": sum(1 for size in sizes if size == 1),
        }

    def predict(self, test_samples: Dict[str, ColorSample]) -> PredictionTable:
        """Predict a label vector for every test galaxy."""
        if not self.is_fitted:
            raise ArtifactError("Model must be fitted or loaded before predicting")
        return assign_predictions(
            test_samples, self.cluster_solutions, self.hash_factor, self.num_classes
        )

    def save(self, save_dir: str) -> None:
        """
        Save cluster solutions and configuration.

        Args:
            save_dir: Directory to save model artifacts
        """
        if not self.is_fitted:
            raise ArtifactError("Cannot save a model that has not been fitted")

        save_path = Path(save_dir)
        save_path.mkdir(parents=True, exist_ok=True)

        #! Save cluster table as compressed arrays
        keys = np.array(sorted(self.cluster_solutions), dtype=np.int64)
        table_path = save_path / "cluster_solutions.npz"
        np.savez_compressed(
            table_path,
            keys=keys,
            solutions=np.stack([self.cluster_solutions[k] for k in keys]),
            sizes=np.array([self.cluster_sizes[k] for k in keys], dtype=np.int64),
        )
        log.info(f"Saved {len(keys)} cluster solutions to {table_path}")

        self._save_config(save_dir)

    def load(self, save_dir: str) -> None:
        """
        Load cluster solutions and configuration.

        Args:
            save_dir: Directory containing model artifacts
        """
        self.config = self._load_config(save_dir)
        self.hash_factor = int(self.config["hash_factor"])
        self.num_classes = int(self.config["num_classes"])

        table_path = Path(save_dir) / "cluster_solutions.npz"
        if not table_path.exists():
            raise ArtifactError(f"Cluster table not found: {table_path}")

        with np.load(table_path) as data:
            keys = data["keys"]
            solutions = data["solutions"]
            sizes = data["sizes"]

        if solutions.ndim != 2 or solutions.shape[0] != len(keys):
            raise DataIntegrityError(
                f"Cluster table {table_path} has {len(keys)} keys for solutions "
                f"of shape {solutions.shape}"
            )

        self.cluster_solutions = {
            int(key): make_label_vector(row, self.num_classes)
            for key, row in zip(keys, solutions)
        }
        self.cluster_sizes = {int(key): int(size) for key, size in zip(keys, sizes)}
        # Memberships are not persisted
        self.clusters = None
        log.info(f"Loaded {len(self.cluster_solutions)} cluster solutions from {table_path}")

    def _save_config(self, save_dir: str) -> None:
        """Save model configuration to JSON."""
        config_path = Path(save_dir) / "config.json"
        with open(config_path, "w") as f:
            json.dump(self.config, f, indent=2)

        log.info(f"Saved config to {config_path}")

    def _load_config(self, save_dir: str) -> Dict[str, Any]:
        """Load model configuration from JSON."""
        config_path = Path(save_dir) / "config.json"
        if not config_path.exists():
            raise ArtifactError(f"Model config not found: {config_path}")

        with open(config_path, "r") as f:
            config = json.load(f)

        log.info(f"Loaded config from {config_path}")
        return config
