"""
Central pixel benchmark for the Galaxy Zoo morphology challenge.

Pipeline: patch sampling -> color hashing -> clustering -> label averaging ->
prediction assignment.
"""

from .patch_sampler import ColorSample, sample_center_patch, sample_images_batch
from .color_hasher import compute_cluster_key, normalize_color
from .cluster_builder import build_clusters
from .label_aggregator import aggregate_clusters, average_cluster_labels, make_label_vector
from .prediction_assigner import PredictionTable, assign_predictions
from .model import CentralPixelModel


__all__ = [
    'ColorSample',
    'sample_center_patch',
    'sample_images_batch',
    'compute_cluster_key',
    'normalize_color',
    'build_clusters',
    'aggregate_clusters',
    'average_cluster_labels',
    'make_label_vector',
    'PredictionTable',
    'assign_predictions',
    'CentralPixelModel',
]
