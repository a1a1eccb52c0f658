import logging
import numpy as np
from scipy.spatial import KDTree
from dataclasses import dataclass
from typing import Dict, List, Optional
from collections import deque

from lidar_relay.config import ClusterParams

logger = logging.getLogger(__name__)

NOISE = -1


@dataclass
class ClusterResult:
    # One label per input point, NOISE (-1) or a cluster id in discovery order
    labels: np.ndarray
    num_clusters: int
    # Indexed by cluster id
    cluster_sizes: List[int]
    noise_count: int

    def label_counts(self) -> Dict[Optional[int], int]:
        """Points per label, with None standing for noise."""
        counts: Dict[Optional[int], int] = {}
        if self.noise_count:
            counts[None] = self.noise_count
        for cid, size in enumerate(self.cluster_sizes):
            counts[cid] = size
        return counts

    def members(self, cluster_id: int) -> np.ndarray:
        return np.flatnonzero(self.labels == cluster_id)


def check_params(min_points: int, tolerance: float) -> None:
    ClusterParams(min_points=min_points, tolerance=tolerance).validate()


def dbscan_cluster(
    points: np.ndarray,
    min_points: int = 3,
    tolerance: float = 100.0,
) -> ClusterResult:
    """
    DBSCAN clustering of 2D points using a KDTree for neighborhoods.

    A point is core when at least min_points points (itself included) lie within
    tolerance of it. Clusters grow breadth-first from each unlabeled core point in
    index order; a border point keeps the first cluster that reaches it.
    Non-finite points are always noise.
    """
    check_params(min_points, tolerance)

    points = np.asarray(points, dtype=np.float64)
    n = len(points)
    if n == 0:
        return ClusterResult(
            labels=np.array([], dtype=int),
            num_clusters=0,
            cluster_sizes=[],
            noise_count=0,
        )

    xy = points.reshape(n, -1)[:, :2]
    finite = np.flatnonzero(np.isfinite(xy).all(axis=1))

    # KDTree rejects nan/inf, so neighborhoods are built over finite points only
    # and mapped back to original indices
    neighborhoods: List[List[int]] = [[] for _ in range(n)]
    if len(finite) > 0:
        tree = KDTree(xy[finite])
        for local_i, local_nbrs in enumerate(tree.query_ball_point(xy[finite], tolerance)):
            neighborhoods[finite[local_i]] = [int(finite[j]) for j in local_nbrs]

    is_core = np.array([len(nbrs) >= min_points for nbrs in neighborhoods], dtype=bool)

    labels = np.full(n, NOISE, dtype=int)
    cluster_id = 0

    for i in range(n):
        if labels[i] != NOISE or not is_core[i]:
            continue

        labels[i] = cluster_id
        queue = deque(neighborhoods[i])

        while queue:
            j = queue.popleft()
            if labels[j] != NOISE:
                continue
            labels[j] = cluster_id
            if is_core[j]:
                queue.extend(neighborhoods[j])

        cluster_id += 1

    cluster_sizes = [int(size) for size in np.bincount(labels[labels >= 0], minlength=cluster_id)]
    noise_count = int((labels == NOISE).sum())

    return ClusterResult(
        labels=labels,
        num_clusters=cluster_id,
        cluster_sizes=cluster_sizes,
        noise_count=noise_count,
    )


def summarize_clusters(result: ClusterResult) -> None:
    logger.info(
        "Clustering result: %d clusters, %d noise points",
        result.num_clusters, result.noise_count,
    )
    for label, count in result.label_counts().items():
        if label is None:
            logger.debug(" - %d noise points", count)
        else:
            logger.debug(" - %d points in cluster %d", count, label)
