import logging
import math
import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from lidar_relay.clustering import NOISE

logger = logging.getLogger(__name__)


def json_number(value) -> Optional[float]:
    """float for JSON, None for nan/inf which JSON cannot carry."""
    value = float(value)
    return value if math.isfinite(value) else None


@dataclass
class BoundingBox:
    """
    Axis-aligned box around a cluster. theta is kept for the wire format and is always 0.
    """
    center: Tuple[float, float]
    width: float
    height: float
    theta: float = 0.0
    # (min_x, min_y, max_x, max_y) as measured; center +- size/2 does not round-trip exactly
    extents: Optional[Tuple[float, float, float, float]] = field(default=None, repr=False, compare=False)

    def _bounds(self) -> Tuple[float, float, float, float]:
        if self.extents is not None:
            return self.extents
        cx, cy = self.center
        return (cx - self.width / 2, cy - self.height / 2, cx + self.width / 2, cy + self.height / 2)

    @property
    def min_x(self) -> float:
        return self._bounds()[0]

    @property
    def min_y(self) -> float:
        return self._bounds()[1]

    @property
    def max_x(self) -> float:
        return self._bounds()[2]

    @property
    def max_y(self) -> float:
        return self._bounds()[3]

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def to_dict(self) -> dict:
        return {
            "center": [json_number(self.center[0]), json_number(self.center[1])],
            "width": json_number(self.width),
            "height": json_number(self.height),
            "theta": float(self.theta),
        }


def compute_bounding_box(points: np.ndarray) -> BoundingBox:
    """
    Axis-aligned extents of a non-empty (N, 2) point set.
    """
    points = np.asarray(points, dtype=np.float64)
    if len(points) == 0:
        raise ValueError("Cannot compute a bounding box of an empty cluster")

    x_min, y_min = points[:, 0].min(), points[:, 1].min()
    x_max, y_max = points[:, 0].max(), points[:, 1].max()

    return BoundingBox(
        center=(float((x_min + x_max) / 2), float((y_min + y_max) / 2)),
        width=float(x_max - x_min),
        height=float(y_max - y_min),
        theta=0.0,
        extents=(float(x_min), float(y_min), float(x_max), float(y_max)),
    )


def extract_bounding_boxes(points: np.ndarray, labels: np.ndarray) -> List[Tuple[int, BoundingBox]]:
    """
    One box per non-empty cluster, in ascending cluster id. Noise gets no box.
    """
    boxes = []

    for cluster_id in np.unique(labels):
        if cluster_id == NOISE:
            continue
        cluster_points = points[labels == cluster_id]
        if len(cluster_points) == 0:
            continue

        bbox = compute_bounding_box(cluster_points)
        logger.debug("Bounding box for cluster %d: %s", cluster_id, bbox)
        boxes.append((int(cluster_id), bbox))

    return boxes
