"""
LiDAR Relay: DBSCAN clustering of RPLidar scans with per-cluster bounding boxes, forwarded to a collector over HTTP.
"""

from .errors import LidarRelayError, ConfigurationError, AcquisitionError, DispatchError
from .config import ClusterParams, SinkConfig, DeviceConfig, RelayConfig
from .point_cloud import Sample, build_points
from .clustering import dbscan_cluster, ClusterResult, NOISE
from .bounding_box import BoundingBox, compute_bounding_box, extract_bounding_boxes
from .pipeline import ScanResult, ScanPipeline, process_scan

__version__ = "0.1.0"
