import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

import numpy as np

from lidar_relay.bounding_box import BoundingBox, extract_bounding_boxes, json_number
from lidar_relay.clustering import NOISE, dbscan_cluster, summarize_clusters
from lidar_relay.config import ClusterParams
from lidar_relay.errors import AcquisitionError, DispatchError
from lidar_relay.point_cloud import Sample, SampleLike, build_points

logger = logging.getLogger(__name__)


class PointSource(Protocol):
    def get_next_scan(self) -> Sequence[Sample]:
        """Return one full scan or raise AcquisitionError."""
        ...


class ScanSink(Protocol):
    def send(self, result: "ScanResult") -> None:
        """Deliver one result or raise DispatchError."""
        ...


@dataclass
class ScanResult:
    """Result of processing a single scan."""
    timestamp: int
    points: np.ndarray
    labels: np.ndarray
    bounding_boxes: List[Tuple[int, BoundingBox]]

    @property
    def num_clusters(self) -> int:
        return len(self.bounding_boxes)

    @property
    def noise_count(self) -> int:
        return int((self.labels == NOISE).sum())

    def point_labels(self) -> List[Optional[int]]:
        return [None if label == NOISE else int(label) for label in self.labels]

    def to_payload(self) -> dict:
        """JSON body sent to the collector. Noise labels and non-finite coordinates become null."""
        return {
            "timestamp": int(self.timestamp),
            "scan_points": [[json_number(x), json_number(y)] for x, y in self.points],
            "point_labels": self.point_labels(),
            "bounding_boxes": [[cid, bbox.to_dict()] for cid, bbox in self.bounding_boxes],
        }


def process_scan(
    samples: Iterable[SampleLike],
    params: ClusterParams,
    timestamp: Optional[int] = None,
) -> ScanResult:
    """
    Run builder, clustering and box extraction on one scan.
    """
    points = build_points(samples)
    labels = cluster_points(points, params)
    return summarize_scan(points, labels, timestamp)


def cluster_points(points: np.ndarray, params: ClusterParams) -> np.ndarray:
    cluster_result = dbscan_cluster(
        points,
        min_points=params.min_points,
        tolerance=params.tolerance,
    )
    summarize_clusters(cluster_result)
    return cluster_result.labels


def summarize_scan(points: np.ndarray, labels: np.ndarray, timestamp: Optional[int] = None) -> ScanResult:
    return ScanResult(
        timestamp=int(time.time()) if timestamp is None else int(timestamp),
        points=points,
        labels=labels,
        bounding_boxes=extract_bounding_boxes(points, labels),
    )


class PipelineState(Enum):
    IDLE = "idle"
    ACQUIRING = "acquiring"
    CLUSTERING = "clustering"
    SUMMARIZING = "summarizing"
    DISPATCHING = "dispatching"


class CycleOutcome(Enum):
    DISPATCHED = "dispatched"
    SKIPPED = "skipped"
    DISPATCH_FAILED = "dispatch_failed"


@dataclass
class PipelineStats:
    cycles: int = 0
    dispatched: int = 0
    skipped: int = 0
    dispatch_failures: int = 0
    last_outcome: Optional[CycleOutcome] = None

    def record(self, outcome: CycleOutcome) -> None:
        self.cycles += 1
        self.last_outcome = outcome
        if outcome is CycleOutcome.DISPATCHED:
            self.dispatched += 1
        elif outcome is CycleOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.dispatch_failures += 1


@dataclass
class ScanPipeline:
    """
    Acquire, cluster, summarize and dispatch one scan per cycle, forever.

    Acquisition failures and empty scans skip the cycle without touching the sink.
    Sink failures drop the result. Neither stops the loop, and nothing is retried.
    """
    source: PointSource
    sink: ScanSink
    params: ClusterParams = field(default_factory=ClusterParams)
    state: PipelineState = PipelineState.IDLE
    stats: PipelineStats = field(default_factory=PipelineStats)

    def __post_init__(self):
        self.params.validate()

    def run_cycle(self) -> CycleOutcome:
        try:
            outcome = self._cycle()
        finally:
            self.state = PipelineState.IDLE
        self.stats.record(outcome)
        return outcome

    def _cycle(self) -> CycleOutcome:
        self.state = PipelineState.ACQUIRING
        try:
            samples = self.source.get_next_scan()
        except AcquisitionError as e:
            logger.warning("Failed to grab scan: %s", e)
            return CycleOutcome.SKIPPED

        if samples is None or len(samples) == 0:
            logger.warning("Empty scan, skipping cycle")
            return CycleOutcome.SKIPPED

        self.state = PipelineState.CLUSTERING
        points = build_points(samples)
        labels = cluster_points(points, self.params)

        self.state = PipelineState.SUMMARIZING
        result = summarize_scan(points, labels)

        self.state = PipelineState.DISPATCHING
        try:
            self.sink.send(result)
        except DispatchError as e:
            logger.error("Failed to send scan result: %s", e)
            return CycleOutcome.DISPATCH_FAILED

        logger.info(
            "Sent scan: %d points, %d clusters, %d noise",
            len(result.points), result.num_clusters, result.noise_count,
        )
        return CycleOutcome.DISPATCHED

    def run(self, max_cycles: Optional[int] = None) -> PipelineStats:
        """
        Loop until max_cycles cycles have run; with no bound, loop until interrupted.
        """
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            self.run_cycle()
            cycles += 1
        return self.stats
