import numpy as np
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union


@dataclass(frozen=True)
class Sample:
    """One sensor reading. RPLidar reports angle in degrees and distance in mm."""
    angle: float
    distance: float
    quality: Optional[int] = None


SampleLike = Union[Sample, Sequence[float]]


def to_sample(raw: SampleLike) -> Sample:
    """
    Accept a Sample, an (angle, distance) pair or an RPLidar (quality, angle, distance) triple.
    """
    if isinstance(raw, Sample):
        return raw
    if len(raw) == 3:
        quality, angle, distance = raw
        return Sample(angle=float(angle), distance=float(distance), quality=int(quality))
    if len(raw) == 2:
        angle, distance = raw
        return Sample(angle=float(angle), distance=float(distance))
    raise ValueError(f"Expected 2 or 3 fields per sample, got {len(raw)}")


def to_samples(raw_scan: Iterable[SampleLike]) -> List[Sample]:
    return [to_sample(raw) for raw in raw_scan]


def build_points(samples: Iterable[SampleLike], degrees: bool = True) -> np.ndarray:
    """
    Convert polar samples to an (N, 2) array of Cartesian points.
    No filtering: non-finite or negative distances go straight through.
    """
    samples = to_samples(samples)
    if not samples:
        return np.zeros((0, 2))

    angles = np.array([s.angle for s in samples], dtype=np.float64)
    distances = np.array([s.distance for s in samples], dtype=np.float64)
    if degrees:
        angles = np.radians(angles)

    with np.errstate(invalid="ignore"):
        xs = distances * np.cos(angles)
        ys = distances * np.sin(angles)

    return np.column_stack((xs, ys))
