import warnings
import numpy as np
from pathlib import Path
from typing import Iterable, List, Union

from lidar_relay.point_cloud import Sample, SampleLike, to_samples


def load_scan_txt(file_path: Union[str, Path]) -> List[Sample]:
    """
    Load one recorded scan from a .txt file.
    Rows are `angle distance` or `quality angle distance`; `#` starts a comment.
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Scan file not found: {file_path}")

    with warnings.catch_warnings():
        # An empty recording is a valid empty scan
        warnings.simplefilter("ignore", UserWarning)
        rows = np.loadtxt(file_path, dtype=np.float64, comments="#", ndmin=2)
    if rows.size == 0:
        return []
    if rows.shape[1] not in (2, 3):
        raise ValueError(f"{file_path}: expected 2 or 3 columns, got {rows.shape[1]}")

    return to_samples(rows.tolist())


def save_scan_txt(file_path: Union[str, Path], samples: Iterable[SampleLike]) -> Path:
    """
    Write a scan in the format load_scan_txt reads. Quality is written when every sample has one.
    """
    file_path = Path(file_path)
    samples = to_samples(samples)

    with_quality = bool(samples) and all(s.quality is not None for s in samples)
    lines = ["# quality angle distance" if with_quality else "# angle distance"]
    for s in samples:
        if with_quality:
            lines.append(f"{s.quality} {s.angle!r} {s.distance!r}")
        else:
            lines.append(f"{s.angle!r} {s.distance!r}")

    file_path.write_text("\n".join(lines) + "\n")
    return file_path


def discover_scans(scan_dir: Union[str, Path]) -> List[Path]:
    """
    All recorded scans in a directory, sorted by file name.
    """
    scan_dir = Path(scan_dir)

    if not scan_dir.is_dir():
        return []

    return sorted(scan_dir.glob("*.txt"))
