import logging
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from rplidar import RPLidar, RPLidarException

from lidar_relay.config import DeviceConfig
from lidar_relay.data_loader import load_scan_txt
from lidar_relay.errors import AcquisitionError
from lidar_relay.point_cloud import Sample, to_samples

logger = logging.getLogger(__name__)


def connect_lidar(config: DeviceConfig) -> RPLidar:
    """
    Open the device, stop any scan left running and log what we are talking to.
    """
    try:
        lidar = RPLidar(config.port, baudrate=config.baudrate, timeout=config.timeout)
    except (RPLidarException, OSError) as e:
        raise AcquisitionError(f"Could not open RPLidar on {config.port}: {e}") from e

    try:
        lidar.stop()

        info = lidar.get_info()
        logger.info("Connected to RPLidar device on %s", config.port)
        logger.info("  Model: %s", info.get("model"))
        logger.info("  Firmware: %s", info.get("firmware"))
        logger.info("  Hardware: %s", info.get("hardware"))
        logger.info("  Serial number: %s", info.get("serialnumber"))

        status, error_code = lidar.get_health()[:2]
        if status != "Good":
            logger.warning("RPLidar health %s (error code %s)", status, error_code)
        else:
            logger.info("  Health: %s", status)
    except (RPLidarException, OSError) as e:
        lidar.disconnect()
        raise AcquisitionError(f"Could not talk to RPLidar on {config.port}: {e}") from e

    return lidar


class RPLidarSource:
    """
    Pulls one full revolution per call from an already connected RPLidar.

    The device handle is passed in, so the pipeline never reaches for it globally.
    """

    def __init__(self, lidar: RPLidar, max_buf_meas: int = 3000, min_len: int = 5):
        self.lidar = lidar
        self.max_buf_meas = max_buf_meas
        self.min_len = min_len
        self._scans: Optional[Iterator[list]] = None

    def _iter_scans(self) -> Iterator[list]:
        if self._scans is None:
            self._scans = self.lidar.iter_scans(max_buf_meas=self.max_buf_meas, min_len=self.min_len)
        return self._scans

    def get_next_scan(self) -> List[Sample]:
        try:
            raw_scan = next(self._iter_scans())
        except StopIteration as e:
            self._reset()
            raise AcquisitionError("RPLidar scan stream ended") from e
        except (RPLidarException, OSError) as e:
            self._reset()
            raise AcquisitionError(str(e)) from e

        return to_samples(raw_scan)

    def _reset(self) -> None:
        # A failed generator cannot be resumed; the next call starts a fresh one
        self._scans = None
        try:
            self.lidar.clean_input()
        except (RPLidarException, OSError) as e:
            logger.warning("Could not clean RPLidar input buffer: %s", e)

    def close(self) -> None:
        """Stop scanning, stop the motor and release the serial port."""
        for step in (self.lidar.stop, self.lidar.stop_motor, self.lidar.disconnect):
            try:
                step()
            except (RPLidarException, OSError) as e:
                logger.warning("Error while shutting down RPLidar: %s", e)
        self._scans = None


class ReplaySource:
    """
    Feeds recorded scan files in order, for running the pipeline without hardware.
    """

    def __init__(self, paths: Sequence[Union[str, Path]], loop: bool = False):
        self.paths = [Path(p) for p in paths]
        self.loop = loop
        self._next = 0

    @property
    def exhausted(self) -> bool:
        return not self.loop and self._next >= len(self.paths)

    def get_next_scan(self) -> List[Sample]:
        if not self.paths:
            raise AcquisitionError("No recorded scans to replay")
        if self.exhausted:
            raise AcquisitionError("All recorded scans have been replayed")

        path = self.paths[self._next % len(self.paths)]
        self._next += 1
        try:
            return load_scan_txt(path)
        except (OSError, ValueError) as e:
            raise AcquisitionError(f"Could not read {path}: {e}") from e

    def close(self) -> None:
        pass
