import math
import numbers
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from lidar_relay.errors import ConfigurationError

ENV_PREFIX = "LIDAR_RELAY_"


@dataclass
class ClusterParams:
    """DBSCAN parameters."""
    # Neighborhood size (point itself included) for a core point
    min_points: int = 3
    # Neighborhood radius, same units as the scan (mm for RPLidar)
    tolerance: float = 100.0

    def validate(self) -> "ClusterParams":
        if isinstance(self.min_points, bool) or not isinstance(self.min_points, numbers.Integral):
            raise ConfigurationError(f"min_points must be an integer, got {self.min_points!r}")
        if self.min_points < 1:
            raise ConfigurationError(f"min_points must be >= 1, got {self.min_points}")
        if not math.isfinite(self.tolerance) or self.tolerance <= 0:
            raise ConfigurationError(f"tolerance must be a positive number, got {self.tolerance}")
        return self


@dataclass
class SinkConfig:
    url: str = "http://localhost:8000/lidar-data"
    timeout: float = 5.0

    def validate(self) -> "SinkConfig":
        if not self.url.startswith(("http://", "https://")):
            raise ConfigurationError(f"sink url must be http(s), got {self.url!r}")
        if not math.isfinite(self.timeout) or self.timeout <= 0:
            raise ConfigurationError(f"sink timeout must be positive, got {self.timeout}")
        return self


@dataclass
class DeviceConfig:
    port: str = "/dev/ttyUSB0"
    baudrate: int = 115200
    timeout: float = 1.0
    # Passed through to RPLidar.iter_scans
    max_buf_meas: int = 3000
    min_len: int = 5

    def validate(self) -> "DeviceConfig":
        if not self.port:
            raise ConfigurationError("device port must not be empty")
        if self.baudrate <= 0:
            raise ConfigurationError(f"baudrate must be positive, got {self.baudrate}")
        return self


@dataclass
class RelayConfig:
    """Everything the process needs before it starts the scan loop."""
    cluster: ClusterParams = field(default_factory=ClusterParams)
    sink: SinkConfig = field(default_factory=SinkConfig)
    device: DeviceConfig = field(default_factory=DeviceConfig)
    replay_dir: Optional[str] = None
    max_cycles: Optional[int] = None

    def validate(self) -> "RelayConfig":
        self.cluster.validate()
        self.sink.validate()
        if self.replay_dir is None:
            self.device.validate()
        if self.max_cycles is not None and self.max_cycles < 1:
            raise ConfigurationError(f"max_cycles must be >= 1, got {self.max_cycles}")
        return self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RelayConfig":
        """
        Build a config from LIDAR_RELAY_* environment variables, falling back to defaults.
        """
        env = os.environ if environ is None else environ

        def get(name, convert, default):
            raw = env.get(ENV_PREFIX + name)
            if raw is None or raw == "":
                return default
            try:
                return convert(raw)
            except ValueError as e:
                raise ConfigurationError(f"{ENV_PREFIX}{name}={raw!r} is not valid: {e}") from e

        cluster = ClusterParams(
            min_points=get("MIN_POINTS", int, ClusterParams.min_points),
            tolerance=get("TOLERANCE", float, ClusterParams.tolerance),
        )
        sink = SinkConfig(
            url=get("URL", str, SinkConfig.url),
            timeout=get("TIMEOUT", float, SinkConfig.timeout),
        )
        device = DeviceConfig(
            port=get("PORT", str, DeviceConfig.port),
            baudrate=get("BAUDRATE", int, DeviceConfig.baudrate),
        )
        return cls(
            cluster=cluster,
            sink=sink,
            device=device,
            replay_dir=get("REPLAY_DIR", str, None),
        )
