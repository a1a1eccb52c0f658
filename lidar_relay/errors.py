class LidarRelayError(Exception):
    """Base class for lidar-relay errors."""


class ConfigurationError(LidarRelayError):
    """Invalid clustering or process parameters. Fatal at startup."""


class AcquisitionError(LidarRelayError):
    """The point source could not deliver a scan. The cycle is skipped."""


class DispatchError(LidarRelayError):
    """The sink did not accept a scan result. The result is dropped."""
