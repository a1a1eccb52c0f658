import argparse
import logging
import sys
from typing import List, Optional

from lidar_relay.config import RelayConfig
from lidar_relay.data_loader import discover_scans
from lidar_relay.errors import AcquisitionError, ConfigurationError
from lidar_relay.pipeline import ScanPipeline
from lidar_relay.sink import HttpSink
from lidar_relay.sources import ReplaySource, RPLidarSource, connect_lidar

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DEVICE = 1
EXIT_CONFIG = 2


def build_parser(defaults: RelayConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lidar-relay",
        description="Cluster RPLidar scans and forward the results to a collector over HTTP.",
    )
    parser.add_argument("--port", default=defaults.device.port, help="serial port of the RPLidar")
    parser.add_argument("--baudrate", type=int, default=defaults.device.baudrate)
    parser.add_argument("--url", default=defaults.sink.url, help="collector endpoint")
    parser.add_argument("--timeout", type=float, default=defaults.sink.timeout,
                        help="seconds to wait for the collector")
    parser.add_argument("--min-points", type=int, default=defaults.cluster.min_points,
                        help="DBSCAN neighborhood size for a core point")
    parser.add_argument("--tolerance", type=float, default=defaults.cluster.tolerance,
                        help="DBSCAN neighborhood radius, in scan units (mm)")
    parser.add_argument("--replay", metavar="DIR", default=defaults.replay_dir,
                        help="replay recorded scans from DIR instead of reading the device")
    parser.add_argument("--max-cycles", type=int, default=defaults.max_cycles,
                        help="stop after this many cycles (default: forever, or one pass with --replay)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def config_from_args(args: argparse.Namespace, defaults: RelayConfig) -> RelayConfig:
    config = defaults
    config.device.port = args.port
    config.device.baudrate = args.baudrate
    config.sink.url = args.url
    config.sink.timeout = args.timeout
    config.cluster.min_points = args.min_points
    config.cluster.tolerance = args.tolerance
    config.replay_dir = args.replay
    config.max_cycles = args.max_cycles
    return config.validate()


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    try:
        defaults = RelayConfig.from_env()
    except ConfigurationError as e:
        setup_logging("INFO")
        logger.error("Invalid configuration: %s", e)
        return EXIT_CONFIG

    args = build_parser(defaults).parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = config_from_args(args, defaults)
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        return EXIT_CONFIG

    if config.replay_dir is not None:
        paths = discover_scans(config.replay_dir)
        logger.info("Replaying %d recorded scans from %s", len(paths), config.replay_dir)
        source = ReplaySource(paths)
        if config.max_cycles is None:
            # One pass over the recordings, then stop
            config.max_cycles = max(len(paths), 1)
    else:
        try:
            lidar = connect_lidar(config.device)
        except AcquisitionError as e:
            logger.error("%s", e)
            return EXIT_DEVICE
        source = RPLidarSource(lidar, max_buf_meas=config.device.max_buf_meas, min_len=config.device.min_len)

    sink = HttpSink.from_config(config.sink)
    pipeline = ScanPipeline(source=source, sink=sink, params=config.cluster)

    try:
        stats = pipeline.run(max_cycles=config.max_cycles)
        logger.info(
            "Finished %d cycles: %d sent, %d skipped, %d send failures",
            stats.cycles, stats.dispatched, stats.skipped, stats.dispatch_failures,
        )
    except KeyboardInterrupt:
        logger.info("Ctrl+C pressed - shutting down")
    finally:
        source.close()
        sink.close()

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
