import os

import pytest

from lidar_relay import cli
from lidar_relay.data_loader import save_scan_txt
from lidar_relay.errors import AcquisitionError


class FakeSink:
    instances = []

    def __init__(self, *args, **kwargs):
        self.results = []
        self.closed = False
        FakeSink.instances.append(self)

    @classmethod
    def from_config(cls, config):
        return cls()

    def send(self, result):
        self.results.append(result)

    def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def fake_sink(monkeypatch):
    FakeSink.instances = []
    monkeypatch.setattr(cli, "HttpSink", FakeSink)
    for name in list(os.environ):
        if name.startswith("LIDAR_RELAY_"):
            monkeypatch.delenv(name)
    return FakeSink


@pytest.fixture
def replay_dir(tmp_path, scan):
    save_scan_txt(tmp_path / "0001.txt", scan)
    save_scan_txt(tmp_path / "0002.txt", scan)
    return tmp_path


def test_replay_run(replay_dir):
    code = cli.main(["--replay", str(replay_dir), "--max-cycles", "3", "--log-level", "DEBUG"])

    assert code == cli.EXIT_OK
    (sink,) = FakeSink.instances
    # Third cycle finds the recordings exhausted and is skipped
    assert len(sink.results) == 2
    assert sink.results[0].num_clusters == 2
    assert sink.closed


def test_cluster_options_are_applied(replay_dir):
    cli.main(["--replay", str(replay_dir), "--max-cycles", "1", "--tolerance", "1", "--min-points", "3"])

    (sink,) = FakeSink.instances
    assert sink.results[0].num_clusters == 0


@pytest.mark.parametrize("argv", [
    ["--min-points", "0"],
    ["--tolerance", "-5"],
    ["--url", "not-a-url"],
])
def test_invalid_configuration_exits_before_loop(argv, replay_dir, caplog):
    code = cli.main(argv + ["--replay", str(replay_dir), "--max-cycles", "1"])

    assert code == cli.EXIT_CONFIG
    assert FakeSink.instances == []
    assert "Invalid configuration" in caplog.text


def test_invalid_env_configuration(monkeypatch):
    monkeypatch.setenv("LIDAR_RELAY_TOLERANCE", "wide")

    assert cli.main([]) == cli.EXIT_CONFIG


def test_device_unavailable(monkeypatch):
    def no_device(config):
        raise AcquisitionError("Could not open RPLidar on /dev/ttyUSB0")

    monkeypatch.setattr(cli, "connect_lidar", no_device)

    assert cli.main(["--max-cycles", "1"]) == cli.EXIT_DEVICE
    assert FakeSink.instances == []


def test_device_run_closes_lidar(monkeypatch, scan):
    class Device:
        closed = False

    device = Device()

    class FakeSource:
        def __init__(self, lidar, max_buf_meas, min_len):
            assert lidar is device

        def get_next_scan(self):
            return scan

        def close(self):
            device.closed = True

    monkeypatch.setattr(cli, "connect_lidar", lambda config: device)
    monkeypatch.setattr(cli, "RPLidarSource", FakeSource)

    assert cli.main(["--max-cycles", "2"]) == cli.EXIT_OK
    assert len(FakeSink.instances[0].results) == 2
    assert device.closed


def test_ctrl_c_shuts_down_cleanly(monkeypatch, replay_dir):
    def interrupted(self, max_cycles=None):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli.ScanPipeline, "run", interrupted)

    assert cli.main(["--replay", str(replay_dir)]) == cli.EXIT_OK
    assert FakeSink.instances[0].closed


def test_replay_without_max_cycles_stops_after_one_pass(replay_dir, caplog):
    with caplog.at_level("INFO", logger="lidar_relay.cli"):
        code = cli.main(["--replay", str(replay_dir)])

    assert code == cli.EXIT_OK
    assert len(FakeSink.instances[0].results) == 2
    assert "Finished 2 cycles: 2 sent, 0 skipped" in caplog.text


def test_replay_of_empty_directory_stops(tmp_path):
    assert cli.main(["--replay", str(tmp_path)]) == cli.EXIT_OK
    assert FakeSink.instances[0].results == []
