import pytest

from lidar_relay.errors import AcquisitionError

from fakes import RecordingSink


@pytest.fixture
def scan():
    # A wall and a post in degrees/mm, plus one stray reading
    wall = [(float(a), 1000.0) for a in range(0, 11)]
    post = [(90.0 + 0.5 * i, 500.0) for i in range(-3, 3)]
    stray = [(200.0, 3000.0)]
    return wall + post + stray


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def acquisition_error():
    return AcquisitionError("Failed to grab scan")
