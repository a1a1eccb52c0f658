import math

import numpy as np
import pytest

from lidar_relay.point_cloud import Sample, build_points, to_sample


def test_polar_to_cartesian_degrees():
    points = build_points([(0.0, 10.0), (90.0, 10.0), (180.0, 2.0), (270.0, 4.0)])

    expected = np.array([[10.0, 0.0], [0.0, 10.0], [-2.0, 0.0], [0.0, -4.0]])
    np.testing.assert_allclose(points, expected, atol=1e-9)


def test_polar_to_cartesian_radians():
    points = build_points([Sample(angle=math.pi / 4, distance=math.sqrt(2))], degrees=False)

    np.testing.assert_allclose(points, [[1.0, 1.0]])


def test_output_is_index_aligned_with_input():
    samples = [(float(a), 100.0 + a) for a in range(0, 360, 7)]
    points = build_points(samples)

    assert points.shape == (len(samples), 2)
    np.testing.assert_allclose(np.hypot(points[:, 0], points[:, 1]), [d for _, d in samples])


def test_empty_scan():
    points = build_points([])

    assert points.shape == (0, 2)


def test_rplidar_triples_are_accepted():
    sample = to_sample((15, 90.0, 250.0))

    assert sample == Sample(angle=90.0, distance=250.0, quality=15)
    np.testing.assert_allclose(build_points([(15, 90.0, 250.0)]), [[0.0, 250.0]], atol=1e-9)


def test_no_filtering_of_bad_distances():
    points = build_points([(0.0, -5.0), (0.0, float("nan")), (0.0, float("inf"))])

    assert len(points) == 3
    np.testing.assert_allclose(points[0], [-5.0, 0.0], atol=1e-9)
    assert np.isnan(points[1]).all()
    assert not np.isfinite(points[2][0])


def test_malformed_sample_rejected():
    with pytest.raises(ValueError):
        to_sample((1.0,))
