import math

import numpy as np
import pytest

from photonfield.calculation.illuminance import (
    LightSource,
    calculate_ppfd,
    distributed_ppfd,
    ies_ppfd,
    point_source_intensity,
    point_source_ppfd,
    segment_count,
)
from photonfield.models.photometric_file import PhotometricFile


def _scenario_file() -> PhotometricFile:
    v = np.arange(0.0, 91.0, 10.0)
    return PhotometricFile(
        vertical_angles=v,
        horizontal_angles=[0.0],
        candela=[[1000, 980, 930, 850, 740, 600, 440, 270, 110, 0]],
    )


def test_inverse_square_directly_below():
    low = LightSource(position=(0.0, 0.0), mounting_height=2.0, ppf=1000.0)
    high = LightSource(position=(0.0, 0.0), mounting_height=4.0, ppf=1000.0)
    e_low = point_source_ppfd(low, 0.0, 0.0)
    e_high = point_source_ppfd(high, 0.0, 0.0)
    assert e_low == pytest.approx(250.0)
    assert e_low / e_high == 4.0


@pytest.mark.parametrize("theta", [72.0001, 75.0, 80.0, 90.0])
def test_point_source_zero_beyond_soft_edge(theta):
    assert point_source_intensity(theta, 120.0) == 0.0


def test_point_source_intensity_profile():
    assert point_source_intensity(0.0, 120.0) == pytest.approx(1.0)
    assert point_source_intensity(30.0, 120.0) == pytest.approx(0.75)
    # halfway through the taper between 60° and 72°
    assert point_source_intensity(66.0, 120.0) == pytest.approx(math.cos(math.radians(66.0)) ** 2 * 0.5)
    assert point_source_intensity(71.0, 120.0) > 0.0


def test_point_source_outside_beam_on_plane_is_zero():
    src = LightSource(position=(0.0, 0.0), mounting_height=1.0, ppf=1000.0, beam_angle=90.0)
    # 45° half angle, 54° soft edge; tan(60°) puts the point outside both
    assert point_source_ppfd(src, math.tan(math.radians(60.0)), 0.0) == 0.0


def test_ies_scenario_directly_below():
    src = LightSource(position=(0.0, 0.0), mounting_height=3.0, ppf=500.0, photometry=_scenario_file())
    assert ies_ppfd(src, 0.0, 0.0) == pytest.approx(500.0 / 9.0)
    assert calculate_ppfd(src, 0.0, 0.0) == pytest.approx(55.6, abs=0.05)


def test_ies_zero_candela_gives_zero():
    phot = PhotometricFile(vertical_angles=[0.0, 90.0], horizontal_angles=[0.0], candela=[[0.0, 0.0]])
    src = LightSource(position=(0.0, 0.0), mounting_height=3.0, ppf=500.0, photometry=phot)
    assert calculate_ppfd(src, 1.0, 1.0) == 0.0


def test_ies_quadrant_file_sampled_in_every_quadrant():
    phot = PhotometricFile(
        vertical_angles=[0.0, 45.0, 90.0],
        horizontal_angles=[0.0, 90.0],
        candela=[[100.0, 90.0, 0.0], [100.0, 30.0, 0.0]],
    )
    src = LightSource(position=(0.0, 0.0), mounting_height=1.0, ppf=100.0, photometry=phot)
    east = calculate_ppfd(src, 1.0, 0.0)
    west = calculate_ppfd(src, -1.0, 0.0)
    north = calculate_ppfd(src, 0.0, 1.0)
    south = calculate_ppfd(src, 0.0, -1.0)
    assert east == pytest.approx(west)
    assert north == pytest.approx(south)
    assert east > north


def test_ies_full_circle_file_is_continuous_across_c0():
    phot = PhotometricFile(
        vertical_angles=[0.0, 45.0, 90.0],
        horizontal_angles=[0.0, 90.0, 180.0, 270.0],
        candela=[[100.0, 100.0, 0.0], [100.0, 60.0, 0.0], [100.0, 40.0, 0.0], [100.0, 20.0, 0.0]],
    )
    src = LightSource(position=(0.0, 0.0), mounting_height=1.0, ppf=100.0, photometry=phot)

    def at(azimuth):
        a = math.radians(azimuth)
        return calculate_ppfd(src, math.cos(a), math.sin(a))

    assert at(1.0) == pytest.approx(at(359.0), rel=0.05)
    assert at(315.0) == pytest.approx(at(0.0) * 0.6)


def test_rotation_turns_c_planes():
    phot = PhotometricFile(
        vertical_angles=[0.0, 45.0, 90.0],
        horizontal_angles=[0.0, 90.0],
        candela=[[100.0, 90.0, 0.0], [100.0, 30.0, 0.0]],
    )
    plain = LightSource(position=(0.0, 0.0), mounting_height=1.0, ppf=100.0, photometry=phot)
    turned = LightSource(position=(0.0, 0.0), mounting_height=1.0, ppf=100.0, photometry=phot, rotation_deg=90.0)
    assert calculate_ppfd(turned, 0.0, 1.0) == pytest.approx(calculate_ppfd(plain, 1.0, 0.0))


def test_distributed_source_lowers_peak():
    src = LightSource(position=(0.0, 0.0), mounting_height=2.0, ppf=800.0, length=8.0)
    assert segment_count(8.0) >= 16
    distributed = distributed_ppfd(src, 0.0, 0.0)
    single = point_source_ppfd(src, 0.0, 0.0)
    assert distributed < single
    assert calculate_ppfd(src, 0.0, 0.0) == distributed


def test_distributed_source_follows_rotation():
    along_x = LightSource(position=(0.0, 0.0), mounting_height=1.0, ppf=800.0, length=8.0)
    along_y = LightSource(position=(0.0, 0.0), mounting_height=1.0, ppf=800.0, length=8.0, rotation_deg=90.0)
    assert calculate_ppfd(along_x, 3.0, 0.0) > calculate_ppfd(along_x, 0.0, 3.0)
    assert calculate_ppfd(along_y, 0.0, 3.0) > calculate_ppfd(along_y, 3.0, 0.0)


def test_short_fixture_is_point_source():
    src = LightSource(position=(1.0, 1.0), mounting_height=2.0, ppf=600.0, length=1.0)
    assert not src.is_distributed
    assert calculate_ppfd(src, 2.0, 1.5) == point_source_ppfd(src, 2.0, 1.5)
    assert LightSource(position=(0, 0), mounting_height=2.0, ppf=600.0, length=1.5).is_distributed


def test_dimming_scales_output():
    full = LightSource(position=(0.0, 0.0), mounting_height=2.0, ppf=1000.0)
    half = LightSource(position=(0.0, 0.0), mounting_height=2.0, ppf=1000.0, dimming=0.5)
    assert calculate_ppfd(half, 0.5, 0.5) == pytest.approx(0.5 * calculate_ppfd(full, 0.5, 0.5))


def test_zero_distance_is_clamped():
    src = LightSource(position=(0.0, 0.0), mounting_height=0.0, ppf=1000.0)
    value = calculate_ppfd(src, 0.0, 0.0)
    assert np.isfinite(value)
    assert value >= 0.0


def test_array_inputs_match_scalar_inputs():
    src = LightSource(position=(2.0, 3.0), mounting_height=2.5, ppf=900.0)
    xs = np.array([0.0, 1.0, 2.0, 3.5])
    ys = np.array([0.0, 2.0, 3.0, 4.0])
    out = calculate_ppfd(src, xs, ys)
    assert isinstance(out, np.ndarray)
    for x, y, e in zip(xs, ys, out):
        assert calculate_ppfd(src, float(x), float(y)) == pytest.approx(e)


@pytest.mark.parametrize(
    "kwargs",
    [{"ppf": -1.0}, {"dimming": 1.5}, {"dimming": -0.1}, {"beam_angle": 0.0}, {"length": -2.0}],
)
def test_invalid_light_source_raises(kwargs):
    params = {"position": (0.0, 0.0), "mounting_height": 2.0, "ppf": 100.0}
    params.update(kwargs)
    with pytest.raises(ValueError):
        LightSource(**params)
