import numpy as np
import pytest

from photonfield.models.photometric_file import PhotometricFile
from photonfield.photometry.interp import fold_horizontal_angle, interpolate_candela, sample_candela


def _quadrant_file() -> PhotometricFile:
    return PhotometricFile(
        vertical_angles=[0.0, 30.0, 60.0, 90.0],
        horizontal_angles=[0.0, 90.0],
        candela=[[100.0, 80.0, 40.0, 0.0], [50.0, 40.0, 20.0, 0.0]],
    )


@pytest.mark.parametrize(
    "v, h, expected",
    [(0.0, 0.0, 100.0), (30.0, 0.0, 80.0), (60.0, 90.0, 20.0), (90.0, 90.0, 0.0)],
)
def test_exact_table_angles_return_table_values(v, h, expected):
    assert interpolate_candela(_quadrant_file(), v, h) == expected


def test_bilinear_between_angles():
    phot = _quadrant_file()
    assert interpolate_candela(phot, 15.0, 0.0) == pytest.approx(90.0)
    assert interpolate_candela(phot, 30.0, 45.0) == pytest.approx(60.0)
    assert interpolate_candela(phot, 15.0, 45.0) == pytest.approx((90.0 + 45.0) / 2.0)


def test_queries_outside_range_clamp_to_edges():
    phot = _quadrant_file()
    assert interpolate_candela(phot, -10.0, 0.0) == 100.0
    assert interpolate_candela(phot, 120.0, 0.0) == 0.0
    assert interpolate_candela(phot, 0.0, 200.0) == 50.0
    assert interpolate_candela(phot, 0.0, -5.0) == 100.0


def test_array_queries_keep_shape():
    phot = _quadrant_file()
    v = np.array([[0.0, 30.0], [60.0, 90.0]])
    out = interpolate_candela(phot, v, 0.0)
    assert isinstance(out, np.ndarray)
    assert out.shape == (2, 2)
    assert out.tolist() == [[100.0, 80.0], [40.0, 0.0]]


def test_single_plane_file():
    phot = PhotometricFile(vertical_angles=[0.0, 90.0], horizontal_angles=[0.0], candela=[[10.0, 0.0]])
    assert interpolate_candela(phot, 45.0, 123.0) == pytest.approx(5.0)
    assert fold_horizontal_angle(phot, 123.0) == 0.0


@pytest.mark.parametrize(
    "azimuth, folded",
    [(0.0, 0.0), (45.0, 45.0), (135.0, 45.0), (180.0, 0.0), (270.0, 90.0), (-45.0, 45.0)],
)
def test_quadrant_folding(azimuth, folded):
    assert fold_horizontal_angle(_quadrant_file(), azimuth) == pytest.approx(folded)


def test_bilateral_folding():
    phot = PhotometricFile(
        vertical_angles=[0.0, 90.0],
        horizontal_angles=[0.0, 90.0, 180.0],
        candela=[[1.0, 0.0], [2.0, 0.0], [3.0, 0.0]],
    )
    assert fold_horizontal_angle(phot, 270.0) == pytest.approx(90.0)
    assert fold_horizontal_angle(phot, 200.0) == pytest.approx(160.0)


def test_full_circle_is_not_folded():
    phot = PhotometricFile(
        vertical_angles=[0.0, 90.0],
        horizontal_angles=[0.0, 90.0, 180.0, 270.0, 360.0],
        candela=[[1.0, 0.0]] * 5,
    )
    assert phot.symmetry == "NONE"
    assert fold_horizontal_angle(phot, 270.0) == pytest.approx(270.0)


def _open_circle_file() -> PhotometricFile:
    return PhotometricFile(
        vertical_angles=[0.0, 45.0, 90.0],
        horizontal_angles=[0.0, 90.0, 180.0, 270.0],
        candela=[[100.0, 100.0, 0.0], [100.0, 60.0, 0.0], [100.0, 40.0, 0.0], [100.0, 20.0, 0.0]],
    )


def test_sample_wraps_past_last_plane_to_c0():
    phot = _open_circle_file()
    assert phot.symmetry == "NONE"
    assert sample_candela(phot, 45.0, 315.0) == pytest.approx(60.0)
    assert sample_candela(phot, 45.0, -45.0) == pytest.approx(60.0)
    assert sample_candela(phot, 45.0, 90.0) == pytest.approx(60.0)
    # the table lookup itself still clamps
    assert interpolate_candela(phot, 45.0, 315.0) == pytest.approx(20.0)


def test_sample_folds_symmetric_files():
    phot = PhotometricFile(
        vertical_angles=[0.0, 90.0],
        horizontal_angles=[0.0, 90.0, 180.0],
        candela=[[1.0, 0.0], [2.0, 0.0], [3.0, 0.0]],
    )
    assert sample_candela(phot, 0.0, 270.0) == pytest.approx(2.0)
    assert np.allclose(sample_candela(phot, np.array([0.0, 0.0]), np.array([90.0, 270.0])), [2.0, 2.0])
