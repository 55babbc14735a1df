from __future__ import annotations

from typing import Tuple, Union

import numpy as np

from photonfield.models.photometric_file import PhotometricFile

ArrayLike = Union[float, np.ndarray]


def _find_bracket(val: np.ndarray, arr: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Bracketing indices and interpolation weight for each value.

    Values outside [arr[0], arr[-1]] are clamped to the edge, so the weight
    never leaves [0, 1].
    """
    n = arr.size
    if n == 1:
        zeros = np.zeros(val.shape, dtype=int)
        return zeros, zeros, np.zeros(val.shape, dtype=float)
    x = np.clip(val, arr[0], arr[-1])
    hi = np.clip(np.searchsorted(arr, x, side="right"), 1, n - 1)
    lo = hi - 1
    t = (x - arr[lo]) / (arr[hi] - arr[lo])
    return lo, hi, t


def _find_cyclic_bracket(val: np.ndarray, arr: np.ndarray, period: float = 360.0) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Like `_find_bracket`, but values past arr[-1] interpolate between the
    last entry and arr[0] + period instead of clamping.
    """
    n = arr.size
    first = float(arr[0])
    last = float(arr[-1])
    x = np.mod(val - first, period) + first
    lo, hi, t = _find_bracket(np.minimum(x, last), arr)
    past = x > last
    lo = np.where(past, n - 1, lo)
    hi = np.where(past, 0, hi)
    t = np.where(past, (x - last) / (first + period - last), t)
    return lo, hi, t


def _blend(table: np.ndarray, v_lo, v_hi, v_t, h_lo, h_hi, h_t) -> ArrayLike:
    c00 = table[h_lo, v_lo]
    c01 = table[h_lo, v_hi]
    c10 = table[h_hi, v_lo]
    c11 = table[h_hi, v_hi]
    v0 = c00 * (1.0 - v_t) + c01 * v_t
    v1 = c10 * (1.0 - v_t) + c11 * v_t
    out = v0 * (1.0 - h_t) + v1 * h_t
    if out.ndim == 0:
        return float(out)
    return out


def interpolate_candela(phot: PhotometricFile, vertical_deg: ArrayLike, horizontal_deg: ArrayLike) -> ArrayLike:
    """
    Bilinear candela lookup at (vertical, horizontal) angles in degrees.

    Queries outside the table's angular range clamp to the nearest edge value;
    the table is never extrapolated. Accepts scalars or broadcastable arrays
    and returns the same kind.
    """
    g, c = np.broadcast_arrays(np.asarray(vertical_deg, dtype=float), np.asarray(horizontal_deg, dtype=float))
    v_lo, v_hi, v_t = _find_bracket(g, phot.vertical_angles)
    h_lo, h_hi, h_t = _find_bracket(c, phot.horizontal_angles)
    return _blend(phot.candela, v_lo, v_hi, v_t, h_lo, h_hi, h_t)


def sample_candela(phot: PhotometricFile, vertical_deg: ArrayLike, azimuth_deg: ArrayLike) -> ArrayLike:
    """
    Candela toward a direction given by any azimuth.

    Symmetric tables are folded into their stored span. A full-circle table
    without a closing 360° plane interpolates across the seam between its
    last plane and C0.
    """
    h = phot.horizontal_angles
    if phot.symmetry != "NONE" or h[-1] >= 360.0:
        return interpolate_candela(phot, vertical_deg, fold_horizontal_angle(phot, azimuth_deg))
    g, c = np.broadcast_arrays(np.asarray(vertical_deg, dtype=float), np.asarray(azimuth_deg, dtype=float))
    v_lo, v_hi, v_t = _find_bracket(g, phot.vertical_angles)
    h_lo, h_hi, h_t = _find_cyclic_bracket(c, h)
    return _blend(phot.candela, v_lo, v_hi, v_t, h_lo, h_hi, h_t)


def fold_horizontal_angle(phot: PhotometricFile, horizontal_deg: ArrayLike) -> ArrayLike:
    """
    Map an azimuth in [0, 360) into the file's horizontal domain using the
    symmetry implied by its angle span (single plane, quadrant, bilateral).
    """
    c = np.mod(np.asarray(horizontal_deg, dtype=float), 360.0)
    sym = phot.symmetry
    if sym == "FULL":
        c = np.zeros_like(c)
    elif sym == "QUADRANT":
        c = np.where(c <= 180.0, c, 360.0 - c)
        c = np.where(c <= 90.0, c, 180.0 - c)
    elif sym == "BILATERAL":
        c = np.where(c <= 180.0, c, 360.0 - c)
    if c.ndim == 0:
        return float(c)
    return c
