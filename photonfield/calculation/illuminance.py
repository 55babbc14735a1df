"""
PPFD model for horticultural light sources.

Each fixture contributes photon flux density at a point on the canopy plane
through one of three strategies:

- IES-based: the angular *shape* comes from a photometric file, normalised
  by its peak candela, and the absolute output from the fixture's PPF.
  Photometric lumens and PPF are different units and are never mixed.
- Distributed: long fixtures are split into segments along their axis, each
  treated as an independent point source carrying an equal share of PPF.
- Geometric point source: a cosine-squared beam with a soft edge when no
  photometric file is attached.

The inverse-square law with cosine correction:
    E = PPF × I(θ) × cos(θ) / d²

Where:
    E = PPFD at the point (μmol/m²/s)
    I(θ) = dimensionless intensity factor in [0, 1]
    θ = angle from nadir
    d = distance from source to point
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

from photonfield.models.photometric_file import PhotometricFile
from photonfield.photometry.interp import sample_candela

ArrayLike = Union[float, np.ndarray]

# Grid points may sit directly under a fixture; distances are clamped, never raised.
MIN_DISTANCE = 1e-3
DISTRIBUTED_MIN_LENGTH = 1.0
MIN_SEGMENTS = 8
SEGMENTS_PER_UNIT = 2
SOFT_EDGE_FACTOR = 1.2


@dataclass
class LightSource:
    """
    A placed fixture.

    Attributes:
        position: (x, y) of the fixture centre on the plan
        mounting_height: height of the emitting surface above the canopy plane
        ppf: total photon output (μmol/s)
        photometry: optional shared photometric file giving the beam shape
        length: physical length along the long axis; above one unit the
                fixture is modelled as a distributed source
        beam_angle: full beam angle in degrees, used only without photometry
        enabled: disabled fixtures are skipped by the evaluator
        dimming: output fraction in [0, 1]
        rotation_deg: rotation of the C=0 plane and long axis about the vertical
    """
    position: Tuple[float, float]
    mounting_height: float
    ppf: float
    photometry: Optional[PhotometricFile] = None
    length: Optional[float] = None
    beam_angle: float = 120.0
    enabled: bool = True
    dimming: float = 1.0
    rotation_deg: float = 0.0
    id: str = ""

    def __post_init__(self):
        self.position = (float(self.position[0]), float(self.position[1]))
        if self.ppf < 0:
            raise ValueError("ppf must be >= 0")
        if not 0.0 <= self.dimming <= 1.0:
            raise ValueError("dimming must be in [0, 1]")
        if self.beam_angle <= 0 or self.beam_angle > 360:
            raise ValueError("beam_angle must be in (0, 360]")
        if self.length is not None and self.length < 0:
            raise ValueError("length must be >= 0")

    @property
    def is_distributed(self) -> bool:
        return self.length is not None and self.length > DISTRIBUTED_MIN_LENGTH

    @property
    def signature(self) -> Tuple[float, float, float, float, float, float]:
        """Radiometric parameters that change this fixture's contribution."""
        return (
            float(self.mounting_height),
            float(self.ppf),
            float(self.length or 0.0),
            float(self.beam_angle),
            float(self.dimming),
            float(self.rotation_deg),
        )


def _geometry(
    sx: float, sy: float, sz: float, px: ArrayLike, py: ArrayLike, pz: ArrayLike
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    dx = np.asarray(px, dtype=float) - sx
    dy = np.asarray(py, dtype=float) - sy
    dz = sz - np.asarray(pz, dtype=float)  # positive below the source
    horizontal = np.hypot(dx, dy)
    distance = np.maximum(np.sqrt(horizontal * horizontal + dz * dz), MIN_DISTANCE)
    vertical_deg = np.degrees(np.arctan2(horizontal, dz))
    return dx, dy, dz, distance, vertical_deg


def _as_output(values: np.ndarray) -> ArrayLike:
    if values.ndim == 0:
        return float(values)
    return values


def point_source_intensity(vertical_deg: ArrayLike, beam_angle: float) -> ArrayLike:
    """
    Dimensionless cos² beam: full inside half the beam angle, linear taper to
    zero at 1.2× the half angle, zero beyond.
    """
    theta = np.asarray(vertical_deg, dtype=float)
    half = beam_angle / 2.0
    edge = SOFT_EDGE_FACTOR * half
    cos2 = np.cos(np.radians(theta)) ** 2
    taper = cos2 * (edge - theta) / (edge - half)
    out = np.where(theta <= half, cos2, np.where(theta < edge, taper, 0.0))
    return _as_output(out)


def point_source_ppfd(
    source: LightSource,
    px: ArrayLike,
    py: ArrayLike,
    pz: ArrayLike = 0.0,
    *,
    ppf: Optional[float] = None,
    origin: Optional[Tuple[float, float]] = None,
) -> ArrayLike:
    flux = source.ppf if ppf is None else ppf
    sx, sy = origin if origin is not None else source.position
    _, _, dz, d, theta = _geometry(sx, sy, source.mounting_height, px, py, pz)
    intensity = np.asarray(point_source_intensity(theta, source.beam_angle))
    cos_incidence = np.maximum(dz, 0.0) / d
    out = flux * intensity * (1.0 / (d * d)) * cos_incidence * source.dimming
    return _as_output(out)


def ies_ppfd(
    source: LightSource,
    px: ArrayLike,
    py: ArrayLike,
    pz: ArrayLike = 0.0,
    *,
    ppf: Optional[float] = None,
    origin: Optional[Tuple[float, float]] = None,
) -> ArrayLike:
    phot = source.photometry
    if phot is None:
        raise ValueError("ies_ppfd requires a light source with photometry")
    flux = source.ppf if ppf is None else ppf
    sx, sy = origin if origin is not None else source.position
    dx, dy, dz, d, theta = _geometry(sx, sy, source.mounting_height, px, py, pz)
    if phot.max_candela <= 0.0:
        return _as_output(np.zeros_like(d))

    azimuth = np.mod(np.degrees(np.arctan2(dy, dx)) - source.rotation_deg, 360.0)
    candela = np.asarray(sample_candela(phot, theta, azimuth))
    factor = candela / phot.max_candela
    cos_theta = np.maximum(dz, 0.0) / d
    out = flux * factor * (1.0 / (d * d)) * cos_theta * source.dimming
    return _as_output(out)


def segment_count(length: float) -> int:
    return max(MIN_SEGMENTS, int(math.ceil(SEGMENTS_PER_UNIT * length)))


def distributed_ppfd(source: LightSource, px: ArrayLike, py: ArrayLike, pz: ArrayLike = 0.0) -> ArrayLike:
    """Sum of equal-share point sources spread along the fixture's long axis."""
    length = float(source.length or 0.0)
    n = segment_count(length)
    seg_ppf = source.ppf / n
    ux = math.cos(math.radians(source.rotation_deg))
    uy = math.sin(math.radians(source.rotation_deg))
    sx, sy = source.position
    strategy = ies_ppfd if source.photometry is not None else point_source_ppfd

    total = np.zeros(np.broadcast(np.asarray(px), np.asarray(py), np.asarray(pz)).shape, dtype=float)
    for i in range(n):
        offset = -length / 2.0 + (i + 0.5) * length / n
        total = total + strategy(source, px, py, pz, ppf=seg_ppf, origin=(sx + offset * ux, sy + offset * uy))
    return _as_output(total)


def calculate_ppfd(source: LightSource, px: ArrayLike, py: ArrayLike, pz: ArrayLike = 0.0) -> ArrayLike:
    """
    PPFD contributed by one fixture at the given point(s), dimming included.

    `enabled` is not consulted here; callers skip disabled fixtures.
    """
    if source.is_distributed:
        return distributed_ppfd(source, px, py, pz)
    if source.photometry is not None:
        return ies_ppfd(source, px, py, pz)
    return point_source_ppfd(source, px, py, pz)
