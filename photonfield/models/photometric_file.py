from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Dict, List, Optional

import numpy as np

from photonfield.core.hashing import hash_photometry
from photonfield.derived.metrics import (
    Symmetry,
    cone_radius,
    coverage_area,
    infer_symmetry,
    threshold_angle,
)
from photonfield.models.photometry import AngleGrid, BallastLine, PhotometryHeader

BEAM_THRESHOLD = 0.5
FIELD_THRESHOLD = 0.1


def _readonly(values, name: str, ndim: int) -> np.ndarray:
    arr = np.array(values, dtype=float)
    if arr.ndim != ndim:
        raise ValueError(f"{name} must be {ndim}-dimensional, got shape {arr.shape}")
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class PhotometricFile:
    """
    Angular intensity table of one luminaire.

    `candela` is indexed [horizontal][vertical] and already carries the file's
    candela multiplier. Vertical angles are measured from nadir (0 = straight
    down). Instances are read-only and may be shared by any number of light
    sources.
    """

    vertical_angles: np.ndarray
    horizontal_angles: np.ndarray
    candela: np.ndarray
    total_lumens: float = 0.0
    input_watts: float = 0.0
    width: float = 0.0
    length: float = 0.0
    height: float = 0.0
    units_type: int = 2
    photometric_type: int = 1
    tilt_mode: str = "NONE"
    keywords: Dict[str, List[str]] = field(default_factory=dict)
    header: Optional[PhotometryHeader] = None
    ballast: Optional[BallastLine] = None
    angle_grid: Optional[AngleGrid] = None

    def __post_init__(self) -> None:
        v = _readonly(self.vertical_angles, "vertical_angles", 1)
        h = _readonly(self.horizontal_angles, "horizontal_angles", 1)
        cd = _readonly(self.candela, "candela", 2)
        object.__setattr__(self, "vertical_angles", v)
        object.__setattr__(self, "horizontal_angles", h)
        object.__setattr__(self, "candela", cd)

        if v.size == 0 or h.size == 0:
            raise ValueError("Angle arrays must not be empty")
        if np.any(np.diff(v) <= 0.0):
            raise ValueError("Vertical angles are not strictly increasing")
        if np.any(np.diff(h) <= 0.0):
            raise ValueError("Horizontal angles are not strictly increasing")
        if v[0] < 0.0 or v[-1] > 180.0:
            raise ValueError("Vertical angles must lie in [0, 180] degrees")
        if h[0] < 0.0 or h[-1] > 360.0:
            raise ValueError("Horizontal angles must lie in [0, 360] degrees")
        if self.photometric_type != 1:
            raise ValueError(f"Only type C photometry is supported, got photometric_type={self.photometric_type}")
        if cd.shape != (h.size, v.size):
            raise ValueError(f"Invalid candela table shape: got {cd.shape}, expected {(h.size, v.size)}")
        if not np.all(np.isfinite(cd)):
            raise ValueError("Candela table contains NaN or Inf")
        if np.any(cd < 0.0):
            raise ValueError("Candela values must be >= 0")

    @cached_property
    def max_candela(self) -> float:
        return float(np.max(self.candela))

    @cached_property
    def efficacy(self) -> float:
        """Lumens per watt; 0 when input watts are unknown."""
        if self.input_watts <= 0.0:
            return 0.0
        return float(self.total_lumens) / float(self.input_watts)

    @cached_property
    def beam_angle(self) -> float:
        return threshold_angle(self.vertical_angles, self.candela[0], self.max_candela, BEAM_THRESHOLD)

    @cached_property
    def field_angle(self) -> float:
        return threshold_angle(self.vertical_angles, self.candela[0], self.max_candela, FIELD_THRESHOLD)

    @cached_property
    def symmetry(self) -> Symmetry:
        return infer_symmetry(self.horizontal_angles.tolist())

    @cached_property
    def content_hash(self) -> str:
        return hash_photometry(self.vertical_angles, self.horizontal_angles, self.candela)

    def cone_radius(self, height: float) -> float:
        return cone_radius(height, self.beam_angle)

    def coverage_area(self, height: float) -> float:
        return coverage_area(height, self.beam_angle)
