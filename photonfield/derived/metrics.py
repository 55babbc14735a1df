from __future__ import annotations

import math
from typing import Literal, Sequence


Symmetry = Literal["FULL", "BILATERAL", "QUADRANT", "NONE", "UNKNOWN"]


def infer_symmetry(horizontal_deg: Sequence[float]) -> Symmetry:
    # conservative inference based on typical LM-63 practice
    if len(horizontal_deg) == 1:
        return "FULL"
    hmin, hmax = horizontal_deg[0], horizontal_deg[-1]
    if abs(hmin) > 1e-9:
        return "UNKNOWN"
    if abs(hmax - 90.0) < 1e-6:
        return "QUADRANT"
    if abs(hmax - 180.0) < 1e-6:
        return "BILATERAL"
    if hmax > 180.0:
        return "NONE"
    return "UNKNOWN"


def threshold_angle(
    vertical_deg: Sequence[float],
    intensities: Sequence[float],
    peak: float,
    fraction: float,
) -> float:
    """
    Full cone angle (degrees) over which intensity stays at or above
    `fraction * peak`, scanning upward from the first vertical angle.
    """
    if peak <= 0.0:
        return 0.0
    threshold = fraction * peak
    half = 0.0
    for angle, cd in zip(vertical_deg, intensities):
        if cd < threshold:
            break
        half = float(angle)
    return 2.0 * half


def cone_radius(height: float, beam_angle_deg: float) -> float:
    half = beam_angle_deg / 2.0
    if half >= 90.0:
        return math.inf
    return float(height) * math.tan(math.radians(half))


def coverage_area(height: float, beam_angle_deg: float) -> float:
    r = cone_radius(height, beam_angle_deg)
    return math.pi * r * r


def daily_light_integral(ppfd: float, photoperiod_hours: float) -> float:
    """mol/m²/day delivered by a constant PPFD (μmol/m²/s) over the photoperiod."""
    return float(ppfd) * float(photoperiod_hours) * 0.0036
