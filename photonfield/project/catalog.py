from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from photonfield.calculation.illuminance import LightSource
from photonfield.core.units import convert_length
from photonfield.models.photometric_file import PhotometricFile
from photonfield.project.requirements import ConfigurationError

DEFAULT_BEAM_ANGLE = 120.0
MIN_COVERAGE_AREA = 4.0
EFFICIENCY_FACTOR = 0.8


def estimate_beam_angle(length_in: Optional[float], width_in: Optional[float]) -> float:
    """Beam angle (degrees) guessed from fixture dimensions in inches."""
    if not length_in or not width_in:
        return DEFAULT_BEAM_ANGLE
    aspect = length_in / width_in
    if length_in <= 48 and width_in <= 12:
        return 90.0
    if aspect > 3:
        return 140.0
    if aspect > 2:
        return 120.0
    if aspect < 1.5:
        return 100.0
    return 110.0


def estimate_ppfd_at_distance(ppf: float, mounting_height: float, beam_angle: float = DEFAULT_BEAM_ANGLE) -> float:
    """Rough PPFD of one fixture spread over its beam footprint, after real-world losses."""
    radius = mounting_height * math.tan(math.radians(beam_angle / 2.0))
    area = max(math.pi * radius * radius, MIN_COVERAGE_AREA)
    return float(round(ppf / area * EFFICIENCY_FACTOR))


@dataclass(frozen=True)
class FixtureRecord:
    """
    Catalog entry for a horticultural fixture.

    Dimensions are in inches as published by manufacturers; spectral fields
    are percentages of total photon flux.
    """
    product_id: str
    ppf: float
    wattage: float
    length_in: Optional[float] = None
    width_in: Optional[float] = None
    height_in: Optional[float] = None
    blue_percent: Optional[float] = None
    green_percent: Optional[float] = None
    red_percent: Optional[float] = None
    manufacturer: str = ""
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        if self.ppf <= 0:
            raise ConfigurationError(f"Fixture {self.product_id!r}: ppf must be > 0")
        if self.wattage < 0:
            raise ConfigurationError(f"Fixture {self.product_id!r}: wattage must be >= 0")

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "FixtureRecord":
        def num(*keys: str) -> Optional[float]:
            for k in keys:
                if payload.get(k) is not None:
                    return float(payload[k])
            return None

        ppf = num("ppf", "reportedPPF", "testedPPF")
        if ppf is None:
            raise ConfigurationError("Fixture record has no PPF")
        return cls(
            product_id=str(payload.get("productId", payload.get("product_id", ""))),
            ppf=ppf,
            wattage=num("wattage", "reportedWattage") or 0.0,
            length_in=num("length", "length_in"),
            width_in=num("width", "width_in"),
            height_in=num("height", "height_in"),
            blue_percent=num("bluePercent", "blue_percent"),
            green_percent=num("greenPercent", "green_percent"),
            red_percent=num("redPercent", "red_percent"),
            manufacturer=str(payload.get("manufacturer", "")),
        )

    @property
    def efficacy(self) -> float:
        """μmol/J; 0 when wattage is unknown."""
        return self.ppf / self.wattage if self.wattage > 0 else 0.0

    @property
    def beam_angle(self) -> float:
        return estimate_beam_angle(self.length_in, self.width_in)

    def length(self, unit: str = "ft") -> Optional[float]:
        if self.length_in is None:
            return None
        return convert_length(self.length_in, "in", unit)

    def to_light_source(
        self,
        position: Tuple[float, float],
        mounting_height: float,
        *,
        photometry: Optional[PhotometricFile] = None,
        unit: str = "ft",
        dimming: float = 1.0,
        rotation_deg: float = 0.0,
        id: str = "",
    ) -> LightSource:
        return LightSource(
            position=position,
            mounting_height=mounting_height,
            ppf=self.ppf,
            photometry=photometry,
            length=self.length(unit),
            beam_angle=self.beam_angle,
            dimming=dimming,
            rotation_deg=rotation_deg,
            id=id or self.product_id,
        )
