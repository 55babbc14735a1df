from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Literal, Mapping, Optional, get_args

from photonfield.core.units import convert_length


SpectrumPreference = Literal["high-blue", "high-red", "full-spectrum", "custom"]

DEFAULT_TARGET_PPFD = 600.0
DEFAULT_MOUNTING_HEIGHT_FT = 8.0
DEFAULT_SPECTRUM: SpectrumPreference = "full-spectrum"
DEFAULT_UNIFORMITY_TARGET = 0.8

# wire name -> field name
_ALIASES = {
    "targetPPFD": "target_ppfd",
    "target_ppfd": "target_ppfd",
    "mountingHeight": "mounting_height_ft",
    "mounting_height": "mounting_height_ft",
    "mounting_height_ft": "mounting_height_ft",
    "spectrumPreference": "spectrum_preference",
    "spectrum_preference": "spectrum_preference",
    "uniformityTarget": "uniformity_target",
    "uniformity_target": "uniformity_target",
}


class ConfigurationError(ValueError):
    pass


def _positive(value: Any, name: str) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e
    if math.isnan(v) or math.isinf(v) or v <= 0.0:
        raise ConfigurationError(f"{name} must be > 0, got {value!r}")
    return v


@dataclass(frozen=True)
class LightingRequirements:
    """
    Facility lighting targets supplied by the design host.

    Missing fields fall back to the documented defaults; fields that are
    present but invalid raise ConfigurationError.
    """
    target_ppfd: float = DEFAULT_TARGET_PPFD
    mounting_height_ft: float = DEFAULT_MOUNTING_HEIGHT_FT
    spectrum_preference: SpectrumPreference = DEFAULT_SPECTRUM
    uniformity_target: float = DEFAULT_UNIFORMITY_TARGET

    def __post_init__(self):
        object.__setattr__(self, "target_ppfd", _positive(self.target_ppfd, "targetPPFD"))
        object.__setattr__(self, "mounting_height_ft", _positive(self.mounting_height_ft, "mountingHeight"))
        if self.spectrum_preference not in get_args(SpectrumPreference):
            raise ConfigurationError(
                f"spectrumPreference must be one of {', '.join(get_args(SpectrumPreference))}, "
                f"got {self.spectrum_preference!r}"
            )
        try:
            u = float(self.uniformity_target)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"uniformityTarget must be a number, got {self.uniformity_target!r}") from e
        if not 0.0 <= u <= 1.0:
            raise ConfigurationError(f"uniformityTarget must be in [0, 1], got {self.uniformity_target!r}")
        object.__setattr__(self, "uniformity_target", u)

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "LightingRequirements":
        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            raise ConfigurationError(f"Requirements must be a mapping, got {type(payload).__name__}")
        kwargs: Dict[str, Any] = {}
        for key, value in payload.items():
            name = _ALIASES.get(str(key))
            if name is None or value is None:
                continue
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "targetPPFD": self.target_ppfd,
            "mountingHeight": self.mounting_height_ft,
            "spectrumPreference": self.spectrum_preference,
            "uniformityTarget": self.uniformity_target,
        }

    def mounting_height(self, unit: str = "ft") -> float:
        return convert_length(self.mounting_height_ft, "ft", unit)
