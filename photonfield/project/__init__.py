"""
Photonfield Project Module

Facility lighting requirements and fixture catalog records supplied by the
design host.
"""

from photonfield.project.requirements import (
    ConfigurationError,
    LightingRequirements,
    SpectrumPreference,
)
from photonfield.project.catalog import (
    FixtureRecord,
    estimate_beam_angle,
    estimate_ppfd_at_distance,
)

__all__ = [
    "ConfigurationError",
    "LightingRequirements",
    "SpectrumPreference",
    "FixtureRecord",
    "estimate_beam_angle",
    "estimate_ppfd_at_distance",
]
