"""
Photonfield Calculation Module

PPFD models for individual fixtures, grid evaluation with field statistics,
and per-fixture annotations.
"""

from photonfield.calculation.illuminance import (
    LightSource,
    calculate_ppfd,
    distributed_ppfd,
    ies_ppfd,
    point_source_intensity,
    point_source_ppfd,
    segment_count,
)

from photonfield.calculation.field import (
    FieldStatistics,
    FixtureAnnotation,
    GridField,
    GridSpec,
    annotate_fixtures,
    compute_statistics,
    evaluate_field,
)

__all__ = [
    # Fixture models
    "LightSource",
    "calculate_ppfd",
    "distributed_ppfd",
    "ies_ppfd",
    "point_source_intensity",
    "point_source_ppfd",
    "segment_count",
    # Grid evaluation
    "FieldStatistics",
    "FixtureAnnotation",
    "GridField",
    "GridSpec",
    "annotate_fixtures",
    "compute_statistics",
    "evaluate_field",
]
