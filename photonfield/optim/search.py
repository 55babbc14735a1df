from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence

from photonfield.cache.contribution_cache import ContributionCache
from photonfield.calculation.field import GridSpec, evaluate_field
from photonfield.models.photometric_file import PhotometricFile
from photonfield.optim.layout import (
    LayoutCandidate,
    arrange_grid,
    build_light_sources,
    check_layout_inputs,
    layout_positions,
    require_positive,
    required_fixture_count,
    score_layout,
    solve_coverage_count,
)
from photonfield.project.catalog import FixtureRecord
from photonfield.project.requirements import ConfigurationError, LightingRequirements

logger = logging.getLogger(__name__)

COUNT_FACTORS = (0.8, 0.9, 1.0, 1.1, 1.25)
HEIGHT_FACTORS = (0.75, 1.0, 1.25)


@dataclass(frozen=True)
class SearchResult:
    best: LayoutCandidate
    top: List[LayoutCandidate]
    evaluated: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "evaluated": self.evaluated,
            "best": _candidate_dict(self.best),
            "top": [_candidate_dict(c) for c in self.top],
        }


def _candidate_dict(c: LayoutCandidate) -> Dict[str, object]:
    return {
        "rank": c.rank,
        "fixture_count": c.fixture_count,
        "columns": c.columns,
        "rows": c.rows,
        "spacing_x": c.spacing_x,
        "spacing_y": c.spacing_y,
        "height": c.height,
        "dimming": c.dimming,
        "score": c.score,
        "feasible": c.feasible,
        "statistics": c.statistics.to_dict(),
    }


def candidate_counts(required: int, factors: Iterable[float] = COUNT_FACTORS, extra: Iterable[int] = ()) -> List[int]:
    counts = {max(1, int(round(required * f))) for f in factors}
    counts.update(int(c) for c in extra if int(c) > 0)
    return sorted(counts)


def search_layouts(
    width: float,
    length: float,
    target_ppfd: float,
    ppf: float,
    heights: Sequence[float],
    *,
    uniformity_target: float = 0.8,
    dimming_levels: Sequence[float] = (1.0,),
    count_factors: Sequence[float] = COUNT_FACTORS,
    extra_counts: Sequence[int] = (),
    photometry: Optional[PhotometricFile] = None,
    beam_angle: float = 120.0,
    fixture_length: Optional[float] = None,
    resolution: float = 1.0,
    top_n: Optional[int] = None,
    cache: Optional[ContributionCache] = None,
) -> List[LayoutCandidate]:
    """
    Evaluate every (count, height, dimming) combination on the grid and rank
    the results: feasible layouts first, then ascending score.

    Candidates are enumerated in a fixed order and ranked with a stable sort,
    so equal inputs always give the same ranking.
    """
    check_layout_inputs(target_ppfd, width, length, ppf)
    if not heights:
        raise ConfigurationError("At least one mounting height is required")
    for h in heights:
        require_positive(h, "mounting height")

    required = required_fixture_count(target_ppfd, width, length, ppf)
    grid = GridSpec(width=width, length=length, resolution=resolution)
    evaluated: List[LayoutCandidate] = []
    for count in candidate_counts(required, count_factors, extra_counts):
        arrangement = arrange_grid(count, width, length)
        positions = layout_positions(arrangement.columns, arrangement.rows, width, length)
        for height in heights:
            for dimming in dimming_levels:
                sources = build_light_sources(
                    positions,
                    float(height),
                    ppf,
                    photometry=photometry,
                    beam_angle=beam_angle,
                    fixture_length=fixture_length,
                    dimming=float(dimming),
                )
                field = evaluate_field(grid, sources, cache=cache)
                feasible, score = score_layout(
                    field, target_ppfd, uniformity_target, arrangement.capacity, float(dimming), required
                )
                evaluated.append(
                    LayoutCandidate(
                        fixture_count=arrangement.capacity,
                        columns=arrangement.columns,
                        rows=arrangement.rows,
                        spacing_x=width / arrangement.columns,
                        spacing_y=length / arrangement.rows,
                        height=float(height),
                        dimming=float(dimming),
                        statistics=field.statistics,
                        score=score,
                        feasible=feasible,
                    )
                )

    evaluated.sort(key=lambda c: (not c.feasible, c.score))
    ranked = [replace(c, rank=i + 1) for i, c in enumerate(evaluated)]
    logger.info(
        "Layout search: %d candidates, %d feasible, best %d fixtures at %.2f",
        len(ranked),
        sum(1 for c in ranked if c.feasible),
        ranked[0].fixture_count,
        ranked[0].height,
    )
    if top_n is not None:
        return ranked[: max(0, int(top_n))]
    return ranked


def recommend_layout(
    requirements: LightingRequirements,
    fixture: FixtureRecord,
    width: float,
    length: float,
    *,
    unit: str = "ft",
    photometry: Optional[PhotometricFile] = None,
    dimming_levels: Sequence[float] = (1.0,),
    resolution: Optional[float] = None,
    top_n: int = 5,
    cache: Optional[ContributionCache] = None,
) -> SearchResult:
    """
    Ranked layouts of one catalog fixture against a facility's requirements.

    Heights are explored around the configured mounting height, and the
    coverage-driven fixture count joins the enumerated counts.
    """
    base_height = requirements.mounting_height(unit)
    heights = [base_height * f for f in HEIGHT_FACTORS]
    coverage = solve_coverage_count(
        width * length, requirements.target_ppfd, fixture.ppf, base_height, fixture.beam_angle
    )
    ranked = search_layouts(
        width,
        length,
        requirements.target_ppfd,
        fixture.ppf,
        heights,
        uniformity_target=requirements.uniformity_target,
        dimming_levels=dimming_levels,
        extra_counts=(coverage.fixture_count,),
        photometry=photometry,
        beam_angle=fixture.beam_angle,
        fixture_length=fixture.length(unit),
        resolution=resolution or max(width, length) / 40.0,
        cache=cache,
    )
    return SearchResult(best=ranked[0], top=ranked[:top_n], evaluated=len(ranked))
