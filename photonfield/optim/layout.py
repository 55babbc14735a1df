from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from photonfield.cache.contribution_cache import ContributionCache
from photonfield.calculation.field import FieldStatistics, GridField, GridSpec, evaluate_field
from photonfield.calculation.illuminance import LightSource
from photonfield.models.photometric_file import PhotometricFile
from photonfield.project.catalog import EFFICIENCY_FACTOR, MIN_COVERAGE_AREA
from photonfield.project.requirements import ConfigurationError

logger = logging.getLogger(__name__)

ASPECT_WEIGHT = 0.7
EFFICIENCY_WEIGHT = 0.3

MAX_OVERLAP_MULTIPLIER = 2.5
PROFESSIONAL_AREA_PER_FIXTURE = 12.0
EDGE_BUFFER = 1.05


def require_positive(value: float, name: str) -> float:
    v = float(value)
    if math.isnan(v) or v <= 0.0:
        raise ConfigurationError(f"{name} must be > 0, got {value!r}")
    return v


def check_layout_inputs(target_ppfd: float, width: float, length: float, ppf: float) -> None:
    require_positive(target_ppfd, "target PPFD")
    require_positive(width, "area width")
    require_positive(length, "area length")
    require_positive(ppf, "fixture PPF")


@dataclass(frozen=True)
class GridArrangement:
    columns: int
    rows: int
    score: float

    @property
    def capacity(self) -> int:
        return self.columns * self.rows


def arrange_grid(count: int, width: float, length: float) -> GridArrangement:
    """
    Choose columns × rows for `count` fixtures: score each column count by
    how closely the grid's aspect matches the area's (70 %) and how few grid
    positions go unused (30 %), keeping the first best.
    """
    aspect = width / length
    best: Optional[GridArrangement] = None
    for columns in range(1, count + 1):
        rows = int(math.ceil(count / columns))
        aspect_score = 1.0 / (1.0 + abs(columns / rows - aspect))
        efficiency = count / (rows * columns)
        score = ASPECT_WEIGHT * aspect_score + EFFICIENCY_WEIGHT * efficiency
        if best is None or score > best.score:
            best = GridArrangement(columns=columns, rows=rows, score=score)
    if best is None:
        # degenerate single row rather than an error
        return GridArrangement(columns=max(count, 1), rows=1, score=0.0)
    return best


@dataclass(frozen=True)
class SpacingSolution:
    required_count: int
    columns: int
    rows: int
    spacing_x: float
    spacing_y: float
    score: float

    @property
    def fixture_count(self) -> int:
        return self.columns * self.rows


def required_fixture_count(target_ppfd: float, width: float, length: float, ppf: float) -> int:
    return int(math.ceil(target_ppfd * width * length / ppf))


def solve_spacing(target_ppfd: float, width: float, length: float, ppf: float) -> SpacingSolution:
    """Fixture grid and spacing needed to deliver `target_ppfd` over width × length."""
    check_layout_inputs(target_ppfd, width, length, ppf)
    required = required_fixture_count(target_ppfd, width, length, ppf)
    arrangement = arrange_grid(required, width, length)
    solution = SpacingSolution(
        required_count=required,
        columns=arrangement.columns,
        rows=arrangement.rows,
        spacing_x=width / arrangement.columns,
        spacing_y=length / arrangement.rows,
        score=arrangement.score,
    )
    logger.info(
        "Spacing for %.0f PPFD over %gx%g: %d required, %dx%d grid at %.2f x %.2f",
        target_ppfd,
        width,
        length,
        required,
        solution.columns,
        solution.rows,
        solution.spacing_x,
        solution.spacing_y,
    )
    return solution


@dataclass(frozen=True)
class CoverageSolution:
    fixture_count: int
    coverage_radius: float
    coverage_area: float
    min_fixtures: int
    ppfd_per_fixture: float
    intensity_multiplier: float
    overlap_capped: bool
    spacing: float


def solve_coverage_count(
    area: float,
    target_ppfd: float,
    ppf: float,
    mounting_height: float,
    beam_angle: float = 120.0,
) -> CoverageSolution:
    """
    Fixture count for close-mounted tiers: cover the area with beam cones
    first, then raise density for intensity (capped at 2.5× overlap), then
    apply the professional density floor, then a 5 % edge buffer.
    """
    require_positive(area, "area")
    require_positive(target_ppfd, "target PPFD")
    require_positive(ppf, "fixture PPF")
    require_positive(mounting_height, "mounting height")

    radius = mounting_height * math.tan(math.radians(beam_angle / 2.0))
    coverage = max(math.pi * radius * radius, MIN_COVERAGE_AREA)
    ppfd_per_fixture = ppf / coverage * EFFICIENCY_FACTOR
    min_fixtures = int(math.ceil(area / coverage))

    count = min_fixtures
    multiplier = 1.0
    capped = False
    if ppfd_per_fixture < target_ppfd:
        multiplier = target_ppfd / ppfd_per_fixture
        practical = min(multiplier, MAX_OVERLAP_MULTIPLIER)
        count = int(math.ceil(min_fixtures * practical))
        if multiplier > MAX_OVERLAP_MULTIPLIER:
            capped = True
            logger.warning(
                "Target PPFD %.0f requires %.1fx fixture density; limited to %.1fx for practical installation",
                target_ppfd,
                multiplier,
                MAX_OVERLAP_MULTIPLIER,
            )

    count = max(count, int(math.ceil(area / PROFESSIONAL_AREA_PER_FIXTURE)))
    count = int(math.ceil(count * EDGE_BUFFER))

    logger.info("Coverage sizing: %d fixtures (%d for coverage, radius %.2f)", count, min_fixtures, radius)
    return CoverageSolution(
        fixture_count=count,
        coverage_radius=radius,
        coverage_area=coverage,
        min_fixtures=min_fixtures,
        ppfd_per_fixture=ppfd_per_fixture,
        intensity_multiplier=multiplier,
        overlap_capped=capped,
        spacing=math.sqrt(area / count),
    )


def layout_positions(
    columns: int,
    rows: int,
    width: float,
    length: float,
    origin: Tuple[float, float] = (0.0, 0.0),
) -> List[Tuple[float, float]]:
    """Fixture centres, one per grid cell, row by row."""
    if columns < 1 or rows < 1:
        raise ConfigurationError(f"Layout needs at least one row and column, got {columns}x{rows}")
    dx = width / columns
    dy = length / rows
    out: List[Tuple[float, float]] = []
    for r in range(rows):
        for c in range(columns):
            out.append((origin[0] + (c + 0.5) * dx, origin[1] + (r + 0.5) * dy))
    return out


def build_light_sources(
    positions: Sequence[Tuple[float, float]],
    mounting_height: float,
    ppf: float,
    *,
    photometry: Optional[PhotometricFile] = None,
    beam_angle: float = 120.0,
    fixture_length: Optional[float] = None,
    dimming: float = 1.0,
) -> List[LightSource]:
    return [
        LightSource(
            position=pos,
            mounting_height=mounting_height,
            ppf=ppf,
            photometry=photometry,
            length=fixture_length,
            beam_angle=beam_angle,
            dimming=dimming,
            id=f"fixture_{i + 1}",
        )
        for i, pos in enumerate(positions)
    ]


@dataclass(frozen=True)
class LayoutCandidate:
    fixture_count: int
    columns: int
    rows: int
    spacing_x: float
    spacing_y: float
    height: float
    dimming: float
    statistics: FieldStatistics
    score: float
    feasible: bool
    rank: int = 0

    @property
    def mean_ppfd(self) -> float:
        return self.statistics.mean

    @property
    def uniformity(self) -> float:
        return self.statistics.uniformity


def score_layout(
    field: GridField,
    target_ppfd: float,
    uniformity_target: float,
    fixture_count: int,
    dimming: float,
    required_count: int,
) -> Tuple[bool, float]:
    """
    (feasible, score) for an evaluated layout; lower scores are better.

    Feasible means the mean is within ±10 % of target and uniformity meets
    its target.
    """
    stats = field.statistics
    feasible = abs(stats.mean - target_ppfd) <= 0.1 * target_ppfd and stats.uniformity >= uniformity_target
    penalty = abs(stats.mean - target_ppfd) / max(target_ppfd, 1e-9) * 10.0
    if stats.uniformity < uniformity_target:
        penalty += (uniformity_target - stats.uniformity) * 50.0
    power_proxy = fixture_count * dimming / max(required_count, 1)
    return feasible, penalty + power_proxy


def require_enabled(sources: Sequence[LightSource]) -> None:
    if not any(s.enabled for s in sources):
        raise ConfigurationError("Layout has no enabled fixtures")


@dataclass(frozen=True)
class LayoutAssessment:
    field: GridField
    fixture_count: int
    required_count: int
    feasible: bool
    score: float


def assess_layout(
    sources: Sequence[LightSource],
    grid: GridSpec,
    target_ppfd: float,
    ppf: float,
    *,
    uniformity_target: float = 0.0,
    cache: Optional[ContributionCache] = None,
) -> LayoutAssessment:
    """
    Evaluate and score a fixture set placed by the caller, for instance
    after moving or switching off individual fixtures. Scored like a
    search candidate, with the mean dimming of the enabled fixtures.
    """
    check_layout_inputs(target_ppfd, grid.width, grid.length, ppf)
    require_enabled(sources)
    active = [s for s in sources if s.enabled]
    required = required_fixture_count(target_ppfd, grid.width, grid.length, ppf)
    field = evaluate_field(grid, sources, cache=cache)
    dimming = sum(s.dimming for s in active) / len(active)
    feasible, score = score_layout(field, target_ppfd, uniformity_target, len(active), dimming, required)
    return LayoutAssessment(
        field=field,
        fixture_count=len(active),
        required_count=required,
        feasible=feasible,
        score=score,
    )


@dataclass(frozen=True)
class HeightRefinement:
    height: float
    field: GridField
    iterations: int
    converged: bool


def _default_resolution(spacing_x: float, spacing_y: float, width: float, length: float) -> float:
    return max(min(spacing_x, spacing_y) / 2.0, max(width, length) / 100.0)


def refine_mounting_height(
    solution: SpacingSolution,
    width: float,
    length: float,
    ppf: float,
    target_ppfd: float,
    *,
    photometry: Optional[PhotometricFile] = None,
    beam_angle: float = 120.0,
    fixture_length: Optional[float] = None,
    resolution: Optional[float] = None,
    tolerance: float = 0.05,
    max_iterations: int = 48,
    cache: Optional[ContributionCache] = None,
) -> HeightRefinement:
    """
    Bisect the mounting height until the evaluated mean PPFD is within
    `tolerance` of the target.

    The bracket starts where neighbouring beam cones meet and grows upward
    until the mean drops below target. If even the lowest height falls short
    the lowest height is returned unconverged.
    """
    check_layout_inputs(target_ppfd, width, length, ppf)
    grid = GridSpec(
        width=width,
        length=length,
        resolution=resolution or _default_resolution(solution.spacing_x, solution.spacing_y, width, length),
    )
    positions = layout_positions(solution.columns, solution.rows, width, length)
    beam = photometry.beam_angle if photometry is not None and photometry.beam_angle > 0 else beam_angle
    half = min(max(beam / 2.0, 5.0), 80.0)

    iterations = 0

    def mean_at(h: float) -> GridField:
        nonlocal iterations
        iterations += 1
        sources = build_light_sources(
            positions, h, ppf, photometry=photometry, beam_angle=beam_angle, fixture_length=fixture_length
        )
        return evaluate_field(grid, sources, cache=cache)

    def close_enough(f: GridField) -> bool:
        return abs(f.mean_ppfd - target_ppfd) <= tolerance * target_ppfd

    # lowest height: neighbouring cones meet and each spans at least two cells
    reach = max(0.5 * max(solution.spacing_x, solution.spacing_y), 2.0 * grid.resolution)
    lo = reach / math.tan(math.radians(half))
    lo_field = mean_at(lo)
    if close_enough(lo_field):
        return HeightRefinement(lo, lo_field, iterations, True)
    if lo_field.mean_ppfd < target_ppfd:
        logger.info("Lowest overlapping height %.2f gives %.1f PPFD, below target %.1f", lo, lo_field.mean_ppfd, target_ppfd)
        return HeightRefinement(lo, lo_field, iterations, False)

    best_h, best_field = lo, lo_field
    hi = 2.0 * lo
    hi_field = mean_at(hi)
    while hi_field.mean_ppfd > target_ppfd and iterations < max_iterations:
        lo, lo_field = hi, hi_field
        hi *= 2.0
        hi_field = mean_at(hi)
    for h, f in ((lo, lo_field), (hi, hi_field)):
        if abs(f.mean_ppfd - target_ppfd) < abs(best_field.mean_ppfd - target_ppfd):
            best_h, best_field = h, f
    if close_enough(best_field):
        return HeightRefinement(best_h, best_field, iterations, True)

    while iterations < max_iterations:
        mid = 0.5 * (lo + hi)
        mid_field = mean_at(mid)
        if abs(mid_field.mean_ppfd - target_ppfd) < abs(best_field.mean_ppfd - target_ppfd):
            best_h, best_field = mid, mid_field
        if close_enough(mid_field):
            logger.info("Mounting height %.3f gives %.1f PPFD after %d evaluations", mid, mid_field.mean_ppfd, iterations)
            return HeightRefinement(mid, mid_field, iterations, True)
        if mid_field.mean_ppfd > target_ppfd:
            lo = mid
        else:
            hi = mid
    return HeightRefinement(best_h, best_field, iterations, close_enough(best_field))


def solve_layout(
    target_ppfd: float,
    width: float,
    length: float,
    ppf: float,
    *,
    uniformity_target: float = 0.0,
    photometry: Optional[PhotometricFile] = None,
    beam_angle: float = 120.0,
    fixture_length: Optional[float] = None,
    resolution: Optional[float] = None,
    cache: Optional[ContributionCache] = None,
) -> LayoutCandidate:
    """Spacing solver followed by mounting-height refinement, as one candidate."""
    solution = solve_spacing(target_ppfd, width, length, ppf)
    refined = refine_mounting_height(
        solution,
        width,
        length,
        ppf,
        target_ppfd,
        photometry=photometry,
        beam_angle=beam_angle,
        fixture_length=fixture_length,
        resolution=resolution,
        cache=cache,
    )
    feasible, score = score_layout(
        refined.field, target_ppfd, uniformity_target, solution.fixture_count, 1.0, solution.required_count
    )
    return LayoutCandidate(
        fixture_count=solution.fixture_count,
        columns=solution.columns,
        rows=solution.rows,
        spacing_x=solution.spacing_x,
        spacing_y=solution.spacing_y,
        height=refined.height,
        dimming=1.0,
        statistics=refined.field.statistics,
        score=score,
        feasible=feasible,
        rank=1,
    )
