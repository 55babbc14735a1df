from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from photonfield.cache.contribution_cache import ContributionCache, contribution_key
from photonfield.calculation.illuminance import LightSource, calculate_ppfd
from photonfield.derived.metrics import daily_light_integral

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridSpec:
    """
    Rectangular canopy area sampled at cell centres.

    Attributes:
        width: extent along x
        length: extent along y
        resolution: target cell size; the cell count per axis is the nearest
                    integer (at least 1) so cells tile the area exactly
        origin: (x, y) of the area's corner
        elevation: z of the canopy plane
    """
    width: float
    length: float
    resolution: float = 1.0
    origin: Tuple[float, float] = (0.0, 0.0)
    elevation: float = 0.0

    def __post_init__(self):
        if self.width <= 0 or self.length <= 0:
            raise ValueError("Grid width and length must be > 0")
        if self.resolution <= 0:
            raise ValueError("Grid resolution must be > 0")

    @property
    def nx(self) -> int:
        return max(1, int(round(self.width / self.resolution)))

    @property
    def ny(self) -> int:
        return max(1, int(round(self.length / self.resolution)))

    @property
    def area(self) -> float:
        return self.width * self.length

    def x_centers(self) -> np.ndarray:
        dx = self.width / self.nx
        return self.origin[0] + (np.arange(self.nx) + 0.5) * dx

    def y_centers(self) -> np.ndarray:
        dy = self.length / self.ny
        return self.origin[1] + (np.arange(self.ny) + 0.5) * dy

    def mesh(self) -> Tuple[np.ndarray, np.ndarray]:
        """(X, Y) arrays of shape [ny, nx]."""
        return np.meshgrid(self.x_centers(), self.y_centers())


@dataclass(frozen=True)
class FieldStatistics:
    min: float
    max: float
    mean: float
    std: float
    uniformity: float
    coefficient_of_variation: float
    cell_count: int

    def dli(self, photoperiod_hours: float) -> float:
        return daily_light_integral(self.mean, photoperiod_hours)

    def to_dict(self) -> Dict[str, float]:
        return {
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
            "std": self.std,
            "uniformity": self.uniformity,
            "coefficient_of_variation": self.coefficient_of_variation,
            "cell_count": self.cell_count,
        }


def compute_statistics(values: np.ndarray) -> FieldStatistics:
    """
    Min, max, mean, uniformity (min/mean) and coefficient of variation
    (sample standard deviation over mean) of a field.

    A field whose cells are all equal has uniformity exactly 1.
    """
    flat = np.asarray(values, dtype=float).ravel()
    n = int(flat.size)
    if n == 0:
        return FieldStatistics(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0)
    vmin = float(np.min(flat))
    vmax = float(np.max(flat))
    mean = float(np.mean(flat))
    std = float(np.std(flat, ddof=1)) if n > 1 else 0.0

    if vmin == vmax:
        uniformity = 1.0
        std = 0.0
    elif mean > 0.0:
        # unequal cells stay strictly below 1 even when min/mean rounds up
        uniformity = min(float(np.nextafter(1.0, 0.0)), max(0.0, vmin / mean))
    else:
        uniformity = 0.0
    cv = std / mean if mean > 0.0 else 0.0
    return FieldStatistics(
        min=vmin,
        max=vmax,
        mean=mean,
        std=std,
        uniformity=uniformity,
        coefficient_of_variation=cv,
        cell_count=n,
    )


@dataclass(frozen=True)
class GridField:
    """PPFD sampled over a GridSpec; values shape is [ny, nx]."""
    grid: GridSpec
    values: np.ndarray
    statistics: FieldStatistics
    source_positions: Tuple[Tuple[float, float], ...] = ()

    @property
    def min_ppfd(self) -> float:
        return self.statistics.min

    @property
    def max_ppfd(self) -> float:
        return self.statistics.max

    @property
    def mean_ppfd(self) -> float:
        return self.statistics.mean

    @property
    def uniformity(self) -> float:
        return self.statistics.uniformity

    @property
    def coefficient_of_variation(self) -> float:
        return self.statistics.coefficient_of_variation

    def coverage_above(self, threshold: float) -> float:
        """Percentage of cells at or above `threshold`."""
        total = self.values.size
        if total == 0:
            return 0.0
        return float(np.count_nonzero(self.values >= threshold)) / total * 100.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.grid.width,
            "length": self.grid.length,
            "nx": self.grid.nx,
            "ny": self.grid.ny,
            "values": self.values.tolist(),
            "statistics": self.statistics.to_dict(),
        }


def _enabled(sources: Sequence[LightSource]) -> List[LightSource]:
    return [s for s in sources if s.enabled]


def _evaluate_direct(grid: GridSpec, sources: Sequence[LightSource]) -> np.ndarray:
    X, Y = grid.mesh()
    values = np.zeros((grid.ny, grid.nx), dtype=float)
    for source in sources:
        values += calculate_ppfd(source, X, Y, grid.elevation)
    return values


def _evaluate_cached(grid: GridSpec, sources: Sequence[LightSource], cache: ContributionCache) -> np.ndarray:
    X, Y = grid.mesh()
    z = float(grid.elevation)
    values = np.zeros((grid.ny, grid.nx), dtype=float)
    for source in sources:
        # whole-grid contribution, computed once on the first miss
        block: List[np.ndarray] = []

        def cell(j: int, i: int, s: LightSource = source, block: List[np.ndarray] = block) -> float:
            if not block:
                block.append(np.asarray(calculate_ppfd(s, X, Y, z), dtype=float))
            return float(block[0][j, i])

        contrib = np.empty_like(values)
        for j in range(grid.ny):
            for i in range(grid.nx):
                key = contribution_key((float(X[j, i]), float(Y[j, i]), z), source)
                contrib[j, i] = cache.get_or_compute(key, lambda j=j, i=i, cell=cell: cell(j, i))
        values += contrib
    return values


def evaluate_field(
    grid: GridSpec,
    sources: Sequence[LightSource],
    cache: Optional[ContributionCache] = None,
) -> GridField:
    """
    Sum every enabled fixture's contribution at every cell centre.

    Contributions are accumulated in fixture order, so identical inputs give
    bit-identical arrays. When a cache is supplied each (cell, fixture)
    contribution is read through it; misses are filled from the same
    whole-grid computation as the uncached path, so a fresh cache gives the
    same array.
    """
    active = _enabled(sources)
    logger.debug("Evaluating %dx%d grid against %d enabled fixtures", grid.nx, grid.ny, len(active))
    if cache is None:
        values = _evaluate_direct(grid, active)
    else:
        values = _evaluate_cached(grid, active, cache)
    values.setflags(write=False)
    return GridField(
        grid=grid,
        values=values,
        statistics=compute_statistics(values),
        source_positions=tuple(s.position for s in active),
    )


@dataclass(frozen=True)
class FixtureAnnotation:
    """Per-fixture intensity figures attached to a placed component."""
    index: int
    id: str
    enabled: bool
    ppfd_below: float
    mean_contribution: float
    field_share: float
    coverage_radius: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "id": self.id,
            "enabled": self.enabled,
            "ppfd_below": self.ppfd_below,
            "mean_contribution": self.mean_contribution,
            "field_share": self.field_share,
            "coverage_radius": self.coverage_radius,
        }


def _coverage_radius(source: LightSource, elevation: float) -> float:
    height = source.mounting_height - elevation
    beam = source.photometry.beam_angle if source.photometry is not None else source.beam_angle
    half = beam / 2.0
    if height <= 0 or half >= 90.0:
        return 0.0 if height <= 0 else math.inf
    return height * math.tan(math.radians(half))


def annotate_fixtures(grid: GridSpec, sources: Sequence[LightSource]) -> List[FixtureAnnotation]:
    X, Y = grid.mesh()
    contributions: List[Optional[np.ndarray]] = []
    for source in sources:
        contributions.append(calculate_ppfd(source, X, Y, grid.elevation) if source.enabled else None)
    total = sum(float(np.sum(c)) for c in contributions if c is not None)

    out: List[FixtureAnnotation] = []
    for idx, (source, contrib) in enumerate(zip(sources, contributions)):
        if contrib is None:
            out.append(FixtureAnnotation(idx, source.id, False, 0.0, 0.0, 0.0, 0.0))
            continue
        below = float(calculate_ppfd(source, source.position[0], source.position[1], grid.elevation))
        share = float(np.sum(contrib)) / total if total > 0.0 else 0.0
        out.append(
            FixtureAnnotation(
                index=idx,
                id=source.id,
                enabled=True,
                ppfd_below=below,
                mean_contribution=float(np.mean(contrib)),
                field_share=share,
                coverage_radius=_coverage_radius(source, grid.elevation),
            )
        )
    return out
