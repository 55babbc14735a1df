from photonfield.optim.layout import (
    CoverageSolution,
    GridArrangement,
    HeightRefinement,
    LayoutAssessment,
    LayoutCandidate,
    SpacingSolution,
    arrange_grid,
    assess_layout,
    build_light_sources,
    layout_positions,
    refine_mounting_height,
    solve_coverage_count,
    solve_layout,
    solve_spacing,
)
from photonfield.optim.search import SearchResult, recommend_layout, search_layouts

__all__ = [
    "CoverageSolution",
    "GridArrangement",
    "HeightRefinement",
    "LayoutAssessment",
    "LayoutCandidate",
    "SpacingSolution",
    "arrange_grid",
    "assess_layout",
    "build_light_sources",
    "layout_positions",
    "refine_mounting_height",
    "solve_coverage_count",
    "solve_layout",
    "solve_spacing",
    "SearchResult",
    "recommend_layout",
    "search_layouts",
]
