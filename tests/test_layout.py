import logging
import math

import numpy as np
import pytest

from photonfield.calculation.field import GridSpec, evaluate_field
from photonfield.calculation.illuminance import LightSource
from photonfield.optim.layout import (
    arrange_grid,
    assess_layout,
    build_light_sources,
    layout_positions,
    refine_mounting_height,
    require_enabled,
    solve_coverage_count,
    solve_layout,
    solve_spacing,
)
from photonfield.project.catalog import estimate_ppfd_at_distance
from photonfield.project.requirements import ConfigurationError


def test_spacing_solver_grid_and_spacing():
    sol = solve_spacing(600.0, 10.0, 20.0, 1000.0)
    assert sol.required_count == 120
    assert (sol.columns, sol.rows) == (8, 15)
    assert sol.spacing_x == pytest.approx(1.25)
    assert sol.spacing_y == pytest.approx(20.0 / 15.0)
    assert sol.fixture_count >= sol.required_count


@pytest.mark.parametrize("count", [1, 7, 40, 121])
def test_arrangement_holds_the_count(count):
    arrangement = arrange_grid(count, 12.0, 30.0)
    assert arrangement.rows == math.ceil(count / arrangement.columns)
    assert arrangement.capacity >= count


def test_arrangement_scores_aspect_and_fill():
    arrangement = arrange_grid(4, 10.0, 10.0)
    assert (arrangement.columns, arrangement.rows) == (2, 2)
    assert arrangement.score == pytest.approx(1.0)


def test_degenerate_arrangement_falls_back_to_single_row():
    arrangement = arrange_grid(0, 10.0, 10.0)
    assert (arrangement.columns, arrangement.rows) == (1, 1)


@pytest.mark.parametrize(
    "args",
    [(0.0, 10.0, 10.0, 1000.0), (-5.0, 10.0, 10.0, 1000.0), (600.0, 0.0, 10.0, 1000.0), (600.0, 10.0, 10.0, 0.0)],
)
def test_spacing_solver_rejects_bad_inputs(args):
    with pytest.raises(ConfigurationError):
        solve_spacing(*args)


def test_coverage_solver_caps_overlap(caplog):
    with caplog.at_level(logging.WARNING, logger="photonfield.optim.layout"):
        sol = solve_coverage_count(100.0, 600.0, 1000.0, 2.0, 120.0)
    assert sol.coverage_radius == pytest.approx(2.0 * math.tan(math.radians(60.0)))
    assert sol.min_fixtures == 3
    assert sol.overlap_capped
    # 3 × 2.5 → 8, density floor 9, buffer → 10
    assert sol.fixture_count == 10
    assert any("limited to 2.5x" in r.getMessage() for r in caplog.records)


def test_coverage_solver_minimum_coverage_area():
    sol = solve_coverage_count(40.0, 300.0, 1000.0, 0.5, 120.0)
    assert sol.coverage_area == 4.0
    assert sol.ppfd_per_fixture == pytest.approx(200.0)
    assert sol.min_fixtures == 10
    assert not sol.overlap_capped
    # 10 × 1.5 → 15, buffer → 16
    assert sol.fixture_count == 16


def test_coverage_solver_without_intensity_correction():
    sol = solve_coverage_count(24.0, 200.0, 2000.0, 1.0, 90.0)
    assert sol.intensity_multiplier == 1.0
    assert sol.min_fixtures == 6
    assert sol.fixture_count == 7


def test_coverage_solver_rejects_bad_inputs():
    with pytest.raises(ConfigurationError):
        solve_coverage_count(0.0, 600.0, 1000.0, 2.0)
    with pytest.raises(ConfigurationError):
        solve_coverage_count(100.0, 600.0, 1000.0, 0.0)


def test_estimate_ppfd_at_distance():
    assert estimate_ppfd_at_distance(1000.0, 2.0, 120.0) == 21.0
    assert estimate_ppfd_at_distance(1000.0, 0.1, 120.0) == 200.0


def test_layout_positions_are_cell_centres():
    assert layout_positions(2, 2, 10.0, 10.0) == [(2.5, 2.5), (7.5, 2.5), (2.5, 7.5), (7.5, 7.5)]
    with pytest.raises(ConfigurationError):
        layout_positions(0, 2, 10.0, 10.0)


def test_require_enabled():
    sources = [LightSource(position=(0.0, 0.0), mounting_height=2.0, ppf=100.0, enabled=False)]
    with pytest.raises(ConfigurationError):
        require_enabled(sources)
    sources.append(LightSource(position=(1.0, 0.0), mounting_height=2.0, ppf=100.0))
    require_enabled(sources)


def test_assess_layout_scores_enabled_fixtures_only():
    grid = GridSpec(width=10.0, length=10.0, resolution=1.0)
    sources = [
        LightSource(position=(2.5, 5.0), mounting_height=2.0, ppf=1000.0),
        LightSource(position=(5.0, 5.0), mounting_height=2.0, ppf=1000.0, enabled=False),
        LightSource(position=(7.5, 5.0), mounting_height=2.0, ppf=1000.0, dimming=0.5),
    ]
    a = assess_layout(sources, grid, 400.0, 1000.0)
    assert a.fixture_count == 2
    assert a.required_count == 40
    assert not a.feasible
    assert a.score == pytest.approx(abs(a.field.mean_ppfd - 400.0) / 400.0 * 10.0 + 2 * 0.75 / 40)
    assert np.array_equal(a.field.values, evaluate_field(grid, sources).values)


def test_assess_layout_rejects_all_disabled():
    grid = GridSpec(width=4.0, length=4.0)
    sources = [LightSource(position=(2.0, 2.0), mounting_height=2.0, ppf=500.0, enabled=False)]
    with pytest.raises(ConfigurationError):
        assess_layout(sources, grid, 400.0, 500.0)


@pytest.mark.parametrize("target", [200.0, 400.0, 600.0, 900.0])
@pytest.mark.parametrize("width, length, resolution", [(10.0, 20.0, 0.5), (40.0, 40.0, 1.0)])
def test_spacing_solution_reaches_target_mean(target, width, length, resolution):
    ppf = 2000.0
    sol = solve_spacing(target, width, length, ppf)
    refined = refine_mounting_height(sol, width, length, ppf, target, resolution=resolution)
    assert refined.converged

    # re-evaluate the chosen layout independently
    sources = build_light_sources(layout_positions(sol.columns, sol.rows, width, length), refined.height, ppf)
    field = evaluate_field(GridSpec(width=width, length=length, resolution=resolution), sources)
    assert abs(field.mean_ppfd - target) <= 0.1 * target


def test_solve_layout_returns_candidate():
    candidate = solve_layout(400.0, 10.0, 10.0, 2000.0, resolution=0.5)
    assert candidate.fixture_count >= 20
    assert candidate.height > 0.0
    assert abs(candidate.mean_ppfd - 400.0) <= 0.1 * 400.0
    assert candidate.feasible
    assert candidate.rank == 1
