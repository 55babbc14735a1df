from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from photonfield.calculation.field import GridSpec, annotate_fixtures, evaluate_field
from photonfield.core.units import ies_units_to_m
from photonfield.models.photometric_file import PhotometricFile
from photonfield.optim.layout import (
    assess_layout,
    build_light_sources,
    layout_positions,
    refine_mounting_height,
    solve_coverage_count,
    solve_spacing,
)
from photonfield.optim.search import recommend_layout
from photonfield.parser.ies_parser import FormatError, parse_ies_text
from photonfield.project.catalog import FixtureRecord
from photonfield.project.requirements import ConfigurationError, LightingRequirements


_DEMO_IES_TEXT = """IESNA:LM-63-2002
[TEST] DEMO-PPF-001
[MANUFAC] Photonfield Demo
[LUMCAT] HORT-BAR-630
[LUMINAIRE] 6-bar LED grow fixture
TILT=NONE
1 52000 1 10 1 1 2 1.10 1.10 0.08
1 1 630
0 10 20 30 40 50 60 70 80 90
1000 980 930 850 740 600 440 270 110 0
"""


def _load_ies(path_arg: str) -> PhotometricFile:
    ies_path = Path(path_arg).expanduser().resolve()
    if not ies_path.is_file():
        raise FileNotFoundError(ies_path)
    text = ies_path.read_text(encoding="utf-8", errors="replace")
    return parse_ies_text(text, source_path=ies_path)


def _load_json(path_arg: Optional[str]) -> Dict[str, Any]:
    if not path_arg:
        return {}
    data = json.loads(Path(path_arg).expanduser().read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path_arg}: expected a JSON object")
    return data


def _cmd_demo(args: argparse.Namespace) -> int:
    outpath = Path(args.out).expanduser().resolve()
    outpath.parent.mkdir(parents=True, exist_ok=True)
    outpath.write_text(_DEMO_IES_TEXT, encoding="utf-8")
    print(f"Saved demo IES to: {outpath}")
    return 0


def _cmd_inspect(args: argparse.Namespace) -> int:
    try:
        phot = _load_ies(args.file)
    except FileNotFoundError as e:
        print(f"[ERROR] File not found: {e}")
        return 2
    except FormatError as e:
        print(f"[ERROR] {e}")
        return 3

    print("Photonfield Inspect")
    print(f"  File: {Path(args.file).expanduser().resolve()}")
    for key in ("MANUFAC", "LUMCAT", "LUMINAIRE"):
        if key in phot.keywords:
            print(f"  {key}: {phot.keywords[key][0]}")
    print(f"  Angles: {len(phot.vertical_angles)} vertical x {len(phot.horizontal_angles)} horizontal ({phot.symmetry})")
    print(f"  Tilt: {phot.tilt_mode}")
    scale = ies_units_to_m(phot.units_type)
    print(f"  Opening: {phot.width * scale:.3f} x {phot.length * scale:.3f} x {phot.height * scale:.3f} m")
    print(f"  Max candela: {phot.max_candela:g}")
    print(f"  Beam angle: {phot.beam_angle:g}°  Field angle: {phot.field_angle:g}°")
    print(f"  Total lumens: {phot.total_lumens:g}  Input watts: {phot.input_watts:g}  Efficacy: {phot.efficacy:.1f} lm/W")
    if args.height is not None:
        print(f"  At height {args.height:g}: cone radius {phot.cone_radius(args.height):.2f}, coverage {phot.coverage_area(args.height):.2f}")

    if args.plots or args.pdf:
        from photonfield.plotting.plots import save_default_plots

        outdir = Path(args.plots or "out").expanduser().resolve()
        paths = save_default_plots(phot, outdir, stem=args.stem)
        print(f"  Saved: {paths.intensity_png}")
        print(f"  Saved: {paths.polar_png}")
        if args.pdf:
            from photonfield.export.pdf_report import build_pdf_report

            pdf = build_pdf_report(phot, paths, outdir / f"{args.stem}_report.pdf", source_file=Path(args.file))
            print(f"  Saved: {pdf.pdf_path}")
    return 0


def _cmd_field(args: argparse.Namespace) -> int:
    photometry = None
    if args.ies:
        try:
            photometry = _load_ies(args.ies)
        except FileNotFoundError as e:
            print(f"[ERROR] File not found: {e}")
            return 2
        except FormatError as e:
            print(f"[ERROR] {e}")
            return 3

    try:
        grid = GridSpec(width=args.width, length=args.length, resolution=args.resolution)
        positions = layout_positions(args.cols, args.rows, args.width, args.length)
        sources = build_light_sources(
            positions,
            args.height,
            args.ppf,
            photometry=photometry,
            beam_angle=args.beam_angle,
            fixture_length=args.fixture_length,
            dimming=args.dimming,
        )
        for idx in args.disable or ():
            if not 1 <= idx <= len(sources):
                raise ConfigurationError(f"--disable {idx} is outside 1..{len(sources)}")
            sources[idx - 1].enabled = False
        assessment = None
        if args.target_ppfd is not None:
            assessment = assess_layout(
                sources, grid, args.target_ppfd, args.ppf, uniformity_target=args.uniformity_target
            )
    except ValueError as e:
        print(f"[ERROR] {e}")
        return 2

    field = assessment.field if assessment is not None else evaluate_field(grid, sources)
    stats = field.statistics
    if args.json:
        payload = {"statistics": stats.to_dict(), "dli": stats.dli(args.photoperiod)}
        if args.threshold is not None:
            payload["coverage_above"] = field.coverage_above(args.threshold)
        if assessment is not None:
            payload["assessment"] = {
                "fixture_count": assessment.fixture_count,
                "required_count": assessment.required_count,
                "feasible": assessment.feasible,
                "score": assessment.score,
            }
        print(json.dumps(payload, indent=2, sort_keys=True))
    else:
        print("Photonfield Field")
        print(f"  Grid: {grid.nx} x {grid.ny} cells, {len(sources)} fixtures at height {args.height:g}")
        print(f"  Mean PPFD: {stats.mean:.1f}  Min: {stats.min:.1f}  Max: {stats.max:.1f}")
        print(f"  Uniformity: {stats.uniformity:.3f}  CV: {stats.coefficient_of_variation:.3f}")
        print(f"  DLI ({args.photoperiod:g} h): {stats.dli(args.photoperiod):.2f} mol/m²/day")
        if args.threshold is not None:
            print(f"  Coverage >= {args.threshold:g}: {field.coverage_above(args.threshold):.1f}%")
        if assessment is not None:
            verdict = "meets" if assessment.feasible else "misses"
            print(
                f"  Target {args.target_ppfd:g}: {verdict} target, score {assessment.score:.3f} "
                f"({assessment.fixture_count} enabled, {assessment.required_count} required)"
            )

    heatmap_path = None
    if args.heatmap:
        from photonfield.plotting.plots import plot_ppfd_heatmap

        heatmap_path = plot_ppfd_heatmap(field, Path(args.heatmap).expanduser().resolve())
        print(f"  Saved: {heatmap_path}")
    if args.pdf:
        from photonfield.export.pdf_report import build_field_report

        pdf = build_field_report(
            field,
            Path(args.pdf),
            heatmap_png=heatmap_path,
            annotations=annotate_fixtures(grid, sources),
            photoperiod_hours=args.photoperiod,
        )
        print(f"  Saved: {pdf.pdf_path}")
    return 0


def _fixture_from_args(args: argparse.Namespace) -> FixtureRecord:
    payload = _load_json(args.fixture)
    if payload:
        return FixtureRecord.from_dict(payload)
    if args.ppf is None:
        raise ConfigurationError("Either --fixture or --ppf is required")
    return FixtureRecord(product_id="cli", ppf=args.ppf, wattage=args.wattage or 0.0)


def _requirements_from_args(args: argparse.Namespace) -> LightingRequirements:
    payload = _load_json(args.requirements)
    overrides = {
        "targetPPFD": args.target_ppfd,
        "mountingHeight": args.mounting_height,
        "uniformityTarget": args.uniformity_target,
    }
    payload.update({k: v for k, v in overrides.items() if v is not None})
    return LightingRequirements.from_dict(payload)


def _cmd_layout(args: argparse.Namespace) -> int:
    try:
        requirements = _requirements_from_args(args)
        fixture = _fixture_from_args(args)
        photometry = _load_ies(args.ies) if args.ies else None
        height = requirements.mounting_height(args.unit)
        spacing = solve_spacing(requirements.target_ppfd, args.width, args.length, fixture.ppf)
        coverage = solve_coverage_count(
            args.width * args.length, requirements.target_ppfd, fixture.ppf, height, fixture.beam_angle
        )
    except FileNotFoundError as e:
        print(f"[ERROR] File not found: {e}")
        return 2
    except FormatError as e:
        print(f"[ERROR] {e}")
        return 3
    except ValueError as e:
        print(f"[ERROR] {e}")
        return 2

    print("Photonfield Layout")
    print(f"  Target PPFD: {requirements.target_ppfd:g}  Uniformity target: {requirements.uniformity_target:g}")
    print(f"  Fixture: {fixture.product_id} ({fixture.ppf:g} PPF, beam {fixture.beam_angle:g}°)")
    print(
        f"  Spacing solver: {spacing.required_count} required -> {spacing.columns} x {spacing.rows} grid, "
        f"spacing {spacing.spacing_x:.2f} x {spacing.spacing_y:.2f}"
    )
    print(
        f"  Coverage solver: {coverage.fixture_count} fixtures at height {height:g} "
        f"(radius {coverage.coverage_radius:.2f}, spacing {coverage.spacing:.2f})"
    )
    if coverage.overlap_capped:
        print(f"  [WARN] overlap capped; target needs {coverage.intensity_multiplier:.1f}x density")

    if args.refine:
        refined = refine_mounting_height(
            spacing,
            args.width,
            args.length,
            fixture.ppf,
            requirements.target_ppfd,
            photometry=photometry,
            beam_angle=fixture.beam_angle,
            fixture_length=fixture.length(args.unit),
        )
        state = "converged" if refined.converged else "not converged"
        print(f"  Refined height: {refined.height:.2f} -> mean {refined.field.mean_ppfd:.1f} ({state})")

    if args.search:
        result = recommend_layout(
            requirements, fixture, args.width, args.length, unit=args.unit, photometry=photometry, top_n=args.top
        )
        print(f"  Search: {result.evaluated} candidates")
        for c in result.top:
            flag = "ok" if c.feasible else "--"
            print(
                f"   #{c.rank} [{flag}] {c.fixture_count} fixtures ({c.columns}x{c.rows}) h={c.height:.2f} "
                f"dim={c.dimming:g} mean={c.mean_ppfd:.1f} U={c.uniformity:.2f} score={c.score:.3f}"
            )
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="photonfield")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    demo = sub.add_parser("demo", help="Write a small demo .ies file to disk.")
    demo.add_argument("--out", default="data/ies_samples/demo.ies", help="Output .ies path")
    demo.set_defaults(func=_cmd_demo)

    ins = sub.add_parser("inspect", help="Parse an IES file and print its derived photometry.")
    ins.add_argument("file", help="Path to .ies file")
    ins.add_argument("--height", type=float, default=None, help="Report cone radius/coverage at this height")
    ins.add_argument("--plots", default=None, help="Directory for intensity/polar PNG plots")
    ins.add_argument("--stem", default="photonfield_view", help="Filename stem for plots")
    ins.add_argument("--pdf", action="store_true", help="Also generate a PDF report")
    ins.set_defaults(func=_cmd_inspect)

    f = sub.add_parser("field", help="Evaluate PPFD over a rectangular area for a rows x cols layout.")
    f.add_argument("--width", type=float, required=True)
    f.add_argument("--length", type=float, required=True)
    f.add_argument("--rows", type=int, required=True)
    f.add_argument("--cols", type=int, required=True)
    f.add_argument("--height", type=float, required=True, help="Mounting height above canopy")
    f.add_argument("--ppf", type=float, required=True, help="PPF per fixture (μmol/s)")
    f.add_argument("--ies", default=None, help="Optional IES file giving the beam shape")
    f.add_argument("--beam-angle", type=float, default=120.0)
    f.add_argument("--fixture-length", type=float, default=None)
    f.add_argument("--dimming", type=float, default=1.0)
    f.add_argument("--resolution", type=float, default=1.0)
    f.add_argument("--photoperiod", type=float, default=12.0, help="Hours per day for DLI")
    f.add_argument("--threshold", type=float, default=None, help="Report coverage at or above this PPFD")
    f.add_argument("--disable", type=int, action="append", default=None, help="Switch off fixture N (1-based, repeatable)")
    f.add_argument("--target-ppfd", type=float, default=None, help="Score the layout against this target")
    f.add_argument("--uniformity-target", type=float, default=0.0)
    f.add_argument("--heatmap", default=None, help="Write a PPFD heatmap PNG")
    f.add_argument("--pdf", default=None, help="Write a PDF field report with fixture annotations")
    f.add_argument("--json", action="store_true", help="Print statistics as JSON")
    f.set_defaults(func=_cmd_field)

    lay = sub.add_parser("layout", help="Size a fixture layout for lighting requirements.")
    lay.add_argument("--width", type=float, required=True)
    lay.add_argument("--length", type=float, required=True)
    lay.add_argument("--requirements", default=None, help="Requirements JSON (targetPPFD, mountingHeight, ...)")
    lay.add_argument("--fixture", default=None, help="Fixture catalog record JSON")
    lay.add_argument("--ppf", type=float, default=None)
    lay.add_argument("--wattage", type=float, default=None)
    lay.add_argument("--target-ppfd", type=float, default=None)
    lay.add_argument("--mounting-height", type=float, default=None, help="Feet")
    lay.add_argument("--uniformity-target", type=float, default=None)
    lay.add_argument("--unit", default="ft", help="Length unit of width/length (default: ft)")
    lay.add_argument("--ies", default=None, help="Optional IES file giving the beam shape")
    lay.add_argument("--refine", action="store_true", help="Refine mounting height to hit the target mean")
    lay.add_argument("--search", action="store_true", help="Run the ranked layout search")
    lay.add_argument("--top", type=int, default=5)
    lay.set_defaults(func=_cmd_layout)

    args = p.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
