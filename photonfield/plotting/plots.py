from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import matplotlib
matplotlib.use("Agg")  # headless-safe for servers/CI
import matplotlib.pyplot as plt  # noqa: E402

from photonfield.calculation.field import GridField
from photonfield.models.photometric_file import PhotometricFile


@dataclass(frozen=True)
class PlotPaths:
    intensity_png: Path
    polar_png: Path


def _ensure_outdir(outdir: Path) -> None:
    outdir.mkdir(parents=True, exist_ok=True)


def _choose_plane_indices(horizontal_deg: Sequence[float], max_planes: int = 4) -> List[int]:
    """
    Pick up to max_planes horizontal planes spaced across available angles.
    Deterministic: first, last, and evenly spaced in-between.
    """
    H = len(horizontal_deg)
    if H <= max_planes:
        return list(range(H))
    idxs = [0]
    for k in range(1, max_planes - 1):
        idxs.append(round(k * (H - 1) / (max_planes - 1)))
    idxs.append(H - 1)
    return sorted(set(int(i) for i in idxs))


def plot_intensity_curves(phot: PhotometricFile, outpath: Path, plane_indices: Optional[Iterable[int]] = None) -> Path:
    """
    Save a line plot: candela vs vertical angle, for selected horizontal planes.
    """
    v = phot.vertical_angles
    h = phot.horizontal_angles
    H = len(h)

    if plane_indices is None:
        plane_indices = _choose_plane_indices(h.tolist(), max_planes=4)

    fig = plt.figure()
    ax = fig.add_subplot(111)
    for hi in plane_indices:
        if hi < 0 or hi >= H:
            continue
        ax.plot(v, phot.candela[hi], label=f"H={h[hi]:g}°")

    ax.axhline(phot.max_candela * 0.5, color="grey", linestyle="--", linewidth=0.8)
    ax.set_xlabel("Vertical angle from nadir (deg)")
    ax.set_ylabel("Candela (cd)")
    ax.set_title(f"Intensity curves (beam {phot.beam_angle:g}°, field {phot.field_angle:g}°)")
    ax.legend(loc="best")
    fig.tight_layout()
    fig.savefig(outpath, dpi=200)
    plt.close(fig)
    return outpath


def plot_polar(phot: PhotometricFile, outpath: Path, plane_indices: Optional[Iterable[int]] = None) -> Path:
    """
    Save a polar plot with theta = vertical angle, nadir pointing down.
    """
    h_deg = phot.horizontal_angles
    H = len(h_deg)

    if plane_indices is None:
        plane_indices = _choose_plane_indices(h_deg.tolist(), max_planes=4)

    theta = [math.radians(x) for x in phot.vertical_angles]

    fig = plt.figure()
    ax = fig.add_subplot(111, projection="polar")
    ax.set_theta_zero_location("S")
    for hi in plane_indices:
        if hi < 0 or hi >= H:
            continue
        ax.plot(theta, phot.candela[hi], label=f"H={h_deg[hi]:g}°")

    ax.set_title("Polar intensity plot (theta = vertical angle)")
    ax.legend(loc="best", bbox_to_anchor=(1.15, 1.05))
    fig.tight_layout()
    fig.savefig(outpath, dpi=200)
    plt.close(fig)
    return outpath


def save_default_plots(phot: PhotometricFile, outdir: Path, stem: str = "photonfield_view") -> PlotPaths:
    """
    Convenience: save both default plots into outdir.
    """
    _ensure_outdir(outdir)
    intensity_png = outdir / f"{stem}_intensity.png"
    polar_png = outdir / f"{stem}_polar.png"

    plot_intensity_curves(phot, intensity_png)
    plot_polar(phot, polar_png)

    return PlotPaths(intensity_png=intensity_png, polar_png=polar_png)


def plot_ppfd_heatmap(
    field: GridField,
    outpath: Path,
    title: Optional[str] = None,
    colormap: str = "inferno",
    show_fixtures: bool = True,
) -> Path:
    """
    False-colour PPFD map of an evaluated grid.

    Args:
        field: evaluated grid field
        outpath: output PNG path
        title: plot title (statistics summary if None)
        colormap: matplotlib colormap name
        show_fixtures: mark enabled fixture positions

    Returns:
        Path to saved plot
    """
    grid = field.grid
    x0, y0 = grid.origin
    fig, ax = plt.subplots(figsize=(10, 8))

    im = ax.imshow(
        field.values,
        extent=[x0, x0 + grid.width, y0, y0 + grid.length],
        origin="lower",
        cmap=colormap,
        vmin=0.0,
        vmax=max(field.max_ppfd, 1e-9),
        aspect="equal",
        interpolation="nearest",
    )
    fig.colorbar(im, ax=ax, label="PPFD (μmol/m²/s)", pad=0.02)

    if show_fixtures and field.source_positions:
        xs = [p[0] for p in field.source_positions]
        ys = [p[1] for p in field.source_positions]
        ax.scatter(xs, ys, marker="x", color="cyan", s=30, linewidths=1.2)

    ax.set_xlabel("X")
    ax.set_ylabel("Y")
    ax.set_xlim(x0, x0 + grid.width)
    ax.set_ylim(y0, y0 + grid.length)

    if title is None:
        title = (
            f"PPFD distribution\n"
            f"mean={field.mean_ppfd:.0f}, min={field.min_ppfd:.0f}, "
            f"max={field.max_ppfd:.0f}, U={field.uniformity:.2f}"
        )
    ax.set_title(title, fontsize=12, fontweight="bold")

    fig.tight_layout()
    fig.savefig(outpath, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return Path(outpath)
