from pathlib import Path

from photonfield.calculation.field import GridSpec, evaluate_field
from photonfield.calculation.illuminance import LightSource
from photonfield.parser.ies_parser import parse_ies_text
from photonfield.plotting.plots import _choose_plane_indices, plot_ppfd_heatmap, save_default_plots


IES = """IESNA:LM-63-2002
TILT=NONE
1 1000 1 4 3 1 2 0 0 0
1 1 10
0 30 60 90
0 90 180
100 80 40 0
90 70 30 0
80 60 20 0
"""


def test_choose_plane_indices():
    assert _choose_plane_indices([0, 90, 180]) == [0, 1, 2]
    assert _choose_plane_indices(list(range(0, 361, 15))) == [0, 8, 16, 24]


def test_ppfd_heatmap_written(tmp_path: Path):
    sources = [LightSource(position=(1.0, 1.0), mounting_height=1.5, ppf=500.0)]
    field = evaluate_field(GridSpec(width=3.0, length=2.0, resolution=0.25), sources)
    out = plot_ppfd_heatmap(field, tmp_path / "heatmap.png")
    assert out.exists()
    assert out.stat().st_size > 0


def test_default_photometry_plots_written(tmp_path: Path):
    paths = save_default_plots(parse_ies_text(IES), tmp_path / "plots", stem="fixture")
    assert paths.intensity_png.exists()
    assert paths.polar_png.exists()
