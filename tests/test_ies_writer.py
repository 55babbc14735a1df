import numpy as np
import pytest

from photonfield.models.photometric_file import PhotometricFile
from photonfield.parser.ies_parser import parse_ies_text
from photonfield.parser.ies_writer import generate_ies_text


SOURCE_IES = """IESNA:LM-63-2002
[TEST] RT-01
[MANUFAC] Acme Grow
TILT=NONE
1 2000 2 5 3 1 2
0.5 0.5 0.1
0.95 1 20
0 22.5
45 67.5 90
0 90
180
10 9 8 7 6
5 4 3 2 1
1 1 1
1 1
"""


def _assert_same_table(a: PhotometricFile, b: PhotometricFile) -> None:
    assert np.allclose(a.vertical_angles, b.vertical_angles, atol=1e-6, rtol=0.0)
    assert np.allclose(a.horizontal_angles, b.horizontal_angles, atol=1e-6, rtol=0.0)
    assert np.allclose(a.candela, b.candela, atol=1e-6, rtol=0.0)


def test_round_trip_parsed_file():
    original = parse_ies_text(SOURCE_IES)
    text = generate_ies_text(original)
    again = parse_ies_text(text)
    _assert_same_table(original, again)
    assert again.total_lumens == pytest.approx(original.total_lumens)
    assert again.input_watts == pytest.approx(original.input_watts)
    assert again.keywords["MANUFAC"] == ["Acme Grow"]


def test_round_trip_constructed_file_with_awkward_values():
    v = np.linspace(0.0, 90.0, 25)
    h = np.array([0.0, 45.0, 90.0])
    cd = np.outer([1.0, 2.0 / 3.0, 1.0 / 7.0], np.cos(np.radians(v)) * 12345.678901)
    original = PhotometricFile(vertical_angles=v, horizontal_angles=h, candela=cd, input_watts=123.5)
    again = parse_ies_text(generate_ies_text(original))
    _assert_same_table(original, again)
    # no lumen data written as absolute photometry
    assert again.total_lumens == 0.0


def test_generated_text_structure():
    original = parse_ies_text(SOURCE_IES)
    lines = generate_ies_text(original, keywords={"LUMCAT": ["BAR-1"]}).splitlines()
    assert lines[0] == "IESNA:LM-63-2002"
    assert lines[1] == "[TEST] RT-01"
    assert "[LUMCAT] BAR-1" in lines
    tilt_idx = lines.index("TILT=NONE")
    photometric = lines[tilt_idx + 1].split()
    assert photometric[2] == "1"
    assert photometric[3:5] == ["5", "3"]
    assert lines[tilt_idx + 2].split()[2] == "20"


def test_long_lists_wrap_at_ten_values():
    v = np.arange(0.0, 91.0, 5.0)  # 19 angles
    original = PhotometricFile(vertical_angles=v, horizontal_angles=[0.0], candela=[np.full(v.size, 100.0)])
    text = generate_ies_text(original)
    lines = text.splitlines()
    tilt_idx = lines.index("TILT=NONE")
    assert len(lines[tilt_idx + 3].split()) == 10
    assert len(lines[tilt_idx + 4].split()) == 9
    _assert_same_table(original, parse_ies_text(text))
