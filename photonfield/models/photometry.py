from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Tuple


@dataclass(frozen=True)
class PhotometryHeader:
    num_lamps: int
    lumens_per_lamp: float               # -1 marks absolute photometry
    candela_multiplier: float
    num_vertical_angles: int
    num_horizontal_angles: int
    photometric_type: Literal[1]         # type C only
    units_type: Literal[1, 2]            # 1=feet, 2=meters
    width: float
    length: float
    height: float
    line_no: int                         # 1-indexed


@dataclass(frozen=True)
class BallastLine:
    ballast_factor: float
    ballast_lamp_quantity: float
    input_watts: float
    line_no: int


@dataclass(frozen=True)
class AngleGrid:
    vertical_deg: Tuple[float, ...]
    horizontal_deg: Tuple[float, ...]
    vertical_line_span: Tuple[int, int]    # (start_line_no, end_line_no), inclusive
    horizontal_line_span: Tuple[int, int]  # (start_line_no, end_line_no), inclusive
