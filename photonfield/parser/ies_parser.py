from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from photonfield.models.photometric_file import PhotometricFile
from photonfield.models.photometry import AngleGrid, BallastLine, PhotometryHeader

logger = logging.getLogger(__name__)


@dataclass
class FormatError(Exception):
    message: str
    line_no: Optional[int] = None
    snippet: Optional[str] = None
    filename: Optional[str] = None

    def __str__(self) -> str:
        prefix = f"{self.filename}: " if self.filename else ""
        if self.line_no is None:
            return f"{prefix}{self.message}"
        return f"{prefix}Line {self.line_no}: {self.message}"


_NUM_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def _is_number(tok: str) -> bool:
    return bool(_NUM_RE.match(tok))


class _NumericStream:
    """
    Cursor over the tokens that follow the TILT= line.

    Values may wrap across any number of lines; `take` keeps consuming lines
    until the requested count is satisfied.
    """

    def __init__(self, lines: List[str], start_idx0: int) -> None:
        self._lines = lines
        self._next_idx0 = start_idx0
        self._pending: List[str] = []
        self._pending_idx0 = max(start_idx0 - 1, 0)

    def _fill(self) -> bool:
        while not self._pending and self._next_idx0 < len(self._lines):
            idx0 = self._next_idx0
            self._next_idx0 += 1
            toks: List[str] = []
            for t in self._lines[idx0].split():
                # Allow trailing comments in numeric blocks.
                if t.startswith(("#", ";", "!", "//")):
                    break
                toks.append(t)
            self._pending = toks
            self._pending_idx0 = idx0
        return bool(self._pending)

    @property
    def line_no(self) -> int:
        return self._pending_idx0 + 1

    def skip_line(self, what: str) -> str:
        if not self._fill():
            raise FormatError(f"Missing {what}", line_no=self.line_no)
        text = " ".join(self._pending)
        self._pending = []
        return text

    def take(self, count: int, what: str) -> Tuple[List[float], int]:
        """Return (values, 1-indexed line number of the first value)."""
        values: List[float] = []
        start_line_no: Optional[int] = None
        while len(values) < count:
            if not self._fill():
                raise FormatError(
                    f"Expected {count} {what} values but found {len(values)} before end of input",
                    line_no=self.line_no,
                )
            if start_line_no is None:
                start_line_no = self.line_no
            t = self._pending.pop(0)
            if not _is_number(t):
                raise FormatError(
                    f"Expected numeric {what} value #{len(values) + 1} of {count}, got '{t}'",
                    line_no=self.line_no,
                    snippet=self._lines[self._pending_idx0],
                )
            values.append(float(t))
        return values, start_line_no if start_line_no is not None else self.line_no


def _as_int(v: float, name: str, line_no: int) -> int:
    if abs(v - round(v)) > 1e-9:
        raise FormatError(f"Expected integer for {name}, got {v:g}", line_no=line_no)
    return int(round(v))


def _read_photometry_header(stream: _NumericStream) -> PhotometryHeader:
    vals, line_no = stream.take(10, "photometric line")

    num_lamps = _as_int(vals[0], "num_lamps", line_no)
    lumens_per_lamp = vals[1]
    candela_multiplier = vals[2]
    num_vertical_angles = _as_int(vals[3], "num_vertical_angles", line_no)
    num_horizontal_angles = _as_int(vals[4], "num_horizontal_angles", line_no)
    photometric_type = _as_int(vals[5], "photometric_type", line_no)
    units_type = _as_int(vals[6], "units_type", line_no)

    if photometric_type != 1:
        # types B (2) and A (3) use a different angle geometry
        raise FormatError(f"Unsupported photometric_type={photometric_type} (only type C=1 is modelled)", line_no=line_no)
    if units_type not in (1, 2):
        raise FormatError(f"Unsupported units_type={units_type} (expected 1=feet,2=meters)", line_no=line_no)
    if num_lamps < 0:
        raise FormatError("num_lamps must be >= 0", line_no=line_no)
    if lumens_per_lamp < 0 and lumens_per_lamp != -1:
        raise FormatError("lumens_per_lamp must be >= 0 or -1 (absolute photometry)", line_no=line_no)
    if candela_multiplier <= 0:
        raise FormatError("candela_multiplier must be > 0", line_no=line_no)
    if num_vertical_angles <= 0 or num_horizontal_angles <= 0:
        raise FormatError("Angle counts must be > 0", line_no=line_no)

    return PhotometryHeader(
        num_lamps=num_lamps,
        lumens_per_lamp=lumens_per_lamp,
        candela_multiplier=candela_multiplier,
        num_vertical_angles=num_vertical_angles,
        num_horizontal_angles=num_horizontal_angles,
        photometric_type=photometric_type,  # type: ignore[arg-type]
        units_type=units_type,              # type: ignore[arg-type]
        width=vals[7],
        length=vals[8],
        height=vals[9],
        line_no=line_no,
    )


def _read_ballast_line(stream: _NumericStream) -> BallastLine:
    vals, line_no = stream.take(3, "ballast line")
    if vals[0] < 0:
        raise FormatError("ballast_factor must be >= 0", line_no=line_no)
    if vals[2] < 0:
        raise FormatError("input_watts must be >= 0", line_no=line_no)
    return BallastLine(ballast_factor=vals[0], ballast_lamp_quantity=vals[1], input_watts=vals[2], line_no=line_no)


def _skip_tilt_include(stream: _NumericStream) -> None:
    # lamp-to-luminaire geometry, pair count, angles, multipliers; never applied
    stream.skip_line("TILT=INCLUDE block")
    vals, line_no = stream.take(1, "tilt count")
    n = _as_int(vals[0], "tilt count", line_no)
    if n <= 0:
        raise FormatError("Invalid TILT=INCLUDE count", line_no=line_no)
    stream.take(n, "tilt angle")
    stream.take(n, "tilt multiplier")


def _read_preamble(lines: List[str]) -> Tuple[Dict[str, List[str]], int]:
    keywords: Dict[str, List[str]] = {}
    for idx0, ln in enumerate(lines):
        s = ln.strip()
        if not s:
            continue
        if s.upper().startswith("TILT="):
            return keywords, idx0
        if s.startswith("[") and "]" in s:
            end = s.find("]")
            key = s[1:end].strip()
            val = s[end + 1 :].strip()
            if key:
                keywords.setdefault(key, []).append(val)
    raise FormatError("TILT= directive not found")


def _check_angles(values: List[float], lo: float, hi: float, name: str, line_no: int) -> None:
    if any(values[i] >= values[i + 1] for i in range(len(values) - 1)):
        raise FormatError(f"{name} angles are not strictly increasing", line_no=line_no)
    if values[0] < lo or values[-1] > hi:
        raise FormatError(f"{name} angles must lie in [{lo:g}, {hi:g}] degrees", line_no=line_no)


def parse_ies_text(text: str, source_path: str | Path | None = None) -> PhotometricFile:
    """
    Parse IES LM-63 text into a PhotometricFile.

    Reading the file from disk is the caller's job; `source_path` is only used
    to label errors. No partial result is ever returned: any structural problem
    raises FormatError.
    """
    filename = str(source_path) if source_path is not None else None
    try:
        if not text.strip():
            raise FormatError("Empty file")

        lines = [ln.rstrip("\r\n") for ln in text.splitlines()]
        keywords, tilt_idx0 = _read_preamble(lines)

        tilt_value = lines[tilt_idx0].strip().split("=", 1)[1].strip().upper()
        tilt_mode = tilt_value.split()[0] if tilt_value else "NONE"

        stream = _NumericStream(lines, tilt_idx0 + 1)
        if tilt_mode == "INCLUDE":
            _skip_tilt_include(stream)

        header = _read_photometry_header(stream)
        ballast = _read_ballast_line(stream)

        v, v_line = stream.take(header.num_vertical_angles, "vertical angle")
        v_end = stream.line_no
        h, h_line = stream.take(header.num_horizontal_angles, "horizontal angle")
        h_end = stream.line_no
        _check_angles(v, 0.0, 180.0, "Vertical", v_line)
        _check_angles(h, 0.0, 360.0, "Horizontal", h_line)

        m = header.candela_multiplier
        rows: List[List[float]] = []
        for hi in range(header.num_horizontal_angles):
            row, row_line = stream.take(header.num_vertical_angles, f"candela (plane {hi})")
            if any(x < 0 for x in row):
                raise FormatError("Candela values must be >= 0", line_no=row_line)
            rows.append([m * x for x in row])

        if header.lumens_per_lamp < 0:
            total_lumens = 0.0
        else:
            total_lumens = header.num_lamps * header.lumens_per_lamp * ballast.ballast_factor

        try:
            phot = PhotometricFile(
                vertical_angles=v,
                horizontal_angles=h,
                candela=rows,
                total_lumens=total_lumens,
                input_watts=ballast.input_watts,
                width=header.width,
                length=header.length,
                height=header.height,
                units_type=header.units_type,
                photometric_type=header.photometric_type,
                tilt_mode=tilt_mode,
                keywords=keywords,
                header=header,
                ballast=ballast,
                angle_grid=AngleGrid(
                    vertical_deg=tuple(v),
                    horizontal_deg=tuple(h),
                    vertical_line_span=(v_line, v_end),
                    horizontal_line_span=(h_line, h_end),
                ),
            )
        except ValueError as e:
            raise FormatError(str(e), line_no=header.line_no) from e
        logger.debug(
            "Parsed IES %s: %d vertical x %d horizontal angles, max %.1f cd",
            filename or "<text>",
            len(v),
            len(h),
            phot.max_candela,
        )
        return phot
    except FormatError as e:
        if e.filename is None and filename is not None:
            e.filename = filename
        raise
