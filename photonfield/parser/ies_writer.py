from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from photonfield.models.photometric_file import PhotometricFile


_REQUIRED_ORDER = ("TEST", "TESTLAB", "ISSUEDATE", "MANUFAC")


def _compact_num(val: float, places: int = 6) -> str:
    """Compact numeric (keeps ints tidy, trims trailing zeros)."""
    s = f"{float(val):.{places}f}".rstrip("0").rstrip(".")
    if s in ("", "-0"):
        return "0"
    return s


def _fmt_row(nums: Sequence[float], per_line: int = 10) -> List[str]:
    out: List[str] = []
    row: List[str] = []
    for i, x in enumerate(nums, 1):
        row.append(_compact_num(x))
        if i % per_line == 0:
            out.append(" ".join(row))
            row = []
    if row:
        out.append(" ".join(row))
    return out


def _keyword_lines(keywords: Dict[str, List[str]]) -> List[str]:
    lines: List[str] = []
    for k in _REQUIRED_ORDER:
        for v in keywords.get(k, []):
            lines.append(f"[{k}] {v}".rstrip())
    for k, values in keywords.items():
        if k in _REQUIRED_ORDER:
            continue
        for v in values:
            lines.append(f"[{k}] {v}".rstrip())
    return lines


def generate_ies_text(phot: PhotometricFile, keywords: Optional[Dict[str, List[str]]] = None) -> str:
    """
    Emit LM-63 text for `phot`.

    Candela values are written already scaled (multiplier 1) and the tilt
    block is always `TILT=NONE`, so `parse_ies_text(generate_ies_text(x))`
    reproduces the angle arrays and candela table of `x`.
    """
    kw = dict(phot.keywords)
    if keywords:
        kw.update(keywords)
    kw.setdefault("TEST", ["photonfield export"])

    lines: List[str] = ["IESNA:LM-63-2002"]
    lines.extend(_keyword_lines(kw))
    lines.append("TILT=NONE")

    header = phot.header
    ballast_factor = 1.0
    if header is not None and header.lumens_per_lamp >= 0 and header.num_lamps > 0:
        num_lamps = header.num_lamps
        lumens_per_lamp = phot.total_lumens / num_lamps
    elif phot.total_lumens > 0:
        num_lamps = 1
        lumens_per_lamp = phot.total_lumens
    else:
        num_lamps = 1
        lumens_per_lamp = -1.0

    lines.append(
        " ".join(
            [
                str(num_lamps),
                _compact_num(lumens_per_lamp),
                "1",
                str(len(phot.vertical_angles)),
                str(len(phot.horizontal_angles)),
                str(int(phot.photometric_type)),
                str(int(phot.units_type)),
                _compact_num(phot.width),
                _compact_num(phot.length),
                _compact_num(phot.height),
            ]
        )
    )
    lines.append(" ".join([_compact_num(ballast_factor), "1", _compact_num(phot.input_watts)]))

    lines.extend(_fmt_row(phot.vertical_angles.tolist()))
    lines.extend(_fmt_row(phot.horizontal_angles.tolist()))
    for row in phot.candela.tolist():
        lines.extend(_fmt_row(row))

    return "\n".join(lines) + "\n"
