from __future__ import annotations


def unit_scale_to_m(unit: str) -> float:
    u = str(unit).lower()
    if u in {"m", "meter", "meters"}:
        return 1.0
    if u == "mm":
        return 0.001
    if u == "cm":
        return 0.01
    if u in {"ft", "feet", "foot"}:
        return 0.3048
    if u in {"in", "inch", "inches"}:
        return 0.0254
    raise ValueError(f"Unsupported length unit: {unit}")


def convert_length(value: float, from_unit: str, to_unit: str) -> float:
    return float(value) * unit_scale_to_m(from_unit) / unit_scale_to_m(to_unit)


def ies_units_to_m(units_type: int) -> float:
    # LM-63 photometric line: 1=feet, 2=meters
    return 0.3048 if int(units_type) == 1 else 1.0
