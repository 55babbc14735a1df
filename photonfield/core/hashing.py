from __future__ import annotations

import hashlib
import json
import math
from dataclasses import asdict, is_dataclass
from typing import Any, Mapping, Optional

# Bumped whenever the photometry digest payload changes shape.
PHOTOMETRY_DIGEST_VERSION = 1


def _canonical(value: Any) -> Any:
    if is_dataclass(value):
        return _canonical(asdict(value))
    if isinstance(value, Mapping):
        return {str(k): _canonical(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    if hasattr(value, "tolist"):
        # numpy arrays and scalars
        return _canonical(value.tolist())
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError("NaN/Inf cannot be hashed deterministically")
        return float(f"{value:.12g}")
    return value


def stable_json_dumps(obj: Any) -> str:
    return json.dumps(_canonical(obj), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def stable_hash(obj: Any) -> str:
    return hashlib.sha256(stable_json_dumps(obj).encode("utf-8")).hexdigest()


def hash_photometry(vertical_deg: Any, horizontal_deg: Any, candela: Any, extra: Optional[Mapping[str, Any]] = None) -> str:
    """
    Digest of a candela table. Two files with identical angles and
    intensities hash the same regardless of keywords or header text.
    """
    payload = {
        "digest_version": PHOTOMETRY_DIGEST_VERSION,
        "vertical_deg": vertical_deg,
        "horizontal_deg": horizontal_deg,
        "candela": candela,
    }
    if extra:
        payload["extra"] = dict(extra)
    return stable_hash(payload)
