from photonfield.core.hashing import hash_photometry, stable_hash, stable_json_dumps
from photonfield.core.units import convert_length, unit_scale_to_m

__all__ = ["hash_photometry", "stable_hash", "stable_json_dumps", "convert_length", "unit_scale_to_m"]
