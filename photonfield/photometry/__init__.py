from photonfield.photometry.interp import fold_horizontal_angle, interpolate_candela, sample_candela

__all__ = ["fold_horizontal_angle", "interpolate_candela", "sample_candela"]
