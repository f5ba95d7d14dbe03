from lexis.surface.builder import (
    build_column_difference_surface,
    build_column_ratio_surface,
    build_difference_surface,
    build_ratio_surface,
    build_surface,
    build_year_ratio_surface,
    lag_observations,
    select_breaks,
)
from lexis.surface.transforms import Transform, apply_transform

__all__ = [
    "Transform",
    "apply_transform",
    "build_surface",
    "build_ratio_surface",
    "build_year_ratio_surface",
    "build_column_ratio_surface",
    "build_difference_surface",
    "build_column_difference_surface",
    "lag_observations",
    "select_breaks",
]
