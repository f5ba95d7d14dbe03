from __future__ import annotations

from enum import Enum

import numpy as np


class Transform(str, Enum):
    """
    Value transform applied before colouring a surface.
    """
    IDENTITY = "identity"
    LOG10 = "log10"

    @classmethod
    def parse(cls, value: "Transform | str") -> "Transform":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            choices = [t.value for t in cls]
            raise ValueError(f"Unknown transform {value!r}; expected one of {choices}") from None


def apply_transform(values, transform: Transform | str) -> np.ndarray:
    """
    Apply `transform` elementwise.

    Under log10, non-positive and missing values map to NaN instead of
    raising, so one bad cell never drops the whole surface.
    """
    transform = Transform.parse(transform)
    arr = np.asarray(values, dtype=float)

    if transform is Transform.IDENTITY:
        return arr.copy()

    out = np.full(arr.shape, np.nan, dtype=float)
    positive = np.isfinite(arr) & (arr > 0.0)
    out[positive] = np.log10(arr[positive])
    return out
