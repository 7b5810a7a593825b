"""
Outlier Detector

IQR-based outlier detection for numeric columns.
"""

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
from numba import jit

from config import get_settings


@dataclass
class OutlierResult:
    """Result of outlier detection on one column."""

    column: str
    count: int
    total_count: int
    percentage: float
    min_outlier: Optional[float]
    max_outlier: Optional[float]
    lower_bound: Optional[float]
    upper_bound: Optional[float]

    def to_dict(self) -> dict[str, Any]:
        return {
            "column": self.column,
            "count": self.count,
            "total_count": self.total_count,
            "percentage": round(self.percentage, 2),
            "min_outlier": self.min_outlier,
            "max_outlier": self.max_outlier,
            "lower_bound": round(self.lower_bound, 4) if self.lower_bound is not None else None,
            "upper_bound": round(self.upper_bound, 4) if self.upper_bound is not None else None,
        }


@jit(nopython=True, cache=True)
def _iqr_bounds_numba(arr: np.ndarray, multiplier: float) -> tuple[float, float]:
    """Numba-accelerated IQR bounds with floor-index quartiles."""
    sorted_arr = np.sort(arr)
    n = len(sorted_arr)

    q25 = sorted_arr[int(n * 0.25)]
    q75 = sorted_arr[int(n * 0.75)]
    iqr = q75 - q25

    return q25 - multiplier * iqr, q75 + multiplier * iqr


@jit(nopython=True, cache=True)
def _outlier_mask_numba(arr: np.ndarray, lower: float, upper: float) -> np.ndarray:
    """Numba-accelerated bounds check."""
    n = len(arr)
    mask = np.zeros(n, dtype=np.bool_)

    for i in range(n):
        if arr[i] < lower or arr[i] > upper:
            mask[i] = True

    return mask


class OutlierDetector:
    """Classical 1.5 x IQR outlier detection."""

    def __init__(self):
        self.settings = get_settings()

    def detect(
        self,
        values: np.ndarray,
        column: str = "",
        multiplier: Optional[float] = None,
    ) -> OutlierResult:
        """
        Flag values outside [Q1 - k*IQR, Q3 + k*IQR].

        Q1 and Q3 are the sorted values at index floor(0.25n) and
        floor(0.75n). Fewer than the configured minimum number of values
        yields an empty result rather than an error.
        """
        if multiplier is None:
            multiplier = self.settings.analysis.outlier_iqr_multiplier

        arr = np.asarray(values, dtype=np.float64)

        if len(arr) < self.settings.analysis.outlier_min_values:
            return OutlierResult(
                column=column, count=0, total_count=len(arr), percentage=0.0,
                min_outlier=None, max_outlier=None,
                lower_bound=None, upper_bound=None,
            )

        lower, upper = _iqr_bounds_numba(arr, multiplier)
        mask = _outlier_mask_numba(arr, lower, upper)
        outliers = arr[mask]

        return OutlierResult(
            column=column,
            count=int(len(outliers)),
            total_count=len(arr),
            percentage=len(outliers) / len(arr) * 100,
            min_outlier=float(outliers.min()) if len(outliers) else None,
            max_outlier=float(outliers.max()) if len(outliers) else None,
            lower_bound=float(lower),
            upper_bound=float(upper),
        )


# Global instance
outlier_detector = OutlierDetector()
