"""
Statistics Engine

Descriptive statistics for profiled columns using NumPy and SciPy.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np
import polars as pl
from scipy import stats as scipy_stats

from core.cells import Cell, CellKind


SKEW_THRESHOLD = 0.5


@dataclass
class NumericStatistics:
    """Descriptive statistics for a numeric column."""

    count: int
    min: float
    max: float
    mean: float
    median: float
    std_dev: Optional[float]
    skewness: Optional[float]  # None for zero-variance columns
    q1: Optional[float] = None
    q3: Optional[float] = None

    @property
    def distribution(self) -> str:
        """right_skewed, left_skewed or normal."""
        if self.skewness is None:
            return "normal"
        if self.skewness > SKEW_THRESHOLD:
            return "right_skewed"
        if self.skewness < -SKEW_THRESHOLD:
            return "left_skewed"
        return "normal"

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "min": round(self.min, 4),
            "max": round(self.max, 4),
            "mean": round(self.mean, 4),
            "median": round(self.median, 4),
            "std_dev": _round(self.std_dev),
            "skewness": _round(self.skewness),
            "q1": _round(self.q1),
            "q3": _round(self.q3),
            "distribution": self.distribution,
        }


@dataclass
class ColumnStatistics:
    """Statistics for any column; ``numeric`` is only set for numeric columns."""

    column: str
    null_count: int
    unique_count: int
    mode: Optional[str] = None
    numeric: Optional[NumericStatistics] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "column": self.column,
            "null_count": self.null_count,
            "unique_count": self.unique_count,
            "mode": self.mode,
            "numeric": self.numeric.to_dict() if self.numeric else None,
        }


def numeric_values(cells: Sequence[Cell]) -> np.ndarray:
    """Finite numeric values of a column, nulls and non-numbers dropped."""
    return np.array(
        [cell.value for cell in cells if cell.kind == CellKind.NUMBER],
        dtype=np.float64,
    )


def floor_quartiles(sorted_arr: np.ndarray) -> tuple[float, float]:
    """Q1/Q3 taken at index floor(0.25n) and floor(0.75n) of the sorted values."""
    n = len(sorted_arr)
    return float(sorted_arr[int(n * 0.25)]), float(sorted_arr[int(n * 0.75)])


def value_frequencies(labels: Sequence[str]) -> list[tuple[str, int]]:
    """
    Distinct values with their counts, most frequent first.

    Equal counts keep first-seen order.
    """
    if not labels:
        return []

    series = pl.Series("value", list(labels), dtype=pl.String)
    first_seen = (
        series.to_frame()
        .with_row_index("position")
        .group_by("value")
        .agg(pl.col("position").min())
    )
    value_counts = (
        series.value_counts()
        .join(first_seen, on="value")
        .sort(["count", "position"], descending=[True, False])
    )
    return [(row["value"], row["count"]) for row in value_counts.iter_rows(named=True)]


def distinct_count(labels: Sequence[str]) -> int:
    if not labels:
        return 0
    return pl.Series("value", list(labels), dtype=pl.String).n_unique()


def _round(value: Optional[float]) -> Optional[float]:
    return round(value, 4) if value is not None else None


class StatisticsEngine:
    """Computes per-column descriptive statistics."""

    def compute_numeric(self, values: np.ndarray) -> Optional[NumericStatistics]:
        """
        Statistics over validated numeric values.

        The median is the upper-middle element for even counts and the
        standard deviation is the population one (divides by N). Returns
        None when there are no values.
        """
        if len(values) == 0:
            return None

        sorted_arr = np.sort(values)
        count = len(sorted_arr)
        low, high = float(sorted_arr[0]), float(sorted_arr[-1])

        # Rounding can push the mean of near-equal values past the extremes
        mean = min(max(float(np.mean(sorted_arr)), low), high)
        std_dev = float(np.std(sorted_arr)) if high > low else 0.0

        if std_dev > 0:
            skewness = float(scipy_stats.skew(sorted_arr, bias=True))
        else:
            skewness = None

        q1, q3 = floor_quartiles(sorted_arr)

        return NumericStatistics(
            count=count,
            min=low,
            max=high,
            mean=mean,
            median=float(sorted_arr[count // 2]),
            std_dev=std_dev,
            skewness=skewness,
            q1=q1,
            q3=q3,
        )

    def from_summary(
        self,
        count: int,
        low: Optional[float],
        high: Optional[float],
        mean: Optional[float],
        median: Optional[float],
        std_dev: Optional[float] = None,
        skewness: Optional[float] = None,
        q1: Optional[float] = None,
        q3: Optional[float] = None,
    ) -> Optional[NumericStatistics]:
        """
        Statistics rebuilt from an upload-time summary.

        Summaries written by older uploaders carry no spread or shape; those
        fields then stay None unless the column is constant.
        """
        if count <= 0 or low is None or high is None:
            return None

        def clamp(value: Optional[float]) -> Optional[float]:
            if value is None:
                return None
            return min(max(value, low), high)

        if high == low:
            return NumericStatistics(
                count=count, min=low, max=high, mean=low, median=low,
                std_dev=0.0, skewness=None, q1=low, q3=high,
            )

        return NumericStatistics(
            count=count,
            min=low,
            max=high,
            mean=clamp(mean) if mean is not None else low,
            median=clamp(median) if median is not None else low,
            std_dev=std_dev,
            skewness=skewness if std_dev != 0 else None,
            q1=clamp(q1),
            q3=clamp(q3),
        )

    def compute_column(
        self,
        column: str,
        cells: Sequence[Cell],
        numeric: bool,
    ) -> ColumnStatistics:
        """Null/unique/mode counts for any column, numeric block when asked."""
        present = [cell.as_text() for cell in cells if not cell.is_null]
        frequencies = value_frequencies(present)

        numeric_stats = self.compute_numeric(numeric_values(cells)) if numeric else None

        return ColumnStatistics(
            column=column,
            null_count=len(cells) - len(present),
            unique_count=len(frequencies),
            mode=frequencies[0][0] if frequencies else None,
            numeric=numeric_stats,
        )


# Global instance
statistics_engine = StatisticsEngine()
