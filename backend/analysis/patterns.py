"""
Distribution Analyzer

Categorical value distributions and day-of-week activity patterns.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

import polars as pl

from analysis.statistical import value_frequencies
from core.cells import Cell, parse_date


DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

UNKNOWN_LABEL = "Unknown"


@dataclass
class CategoryShare:
    """One value of a categorical distribution."""

    value: str
    count: int
    percentage: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "count": self.count,
            "percentage": round(self.percentage, 1),
        }


@dataclass
class CategoricalDistribution:
    """Value frequencies of a column, most frequent first."""

    column: str
    total: int
    shares: list[CategoryShare]

    @property
    def distinct_count(self) -> int:
        return len(self.shares)

    @property
    def dominant(self) -> Optional[CategoryShare]:
        return self.shares[0] if self.shares else None

    def top(self, n: int) -> list[CategoryShare]:
        return self.shares[:n]

    def to_dict(self) -> dict[str, Any]:
        return {
            "column": self.column,
            "total": self.total,
            "distinct_count": self.distinct_count,
            "shares": [s.to_dict() for s in self.shares],
        }


@dataclass
class TemporalPattern:
    """Day-of-week activity for a date column."""

    column: str
    valid_dates: int
    day_counts: dict[str, int]
    peak_day: Optional[str]
    peak_percentage: float

    def describe(self) -> str:
        if self.peak_day is None:
            return "No valid dates found"
        return f"Peak activity on {self.peak_day} ({round(self.peak_percentage)}%)"

    def to_dict(self) -> dict[str, Any]:
        return {
            "column": self.column,
            "valid_dates": self.valid_dates,
            "day_counts": self.day_counts,
            "peak_day": self.peak_day,
            "peak_percentage": round(self.peak_percentage, 1),
        }


class DistributionAnalyzer:
    """Frequency and temporal pattern extraction."""

    def categorical_distribution(
        self,
        column: str,
        cells: Sequence[Cell],
        include_nulls: bool = True,
    ) -> CategoricalDistribution:
        """
        Count each distinct value.

        Nulls are counted as ``Unknown`` unless ``include_nulls`` is False.
        Equal counts keep first-seen order.
        """
        labels = []
        for cell in cells:
            if cell.is_null:
                if include_nulls:
                    labels.append(UNKNOWN_LABEL)
                continue
            labels.append(cell.as_text())

        total = len(labels)
        shares = [
            CategoryShare(value=value, count=count, percentage=count / total * 100)
            for value, count in value_frequencies(labels)
        ]
        return CategoricalDistribution(column=column, total=total, shares=shares)

    def temporal_pattern(self, column: str, cells: Sequence[Cell]) -> TemporalPattern:
        """Which weekday most records fall on. Ties go to the earlier weekday."""
        dates = [d for d in (parse_date(cell) for cell in cells) if d is not None]

        if not dates:
            return TemporalPattern(
                column=column, valid_dates=0, day_counts={},
                peak_day=None, peak_percentage=0.0,
            )

        weekday_counts = (
            pl.Series("weekday", [d.weekday() for d in dates], dtype=pl.Int8)
            .value_counts()
            .sort("weekday")
        )
        day_counts = {
            DAY_NAMES[row["weekday"]]: row["count"]
            for row in weekday_counts.iter_rows(named=True)
        }
        peak_day = max(day_counts, key=day_counts.get)

        return TemporalPattern(
            column=column,
            valid_dates=len(dates),
            day_counts=day_counts,
            peak_day=peak_day,
            peak_percentage=day_counts[peak_day] / len(dates) * 100,
        )


# Global instance
distribution_analyzer = DistributionAnalyzer()
