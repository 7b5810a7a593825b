"""
Data Quality Scorer

Completeness and uniqueness per column, a weighted overall score, and the
dataset-wide checks used in problem reports (duplicates, type consistency,
columns with significant missing data).
"""

import math
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import polars as pl

from analysis.statistical import distinct_count
from config import get_settings
from core.cells import Cell


MISSING_DATA_THRESHOLD = 10.0


@dataclass
class ColumnQuality:
    """Quality metrics for one column."""

    column: str
    completeness: float
    uniqueness: float
    unique_count: int
    has_issues: bool

    @property
    def missing_percentage(self) -> float:
        return 100.0 - self.completeness

    def to_dict(self) -> dict[str, Any]:
        return {
            "completeness": round(self.completeness, 1),
            "uniqueness": round(self.uniqueness, 1),
            "unique_count": self.unique_count,
            "has_issues": self.has_issues,
        }


@dataclass
class DuplicateReport:
    count: int
    percentage: float


class DataQualityScorer:
    """Scores completeness and uniqueness of dataset columns."""

    def __init__(self):
        self.settings = get_settings()

    def score_counts(
        self,
        column: str,
        row_count: int,
        null_count: int,
        unique_count: int,
    ) -> ColumnQuality:
        """
        Quality from counts alone.

        Used both on raw cells and on statistics supplied by the upload
        parser, so the two paths agree.
        """
        non_null = max(row_count - null_count, 0)
        completeness = non_null / row_count * 100 if row_count > 0 else 0.0
        uniqueness = unique_count / non_null * 100 if non_null > 0 else 0.0

        threshold = self.settings.analysis.quality_completeness_threshold
        return ColumnQuality(
            column=column,
            completeness=completeness,
            uniqueness=uniqueness,
            unique_count=unique_count,
            has_issues=completeness < threshold or unique_count == 1,
        )

    def score_column(self, column: str, cells: Sequence[Cell]) -> ColumnQuality:
        present = [cell.as_text() for cell in cells if not cell.is_null]
        return self.score_counts(
            column,
            row_count=len(cells),
            null_count=len(cells) - len(present),
            unique_count=distinct_count(present),
        )

    def overall_score(self, qualities: Sequence[ColumnQuality]) -> int:
        """Mean of completeness*0.7 + uniqueness*0.3, rounded half up and clamped to 0-100."""
        if not qualities:
            return 0

        analysis = self.settings.analysis
        total = sum(
            q.completeness * analysis.quality_completeness_weight
            + q.uniqueness * analysis.quality_uniqueness_weight
            for q in qualities
        )
        return max(0, min(100, math.floor(total / len(qualities) + 0.5)))

    def columns_with_missing_data(self, qualities: Sequence[ColumnQuality]) -> list[str]:
        """Columns missing more than 10% of their values."""
        return [q.column for q in qualities if q.missing_percentage > MISSING_DATA_THRESHOLD]

    def detect_duplicates(self, cells_by_column: Mapping[str, Sequence[Cell]]) -> DuplicateReport:
        """Rows that repeat an earlier row exactly."""
        frame = pl.DataFrame([
            pl.Series(column, [None if c.is_null else c.as_text() for c in cells], dtype=pl.String)
            for column, cells in cells_by_column.items()
        ])
        if frame.height == 0:
            return DuplicateReport(count=0, percentage=0.0)

        duplicates = frame.height - frame.unique(maintain_order=True).height
        return DuplicateReport(count=duplicates, percentage=duplicates / frame.height * 100)

    def type_consistency(self, cells_by_column: Mapping[str, Sequence[Cell]]) -> float:
        """
        Share of columns whose non-null cells are all of one kind.

        Each extra kind in a column costs 25 points; the result is the mean
        over columns.
        """
        if not cells_by_column:
            return 0.0

        total = 0.0
        for cells in cells_by_column.values():
            kinds = {cell.kind for cell in cells if not cell.is_null}
            total += 100.0 if len(kinds) <= 1 else max(0.0, 100.0 - (len(kinds) - 1) * 25)
        return total / len(cells_by_column)


# Global instance
data_quality_scorer = DataQualityScorer()
