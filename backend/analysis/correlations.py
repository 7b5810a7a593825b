"""
Correlation Analyzer

Pairwise Pearson correlation across numeric columns.
"""

from dataclasses import dataclass
from itertools import combinations
from typing import Any, Mapping, Optional, Sequence

import numpy as np

from config import get_settings
from core.cells import Cell, CellKind


@dataclass
class CorrelationPair:
    """Correlation between two columns."""

    column1: str
    column2: str
    pearson: float
    sample_size: int

    @property
    def strength(self) -> str:
        """strong, moderate, weak or negligible."""
        abs_corr = abs(self.pearson)
        if abs_corr >= 0.7:
            return "strong"
        if abs_corr >= 0.4:
            return "moderate"
        if abs_corr >= 0.2:
            return "weak"
        return "negligible"

    @property
    def direction(self) -> str:
        if self.pearson > 0:
            return "positive"
        if self.pearson < 0:
            return "negative"
        return "none"

    def to_dict(self) -> dict[str, Any]:
        return {
            "column1": self.column1,
            "column2": self.column2,
            "pearson": round(self.pearson, 4),
            "sample_size": self.sample_size,
            "strength": self.strength,
            "direction": self.direction,
        }


def pearson(x: np.ndarray, y: np.ndarray) -> float:
    """
    Sum-based Pearson coefficient.

    Returns 0 when the denominator vanishes (constant or empty input).
    """
    n = len(x)
    if n == 0:
        return 0.0

    # Constant columns correlate with nothing
    if np.ptp(x) == 0 or np.ptp(y) == 0:
        return 0.0

    sum_x = float(np.sum(x))
    sum_y = float(np.sum(y))
    sum_xy = float(np.sum(x * y))
    sum_x2 = float(np.sum(x * x))
    sum_y2 = float(np.sum(y * y))

    numerator = n * sum_xy - sum_x * sum_y
    variance_term = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)
    if variance_term <= 0:
        return 0.0

    r = numerator / np.sqrt(variance_term)
    return float(min(1.0, max(-1.0, r)))


def paired_values(
    cells1: Sequence[Cell],
    cells2: Sequence[Cell],
) -> tuple[np.ndarray, np.ndarray]:
    """Rows where both cells are numbers; other rows are dropped for this pair only."""
    xs, ys = [], []
    for a, b in zip(cells1, cells2):
        if a.kind == CellKind.NUMBER and b.kind == CellKind.NUMBER:
            xs.append(a.value)
            ys.append(b.value)
    return np.array(xs, dtype=np.float64), np.array(ys, dtype=np.float64)


class CorrelationAnalyzer:
    """Capped pairwise correlation analysis."""

    def __init__(self):
        self.settings = get_settings()

    def compute_correlation_pair(
        self,
        column1: str,
        cells1: Sequence[Cell],
        column2: str,
        cells2: Sequence[Cell],
    ) -> CorrelationPair:
        x, y = paired_values(cells1, cells2)
        return CorrelationPair(
            column1=column1,
            column2=column2,
            pearson=pearson(x, y),
            sample_size=len(x),
        )

    def rank_correlations(
        self,
        cells_by_column: Mapping[str, Sequence[Cell]],
        numeric_columns: Sequence[str],
        cap: Optional[int] = None,
    ) -> list[CorrelationPair]:
        """
        Correlate every pair among the first ``cap`` numeric columns.

        Pairs are ranked by absolute coefficient, strongest first.
        """
        if cap is None:
            cap = self.settings.analysis.correlation_column_cap

        considered = list(numeric_columns[:cap])
        pairs = [
            self.compute_correlation_pair(c1, cells_by_column[c1], c2, cells_by_column[c2])
            for c1, c2 in combinations(considered, 2)
        ]
        pairs.sort(key=lambda p: abs(p.pearson), reverse=True)
        return pairs


# Global instance
correlation_analyzer = CorrelationAnalyzer()
