"""
Analysis Orchestrator

Runs every profiling step over a dataset and gathers the results into one
AnalysisResult. Narration and chart selection are generated FROM this
object, so everything they say is backed by a computed number.

Two paths produce the same structure:
- raw path: types and statistics computed from the rows
- metadata path: types and summary statistics taken from the metadata the
  upload parser attached, raw rows only used for what metadata lacks
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from analysis.correlations import CorrelationPair, correlation_analyzer
from analysis.outliers import OutlierResult, outlier_detector
from analysis.patterns import CategoricalDistribution, TemporalPattern, distribution_analyzer
from analysis.quality import ColumnQuality, data_quality_scorer
from analysis.statistical import ColumnStatistics, numeric_values, statistics_engine
from core.dataset import Dataset, DatasetMetadata
from core.data_understanding import (
    ColumnType,
    DomainLabel,
    DomainRole,
    column_type_inferer,
    domain_classifier,
)
from core.logging_config import analysis_logger as logger


SAMPLE_VALUE_COUNT = 5

# Type names written by the upload parser
METADATA_TYPES = {
    "number": ColumnType.NUMERIC,
    "string": ColumnType.TEXT,
    "date": ColumnType.DATE,
    "boolean": ColumnType.BOOLEAN,
    "mixed": ColumnType.MIXED,
}


@dataclass
class ColumnProfile:
    """Inferred type, role and statistics of one column."""

    name: str
    inferred_type: ColumnType
    domain_role: Optional[DomainRole]
    statistics: ColumnStatistics
    completeness: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "inferred_type": self.inferred_type.value,
            "domain_role": self.domain_role.value if self.domain_role else None,
            "statistics": self.statistics.to_dict(),
            "completeness": round(self.completeness, 1),
        }


@dataclass
class AnalysisResult:
    """
    Everything computed about a dataset for one query.

    ``numeric_columns``, ``text_columns`` and ``date_columns`` partition the
    dataset's columns; booleans and mixed columns are in ``text_columns``.
    """

    file_name: str
    row_count: int
    columns: list[str]
    numeric_columns: list[str] = field(default_factory=list)
    text_columns: list[str] = field(default_factory=list)
    date_columns: list[str] = field(default_factory=list)
    statistics: dict[str, ColumnStatistics] = field(default_factory=dict)
    data_quality: dict[str, ColumnQuality] = field(default_factory=dict)
    correlations: list[CorrelationPair] = field(default_factory=list)
    outliers: dict[str, OutlierResult] = field(default_factory=dict)
    distributions: dict[str, CategoricalDistribution] = field(default_factory=dict)
    temporal_patterns: dict[str, TemporalPattern] = field(default_factory=dict)
    profiles: dict[str, ColumnProfile] = field(default_factory=dict)
    sample_values: dict[str, list[str]] = field(default_factory=dict)
    quality_score: int = 0
    duplicate_rows: int = 0
    type_consistency: float = 100.0
    missing_data_columns: list[str] = field(default_factory=list)
    domain: DomainLabel = DomainLabel.BUSINESS
    sheet_names: list[str] = field(default_factory=list)
    from_metadata: bool = False

    @property
    def primary_metric(self) -> Optional[str]:
        return self.numeric_columns[0] if self.numeric_columns else None

    def numeric_stats(self, column: str):
        stats = self.statistics.get(column)
        return stats.numeric if stats else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_name": self.file_name,
            "row_count": self.row_count,
            "columns": self.columns,
            "numeric_columns": self.numeric_columns,
            "text_columns": self.text_columns,
            "date_columns": self.date_columns,
            "statistics": {k: v.to_dict() for k, v in self.statistics.items()},
            "data_quality": {k: v.to_dict() for k, v in self.data_quality.items()},
            "correlations": [c.to_dict() for c in self.correlations],
            "outliers": {k: v.to_dict() for k, v in self.outliers.items()},
            "distributions": {k: v.to_dict() for k, v in self.distributions.items()},
            "temporal_patterns": {k: v.to_dict() for k, v in self.temporal_patterns.items()},
            "sample_values": self.sample_values,
            "quality_score": self.quality_score,
            "duplicate_rows": self.duplicate_rows,
            "type_consistency": round(self.type_consistency, 1),
            "missing_data_columns": self.missing_data_columns,
            "domain": self.domain.value,
            "sheet_names": self.sheet_names,
        }


class AnalysisOrchestrator:
    """
    Orchestrates all analysis in the correct order.

    Flow:
    1. Classify every column (metadata first, inference otherwise)
    2. Column statistics and quality
    3. Outliers per numeric column
    4. Capped pairwise correlations
    5. Categorical distributions and day-of-week patterns
    6. Dataset-wide quality checks, overall score and domain
    """

    def __init__(self):
        self.logger = logger

    def build(self, dataset: Dataset) -> AnalysisResult:
        metadata = dataset.metadata
        result = AnalysisResult(
            file_name=dataset.file_name,
            row_count=dataset.row_count,
            columns=list(dataset.columns),
            from_metadata=metadata is not None,
            sheet_names=list(metadata.sheet_names) if metadata else [],
        )

        self.logger.debug(
            f"Analyzing {dataset.file_name}: {dataset.row_count} rows, "
            f"{dataset.column_count} columns, metadata={metadata is not None}"
        )

        # 1-2. Types, statistics, quality
        for column in dataset.columns:
            column_type = self._column_type(dataset, column)

            if column_type == ColumnType.NUMERIC:
                result.numeric_columns.append(column)
            elif column_type == ColumnType.DATE:
                result.date_columns.append(column)
            else:
                result.text_columns.append(column)

            stats, quality = self._column_statistics(dataset, column, column_type)
            result.statistics[column] = stats
            result.data_quality[column] = quality
            result.sample_values[column] = self._sample_values(dataset, column)
            result.profiles[column] = ColumnProfile(
                name=column,
                inferred_type=column_type,
                domain_role=column_type_inferer.infer_role(column),
                statistics=stats,
                completeness=quality.completeness,
            )

        # 3. Outliers
        for column in result.numeric_columns:
            values = numeric_values(dataset.column_cells(column))
            if len(values):
                result.outliers[column] = outlier_detector.detect(values, column)

        # 4. Correlations
        if len(result.numeric_columns) >= 2 and dataset.row_count:
            result.correlations = correlation_analyzer.rank_correlations(
                dataset.cells, result.numeric_columns
            )

        # 5. Distributions and temporal patterns
        for column in result.text_columns:
            cells = dataset.column_cells(column)
            if any(not cell.is_null for cell in cells):
                result.distributions[column] = distribution_analyzer.categorical_distribution(
                    column, cells, include_nulls=False
                )
        for column in result.date_columns:
            pattern = distribution_analyzer.temporal_pattern(column, dataset.column_cells(column))
            if pattern.peak_day is not None:
                result.temporal_patterns[column] = pattern

        # 6. Quality checks, score and domain
        qualities = list(result.data_quality.values())
        result.quality_score = data_quality_scorer.overall_score(qualities)
        result.missing_data_columns = data_quality_scorer.columns_with_missing_data(qualities)
        result.duplicate_rows = data_quality_scorer.detect_duplicates(dataset.cells).count
        result.type_consistency = data_quality_scorer.type_consistency(dataset.cells)
        result.domain = domain_classifier.classify(
            result.columns, result.numeric_columns, dataset.file_name
        )

        self.logger.info(
            f"Analysis of {dataset.file_name} complete: "
            f"{len(result.numeric_columns)} numeric, {len(result.text_columns)} text, "
            f"{len(result.date_columns)} date, quality {result.quality_score}, "
            f"domain {result.domain.value}"
        )
        return result

    def _column_type(self, dataset: Dataset, column: str) -> ColumnType:
        metadata = dataset.metadata
        if metadata is not None and column in metadata.data_types:
            return METADATA_TYPES.get(metadata.data_types[column], ColumnType.TEXT)
        return column_type_inferer.infer(column, dataset.column_cells(column))

    def _column_statistics(
        self,
        dataset: Dataset,
        column: str,
        column_type: ColumnType,
    ) -> tuple[ColumnStatistics, ColumnQuality]:
        summary = self._metadata_statistics(dataset.metadata, column)
        is_numeric = column_type == ColumnType.NUMERIC

        if summary is None:
            cells = dataset.column_cells(column)
            stats = statistics_engine.compute_column(column, cells, numeric=is_numeric)
            return stats, data_quality_scorer.score_column(column, cells)

        numeric = None
        if is_numeric:
            numeric = statistics_engine.from_summary(
                count=dataset.row_count - summary.null_count,
                low=summary.min,
                high=summary.max,
                mean=summary.avg,
                median=summary.median,
                std_dev=summary.std_dev,
                skewness=summary.skewness,
                q1=summary.q1,
                q3=summary.q3,
            )

        stats = ColumnStatistics(
            column=column,
            null_count=summary.null_count,
            unique_count=summary.unique_count,
            mode=summary.mode,
            numeric=numeric,
        )
        quality = data_quality_scorer.score_counts(
            column,
            row_count=dataset.row_count,
            null_count=summary.null_count,
            unique_count=summary.unique_count,
        )
        return stats, quality

    @staticmethod
    def _metadata_statistics(metadata: Optional[DatasetMetadata], column: str):
        if metadata is None:
            return None
        return metadata.statistics.get(column)

    @staticmethod
    def _sample_values(dataset: Dataset, column: str) -> list[str]:
        metadata = dataset.metadata
        if metadata is not None and column in metadata.sample_values:
            return [str(v) for v in metadata.sample_values[column][:SAMPLE_VALUE_COUNT]]

        samples = []
        for cell in dataset.column_cells(column):
            if cell.is_null:
                continue
            samples.append(cell.as_text())
            if len(samples) >= SAMPLE_VALUE_COUNT:
                break
        return samples


# Global instance
analysis_orchestrator = AnalysisOrchestrator()
