"""
Data Profiler

Builds the metadata attached to a dataset at upload time and per-column
profiles on request. Metadata lets later queries skip type inference and
summary statistics entirely.
"""

from typing import Sequence

from analysis.orchestrator import ColumnProfile, analysis_orchestrator
from analysis.statistical import statistics_engine, value_frequencies
from core.cells import Cell, CellKind, parse_date
from core.dataset import Dataset, DatasetMetadata, MetadataStatistics
from core.data_understanding import column_type_inferer


SAMPLE_VALUE_COUNT = 5

# A number/string mix counts as numeric above this share of numbers
NUMERIC_MAJORITY = 0.8


class DataProfiler:
    """Upload-time metadata and column profiling."""

    def value_type(self, cell: Cell, date_named: bool) -> str:
        """Metadata type name of a single non-null cell."""
        if cell.kind == CellKind.NUMBER:
            return "number"
        if cell.kind == CellKind.BOOL:
            return "boolean"
        if date_named and parse_date(cell) is not None:
            return "date"
        return "string"

    def infer_data_type(self, name: str, cells: Sequence[Cell]) -> str:
        """
        Type over all non-null cells of a column.

        A single kind wins outright. Numbers mixed only with strings count as
        ``number`` when more than 80% of the values are numbers. Anything
        else is ``mixed``; an empty column is ``string``. Date strings only
        count as dates under a date-like column name.
        """
        present = [cell for cell in cells if not cell.is_null]
        if not present:
            return "string"

        date_named = column_type_inferer.is_date_name(name)
        types = dict(value_frequencies([self.value_type(cell, date_named) for cell in present]))
        if len(types) == 1:
            return next(iter(types))

        if set(types) == {"number", "string"}:
            if types["number"] > len(present) * NUMERIC_MAJORITY:
                return "number"

        return "mixed"

    def column_metadata(self, cells: Sequence[Cell], data_type: str) -> MetadataStatistics:
        stats = statistics_engine.compute_column("", cells, numeric=data_type == "number")
        numeric = stats.numeric

        return MetadataStatistics(
            data_type=data_type,
            null_count=stats.null_count,
            unique_count=stats.unique_count,
            min=numeric.min if numeric else None,
            max=numeric.max if numeric else None,
            avg=numeric.mean if numeric else None,
            median=numeric.median if numeric else None,
            mode=stats.mode,
            std_dev=numeric.std_dev if numeric else None,
            skewness=numeric.skewness if numeric else None,
            q1=numeric.q1 if numeric else None,
            q3=numeric.q3 if numeric else None,
        )

    def build_metadata(self, dataset: Dataset, sheet_names: Sequence[str] = ()) -> DatasetMetadata:
        """
        Generate metadata for every column of a dataset.

        Args:
            dataset: Parsed dataset
            sheet_names: Workbook sheet names, when the source had sheets

        Returns:
            DatasetMetadata with types, first sample values and statistics
        """
        data_types = {}
        statistics = {}
        sample_values = {}

        for column in dataset.columns:
            cells = dataset.column_cells(column)
            data_type = self.infer_data_type(column, cells)

            data_types[column] = data_type
            statistics[column] = self.column_metadata(cells, data_type)
            sample_values[column] = tuple(
                cell.as_text() for cell in cells if not cell.is_null
            )[:SAMPLE_VALUE_COUNT]

        return DatasetMetadata(
            data_types=data_types,
            statistics=statistics,
            sample_values=sample_values,
            sheet_names=tuple(sheet_names),
        )

    def profile(self, dataset: Dataset) -> list[ColumnProfile]:
        """Profiles in column order, taken from a full analysis run."""
        result = analysis_orchestrator.build(dataset)
        return [result.profiles[column] for column in dataset.columns]


# Global profiler instance
data_profiler = DataProfiler()
