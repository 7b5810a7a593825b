"""
Dataset Records

Immutable view of an uploaded dataset as handed to the analysis engine,
together with the optional metadata an upstream parser attached at upload.
"""

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Mapping, Optional

from core.cells import Cell, to_cell


@dataclass(frozen=True)
class MetadataStatistics:
    """Per-column statistics produced by the upload parser."""

    data_type: str
    null_count: int = 0
    unique_count: int = 0
    min: Optional[float] = None
    max: Optional[float] = None
    avg: Optional[float] = None
    median: Optional[float] = None
    mode: Optional[str] = None
    std_dev: Optional[float] = None
    skewness: Optional[float] = None
    q1: Optional[float] = None
    q3: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], data_type: str = "string") -> "MetadataStatistics":
        mode = data.get("mode")
        if isinstance(mode, (list, tuple)):
            mode = str(mode[0]) if mode else None
        return cls(
            data_type=data.get("dataType", data_type),
            null_count=int(data.get("nullCount", 0) or 0),
            unique_count=int(data.get("uniqueCount", 0) or 0),
            min=_optional_float(data.get("min")),
            max=_optional_float(data.get("max")),
            avg=_optional_float(data.get("avg")),
            median=_optional_float(data.get("median")),
            mode=str(mode) if mode is not None else None,
            std_dev=_optional_float(data.get("stdDev")),
            skewness=_optional_float(data.get("skewness")),
            q1=_optional_float(data.get("q1")),
            q3=_optional_float(data.get("q3")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "dataType": self.data_type,
            "nullCount": self.null_count,
            "uniqueCount": self.unique_count,
            "min": self.min,
            "max": self.max,
            "avg": self.avg,
            "median": self.median,
            "mode": self.mode,
            "stdDev": self.std_dev,
            "skewness": self.skewness,
            "q1": self.q1,
            "q3": self.q3,
        }


@dataclass(frozen=True)
class DatasetMetadata:
    """Metadata blob attached to a dataset at upload time."""

    data_types: Mapping[str, str] = field(default_factory=dict)
    statistics: Mapping[str, MetadataStatistics] = field(default_factory=dict)
    sample_values: Mapping[str, tuple[Any, ...]] = field(default_factory=dict)
    sheet_names: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DatasetMetadata":
        data_types = dict(data.get("dataTypes") or {})
        statistics = {
            name: MetadataStatistics.from_dict(stats or {}, data_types.get(name, "string"))
            for name, stats in (data.get("statistics") or {}).items()
        }
        sample_values = {
            name: tuple(values or ())
            for name, values in (data.get("sampleValues") or {}).items()
        }
        return cls(
            data_types=data_types,
            statistics=statistics,
            sample_values=sample_values,
            sheet_names=tuple(data.get("sheetNames") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "dataTypes": dict(self.data_types),
            "statistics": {k: v.to_dict() for k, v in self.statistics.items()},
            "sampleValues": {k: list(v) for k, v in self.sample_values.items()},
            "sheetNames": list(self.sheet_names),
        }


@dataclass(frozen=True)
class Dataset:
    """An uploaded tabular dataset. The engine only ever reads it."""

    file_name: str
    columns: tuple[str, ...]
    rows: tuple[Mapping[str, Any], ...]
    file_type: str = "csv"
    metadata: Optional[DatasetMetadata] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @cached_property
    def cells(self) -> dict[str, tuple[Cell, ...]]:
        """Column-major tagged cells, built once per dataset."""
        return {
            column: tuple(to_cell(row.get(column)) for row in self.rows)
            for column in self.columns
        }

    def column_cells(self, column: str) -> tuple[Cell, ...]:
        return self.cells.get(column, ())

    def with_metadata(self, metadata: DatasetMetadata) -> "Dataset":
        return Dataset(
            file_name=self.file_name,
            columns=self.columns,
            rows=self.rows,
            file_type=self.file_type,
            metadata=metadata,
        )

    @classmethod
    def from_records(
        cls,
        file_name: str,
        rows: list[Mapping[str, Any]],
        columns: Optional[list[str]] = None,
        file_type: str = "csv",
        metadata: Optional[DatasetMetadata] = None,
    ) -> "Dataset":
        """Build a dataset from row records, taking columns from the first row if absent."""
        if columns is None:
            columns = list(rows[0].keys()) if rows else []
        return cls(
            file_name=file_name,
            columns=tuple(str(c) for c in columns),
            rows=tuple(dict(row) for row in rows),
            file_type=file_type,
            metadata=metadata,
        )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Dataset":
        """
        Build a dataset from a stored document.

        Accepts the camelCase document shape:
        ``{fileName, fileType, columns, data, rowCount, columnCount, metadata}``.
        ``rowCount``/``columnCount`` are derived from the rows and columns.
        """
        metadata = payload.get("metadata")
        return cls.from_records(
            file_name=str(payload.get("fileName") or "dataset"),
            rows=list(payload.get("data") or []),
            columns=payload.get("columns"),
            file_type=payload.get("fileType") or "csv",
            metadata=DatasetMetadata.from_dict(metadata) if metadata else None,
        )


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
