"""
API Response Schemas

Pydantic models for API responses.
"""

from datetime import datetime
from typing import Any, Optional

import numpy as np
from pydantic import BaseModel, Field, field_serializer


def convert_numpy(obj: Any) -> Any:
    """Convert numpy types to Python native types."""
    if obj is None:
        return None
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, dict):
        return {k: convert_numpy(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [convert_numpy(v) for v in obj]
    if isinstance(obj, datetime):
        return obj.isoformat()
    if hasattr(obj, "item"):
        return obj.item()
    return obj


class ColumnProfileModel(BaseModel):
    """Profile of a single column."""

    name: str
    inferred_type: str
    domain_role: Optional[str] = None
    completeness: float
    statistics: dict[str, Any] = {}

    @field_serializer("statistics")
    @classmethod
    def serialize_statistics(cls, v: Any) -> Any:
        return convert_numpy(v)


class DatasetInfo(BaseModel):
    """Stored dataset summary."""

    dataset_id: str
    file_name: str
    file_type: str
    user_id: Optional[str] = None
    created_at: datetime
    row_count: int
    column_count: int
    columns: list[str]


class UploadResponse(BaseModel):
    """File upload response."""

    dataset: DatasetInfo
    metadata: dict[str, Any] = Field(default={}, description="Upload-time column metadata")
    message: str

    @field_serializer("metadata")
    @classmethod
    def serialize_metadata(cls, v: Any) -> Any:
        return convert_numpy(v)


class DatasetListResponse(BaseModel):
    datasets: list[DatasetInfo]
    count: int


class ProfileResponse(BaseModel):
    """Column profiles plus the aggregated analysis."""

    dataset_id: str
    quality_score: int
    domain: str
    numeric_columns: list[str]
    text_columns: list[str]
    date_columns: list[str]
    columns: list[ColumnProfileModel]
    analysis: dict[str, Any] = {}

    @field_serializer("analysis")
    @classmethod
    def serialize_analysis(cls, v: Any) -> Any:
        return convert_numpy(v)


class NarrationResponse(BaseModel):
    """Narrated answer to a query."""

    dataset_id: Optional[str] = None
    query: str
    response: str
    intent: Optional[str] = None
    domain: Optional[str] = None
    fallback: bool = False
    processing_time_ms: float


class ChartModel(BaseModel):
    """A proposed chart and its image URL."""

    chart_type: str
    title: str
    description: str
    chart_url: str
    config: dict[str, Any] = {}


class ChartsResponse(BaseModel):
    dataset_id: str
    charts: list[ChartModel]


class ErrorResponse(BaseModel):
    """Error response."""

    error: str
    detail: Optional[str] = None
    code: Optional[str] = None
