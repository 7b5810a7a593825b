"""
API Request Schemas

Pydantic models for API request validation.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class QueryRequest(BaseModel):
    """Natural-language question about a stored dataset."""

    query: str = Field(
        ...,
        min_length=1,
        max_length=4000,
        description="User question, typically a voice transcript"
    )


class DatasetPayload(BaseModel):
    """Dataset document in the camelCase store shape."""

    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(default="dataset", alias="fileName")
    file_type: str = Field(default="csv", alias="fileType")
    columns: Optional[list[str]] = None
    data: list[dict[str, Any]] = Field(default=[], description="Row records")
    metadata: Optional[dict[str, Any]] = None

    def to_document(self) -> dict[str, Any]:
        return {
            "fileName": self.file_name,
            "fileType": self.file_type,
            "columns": self.columns,
            "data": self.data,
            "metadata": self.metadata,
        }


class AnalyzeRequest(BaseModel):
    """Stateless narration over an inline dataset."""

    query: str = Field(..., max_length=4000)
    dataset: DatasetPayload
