"""
Upload API Routes

Endpoints for CSV and Excel upload and dataset management.
"""

from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from api.schemas.responses import (
    ColumnProfileModel,
    DatasetInfo,
    DatasetListResponse,
    ProfileResponse,
    UploadResponse,
)
from analysis.orchestrator import analysis_orchestrator
from config import get_settings
from core.csv_parser import csv_parser
from core.excel_parser import excel_parser, is_excel
from core.logging_config import upload_logger as logger
from core.store import StoredDataset, dataset_store


router = APIRouter()


def dataset_info(stored: StoredDataset) -> DatasetInfo:
    dataset = stored.dataset
    return DatasetInfo(
        dataset_id=stored.dataset_id,
        file_name=dataset.file_name,
        file_type=dataset.file_type,
        user_id=stored.user_id,
        created_at=stored.created_datetime,
        row_count=dataset.row_count,
        column_count=dataset.column_count,
        columns=list(dataset.columns),
    )


def get_stored_or_404(dataset_id: str) -> StoredDataset:
    stored = dataset_store.get(dataset_id)
    if stored is None:
        raise HTTPException(status_code=404, detail="Dataset not found")
    return stored


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: UploadFile = File(...),
    user_id: Optional[str] = Form(default=None),
) -> UploadResponse:
    """
    Upload a CSV or Excel (.xlsx) file for analysis.

    Parses the file, attaches column metadata and stores the dataset.
    """
    settings = get_settings()

    filename = file.filename or ""
    if not (filename.lower().endswith(".csv") or is_excel(filename)):
        raise HTTPException(
            status_code=400,
            detail="Only CSV and Excel (.xlsx) files are supported"
        )

    content = await file.read()

    file_size_mb = len(content) / (1024 * 1024)
    if file_size_mb > settings.max_file_size_mb:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.max_file_size_mb}MB"
        )

    try:
        parser = excel_parser if is_excel(filename) else csv_parser
        dataset = parser.parse_bytes(content, filename)
    except ValueError as e:
        logger.warning(f"Rejected {file.filename}: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    dataset_id = dataset_store.create(dataset, user_id=user_id)
    logger.info(f"Stored {file.filename} as {dataset_id}")

    return UploadResponse(
        dataset=dataset_info(dataset_store.get(dataset_id)),
        metadata=dataset.metadata.to_dict() if dataset.metadata else {},
        message=f"Successfully uploaded and processed {file.filename}",
    )


@router.get("/datasets", response_model=DatasetListResponse)
async def list_datasets(user_id: Optional[str] = None) -> DatasetListResponse:
    """List active datasets, optionally for one user."""
    datasets = [dataset_info(s) for s in dataset_store.list_datasets(user_id)]
    return DatasetListResponse(datasets=datasets, count=len(datasets))


@router.get("/datasets/{dataset_id}", response_model=DatasetInfo)
async def get_dataset(dataset_id: str) -> DatasetInfo:
    return dataset_info(get_stored_or_404(dataset_id))


@router.delete("/datasets/{dataset_id}")
async def delete_dataset(dataset_id: str) -> dict:
    """Delete a dataset."""
    if not dataset_store.delete(dataset_id):
        raise HTTPException(status_code=404, detail="Dataset not found")
    return {"message": f"Dataset {dataset_id} deleted successfully"}


@router.get("/datasets/{dataset_id}/profile", response_model=ProfileResponse)
async def get_profile(dataset_id: str) -> ProfileResponse:
    """Column profiles and the full analysis of a dataset."""
    stored = get_stored_or_404(dataset_id)
    analysis = analysis_orchestrator.build(stored.dataset)

    columns = [
        ColumnProfileModel(**analysis.profiles[column].to_dict())
        for column in analysis.columns
    ]

    return ProfileResponse(
        dataset_id=dataset_id,
        quality_score=analysis.quality_score,
        domain=analysis.domain.value,
        numeric_columns=analysis.numeric_columns,
        text_columns=analysis.text_columns,
        date_columns=analysis.date_columns,
        columns=columns,
        analysis=analysis.to_dict(),
    )
