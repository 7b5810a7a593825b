"""
Query API Routes

Narrated answers and chart proposals for datasets.
"""

import time

from fastapi import APIRouter

from api.routes.upload import get_stored_or_404
from api.schemas.requests import AnalyzeRequest, QueryRequest
from api.schemas.responses import ChartModel, ChartsResponse, NarrationResponse
from core.dataset import Dataset
from insights.charts import chart_selector
from insights.narrative_generator import insight_narrator


router = APIRouter()


@router.post("/datasets/{dataset_id}/query", response_model=NarrationResponse)
async def query_dataset(dataset_id: str, request: QueryRequest) -> NarrationResponse:
    """
    Answer a natural-language question about a stored dataset.

    The answer is a deterministic narration; it never fails for a stored
    dataset, falling back to a generic sentence instead.
    """
    stored = get_stored_or_404(dataset_id)

    start = time.time()
    narration = insight_narrator.narrate(request.query, stored.dataset)

    return NarrationResponse(
        dataset_id=dataset_id,
        query=request.query,
        response=narration.text,
        intent=narration.intent.value if narration.intent else None,
        domain=narration.domain.value if narration.domain else None,
        fallback=narration.fallback,
        processing_time_ms=round((time.time() - start) * 1000, 2),
    )


@router.post("/analyze", response_model=NarrationResponse)
async def analyze_inline(request: AnalyzeRequest) -> NarrationResponse:
    """Narrate over a dataset sent in the request body."""
    start = time.time()
    dataset = Dataset.from_payload(request.dataset.to_document())
    narration = insight_narrator.narrate(request.query, dataset)

    return NarrationResponse(
        query=request.query,
        response=narration.text,
        intent=narration.intent.value if narration.intent else None,
        domain=narration.domain.value if narration.domain else None,
        fallback=narration.fallback,
        processing_time_ms=round((time.time() - start) * 1000, 2),
    )


@router.get("/datasets/{dataset_id}/charts", response_model=ChartsResponse)
async def get_charts(dataset_id: str) -> ChartsResponse:
    """Up to three chart proposals with their image URLs."""
    stored = get_stored_or_404(dataset_id)
    charts = chart_selector.select(stored.dataset)

    return ChartsResponse(
        dataset_id=dataset_id,
        charts=[ChartModel(**chart.to_dict()) for chart in charts],
    )
