"""GET /v1/evaluations/history - Fetch an applicant's evaluation history"""

from fastapi import APIRouter, Depends, Query

from credit_engine.api.v1.schemas import HistoryResponse, HistoryItem
from credit_engine.api.dependencies import get_orchestrator
from credit_engine.services.evaluation import DecisionOrchestrator

router = APIRouter()


@router.get("/evaluations/history", response_model=HistoryResponse)
def get_evaluation_history(
    document_id: str = Query(..., min_length=1, description="Identity document number"),
    limit: int = Query(20, ge=1, le=100),
    orchestrator: DecisionOrchestrator = Depends(get_orchestrator),
):
    """
    Retrieve recent evaluations for an applicant, newest first.

    Returns:
        Every stored evaluation, including ERROR records kept for audit
    """
    records = orchestrator.history(document_id, limit=limit)

    history_items = [
        HistoryItem(
            evaluation_id=str(r.record_id),
            status=r.status.value,
            approved=r.approved,
            final_score=r.final_score,
            risk_tier=r.risk_tier,
            max_recommended_amount=r.max_recommended_amount,
            evaluated_at=r.evaluated_at.isoformat(),
        )
        for r in records
    ]

    return HistoryResponse(document_id=document_id, evaluations=history_items)
