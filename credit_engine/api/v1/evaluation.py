"""POST /v1/evaluations and GET /v1/evaluations/latest - credit evaluation endpoints"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from credit_engine.api.v1.schemas import EvaluationRequest, EvaluationResponse
from credit_engine.api.dependencies import get_orchestrator, get_request_id
from credit_engine.domain.models import Failed, FailureKind
from credit_engine.services.evaluation import DecisionOrchestrator

router = APIRouter()

FAILURE_STATUS = {
    FailureKind.VALIDATION: 422,
    FailureKind.SERVICE_UNAVAILABLE: 503,
    FailureKind.INTERNAL_ERROR: 500,
}


@router.post("/evaluations", response_model=EvaluationResponse)
async def create_evaluation(
    request_body: EvaluationRequest,
    request: Request,
    orchestrator: DecisionOrchestrator = Depends(get_orchestrator),
):
    """
    Evaluate a credit application.

    Approved and rejected applications both return 200 with the full record;
    a rejection is a normal outcome carrying every triggered reason.

    Raises:
        HTTPException: 422 invalid input, 503 bureau unavailable, 500 internal error
    """
    request_id = get_request_id(request)
    applicant, loan_request = request_body.to_domain()

    outcome = await orchestrator.evaluate(applicant, loan_request, request_id=request_id)

    if isinstance(outcome, Failed):
        detail = {"kind": outcome.kind.value, "message": outcome.message}
        if outcome.record is not None:
            detail["evaluation_id"] = str(outcome.record.record_id)
        if outcome.kind is FailureKind.INTERNAL_ERROR:
            logging.error(f"Evaluation error: {outcome.message}", extra={"request_id": request_id})
        raise HTTPException(status_code=FAILURE_STATUS[outcome.kind], detail=detail)

    return EvaluationResponse.from_record(outcome.record)


@router.get("/evaluations/latest", response_model=EvaluationResponse)
def get_latest_evaluation(
    document_id: str = Query(..., min_length=1, description="Identity document number"),
    orchestrator: DecisionOrchestrator = Depends(get_orchestrator),
):
    """Most recent decided evaluation for an applicant, served from cache when fresh"""
    record = orchestrator.latest(document_id)
    if record is None:
        raise HTTPException(status_code=404, detail="No evaluation found for applicant")
    return EvaluationResponse.from_record(record)
