"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from credit_engine.domain.models import (
    ApplicantProfile,
    EvaluationRecord,
    LoanRequest,
    RiskTier,
    Sector,
    Severity,
    StrategyName,
)


class EvaluationRequest(BaseModel):
    """Request body for POST /v1/evaluations"""

    document_id: str = Field(..., min_length=8, max_length=12, pattern=r"^[0-9A-Za-z]+$", description="Identity document number")
    full_name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    age: int = Field(..., ge=18, le=75, description="Applicant age in years")
    monthly_income: Decimal = Field(..., ge=0, max_digits=18, decimal_places=2)
    monthly_debt: Decimal = Field(..., ge=0, max_digits=18, decimal_places=2)
    employment_months: int = Field(..., ge=0, description="Tenure in current employment")
    sector: Optional[Sector] = None
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2, description="Requested credit amount")
    term_months: int = Field(..., ge=1, le=360)
    strategy: Optional[StrategyName] = None

    def to_domain(self) -> tuple[ApplicantProfile, LoanRequest]:
        applicant = ApplicantProfile(
            document_id=self.document_id,
            full_name=self.full_name,
            email=self.email,
            age=self.age,
            monthly_income=self.monthly_income,
            monthly_debt=self.monthly_debt,
            employment_months=self.employment_months,
            sector=self.sector,
        )
        request = LoanRequest(amount=self.amount, term_months=self.term_months, strategy=self.strategy)
        return applicant, request


class FactorSchema(BaseModel):
    name: str
    points: float
    weight: str
    range: List[float]
    contribution: float


class EvaluationResponse(BaseModel):
    """One evaluation record as returned by the API"""

    evaluation_id: str
    document_id: str
    status: str
    approved: bool
    internal_score: Optional[int] = None
    final_score: Optional[int] = None
    bureau_score: Optional[int] = None
    risk_tier: Optional[RiskTier] = None
    severity: Optional[Severity] = None
    rationale: str
    reasons: List[str]
    recommendations: List[str]
    suggested_rate: Optional[Decimal] = None
    max_recommended_amount: Decimal
    max_term_months: int
    requested_amount: Decimal
    term_months: int
    strategy: StrategyName
    weight_profile: str
    factors: Dict[str, FactorSchema]
    evaluated_at: datetime

    @classmethod
    def from_record(cls, record: EvaluationRecord) -> "EvaluationResponse":
        return cls(
            evaluation_id=str(record.record_id),
            document_id=record.document_id,
            status=record.status.value,
            approved=record.approved,
            internal_score=record.internal_score,
            final_score=record.final_score,
            bureau_score=record.bureau_score,
            risk_tier=record.risk_tier,
            severity=record.severity,
            rationale=record.rationale,
            reasons=list(record.reasons),
            recommendations=list(record.recommendations),
            suggested_rate=record.suggested_rate,
            max_recommended_amount=record.max_recommended_amount,
            max_term_months=record.max_term_months,
            requested_amount=record.requested_amount,
            term_months=record.term_months,
            strategy=record.strategy,
            weight_profile=record.weight_profile,
            factors=record.factor_breakdown(),
            evaluated_at=record.evaluated_at,
        )


class HistoryItem(BaseModel):
    """Single evaluation in history"""

    evaluation_id: str
    status: str
    approved: bool
    final_score: Optional[int] = None
    risk_tier: Optional[RiskTier] = None
    max_recommended_amount: Decimal
    evaluated_at: str


class HistoryResponse(BaseModel):
    """Response for GET /v1/evaluations/history"""

    document_id: str
    evaluations: List[HistoryItem]
