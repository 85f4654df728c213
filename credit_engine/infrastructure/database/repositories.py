"""Data access layer for evaluation records"""

import uuid
from datetime import timezone
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from credit_engine.infrastructure.database.models import EvaluationRecordRow
from credit_engine.domain.models import (
    EvaluationRecord,
    EvaluationStatus,
    FactorScore,
    RiskTier,
    Severity,
    StrategyName,
)
from credit_engine.utils.numeric import to_money


class EvaluationRepository:
    """Append-only store for evaluation records"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, record: EvaluationRecord) -> uuid.UUID:
        """
        Persist one evaluation record and commit.

        Returns:
            The record id

        Raises:
            SQLAlchemyError: insert or commit failed (the session is rolled back)
        """
        row = EvaluationRecordRow(
            id=record.record_id,
            document_id=record.document_id,
            full_name=record.full_name,
            status=record.status.value,
            approved=record.approved,
            internal_score=record.internal_score,
            final_score=record.final_score,
            bureau_score=record.bureau_score,
            risk_tier=record.risk_tier.value if record.risk_tier else None,
            severity=record.severity.value if record.severity else None,
            rationale=record.rationale,
            reasons=list(record.reasons),
            recommendations=list(record.recommendations),
            suggested_rate=record.suggested_rate,
            max_recommended_amount=record.max_recommended_amount,
            max_term_months=record.max_term_months,
            requested_amount=record.requested_amount,
            term_months=record.term_months,
            strategy=record.strategy.value,
            weight_profile=record.weight_profile,
            factors=[f.to_dict() for f in record.factors],
            evaluated_at=record.evaluated_at,
        )
        try:
            self.db.add(row)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return row.id

    def find_latest_by_applicant(self, document_id: str, decided_only: bool = False) -> Optional[EvaluationRecord]:
        """Most recent record for an applicant; `decided_only` skips ERROR records"""
        query = self.db.query(EvaluationRecordRow).filter(EvaluationRecordRow.document_id == document_id)
        if decided_only:
            query = query.filter(EvaluationRecordRow.status != EvaluationStatus.ERROR.value)
        row = query.order_by(EvaluationRecordRow.evaluated_at.desc()).first()
        return to_domain(row) if row else None

    def list_by_applicant(self, document_id: str, limit: int = 20) -> List[EvaluationRecord]:
        """Recent records for an applicant, newest first"""
        rows = (
            self.db.query(EvaluationRecordRow)
            .filter(EvaluationRecordRow.document_id == document_id)
            .order_by(EvaluationRecordRow.evaluated_at.desc())
            .limit(limit)
            .all()
        )
        return [to_domain(row) for row in rows]


def to_domain(row: EvaluationRecordRow) -> EvaluationRecord:
    """Map a stored row back to the immutable domain record"""
    evaluated_at = row.evaluated_at
    # SQLite drops tzinfo; everything is written in UTC
    if evaluated_at.tzinfo is None:
        evaluated_at = evaluated_at.replace(tzinfo=timezone.utc)

    return EvaluationRecord(
        record_id=row.id,
        document_id=row.document_id,
        full_name=row.full_name,
        status=EvaluationStatus(row.status),
        approved=row.approved,
        internal_score=row.internal_score,
        final_score=row.final_score,
        bureau_score=row.bureau_score,
        risk_tier=RiskTier(row.risk_tier) if row.risk_tier else None,
        severity=Severity(row.severity) if row.severity else None,
        rationale=row.rationale,
        reasons=tuple(row.reasons or ()),
        recommendations=tuple(row.recommendations or ()),
        suggested_rate=to_money(row.suggested_rate) if row.suggested_rate is not None else None,
        max_recommended_amount=to_money(row.max_recommended_amount),
        max_term_months=row.max_term_months,
        requested_amount=to_money(row.requested_amount),
        term_months=row.term_months,
        strategy=StrategyName(row.strategy),
        weight_profile=row.weight_profile,
        factors=tuple(
            FactorScore(
                name=f["name"],
                points=f["points"],
                weight=Decimal(f["weight"]),
                lower=f["range"][0],
                upper=f["range"][1],
            )
            for f in row.factors or ()
        ),
        evaluated_at=evaluated_at,
    )
