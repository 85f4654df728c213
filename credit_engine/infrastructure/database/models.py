"""SQLAlchemy ORM models for the evaluation audit trail"""

import uuid
from sqlalchemy import Column, Boolean, DateTime, Integer, Numeric, Text, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class EvaluationRecordRow(Base):
    """Append-only credit evaluation record"""

    __tablename__ = "evaluation_record"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    document_id = Column(Text, nullable=False, index=True)
    full_name = Column(Text, nullable=False)
    status = Column(Text, nullable=False)  # APPROVED | REJECTED | ERROR
    approved = Column(Boolean, nullable=False)
    internal_score = Column(Integer, nullable=True)
    final_score = Column(Integer, nullable=True)
    bureau_score = Column(Integer, nullable=True)
    risk_tier = Column(Text, nullable=True)
    severity = Column(Text, nullable=True)
    rationale = Column(Text, nullable=False)
    reasons = Column(JSON, nullable=False, default=list)
    recommendations = Column(JSON, nullable=False, default=list)
    suggested_rate = Column(Numeric(5, 2), nullable=True)
    max_recommended_amount = Column(Numeric(18, 2), nullable=False)
    max_term_months = Column(Integer, nullable=False)
    requested_amount = Column(Numeric(18, 2), nullable=False)
    term_months = Column(Integer, nullable=False)
    strategy = Column(Text, nullable=False)
    weight_profile = Column(Text, nullable=False)
    factors = Column(JSON, nullable=False, default=list)
    evaluated_at = Column(DateTime(timezone=True), nullable=False, index=True)
