"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple, Union


class StrategyName(str, Enum):
    """Risk appetite used to adjust the score and the approval threshold"""

    CONSERVATIVE = "CONSERVATIVE"
    BALANCED = "BALANCED"
    AGGRESSIVE = "AGGRESSIVE"


class Sector(str, Enum):
    """Employer industry; each carries a risk factor (see profiles.SECTOR_RISK_FACTORS)"""

    TECHNOLOGY = "TECHNOLOGY"
    HEALTHCARE = "HEALTHCARE"
    EDUCATION = "EDUCATION"
    FINANCE = "FINANCE"
    MANUFACTURING = "MANUFACTURING"
    RETAIL = "RETAIL"
    CONSTRUCTION = "CONSTRUCTION"
    HOSPITALITY = "HOSPITALITY"
    AGRICULTURE = "AGRICULTURE"
    MINING = "MINING"
    OTHER = "OTHER"


class StabilityScale(str, Enum):
    """Calibration used by the stability factor"""

    YEARS = "YEARS"  # company-age curve, tenure floored to whole years
    MONTHS = "MONTHS"  # applicant employment-months bands


class RiskTier(str, Enum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"
    VERY_POOR = "VERY_POOR"


class Severity(str, Enum):
    WARNING = "WARNING"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class EvaluationStatus(str, Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ERROR = "ERROR"


class FailureKind(str, Enum):
    VALIDATION = "VALIDATION"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True)
class ApplicantProfile:
    """Applicant's financial profile as submitted for one evaluation"""

    document_id: str
    full_name: str
    email: str
    age: int
    monthly_income: Decimal
    monthly_debt: Decimal
    employment_months: int
    sector: Optional[Sector] = None

    @property
    def annual_income(self) -> Decimal:
        return self.monthly_income * 12


@dataclass(frozen=True)
class LoanRequest:
    """Requested credit; strategy falls back to the configured default"""

    amount: Decimal
    term_months: int
    strategy: Optional[StrategyName] = None


@dataclass(frozen=True)
class StrategyProfile:
    name: StrategyName
    score_multiplier: Decimal
    minimum_approval_score: int


@dataclass(frozen=True)
class BureauSnapshot:
    """Result of one credit bureau query"""

    blacklisted: bool
    historical_score: Optional[int]  # 300-850, None when the bureau has no history
    active_credits: int
    recent_delinquency: bool

    @classmethod
    def neutral(cls) -> "BureauSnapshot":
        """Clean record used for documents the bureau does not know"""
        return cls(blacklisted=False, historical_score=None, active_credits=0, recent_delinquency=False)


@dataclass(frozen=True)
class FactorScore:
    """Points one factor contributed, with its declared range and weight"""

    name: str
    points: float
    weight: Decimal
    lower: float
    upper: float

    @property
    def normalized(self) -> float:
        """Position of points within [lower, upper], 0.0 to 1.0"""
        return (self.points - self.lower) / (self.upper - self.lower)

    @property
    def contribution(self) -> float:
        """Signed swing around the neutral 500, scaled by weight"""
        return float(self.weight) * (self.normalized - 0.5) * 1000

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "points": round(self.points, 2),
            "weight": str(self.weight),
            "range": [self.lower, self.upper],
            "contribution": round(self.contribution, 2),
        }


@dataclass(frozen=True)
class GateViolation:
    code: str
    reason: str
    severity: Severity
    remediation: Optional[str] = None


@dataclass(frozen=True)
class EvaluationRecord:
    """Persisted outcome of one evaluation; append-only, never mutated"""

    document_id: str
    full_name: str
    status: EvaluationStatus
    approved: bool
    internal_score: Optional[int]
    final_score: Optional[int]
    bureau_score: Optional[int]
    risk_tier: Optional[RiskTier]
    severity: Optional[Severity]
    rationale: str
    reasons: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    suggested_rate: Optional[Decimal]
    max_recommended_amount: Decimal
    max_term_months: int
    requested_amount: Decimal
    term_months: int
    strategy: StrategyName
    weight_profile: str
    factors: Tuple[FactorScore, ...]
    evaluated_at: datetime
    record_id: uuid.UUID = field(default_factory=uuid.uuid4)

    def factor_breakdown(self) -> dict:
        return {f.name: f.to_dict() for f in self.factors}


@dataclass(frozen=True)
class Approved:
    record: EvaluationRecord
    approved: bool = True


@dataclass(frozen=True)
class Rejected:
    record: EvaluationRecord
    approved: bool = False


@dataclass(frozen=True)
class Failed:
    kind: FailureKind
    message: str
    record: Optional[EvaluationRecord] = None
    approved: bool = False


EvaluationOutcome = Union[Approved, Rejected, Failed]
