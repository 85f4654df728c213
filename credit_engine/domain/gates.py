"""Critical gate rules - deal-breakers that force rejection regardless of score"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, List, Optional, Sequence, Tuple

from credit_engine.domain.factors import debt_to_income_percent, estimated_installment, payment_capacity
from credit_engine.domain.models import ApplicantProfile, BureauSnapshot, GateViolation, LoanRequest, Severity
from credit_engine.utils.numeric import to_decimal

SEVERITY_ORDER = {Severity.WARNING: 0, Severity.HIGH: 1, Severity.CRITICAL: 2}


@dataclass(frozen=True)
class GatePolicy:
    """Gate thresholds; built once from settings"""

    min_employment_months: int = 3
    max_dti_percent: Decimal = Decimal("50")
    max_installment_ratio: Decimal = Decimal("1.5")
    max_active_credits: int = 5
    reject_on_recent_delinquency: bool = False

    @classmethod
    def from_settings(cls, settings) -> "GatePolicy":
        return cls(
            min_employment_months=settings.min_employment_months,
            max_dti_percent=to_decimal(settings.max_dti_percent),
            max_installment_ratio=to_decimal(settings.max_installment_ratio),
            max_active_credits=settings.max_active_credits,
            reject_on_recent_delinquency=settings.reject_on_recent_delinquency,
        )


@dataclass(frozen=True)
class GateContext:
    """Derived figures every rule can look at"""

    applicant: ApplicantProfile
    request: LoanRequest
    bureau: BureauSnapshot
    policy: GatePolicy
    dti_percent: Decimal
    installment: Decimal
    capacity: Decimal

    @classmethod
    def build(
        cls, applicant: ApplicantProfile, request: LoanRequest, bureau: BureauSnapshot, policy: GatePolicy
    ) -> "GateContext":
        return cls(
            applicant=applicant,
            request=request,
            bureau=bureau,
            policy=policy,
            dti_percent=debt_to_income_percent(applicant.monthly_debt, applicant.monthly_income),
            installment=estimated_installment(request.amount),
            capacity=payment_capacity(applicant.monthly_income),
        )


@dataclass(frozen=True)
class GateRule:
    code: str
    reason: str
    severity: Severity
    remediation: Optional[str]
    triggered: Callable[[GateContext], bool]

    def violation(self) -> GateViolation:
        return GateViolation(code=self.code, reason=self.reason, severity=self.severity, remediation=self.remediation)


@dataclass(frozen=True)
class GateResult:
    violations: Tuple[GateViolation, ...]

    @property
    def rejected(self) -> bool:
        return bool(self.violations)

    @property
    def severity(self) -> Optional[Severity]:
        if not self.violations:
            return None
        return max((v.severity for v in self.violations), key=SEVERITY_ORDER.__getitem__)

    @property
    def reasons(self) -> List[str]:
        return [v.reason for v in self.violations]

    @property
    def remediations(self) -> List[str]:
        return [v.remediation for v in self.violations if v.remediation]


# Evaluation order matters only for the order reasons are reported in
DEFAULT_RULES: Tuple[GateRule, ...] = (
    GateRule(
        code="blacklisted",
        reason="blacklisted",
        severity=Severity.CRITICAL,
        remediation=None,
        triggered=lambda ctx: ctx.bureau.blacklisted,
    ),
    GateRule(
        code="employment_tenure",
        reason="insufficient employment tenure",
        severity=Severity.HIGH,
        remediation="Reach at least 3 months in your current employment before reapplying",
        triggered=lambda ctx: ctx.applicant.employment_months < ctx.policy.min_employment_months,
    ),
    GateRule(
        code="debt_ratio",
        reason="debt ratio exceeds policy limit",
        severity=Severity.HIGH,
        remediation="Reduce current debt obligations before requesting new credit",
        triggered=lambda ctx: ctx.dti_percent > ctx.policy.max_dti_percent,
    ),
    GateRule(
        code="unaffordable_installment",
        reason="unaffordable installment",
        severity=Severity.HIGH,
        remediation="Request a smaller amount that fits your monthly payment capacity",
        triggered=lambda ctx: ctx.installment > ctx.capacity * ctx.policy.max_installment_ratio,
    ),
    GateRule(
        code="active_credits",
        reason="excessive active obligations",
        severity=Severity.HIGH,
        remediation="Consolidate existing credits before requesting new credit",
        triggered=lambda ctx: ctx.bureau.active_credits > ctx.policy.max_active_credits,
    ),
    GateRule(
        code="recent_delinquency",
        reason="recent delinquency on record",
        severity=Severity.HIGH,
        remediation="Settle overdue payments to improve your credit history",
        triggered=lambda ctx: ctx.policy.reject_on_recent_delinquency and ctx.bureau.recent_delinquency,
    ),
)


class CriticalGateValidator:
    """
    Evaluate deal-breaker rules before any score threshold is considered.

    Every rule runs and every triggered reason is collected, so a rejected
    applicant sees the full list rather than only the first failure. A
    rejection here is final: the score threshold is never consulted.
    """

    def __init__(self, policy: GatePolicy | None = None, rules: Sequence[GateRule] = DEFAULT_RULES):
        self.policy = policy or GatePolicy()
        self.rules = tuple(rules)

    def validate(self, applicant: ApplicantProfile, request: LoanRequest, bureau: BureauSnapshot) -> GateResult:
        ctx = GateContext.build(applicant, request, bureau, self.policy)
        return GateResult(violations=tuple(rule.violation() for rule in self.rules if rule.triggered(ctx)))
