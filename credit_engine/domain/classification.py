"""Risk classification - score to tier, credit terms, rationale text and recommendations"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Tuple

from credit_engine.domain.exceptions import ScoringInvariantError
from credit_engine.domain.models import BureauSnapshot, RiskTier
from credit_engine.utils.numeric import CENTS, to_decimal

# Ordered best to worst; first threshold the score reaches wins
TIER_THRESHOLDS: List[Tuple[int, RiskTier]] = [
    (800, RiskTier.EXCELLENT),
    (650, RiskTier.GOOD),
    (500, RiskTier.FAIR),
    (350, RiskTier.POOR),
]

MAX_AMOUNT_INCOME_SHARE = Decimal("0.30")
HIGH_DTI_WARNING_PERCENT = Decimal("35")


@dataclass(frozen=True)
class TierTerms:
    annual_rate: Decimal
    amount_ceiling: Decimal
    max_term_months: int


TIER_TERMS: Mapping[RiskTier, TierTerms] = MappingProxyType(
    {
        RiskTier.EXCELLENT: TierTerms(Decimal("8.50"), Decimal("10000000.00"), 84),
        RiskTier.GOOD: TierTerms(Decimal("12.00"), Decimal("5000000.00"), 60),
        RiskTier.FAIR: TierTerms(Decimal("18.00"), Decimal("1000000.00"), 36),
        RiskTier.POOR: TierTerms(Decimal("25.00"), Decimal("250000.00"), 24),
        RiskTier.VERY_POOR: TierTerms(Decimal("35.00"), Decimal("50000.00"), 12),
    }
)

if set(TIER_TERMS) != set(RiskTier):
    raise ScoringInvariantError("every tier needs credit terms")


@dataclass(frozen=True)
class CreditTerms:
    """Offer derived from a tier: rate, amount cap and term cap"""

    tier: RiskTier
    suggested_rate: Decimal
    max_amount: Decimal
    max_term_months: int


class RiskClassifier:
    """
    Map a final score to a risk tier and the credit terms that tier allows.

    Pure and idempotent: the same score and income always give the same terms.
    """

    def __init__(
        self,
        thresholds: Sequence[Tuple[int, RiskTier]] = TIER_THRESHOLDS,
        terms: Mapping[RiskTier, TierTerms] = TIER_TERMS,
    ):
        self.thresholds = sorted(thresholds, key=lambda t: t[0], reverse=True)
        self.terms = terms

    def classify(self, score: int) -> RiskTier:
        for minimum, tier in self.thresholds:
            if score >= minimum:
                return tier
        return RiskTier.VERY_POOR

    def terms_for(self, tier: RiskTier, annual_income: Decimal) -> CreditTerms:
        """
        max amount = min(30% of annual income, tier ceiling), rounded half-up to cents.
        """
        tier_terms = self.terms[tier]
        income_cap = max(to_decimal(annual_income), Decimal("0")) * MAX_AMOUNT_INCOME_SHARE
        max_amount = min(income_cap, tier_terms.amount_ceiling).quantize(CENTS, rounding=ROUND_HALF_UP)
        return CreditTerms(
            tier=tier,
            suggested_rate=tier_terms.annual_rate,
            max_amount=max_amount,
            max_term_months=tier_terms.max_term_months,
        )

    def evaluate(self, score: int, annual_income: Decimal) -> CreditTerms:
        return self.terms_for(self.classify(score), annual_income)


def _profile_remark(score: int) -> str:
    if score >= 800:
        return "Excellent profile, offer best conditions."
    elif score >= 650:
        return "Good credit profile, standard conditions."
    return "Acceptable profile, monitor closely."


def build_warnings(
    dti_percent: Decimal,
    bureau: BureauSnapshot,
    requested_term_months: int,
    max_term_months: int,
) -> List[str]:
    """Advisory flags reported on approvals and rejections alike"""
    warnings = []
    if dti_percent > HIGH_DTI_WARNING_PERCENT:
        warnings.append(f"WARNING: high debt-to-income ratio ({dti_percent:.1f}%).")
    if bureau.recent_delinquency:
        warnings.append("WARNING: recent delinquency reported by the bureau.")
    if requested_term_months > max_term_months:
        warnings.append(
            f"WARNING: requested term of {requested_term_months} months exceeds the {max_term_months}-month tier maximum."
        )
    return warnings


def build_rationale(
    approved: bool,
    score: int,
    tier: RiskTier,
    minimum_score: int,
    gate_reasons: Sequence[str] = (),
    warnings: Sequence[str] = (),
) -> str:
    """
    Human-readable decision text.

    Parts, in order: headline, score and tier, profile remark (approval) or
    rejection reasons, then warnings.

    Example:
        "APPROVED. Score: 902 (EXCELLENT). Excellent profile, offer best conditions."
    """
    parts = ["APPROVED." if approved else "REJECTED."]
    parts.append(f"Score: {score} ({tier.value}).")

    if approved:
        parts.append(_profile_remark(score))
    elif gate_reasons:
        parts.append("Rejected by policy: " + "; ".join(gate_reasons) + ".")
    else:
        parts.append(f"Score below the minimum of {minimum_score} for the selected strategy.")

    parts.extend(warnings)
    return " ".join(parts)


def build_recommendations(tier: Optional[RiskTier], remediations: Sequence[str] = ()) -> Tuple[str, ...]:
    recommendations = list(remediations)
    if tier is RiskTier.FAIR:
        recommendations.append("Consider a shorter term to reduce the total cost of the credit")
    elif tier in (RiskTier.POOR, RiskTier.VERY_POOR):
        recommendations.append("Build a longer repayment history or offer collateral to improve conditions")
    return tuple(recommendations)
