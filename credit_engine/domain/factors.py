"""Factor calculators - pure functions mapping one applicant attribute to bounded points"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, List, Optional

from credit_engine.domain.exceptions import ScoringInvariantError, ValidationError
from credit_engine.domain.models import ApplicantProfile, FactorScore, LoanRequest, Sector, StabilityScale
from credit_engine.domain.profiles import SECTOR_RISK_FACTORS, WEIGHT_PROFILES, WeightProfile
from credit_engine.utils.numeric import CENTS, clamp, to_decimal

STANDARD_TERM_MONTHS = 36
CAPACITY_RATIO = Decimal("0.40")
STRETCHED_CAPACITY_RATIO = Decimal("1.2")
UNKNOWN_SECTOR_POINTS = 175.0
MAX_SCORED_YEARS = 20


def validate_inputs(applicant: ApplicantProfile, request: LoanRequest) -> None:
    """
    Reject inputs no calculator can score.

    Zero income is allowed (calculators degrade to their documented default);
    negative money, negative tenure and non-positive terms are not.

    Raises:
        ValidationError: naming the offending field
    """
    if request.amount < 0:
        raise ValidationError("amount", f"must not be negative, got {request.amount}")
    if request.term_months <= 0:
        raise ValidationError("term_months", f"must be positive, got {request.term_months}")
    if applicant.monthly_income < 0:
        raise ValidationError("monthly_income", f"must not be negative, got {applicant.monthly_income}")
    if applicant.monthly_debt < 0:
        raise ValidationError("monthly_debt", f"must not be negative, got {applicant.monthly_debt}")
    if applicant.employment_months < 0:
        raise ValidationError("employment_months", f"must not be negative, got {applicant.employment_months}")
    if applicant.age < 0:
        raise ValidationError("age", f"must not be negative, got {applicant.age}")


def debt_to_income_percent(monthly_debt: Decimal, monthly_income: Decimal) -> Decimal:
    """
    Debt-to-income ratio as a percentage with 4 decimal places.

    Zero income returns 100 (worst case) so policy checks never divide by zero.
    """
    if monthly_debt < 0:
        raise ValidationError("monthly_debt", "must not be negative")
    if monthly_income <= 0:
        return Decimal("100")
    ratio = (to_decimal(monthly_debt) / to_decimal(monthly_income)).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)
    return ratio * 100


def estimated_installment(amount: Decimal, term_months: int = STANDARD_TERM_MONTHS) -> Decimal:
    """Interest-free monthly installment estimate, rounded half-up to cents"""
    if amount < 0:
        raise ValidationError("amount", "must not be negative")
    if term_months <= 0:
        raise ValidationError("term_months", "must be positive")
    return (to_decimal(amount) / term_months).quantize(CENTS, rounding=ROUND_HALF_UP)


def payment_capacity(monthly_income: Decimal) -> Decimal:
    """Share of monthly income that may go to a new installment (40%)"""
    return (to_decimal(monthly_income) * CAPACITY_RATIO).quantize(CENTS, rounding=ROUND_HALF_UP)


def income_points(annual_income: Decimal) -> float:
    """
    Income factor (0-300 points), logarithmic so very large incomes don't dominate.

    Example:
        10,000 -> 120, 1,000,000 -> 180, 30,000,000 -> ~224
    """
    if annual_income <= 0:
        return 0.0
    return clamp(math.log10(float(annual_income)) * 30, 0.0, 300.0)


def sector_points(sector: Optional[Sector]) -> float:
    """Sector factor (0-250 points); unknown sector scores 175"""
    if sector is None:
        return UNKNOWN_SECTOR_POINTS
    return SECTOR_RISK_FACTORS[sector] * 250


def dti_points(monthly_debt: Decimal, monthly_income: Decimal) -> float:
    """
    Debt-to-income factor (0-250 points).

    Bands (DTI %):
    - < 10:   250
    - 10-20:  250 -> 200 linear
    - 20-30:  200 -> 150 linear
    - 30-40:  150 -> 50 linear
    - >= 40:  50 minus 5 per point over 40, floored at 0
    """
    if monthly_income <= 0:
        return 0.0
    ratio = float(debt_to_income_percent(monthly_debt, monthly_income))

    if ratio < 10:
        return 250.0
    elif ratio < 20:
        return 250 - (ratio - 10) * 5
    elif ratio < 30:
        return 200 - (ratio - 20) * 5
    elif ratio < 40:
        return 150 - (ratio - 30) * 10
    else:
        return max(0.0, 50 - (ratio - 40) * 5)


def stability_points(employment_months: int, scale: StabilityScale) -> float:
    """
    Employment stability factor.

    MONTHS scale (-20..120), for individual applicants:
        < 6 -> -20, 6-11 -> 40, 12-23 -> 80, >= 24 -> 120

    YEARS scale (50..200), the company-age curve applied to whole years of tenure:
        < 1 -> 50, 1-2 -> 100 + 10y, 3-9 -> 120 + 9(y-3), >= 10 -> 180 + 2(min(y, 20) - 10)
    """
    if employment_months < 0:
        raise ValidationError("employment_months", "must not be negative")

    if scale is StabilityScale.MONTHS:
        if employment_months >= 24:
            return 120.0
        elif employment_months >= 12:
            return 80.0
        elif employment_months >= 6:
            return 40.0
        return -20.0

    years = employment_months // 12
    if years < 1:
        return 50.0
    elif years < 3:
        return float(100 + years * 10)
    elif years < 10:
        return float(120 + (years - 3) * 9)
    return float(min(200, 180 + (min(years, MAX_SCORED_YEARS) - 10) * 2))


def affordability_points(amount: Decimal, monthly_income: Decimal) -> float:
    """
    Capacity-to-pay factor (-100..150 points).

    Installment over the standard 36-month term is compared to 40% of income:
    within capacity +150, within 120% of capacity +50, otherwise -100.
    """
    installment = estimated_installment(amount)
    if monthly_income <= 0:
        return -100.0

    capacity = payment_capacity(monthly_income)
    if installment <= capacity:
        return 150.0
    elif installment <= capacity * STRETCHED_CAPACITY_RATIO:
        return 50.0
    return -100.0


def amount_ratio_points(amount: Decimal, monthly_income: Decimal) -> float:
    """Requested amount vs monthly income (-50..100): <=10x +100, <=20x +50, <=30x 0, else -50"""
    if amount < 0:
        raise ValidationError("amount", "must not be negative")
    if monthly_income <= 0:
        return -50.0

    ratio = (to_decimal(amount) / to_decimal(monthly_income)).quantize(CENTS, rounding=ROUND_HALF_UP)
    if ratio <= 10:
        return 100.0
    elif ratio <= 20:
        return 50.0
    elif ratio <= 30:
        return 0.0
    return -50.0


def age_points(age: int) -> float:
    """Demographic factor (-30..80): 25-55 best, 56-65 and 18-24 reduced, otherwise penalized"""
    if age < 0:
        raise ValidationError("age", "must not be negative")
    if 25 <= age <= 55:
        return 80.0
    elif 56 <= age <= 65:
        return 50.0
    elif 18 <= age < 25:
        return 30.0
    return -30.0


FactorCalculator = Callable[[ApplicantProfile, LoanRequest, WeightProfile], float]

FACTOR_CALCULATORS: Dict[str, FactorCalculator] = {
    "income": lambda a, r, p: income_points(a.annual_income),
    "sector": lambda a, r, p: sector_points(a.sector),
    "dti": lambda a, r, p: dti_points(a.monthly_debt, a.monthly_income),
    "stability": lambda a, r, p: stability_points(a.employment_months, p.stability_scale),
    "affordability": lambda a, r, p: affordability_points(r.amount, a.monthly_income),
    "amount_ratio": lambda a, r, p: amount_ratio_points(r.amount, a.monthly_income),
    "age": lambda a, r, p: age_points(a.age),
}


def compute_factors(applicant: ApplicantProfile, request: LoanRequest, profile: WeightProfile) -> List[FactorScore]:
    """Run every calculator the weight profile uses, in profile order"""
    validate_inputs(applicant, request)

    factors = []
    for name, weight in profile.weights.items():
        lower, upper = profile.range_for(name)
        points = FACTOR_CALCULATORS[name](applicant, request, profile)
        factors.append(FactorScore(name=name, points=points, weight=weight, lower=lower, upper=upper))
    return factors


for _profile in WEIGHT_PROFILES.values():
    if not set(_profile.weights) <= set(FACTOR_CALCULATORS):
        raise ScoringInvariantError(f"{_profile.name}: weighted factor without a calculator")
