"""Unit tests for factor calculators"""

import pytest
from decimal import Decimal
from credit_engine.domain.exceptions import ValidationError
from credit_engine.domain.factors import (
    affordability_points,
    age_points,
    amount_ratio_points,
    compute_factors,
    debt_to_income_percent,
    dti_points,
    estimated_installment,
    income_points,
    payment_capacity,
    sector_points,
    stability_points,
    validate_inputs,
)
from credit_engine.domain.models import Sector, StabilityScale
from credit_engine.domain.profiles import CLASSIC, EXTENDED
from tests.factories import make_applicant, make_request


@pytest.mark.parametrize(
    "annual_income,expected",
    [
        (Decimal("0"), 0.0),
        (Decimal("-5"), 0.0),
        (Decimal("10000"), 120.0),
        (Decimal("1000000"), 180.0),
    ],
)
def test_income_points_logarithmic(annual_income, expected):
    """Test income points follow the log curve"""
    assert income_points(annual_income) == pytest.approx(expected)


def test_income_points_capped_at_300():
    """Test income points cap at 300"""
    assert income_points(Decimal("1e12")) == 300.0


def test_sector_points_lookup_and_unknown_default():
    """Test sector lookup and the unknown-sector default"""
    assert sector_points(Sector.TECHNOLOGY) == pytest.approx(237.5)
    assert sector_points(Sector.MINING) == pytest.approx(125.0)
    assert sector_points(None) == 175.0


def test_debt_to_income_percent_four_decimals():
    """1/3 rounds half-up to 0.3333 before scaling to a percentage"""
    assert debt_to_income_percent(Decimal("1"), Decimal("3")) == Decimal("33.3300")
    assert debt_to_income_percent(Decimal("700000"), Decimal("1000000")) == Decimal("70.0000")


def test_debt_to_income_percent_zero_income_is_worst_case():
    """Test zero income yields the worst DTI"""
    assert debt_to_income_percent(Decimal("100"), Decimal("0")) == Decimal("100")


@pytest.mark.parametrize(
    "debt,expected",
    [
        (Decimal("5"), 250.0),  # 5%
        (Decimal("15"), 225.0),  # 15%: 250 -> 200
        (Decimal("25"), 175.0),  # 25%: 200 -> 150
        (Decimal("35"), 100.0),  # 35%: 150 -> 50
        (Decimal("40"), 50.0),
        (Decimal("45"), 25.0),
        (Decimal("70"), 0.0),  # floored
    ],
)
def test_dti_points_bands(debt, expected):
    """Test DTI point bands"""
    assert dti_points(debt, Decimal("100")) == pytest.approx(expected)


def test_dti_points_zero_income():
    """Test zero income scores the DTI floor"""
    assert dti_points(Decimal("10"), Decimal("0")) == 0.0


@pytest.mark.parametrize(
    "months,expected",
    [(0, -20.0), (5, -20.0), (6, 40.0), (11, 40.0), (12, 80.0), (23, 80.0), (24, 120.0), (360, 120.0)],
)
def test_stability_points_months_scale(months, expected):
    """Test stability points on the months scale"""
    assert stability_points(months, StabilityScale.MONTHS) == expected


@pytest.mark.parametrize(
    "months,expected",
    [
        (11, 50.0),  # < 1 year
        (12, 110.0),  # 1 year: 100 + 10
        (24, 120.0),  # 2 years: 100 + 20
        (36, 120.0),  # 3 years: 120 + 0
        (108, 174.0),  # 9 years: 120 + 54
        (120, 180.0),  # 10 years
        (240, 200.0),  # 20 years
        (360, 200.0),  # capped at 20 years
    ],
)
def test_stability_points_years_scale(months, expected):
    """Test stability points on the years scale"""
    assert stability_points(months, StabilityScale.YEARS) == expected


def test_estimated_installment_rounds_half_up_to_cents():
    """Test installment rounds half up to cents"""
    assert estimated_installment(Decimal("5000000")) == Decimal("138888.89")
    assert estimated_installment(Decimal("100"), 8) == Decimal("12.50")


@pytest.mark.parametrize("amount,term", [(Decimal("-1"), 36), (Decimal("100"), 0), (Decimal("100"), -3)])
def test_estimated_installment_rejects_bad_input(amount, term):
    """Test installment rejects non-positive inputs"""
    with pytest.raises(ValidationError):
        estimated_installment(amount, term)


def test_payment_capacity_forty_percent():
    """Test capacity is 40% of monthly income"""
    assert payment_capacity(Decimal("1000")) == Decimal("400.00")


@pytest.mark.parametrize(
    "amount,expected",
    [
        (Decimal("14400"), 150.0),  # installment 400 == capacity
        (Decimal("17280"), 50.0),  # installment 480 == capacity * 1.2
        (Decimal("17316"), -100.0),  # installment 481
    ],
)
def test_affordability_points(amount, expected):
    """Test affordability bands"""
    assert affordability_points(amount, Decimal("1000")) == expected


def test_affordability_points_zero_income():
    """Test zero income scores the affordability floor"""
    assert affordability_points(Decimal("1000"), Decimal("0")) == -100.0


@pytest.mark.parametrize(
    "amount,expected",
    [
        (Decimal("10000"), 100.0),
        (Decimal("20000"), 50.0),
        (Decimal("30000"), 0.0),
        (Decimal("30100"), -50.0),
    ],
)
def test_amount_ratio_points(amount, expected):
    """Test amount-to-income ratio bands"""
    assert amount_ratio_points(amount, Decimal("1000")) == expected


def test_amount_ratio_points_rejects_negative_amount():
    """Test negative amount is a validation error"""
    with pytest.raises(ValidationError):
        amount_ratio_points(Decimal("-1"), Decimal("1000"))


@pytest.mark.parametrize("age,expected", [(17, -30.0), (18, 30.0), (24, 30.0), (25, 80.0), (55, 80.0), (56, 50.0), (65, 50.0), (66, -30.0)])
def test_age_points(age, expected):
    """Test age bands"""
    assert age_points(age) == expected


@pytest.mark.parametrize(
    "applicant_overrides,request_overrides,field",
    [
        ({}, {"amount": Decimal("-1")}, "amount"),
        ({}, {"term_months": 0}, "term_months"),
        ({"monthly_debt": Decimal("-1")}, {}, "monthly_debt"),
        ({"monthly_income": Decimal("-1")}, {}, "monthly_income"),
        ({"age": -1}, {}, "age"),
        ({"employment_months": -1}, {}, "employment_months"),
    ],
)
def test_validate_inputs_names_offending_field(applicant_overrides, request_overrides, field):
    """Test validation errors name the bad field"""
    with pytest.raises(ValidationError) as exc_info:
        validate_inputs(make_applicant(**applicant_overrides), make_request(**request_overrides))
    assert exc_info.value.field == field
    assert field in str(exc_info.value)


def test_zero_income_degrades_instead_of_erroring():
    """Test zero income scores low without raising"""
    factors = {f.name: f.points for f in compute_factors(make_applicant(monthly_income=Decimal("0")), make_request(), EXTENDED)}
    assert factors["income"] == 0.0
    assert factors["dti"] == 0.0
    assert factors["affordability"] == -100.0
    assert factors["amount_ratio"] == -50.0


def test_compute_factors_follows_profile():
    """Test factors computed match the profile weights"""
    classic = compute_factors(make_applicant(), make_request(), CLASSIC)
    extended = compute_factors(make_applicant(), make_request(), EXTENDED)

    assert [f.name for f in classic] == ["income", "sector", "dti", "stability"]
    assert len(extended) == 7
    # 36 months: YEARS scale gives 120 (3 years), MONTHS scale gives 120 (>= 24 months)
    assert {f.name: (f.lower, f.upper) for f in classic}["stability"] == (50.0, 200.0)
    assert {f.name: (f.lower, f.upper) for f in extended}["stability"] == (-20.0, 120.0)


def test_every_factor_within_declared_range():
    """Test every factor stays inside its declared range"""
    for profile in (CLASSIC, EXTENDED):
        for factor in compute_factors(make_applicant(), make_request(), profile):
            assert factor.lower <= factor.points <= factor.upper
