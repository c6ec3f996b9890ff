from decimal import Decimal

import pytest

from emi_calc.data_models import EducationParameters, LoanType
from emi_calc.engine import compute_schedule

EDU_NO_SUBSIDY = EducationParameters(course_duration_years=4, apply_moratorium=True, apply_subsidy=False)
EDU_SUBSIDY = EducationParameters(course_duration_years=4, apply_moratorium=True, apply_subsidy=True)
EDU_NO_MORATORIUM = EducationParameters(course_duration_years=4, apply_moratorium=False)

CASES = [
    (100_000, 7.5, 10, LoanType.STANDARD, None),
    (2_500_000, 8.65, 20, LoanType.STANDARD, None),
    (750_000, 11.25, 2.5, LoanType.STANDARD, None),
    (50_000, 0, 3, LoanType.STANDARD, None),
    (1_000, 36, 1, LoanType.STANDARD, None),
    (9_999_999, 9.9, 30, LoanType.STANDARD, None),
    (500_000, 8, 10, LoanType.EDUCATION, EDU_NO_SUBSIDY),
    (500_000, 8, 10, LoanType.EDUCATION, EDU_SUBSIDY),
    (800_000, 10.5, 7.25, LoanType.EDUCATION, EDU_NO_MORATORIUM),
    (300_000, 0, 5, LoanType.EDUCATION, EDU_NO_SUBSIDY),
]


# -------- Scenarios --------
def test_standard_emi_matches_formula():
    result = compute_schedule(100_000, 7.5, 10)
    assert abs(result.monthly_installment - Decimal("1187.02")) < Decimal("0.01")
    assert result.adjusted_principal == Decimal("100000")
    assert result.moratorium_interest == 0
    assert result.estimated_annual_tax_saving == 0


def test_education_moratorium_capitalized():
    result = compute_schedule(500_000, 8, 10, LoanType.EDUCATION, EDU_NO_SUBSIDY)
    assert result.moratorium_interest == Decimal("180000")
    assert result.adjusted_principal == Decimal("680000")
    assert result.principal == Decimal("500000")


def test_education_subsidy_waives_moratorium_interest():
    result = compute_schedule(500_000, 8, 10, LoanType.EDUCATION, EDU_SUBSIDY)
    assert result.moratorium_interest == 0
    assert result.adjusted_principal == Decimal("500000")


def test_whole_year_tenure_has_one_row_per_year():
    result = compute_schedule(100_000, 7.5, 10)
    assert result.number_of_months == 120
    assert [row.year for row in result.yearly_breakdown] == list(range(1, 11))
    assert result.yearly_breakdown[-1].balance == 0


def test_partial_final_year_gets_its_own_row():
    result = compute_schedule(120_000, 0, 2.5)
    assert result.number_of_months == 30
    assert [row.year for row in result.yearly_breakdown] == [1, 2, 3]
    # Straight-line repayment makes the six month remainder easy to see
    assert [row.principal_paid for row in result.yearly_breakdown] == [
        Decimal("48000"),
        Decimal("48000"),
        Decimal("24000"),
    ]
    assert [row.balance for row in result.yearly_breakdown] == [
        Decimal("72000"),
        Decimal("24000"),
        Decimal("0"),
    ]


def test_fractional_tenure_rounds_to_whole_months():
    assert compute_schedule(100_000, 7, 1.04).number_of_months == 12
    assert compute_schedule(100_000, 7, 1.05).number_of_months == 13


# -------- Education rules --------
def test_education_without_moratorium_keeps_principal():
    result = compute_schedule(800_000, 10.5, 7, LoanType.EDUCATION, EDU_NO_MORATORIUM)
    assert result.adjusted_principal == Decimal("800000")
    assert result.moratorium_interest == 0


def test_education_with_zero_course_duration_keeps_principal():
    params = EducationParameters(course_duration_years=0, apply_moratorium=True)
    result = compute_schedule(800_000, 10.5, 7, LoanType.EDUCATION, params)
    assert result.adjusted_principal == Decimal("800000")


def test_standard_loan_ignores_education_parameters():
    plain = compute_schedule(500_000, 8, 10)
    with_params = compute_schedule(500_000, 8, 10, LoanType.STANDARD, EDU_NO_SUBSIDY)
    assert with_params == plain


def test_education_tax_saving_is_twenty_percent_of_average_interest():
    result = compute_schedule(500_000, 8, 10, LoanType.EDUCATION, EDU_SUBSIDY)
    expected = result.total_interest / Decimal(10) * Decimal("0.20")
    assert result.estimated_annual_tax_saving == expected
    assert result.estimated_annual_tax_saving > 0


def test_education_loan_costs_more_than_subsidised_one():
    capitalized = compute_schedule(500_000, 8, 10, LoanType.EDUCATION, EDU_NO_SUBSIDY)
    subsidised = compute_schedule(500_000, 8, 10, LoanType.EDUCATION, EDU_SUBSIDY)
    assert capitalized.monthly_installment > subsidised.monthly_installment
    assert capitalized.total_interest > subsidised.total_interest


# -------- Properties --------
@pytest.mark.parametrize("principal,rate,tenure,loan_type,edu", CASES)
def test_total_payment_is_installment_times_months(principal, rate, tenure, loan_type, edu):
    result = compute_schedule(principal, rate, tenure, loan_type, edu)
    assert result.total_payment == result.monthly_installment * result.number_of_months
    assert abs(result.total_payment - result.total_interest - result.adjusted_principal) <= Decimal("1e-15")


@pytest.mark.parametrize("principal,rate,tenure,loan_type,edu", CASES)
def test_adjusted_principal_never_below_principal(principal, rate, tenure, loan_type, edu):
    result = compute_schedule(principal, rate, tenure, loan_type, edu)
    assert result.adjusted_principal >= result.principal
    capitalized = loan_type is LoanType.EDUCATION and edu.apply_moratorium and not edu.apply_subsidy
    assert (result.adjusted_principal > result.principal) == (capitalized and rate > 0)


@pytest.mark.parametrize("principal,rate,tenure,loan_type,edu", CASES)
def test_breakdown_sums_match_totals(principal, rate, tenure, loan_type, edu):
    result = compute_schedule(principal, rate, tenure, loan_type, edu)
    rows = result.yearly_breakdown
    tolerance = len(rows)
    principal_sum = sum(row.principal_paid for row in rows)
    interest_sum = sum(row.interest_paid for row in rows)
    assert abs(principal_sum - round(result.adjusted_principal)) <= tolerance
    assert abs(interest_sum - result.total_interest) <= tolerance


@pytest.mark.parametrize("principal,rate,tenure,loan_type,edu", CASES)
def test_balances_fall_to_zero(principal, rate, tenure, loan_type, edu):
    result = compute_schedule(principal, rate, tenure, loan_type, edu)
    balances = [row.balance for row in result.yearly_breakdown]
    assert all(b >= 0 for b in balances)
    assert balances == sorted(balances, reverse=True)
    assert balances[-1] == 0


@pytest.mark.parametrize("rate", [1, 7.5, 12, 24])
def test_longer_tenure_lowers_emi_and_raises_interest(rate):
    results = [compute_schedule(1_000_000, rate, years) for years in range(1, 31)]
    for shorter, longer in zip(results, results[1:]):
        assert longer.monthly_installment < shorter.monthly_installment
        assert longer.total_interest > shorter.total_interest


@pytest.mark.parametrize(
    "principal,tenure",
    [(100_000, 10), (120_000, 2.5), (333_333, 7), (100_000, 7), (99_999, 2.25), (77_777, 13)],
)
def test_zero_rate_is_straight_line(principal, tenure):
    result = compute_schedule(principal, 0, tenure)
    assert result.monthly_installment == result.adjusted_principal / result.number_of_months
    assert result.total_interest == 0
    assert result.total_payment == result.monthly_installment * result.number_of_months
    assert all(row.interest_paid == 0 for row in result.yearly_breakdown)
    assert result.yearly_breakdown[-1].balance == 0


def test_zero_rate_education_loan_has_no_tax_saving():
    params = EducationParameters(course_duration_years=4, apply_moratorium=True)
    result = compute_schedule(100_000, 0, 7, LoanType.EDUCATION, params)
    assert result.moratorium_interest == 0
    assert result.total_interest == 0
    assert result.estimated_annual_tax_saving == 0


def test_negligible_rate_repays_like_zero_rate():
    result = compute_schedule(100_000, Decimal("1e-27"), 10)
    assert result.monthly_installment == Decimal(100_000) / 120
    assert result.total_interest == 0
    assert result.yearly_breakdown[-1].balance == 0


def test_results_are_immutable_and_independent():
    first = compute_schedule(100_000, 7.5, 10)
    second = compute_schedule(100_000, 7.5, 10)
    assert first == second
    assert first is not second
    with pytest.raises(AttributeError):
        first.monthly_installment = Decimal("1")  # type: ignore[misc]


def test_accepts_strings_and_decimals():
    from_numbers = compute_schedule(100_000, 7.5, 10)
    from_strings = compute_schedule("100000", "7.5", "10")
    from_decimals = compute_schedule(Decimal("100000"), Decimal("7.5"), Decimal("10"))
    assert from_numbers == from_strings == from_decimals


def test_to_dict_is_plain_data(education_result):
    data = education_result.to_dict()
    assert data["loan_type"] == "Education"
    assert data["adjusted_principal"] == 680_000.0
    assert len(data["yearly_breakdown"]) == 10
    assert set(data["yearly_breakdown"][0]) == {"year", "principal_paid", "interest_paid", "balance"}
