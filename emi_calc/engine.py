"""Core calculation engine for the EMI calculator.

This module turns a principal, an annual rate in percent, a tenure in years
and loan-type-specific parameters into a ``ScheduleResult``. The work runs in
four ordered phases: education loan principal adjustment (moratorium and
subsidy), the fixed monthly installment, the month-by-month amortization walk
that produces the yearly breakdown, and the Section 80E tax saving estimate.

The engine is pure. It does not validate its inputs: callers must ensure
``principal > 0``, ``annual_rate >= 0`` and ``tenure_years > 0`` (see
``emi_calc.validation``).
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, getcontext
from typing import List, Optional, Tuple

from .config import MORATORIUM_GRACE_YEARS, TAX_SAVING_RATE
from .data_models import EducationParameters, LoanType, ScheduleResult, YearlySummary
from .utils import to_decimal

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")
_WHOLE_UNIT = Decimal("1")


def _round_whole(value: Decimal) -> Decimal:
    return value.quantize(_WHOLE_UNIT, rounding=ROUND_HALF_UP)


def _adjust_principal(
    principal: Decimal,
    annual_rate: Decimal,
    loan_type: LoanType,
    education: Optional[EducationParameters],
) -> Tuple[Decimal, Decimal]:
    """Return ``(adjusted_principal, moratorium_interest)``.

    Interest during the moratorium (course duration plus six months) is simple
    interest. Without the CSIS subsidy it is capitalized into the principal;
    with the subsidy it is waived and the principal is left untouched.
    """
    if loan_type is not LoanType.EDUCATION or education is None:
        return principal, _ZERO
    course_years = to_decimal(education.course_duration_years)
    if not education.apply_moratorium or course_years <= 0:
        return principal, _ZERO

    moratorium_years = course_years + MORATORIUM_GRACE_YEARS
    accrued = principal * annual_rate * moratorium_years / Decimal(100)
    if education.apply_subsidy:
        return principal, _ZERO
    return principal + accrued, accrued


def _months_in_tenure(tenure_years: Decimal) -> int:
    return int(_round_whole(tenure_years * 12))


def _is_interest_free(rate_per_month: Decimal, months: int) -> bool:
    # Rates too small to move (1 + i)^n at the working precision count as zero
    return rate_per_month == 0 or (1 + rate_per_month) ** months == 1


def _calculate_installment(principal: Decimal, rate_per_month: Decimal, months: int) -> Decimal:
    """Return the equated monthly installment.

    The formula is:

        emi = P * i * (1 + i)^n / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` the monthly rate and ``n`` the number
    of months. An interest-free loan falls back to straight-line repayment
    ``P / n``.
    """
    if _is_interest_free(rate_per_month, months):
        return principal / Decimal(months)
    factor = (1 + rate_per_month) ** months
    return principal * rate_per_month * factor / (factor - 1)


def _yearly_breakdown(
    principal: Decimal, rate_per_month: Decimal, installment: Decimal, months: int
) -> List[YearlySummary]:
    """Walk the schedule month by month and summarize each year.

    A row is emitted every twelfth month and after the final month, so a
    30 month tenure yields three rows with the last covering six months.
    Rounding happens once per emitted row.
    """
    rows: List[YearlySummary] = []
    balance = principal
    year_principal = _ZERO
    year_interest = _ZERO
    for month in range(1, months + 1):
        interest = balance * rate_per_month
        principal_part = installment - interest
        # Clamp drift on the final month so the balance never goes negative
        balance = max(_ZERO, balance - principal_part)
        year_principal += principal_part
        year_interest += interest

        if month % 12 == 0 or month == months:
            rows.append(
                YearlySummary(
                    year=(month + 11) // 12,
                    principal_paid=_round_whole(year_principal),
                    interest_paid=_round_whole(year_interest),
                    balance=_round_whole(balance),
                )
            )
            year_principal = _ZERO
            year_interest = _ZERO
    return rows


def compute_schedule(
    principal,
    annual_rate,
    tenure_years,
    loan_type: LoanType = LoanType.STANDARD,
    education: Optional[EducationParameters] = None,
) -> ScheduleResult:
    """Compute the repayment schedule for a loan.

    Parameters
    ----------
    principal:
        Amount borrowed. Numbers, numeric strings and ``Decimal`` are
        accepted.
    annual_rate:
        Nominal annual interest rate in percent (``7.5`` means 7.5 %).
    tenure_years:
        Repayment term in years; fractional years are rounded to whole
        months.
    loan_type: LoanType
        ``LoanType.EDUCATION`` enables the moratorium, subsidy and tax rules.
    education: EducationParameters, optional
        Ignored for standard loans.

    Returns
    -------
    ScheduleResult
        A fresh, immutable result. ``total_payment`` is exactly
        ``monthly_installment * number_of_months``.
    """
    principal = to_decimal(principal)
    annual_rate = to_decimal(annual_rate)
    tenure_years = to_decimal(tenure_years)

    adjusted_principal, moratorium_interest = _adjust_principal(
        principal, annual_rate, loan_type, education
    )

    rate_per_month = annual_rate / Decimal(12) / Decimal(100)
    months = _months_in_tenure(tenure_years)
    if _is_interest_free(rate_per_month, months):
        # P / n * n may miss P in the last digit; no interest accrues regardless
        rate_per_month = _ZERO
    installment = _calculate_installment(adjusted_principal, rate_per_month, months)
    total_payment = installment * months
    total_interest = _ZERO if rate_per_month == 0 else total_payment - adjusted_principal

    breakdown = _yearly_breakdown(adjusted_principal, rate_per_month, installment, months)

    tax_saving = _ZERO
    if loan_type is LoanType.EDUCATION:
        # Average yearly interest over the whole term at a flat marginal rate
        tax_saving = total_interest / tenure_years * TAX_SAVING_RATE

    logger.debug(
        "Computed %s schedule: principal=%s rate=%s months=%d emi=%s",
        loan_type.value,
        adjusted_principal,
        annual_rate,
        months,
        installment,
    )
    return ScheduleResult(
        principal=principal,
        annual_rate=annual_rate,
        tenure_years=tenure_years,
        loan_type=loan_type,
        number_of_months=months,
        adjusted_principal=adjusted_principal,
        monthly_installment=installment,
        total_interest=total_interest,
        total_payment=total_payment,
        yearly_breakdown=tuple(breakdown),
        moratorium_interest=moratorium_interest,
        estimated_annual_tax_saving=tax_saving,
    )
