"""Input validation for loan calculations.

The engine assumes valid inputs. Front ends call ``validate_inputs`` first and
report the per-field messages back to the user.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Optional

from .config import MAX_TENURE_YEARS
from .data_models import EducationParameters, LoanType
from .exceptions import InputValidationError
from .utils import to_decimal


def parse_loan_type(value) -> LoanType:
    """Map ``"standard"``/``"education"`` (any case) to a ``LoanType``."""
    if isinstance(value, LoanType):
        return value
    text = str(value or "").strip().lower()
    for loan_type in LoanType:
        if loan_type.value.lower() == text:
            return loan_type
    raise InputValidationError({"loan_type": f"Unknown loan type: {value}"})


def _as_decimal(value) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        result = to_decimal(value)
    except ArithmeticError:
        return None
    return result if result.is_finite() else None


def validate_inputs(
    principal,
    annual_rate,
    tenure_years,
    loan_type: LoanType = LoanType.STANDARD,
    education: Optional[EducationParameters] = None,
) -> None:
    """Raise ``InputValidationError`` unless the inputs are safe to compute.

    Rules: principal must be positive, rate non-negative, tenure positive and
    at most ``MAX_TENURE_YEARS``. Education loans need a positive course
    duration.
    """
    errors: Dict[str, str] = {}

    amount = _as_decimal(principal)
    if amount is None or amount <= 0:
        errors["principal"] = "Required"

    rate = _as_decimal(annual_rate)
    if rate is None or rate < 0:
        errors["rate"] = "Invalid"

    tenure = _as_decimal(tenure_years)
    if tenure is None or tenure <= 0:
        errors["tenure"] = "Invalid"
    elif tenure > MAX_TENURE_YEARS:
        errors["tenure"] = f"Max {MAX_TENURE_YEARS}y"
    elif tenure * 12 < Decimal("0.5"):
        # Rounds to zero months
        errors["tenure"] = "Invalid"

    if loan_type is LoanType.EDUCATION:
        course = _as_decimal(education.course_duration_years) if education else None
        if course is None or course <= 0:
            errors["course_duration"] = "Required"

    if errors:
        raise InputValidationError(errors)
