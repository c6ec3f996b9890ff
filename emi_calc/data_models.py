"""Data models for the EMI calculator.

This module defines the dataclasses exchanged between the engine, the ledger
and the front ends: the loan type tag, the education loan parameters, the
per-year breakdown rows, the immutable schedule result and the ledger
record. Using frozen dataclasses makes results safe to share between call
sites and easy to serialize.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Tuple


class LoanType(str, Enum):
    """Which optional adjustment rules apply to a calculation."""

    STANDARD = "Standard"
    EDUCATION = "Education"


@dataclass(frozen=True)
class EducationParameters:
    """Inputs that only matter for education loans.

    Attributes
    ----------
    course_duration_years: Decimal
        Years of study. The moratorium covers this period plus a six month
        grace period.
    apply_moratorium: bool
        Whether interest accrued during study is deferred and capitalized.
    apply_subsidy: bool
        Whether the CSIS interest subsidy waives the moratorium interest.
    """

    course_duration_years: Decimal = Decimal("0")
    apply_moratorium: bool = False
    apply_subsidy: bool = False


@dataclass(frozen=True)
class YearlySummary:
    """Principal, interest and closing balance for one year of repayment.

    Amounts are rounded to whole currency units. The final row of a tenure
    that is not a whole number of years covers the remaining months only.
    """

    year: int
    principal_paid: Decimal
    interest_paid: Decimal
    balance: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "principal_paid": float(self.principal_paid),
            "interest_paid": float(self.interest_paid),
            "balance": float(self.balance),
        }


@dataclass(frozen=True)
class ScheduleResult:
    """The complete output of one engine invocation.

    ``principal``, ``annual_rate``, ``tenure_years`` and ``loan_type`` echo the
    inputs so a caller can re-invoke the engine from a result (for example to
    build a shorter-tenure alternative). ``adjusted_principal`` is the amount
    actually amortized and exceeds ``principal`` only when moratorium
    interest was capitalized.
    """

    principal: Decimal
    annual_rate: Decimal
    tenure_years: Decimal
    loan_type: LoanType
    number_of_months: int
    adjusted_principal: Decimal
    monthly_installment: Decimal
    total_interest: Decimal
    total_payment: Decimal
    yearly_breakdown: Tuple[YearlySummary, ...] = field(default_factory=tuple)
    moratorium_interest: Decimal = Decimal("0")
    estimated_annual_tax_saving: Decimal = Decimal("0")

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable view of the result."""
        return {
            "principal": float(self.principal),
            "annual_rate": float(self.annual_rate),
            "tenure_years": float(self.tenure_years),
            "loan_type": self.loan_type.value,
            "number_of_months": self.number_of_months,
            "adjusted_principal": float(self.adjusted_principal),
            "monthly_installment": float(self.monthly_installment),
            "total_interest": float(self.total_interest),
            "total_payment": float(self.total_payment),
            "moratorium_interest": float(self.moratorium_interest),
            "estimated_annual_tax_saving": float(self.estimated_annual_tax_saving),
            "yearly_breakdown": [row.to_dict() for row in self.yearly_breakdown],
        }


@dataclass(frozen=True)
class HistoryEntry:
    """A ledger record of one calculation.

    Records carry no loan type. Replaying one always computes a standard
    loan, which is how entries saved before education loans existed behave.
    """

    id: str
    date: str
    principal: Decimal
    rate: Decimal
    tenure_years: Decimal
    emi: Decimal
    total_interest: Decimal

    def to_dict(self) -> Dict[str, Any]:
        # Amounts are strings so they load back as the same Decimal
        return {
            "id": self.id,
            "date": self.date,
            "principal": str(self.principal),
            "rate": str(self.rate),
            "tenure_years": str(self.tenure_years),
            "emi": str(self.emi),
            "total_interest": str(self.total_interest),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        return cls(
            id=str(data["id"]),
            date=str(data.get("date", "")),
            principal=Decimal(str(data["principal"])),
            rate=Decimal(str(data["rate"])),
            tenure_years=Decimal(str(data["tenure_years"])),
            emi=Decimal(str(data["emi"])),
            total_interest=Decimal(str(data["total_interest"])),
        )
