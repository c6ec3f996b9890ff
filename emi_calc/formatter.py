"""Output helpers for the EMI calculator.

This module renders schedule results, yearly breakdowns, tenure comparisons
and the ledger in a plain tabular text format using ``click.echo``.
"""

from __future__ import annotations

from typing import Iterable

import click

from .data_models import HistoryEntry, LoanType, ScheduleResult
from .utils import format_inr, format_number


def print_summary(result: ScheduleResult) -> None:
    """Print the headline figures of a schedule in a human‑readable format."""
    click.echo("Summary")
    click.echo("-" * 72)
    click.echo(f"Loan type          : {result.loan_type.value}")
    click.echo(f"Principal          : {format_inr(result.principal)}")
    if result.adjusted_principal != result.principal:
        click.echo(f"Adjusted principal : {format_inr(result.adjusted_principal)}")
    click.echo(f"Rate               : {format_number(result.annual_rate)}%")
    click.echo(f"Tenure             : {format_number(result.tenure_years)} years ({result.number_of_months} months)")
    click.echo(f"Monthly EMI        : {format_inr(result.monthly_installment, 2)}")
    click.echo(f"Total interest     : {format_inr(result.total_interest)}")
    click.echo(f"Total payment      : {format_inr(result.total_payment)}")
    if result.loan_type is LoanType.EDUCATION:
        click.echo(f"Moratorium interest: {format_inr(result.moratorium_interest)}")
        click.echo(f"Est. 80E saving/yr : {format_inr(result.estimated_annual_tax_saving)}")
    click.echo("-" * 72)


def print_breakdown(result: ScheduleResult) -> None:
    """Print the yearly breakdown as a simple table."""
    headers = ["Year", "Principal", "Interest", "Balance"]
    click.echo("\t".join(headers))
    for row in result.yearly_breakdown:
        click.echo(
            "\t".join(
                [
                    str(row.year),
                    format_inr(row.principal_paid),
                    format_inr(row.interest_paid),
                    format_inr(row.balance),
                ]
            )
        )


def print_comparison(current: ScheduleResult, alternative: ScheduleResult) -> None:
    """Print two schedules side by side.

    The difference column is ``alternative - current``; a negative total
    interest difference means the shorter tenure is cheaper.
    """
    click.echo("Comparison")
    click.echo("=" * 72)
    click.echo(f"{'Metric':20s} {'Current':>15s} {'Shorter':>15s} {'Difference':>15s}")
    rows = [
        ("tenure_years", current.tenure_years, alternative.tenure_years),
        ("monthly_installment", current.monthly_installment, alternative.monthly_installment),
        ("total_interest", current.total_interest, alternative.total_interest),
        ("total_payment", current.total_payment, alternative.total_payment),
    ]
    for key, v1, v2 in rows:
        click.echo(f"{key:20s} {float(v1):15.2f} {float(v2):15.2f} {float(v2 - v1):15.2f}")
    click.echo("=" * 72)


def print_history(entries: Iterable[HistoryEntry]) -> None:
    """Print ledger entries, most recent first."""
    headers = ["Id", "Date", "Principal", "Rate", "Tenure", "EMI", "Interest"]
    click.echo("\t".join(headers))
    for entry in entries:
        click.echo(
            "\t".join(
                [
                    entry.id,
                    entry.date,
                    format_inr(entry.principal),
                    f"{format_number(entry.rate)}%",
                    f"{format_number(entry.tenure_years)}y",
                    format_inr(entry.emi, 2),
                    format_inr(entry.total_interest),
                ]
            )
        )
