"""Command‑line interface for the EMI calculator.

This module uses the ``click`` library to implement a multi‑command
interface. Users can compute repayment schedules for standard and education
loans, keep a ledger of recent calculations, replay ledger entries and ask
the configured advisor for a written analysis or a shorter-tenure
comparison. Results can be printed to the terminal or exported to JSON/CSV.
"""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Callable, Dict, Optional

import click

from . import config
from .advisor import (
    advisor_from_env,
    collect_stream,
    safe_compare,
    safe_summarize,
    shorter_tenure_alternative,
)
from .data_models import EducationParameters, LoanType, ScheduleResult
from .engine import compute_schedule
from .exceptions import InputValidationError
from .formatter import print_breakdown, print_comparison, print_history, print_summary
from .history import CalculationHistory, replay
from .utils import decimal_from_str
from .validation import parse_loan_type, validate_inputs

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoanRequest:
    """Validated engine inputs collected from a front end."""

    principal: Decimal
    rate: Decimal
    tenure_years: Decimal
    loan_type: LoanType
    education: Optional[EducationParameters] = None

    def compute(self) -> ScheduleResult:
        return compute_schedule(
            self.principal, self.rate, self.tenure_years, self.loan_type, self.education
        )


def _parse_field(raw) -> Optional[Decimal]:
    if raw is None or str(raw).strip() == "":
        return None
    try:
        return decimal_from_str(str(raw))
    except ValueError:
        return None


def build_request_from_options(
    principal,
    rate,
    tenure,
    loan_type: str = "standard",
    course_duration=None,
    moratorium: bool = False,
    subsidy: bool = False,
) -> LoanRequest:
    """Parse raw option/form values and validate them.

    Unparseable values are reported like missing ones. Raises
    ``InputValidationError`` with one message per offending field.
    """
    kind = parse_loan_type(loan_type)
    principal_value = _parse_field(principal)
    rate_value = _parse_field(rate)
    tenure_value = _parse_field(tenure)

    education = None
    if kind is LoanType.EDUCATION:
        course_value = _parse_field(course_duration)
        education = EducationParameters(
            course_duration_years=course_value if course_value is not None else Decimal("0"),
            apply_moratorium=moratorium,
            apply_subsidy=subsidy,
        )

    validate_inputs(principal_value, rate_value, tenure_value, kind, education)
    return LoanRequest(principal_value, rate_value, tenure_value, kind, education)


def export_to_json(path: Path, result: ScheduleResult) -> None:
    """Export the full result to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, indent=2)


def export_to_csv(path: Path, result: ScheduleResult) -> None:
    """Export the yearly breakdown to a CSV file."""
    header = ["Year", "Principal_Paid", "Interest_Paid", "Balance"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for row in result.yearly_breakdown:
            writer.writerow(
                [row.year, float(row.principal_paid), float(row.interest_paid), float(row.balance)]
            )


EXPORTERS: Dict[str, Callable[[Path, ScheduleResult], None]] = {
    ".json": export_to_json,
    ".csv": export_to_csv,
}


def loan_options(func: Callable) -> Callable:
    """Attach the loan input options shared by several commands."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount (accepts 5l, 1.2cr, 500k)"),
        click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)"),
        click.option("--tenure", "-t", "tenure", required=True, help="Repayment tenure in years"),
        click.option(
            "--type",
            "loan_type",
            type=click.Choice(["standard", "education"], case_sensitive=False),
            default="standard",
            help="Loan type",
        ),
        click.option("--course-duration", "course_duration", help="Course duration in years (education loans)"),
        click.option(
            "--moratorium/--no-moratorium",
            "moratorium",
            default=True,
            help="Defer interest during study and capitalize it (education loans)",
        ),
        click.option(
            "--subsidy/--no-subsidy",
            "subsidy",
            default=False,
            help="Apply the CSIS interest subsidy to the moratorium interest (education loans)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _request_or_fail(**options) -> LoanRequest:
    try:
        return build_request_from_options(**options)
    except InputValidationError as exc:
        raise click.BadParameter(str(exc))


def _load_history(ctx: click.Context) -> CalculationHistory:
    return CalculationHistory.load(ctx.obj["history_path"])


@click.group()
@click.option(
    "--history-file",
    "history_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Ledger file (defaults to $EMI_CALC_HISTORY_PATH or ~/.emi_calc_history.json)",
)
@click.option("--log-level", "log_level", help="Logging level (defaults to $EMI_CALC_LOG_LEVEL or WARNING)")
@click.pass_context
def cli(ctx: click.Context, history_file: Optional[Path], log_level: Optional[str]) -> None:
    """An EMI calculator for standard and education loans."""
    config.configure_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj["history_path"] = history_file or config.history_path()


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.option("--no-history", "no_history", is_flag=True, help="Do not record this calculation in the ledger")
@click.pass_context
def calculate(ctx: click.Context, output: Optional[str], no_history: bool, **options) -> None:
    """Compute and print the repayment schedule."""
    request = _request_or_fail(**options)
    exporter = None
    if output:
        exporter = EXPORTERS.get(Path(output).suffix.lower())
        if exporter is None:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
    result = request.compute()
    if not no_history:
        history = _load_history(ctx)
        history.record(result)
        history.save(ctx.obj["history_path"])
    if exporter is not None:
        path = Path(output)
        exporter(path, result)
        click.echo(f"Schedule exported to {path}")
    else:
        print_summary(result)
        print_breakdown(result)


@cli.command()
@click.pass_context
def history(ctx: click.Context) -> None:
    """List recent calculations, most recent first."""
    entries = _load_history(ctx).entries()
    if not entries:
        click.echo("No calculations recorded yet.")
        return
    print_history(entries)


@cli.command(name="replay")
@click.argument("entry_id")
@click.pass_context
def replay_entry(ctx: click.Context, entry_id: str) -> None:
    """Recompute a ledger entry.

    Ledger entries do not record a loan type, so they are always recomputed
    as standard loans.
    """
    entry = _load_history(ctx).get(entry_id)
    if entry is None:
        raise click.UsageError(f"No ledger entry with id {entry_id}")
    result = replay(entry)
    print_summary(result)
    print_breakdown(result)


@cli.command(name="clear-history")
@click.pass_context
def clear_history(ctx: click.Context) -> None:
    """Remove every ledger entry."""
    ledger = _load_history(ctx)
    ledger.clear()
    ledger.save(ctx.obj["history_path"])
    click.echo("Ledger cleared.")


@cli.command()
@loan_options
def analyze(**options) -> None:
    """Ask the advisor for a short written analysis of the loan."""
    result = _request_or_fail(**options).compute()
    print_summary(result)
    click.echo(safe_summarize(advisor_from_env(), result))


@cli.command(name="compare-tenure")
@loan_options
def compare_tenure(**options) -> None:
    """Compare the loan with the same loan repaid five years sooner."""
    result = _request_or_fail(**options).compute()
    shorter = shorter_tenure_alternative(result)
    if shorter is None:
        raise click.UsageError(
            f"Tenure must exceed {config.COMPARISON_TENURE_REDUCTION_YEARS} years to compare"
        )
    print_comparison(result, shorter)
    click.echo(safe_compare(advisor_from_env(), result, shorter))


@cli.command()
@click.argument("message")
@loan_options
def chat(message: str, **options) -> None:
    """Ask the advisor a question about the loan and stream the reply."""
    result = _request_or_fail(**options).compute()
    advisor = advisor_from_env()
    reply = collect_stream(_echo_chunks(advisor.stream_reply(message, result)))
    click.echo("")
    if reply.failed:
        click.echo(reply.text)


def _echo_chunks(chunks):
    for chunk in chunks:
        click.echo(chunk, nl=False)
        yield chunk


if __name__ == "__main__":
    cli()
