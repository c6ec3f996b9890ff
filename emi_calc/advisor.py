"""Generative-text advisor contract.

Purpose
-------
Describe a loan schedule in plain language through an external text service
without tying the calculator (or its tests) to that service. The calculator
hands the advisor plain ``ScheduleResult`` values and gets text back.

Design
------
- Protocol ``LoanAdvisor`` with ``summarize``, ``compare`` and
  ``stream_reply``.
- Prompt builders are plain functions so every provider phrases requests the
  same way.
- ``safe_summarize`` / ``safe_compare`` / ``collect_stream`` form the failure
  boundary: provider errors are logged and replaced by fixed fallback text.
- ``OfflineAdvisor`` is used when no service is configured.

Invariants & Guardrails
-----------------------
- Nothing here mutates a ``ScheduleResult``.
- An abandoned stream is closed and never retried.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol

from .config import COMPARISON_TENURE_REDUCTION_YEARS, openai_api_key
from .data_models import LoanType, ScheduleResult
from .engine import compute_schedule
from .utils import format_inr, format_number

logger = logging.getLogger(__name__)

ANALYSIS_FALLBACK = "Our concierge is currently offline. Please try again later."
ANALYSIS_EMPTY = "Analysis currently unavailable."
COMPARISON_FALLBACK = "Comparison service offline."
COMPARISON_EMPTY = "Comparison unavailable."
CHAT_FALLBACK = "I apologize, but I am currently unable to process your request."

SYSTEM_INSTRUCTION = """\
You are a smart financial assistant & professional mentor.
Your answers must be SIMPLE, PRECISE, and EFFECTIVE.

CRITICAL RULES:
1. CURRENCY: ALWAYS use Indian Rupees (₹) for ALL monetary values.
2. FORMAT: Format numbers with Indian digit grouping (e.g., ₹1,50,000).
3. BREVITY: Keep responses short. No fluff.
4. TONE: For Standard loans: Professional advisor. For Education loans: Encouraging mentor.
"""


class LoanAdvisor(Protocol):
    def summarize(self, schedule: ScheduleResult) -> str: ...

    def compare(self, current: ScheduleResult, alternative: ScheduleResult) -> str: ...

    def stream_reply(self, message: str, schedule: Optional[ScheduleResult] = None) -> Iterator[str]: ...


@dataclass(frozen=True)
class StreamedReply:
    text: str
    cancelled: bool = False
    failed: bool = False


def shorter_tenure_alternative(
    result: ScheduleResult, years: int = COMPARISON_TENURE_REDUCTION_YEARS
) -> Optional[ScheduleResult]:
    """Recompute ``result`` as a standard loan ``years`` shorter.

    The adjusted principal is amortized again at the same rate. Returns
    ``None`` when the tenure is not longer than ``years``.
    """
    if result.tenure_years <= years:
        return None
    return compute_schedule(
        result.adjusted_principal,
        result.annual_rate,
        result.tenure_years - years,
        LoanType.STANDARD,
    )


def interest_saved(current: ScheduleResult, alternative: ScheduleResult) -> Decimal:
    return current.total_interest - alternative.total_interest


def _loan_lines(result: ScheduleResult) -> str:
    return (
        f"- Loan Amount: {format_inr(result.adjusted_principal)}\n"
        f"- Rate: {format_number(result.annual_rate)}%\n"
        f"- Tenure: {format_number(result.tenure_years)} years\n"
        f"- EMI: {format_inr(result.monthly_installment, 2)}\n"
    )


def build_analysis_prompt(result: ScheduleResult) -> str:
    """Prompt for a short report on a single schedule."""
    if result.loan_type is LoanType.EDUCATION:
        specific = (
            "CONTEXT: This is a STUDENT EDUCATION LOAN.\n\n"
            "TASK:\n"
            f"1. Assume a typical entry-level salary for a degree costing {format_inr(result.adjusted_principal)}.\n"
            f"2. Analyze the Repayment-to-Income ratio assuming the EMI is {format_inr(result.monthly_installment, 2)}.\n"
            '3. Give a "Success Probability" (High/Medium/Low). High means EMI < 30% of likely monthly income.\n'
            "4. Suggest if they should look for scholarships or 80E tax benefits.\n"
        )
        if result.moratorium_interest > 0:
            specific += f"Moratorium interest capitalized: {format_inr(result.moratorium_interest)}.\n"
    else:
        comparison = ""
        shorter = shorter_tenure_alternative(result)
        if shorter is not None:
            saved = interest_saved(result, shorter)
            increase = shorter.monthly_installment - result.monthly_installment
            comparison = (
                "COMPARISON SCENARIO:\n"
                f"- If tenure reduced by {COMPARISON_TENURE_REDUCTION_YEARS} years "
                f"(to {format_number(shorter.tenure_years)} years).\n"
                f"- Save Interest: {format_inr(saved)}\n"
                f"- EMI Increases by: {format_inr(increase)}\n"
            )
        specific = (
            "CONTEXT: Standard Loan.\n"
            f"{comparison}"
            "Explain the total interest commitment and suggest the comparison scenario if it saves money.\n"
        )
    return f"Generate a short report:\n{_loan_lines(result)}\n{specific}"


def build_comparison_prompt(current: ScheduleResult, alternative: ScheduleResult) -> str:
    saved = interest_saved(current, alternative)
    return (
        "Compare these two loan options and persuade the user to consider the shorter tenure.\n\n"
        f"Option A (Current): {format_number(current.tenure_years)} yrs, "
        f"EMI {format_inr(current.monthly_installment, 2)}, "
        f"Total Interest {format_inr(current.total_interest)}\n"
        f"Option B (Faster): {format_number(alternative.tenure_years)} yrs, "
        f"EMI {format_inr(alternative.monthly_installment, 2)}, "
        f"Total Interest {format_inr(alternative.total_interest)}\n"
        f"Interest saved with Option B: {format_inr(saved)}\n\n"
        "Highlight interest savings."
    )


def build_chat_prompt(message: str, result: Optional[ScheduleResult] = None) -> str:
    """Prefix a chat message with the current loan context, if any."""
    if result is None:
        return message
    context = (
        f"[Context: Loan Amount: {format_inr(result.adjusted_principal)}, "
        f"Interest Rate: {format_number(result.annual_rate)}%, "
        f"Tenure: {format_number(result.tenure_years)} years]"
    )
    return f"{context} {message}"


def safe_summarize(advisor: LoanAdvisor, result: ScheduleResult) -> str:
    try:
        text = advisor.summarize(result)
    except Exception:
        logger.exception("Advisor analysis failed")
        return ANALYSIS_FALLBACK
    return text or ANALYSIS_EMPTY


def safe_compare(advisor: LoanAdvisor, current: ScheduleResult, alternative: ScheduleResult) -> str:
    try:
        text = advisor.compare(current, alternative)
    except Exception:
        logger.exception("Advisor comparison failed")
        return COMPARISON_FALLBACK
    return text or COMPARISON_EMPTY


def collect_stream(chunks: Iterable[str], cancel: Optional[threading.Event] = None) -> StreamedReply:
    """Join streamed chunks until the stream ends or ``cancel`` is set.

    A cancelled stream keeps the text received so far. A stream that fails
    part way is not retried and yields ``CHAT_FALLBACK``.
    """
    parts = []
    iterator = iter(chunks)
    try:
        for chunk in iterator:
            if cancel is not None and cancel.is_set():
                return StreamedReply("".join(parts), cancelled=True)
            if chunk:
                parts.append(chunk)
    except Exception:
        logger.exception("Advisor stream failed")
        return StreamedReply(CHAT_FALLBACK, failed=True)
    finally:
        close = getattr(iterator, "close", None)
        if callable(close):
            close()
    return StreamedReply("".join(parts))


class OfflineAdvisor:
    """Advisor used when no text service is configured."""

    def summarize(self, schedule: ScheduleResult) -> str:
        return ANALYSIS_FALLBACK

    def compare(self, current: ScheduleResult, alternative: ScheduleResult) -> str:
        return COMPARISON_FALLBACK

    def stream_reply(self, message: str, schedule: Optional[ScheduleResult] = None) -> Iterator[str]:
        yield CHAT_FALLBACK


def advisor_from_env() -> LoanAdvisor:
    """Return an OpenAI-backed advisor when ``OPENAI_API_KEY`` is set."""
    if not openai_api_key():
        logger.info("OPENAI_API_KEY not set; using offline advisor")
        return OfflineAdvisor()
    from .openai_advisor import OpenAIAdvisor

    return OpenAIAdvisor()

