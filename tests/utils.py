# tests/utils.py
from __future__ import annotations

from collections.abc import Iterator
from typing import List, Optional, Tuple

from emi_calc.data_models import ScheduleResult


class FakeAdvisor:
    """Deterministic advisor that records what it was asked."""

    def __init__(self, chunks: Tuple[str, ...] = ("Pay ", "it ", "off.")) -> None:
        self.summarized: List[ScheduleResult] = []
        self.compared: List[Tuple[ScheduleResult, ScheduleResult]] = []
        self.messages: List[Tuple[str, Optional[ScheduleResult]]] = []
        self._chunks = chunks

    def summarize(self, schedule: ScheduleResult) -> str:
        self.summarized.append(schedule)
        return f"EMI is {schedule.monthly_installment:.2f}"

    def compare(self, current: ScheduleResult, alternative: ScheduleResult) -> str:
        self.compared.append((current, alternative))
        return f"{current.tenure_years} vs {alternative.tenure_years} years"

    def stream_reply(self, message: str, schedule: Optional[ScheduleResult] = None) -> Iterator[str]:
        self.messages.append((message, schedule))
        yield from self._chunks


class BrokenAdvisor:
    def summarize(self, schedule):
        raise ConnectionError("service unreachable")

    def compare(self, current, alternative):
        raise TimeoutError("service timed out")

    def stream_reply(self, message, schedule=None):
        yield "partial "
        raise ConnectionError("stream dropped")


class SilentAdvisor:
    def summarize(self, schedule):
        return ""

    def compare(self, current, alternative):
        return ""

    def stream_reply(self, message, schedule=None):
        return iter(())
