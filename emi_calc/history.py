"""Bounded ledger of recent calculations.

The ledger keeps the most recent calculations first and drops anything beyond
``max_entries``. Entries are loan-type-agnostic: ``replay`` always recomputes
a standard loan, so an education loan reloaded from the ledger comes back
without its moratorium and subsidy adjustments.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from .config import HISTORY_LIMIT
from .data_models import HistoryEntry, LoanType, ScheduleResult
from .engine import compute_schedule
from .utils import timestamp_id

logger = logging.getLogger(__name__)


def entry_from_result(result: ScheduleResult, now: Optional[datetime] = None) -> HistoryEntry:
    """Build a ledger record from a result, keyed by the current timestamp."""
    moment = now or datetime.now()
    return HistoryEntry(
        id=timestamp_id(moment),
        date=moment.strftime("%d/%m/%Y"),
        principal=result.principal,
        rate=result.annual_rate,
        tenure_years=result.tenure_years,
        emi=result.monthly_installment,
        total_interest=result.total_interest,
    )


def replay(entry: HistoryEntry) -> ScheduleResult:
    """Recompute a ledger entry. The loan type is always ``STANDARD``."""
    return compute_schedule(entry.principal, entry.rate, entry.tenure_years, LoanType.STANDARD)


class CalculationHistory:
    """In-memory ledger, most recent first, capped at ``max_entries``."""

    def __init__(self, entries: Iterable[HistoryEntry] = (), *, max_entries: int = HISTORY_LIMIT) -> None:
        self._max_entries = max_entries
        self._entries: List[HistoryEntry] = list(entries)[:max_entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(list(self._entries))

    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    def record(self, result: ScheduleResult, now: Optional[datetime] = None) -> HistoryEntry:
        entry = entry_from_result(result, now)
        self.add(entry)
        return entry

    def add(self, entry: HistoryEntry) -> None:
        self._entries.insert(0, entry)
        del self._entries[self._max_entries :]

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def clear(self) -> None:
        self._entries.clear()

    def to_json(self) -> str:
        return json.dumps([e.to_dict() for e in self._entries], indent=2)

    @classmethod
    def from_json(cls, text: str, *, max_entries: int = HISTORY_LIMIT) -> "CalculationHistory":
        """Parse a ledger; unreadable data yields an empty ledger."""
        try:
            raw = json.loads(text)
            entries = [HistoryEntry.from_dict(item) for item in raw]
        except (ValueError, TypeError, KeyError, ArithmeticError) as exc:
            logger.error("Failed to parse ledger: %s", exc)
            return cls(max_entries=max_entries)
        return cls(entries, max_entries=max_entries)

    @classmethod
    def load(cls, path: Path, *, max_entries: int = HISTORY_LIMIT) -> "CalculationHistory":
        if not path.exists():
            return cls(max_entries=max_entries)
        return cls.from_json(path.read_text(encoding="utf-8"), max_entries=max_entries)

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            f.write(self.to_json())
