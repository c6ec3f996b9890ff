"""Persistence layer for the web ledger.

This module keeps each visitor's recent calculations in a database instead of
browser storage. It defaults to SQLite for local development, but accepts any
SQLAlchemy-compatible URL (e.g. PostgreSQL/MySQL).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import Column, DateTime, Integer, String, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from emi_calc.config import DEFAULT_LEDGER_DATABASE_URL, HISTORY_LIMIT
from emi_calc.data_models import HistoryEntry

Base = declarative_base()


class LedgerEntryModel(Base):
    __tablename__ = "ledger_entries"

    pk = Column(Integer, primary_key=True, autoincrement=True)
    entry_id = Column(String(32), nullable=False)
    user_token = Column(String(64), index=True, nullable=False)
    display_date = Column(String(32), nullable=False)
    # Amounts are kept as str(Decimal) so a loaded entry replays its exact inputs
    principal = Column(String(40), nullable=False)
    rate = Column(String(40), nullable=False)
    tenure_years = Column(String(40), nullable=False)
    emi = Column(String(40), nullable=False)
    total_interest = Column(String(40), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class LedgerStore:
    """Database-backed ledger, most recent first, capped per user."""

    def __init__(self, url: str, *, max_per_user: int = HISTORY_LIMIT) -> None:
        engine_kwargs = {"future": True}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # A single shared connection keeps in-memory databases alive
            engine_kwargs.update(
                connect_args={"check_same_thread": False}, poolclass=StaticPool
            )
        self._engine = create_engine(url, **engine_kwargs)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._max_per_user = max_per_user

    def list_entries(self, user_token: Optional[str]) -> List[HistoryEntry]:
        if not user_token:
            return []
        with self._session_factory() as session:
            rows: Iterable[LedgerEntryModel] = session.execute(
                select(LedgerEntryModel)
                .where(LedgerEntryModel.user_token == user_token)
                .order_by(LedgerEntryModel.pk.desc())
            ).scalars()
            return [self._to_entry(row) for row in rows]

    def get_entry(self, user_token: Optional[str], entry_id: str) -> Optional[HistoryEntry]:
        if not user_token:
            return None
        with self._session_factory() as session:
            row = session.execute(
                select(LedgerEntryModel)
                .where(LedgerEntryModel.user_token == user_token)
                .where(LedgerEntryModel.entry_id == entry_id)
                .order_by(LedgerEntryModel.pk.desc())
            ).scalars().first()
            return self._to_entry(row) if row else None

    def add_entry(self, user_token: Optional[str], entry: HistoryEntry) -> None:
        if not user_token:
            return
        payload = LedgerEntryModel(
            entry_id=entry.id,
            user_token=user_token,
            display_date=entry.date,
            principal=str(entry.principal),
            rate=str(entry.rate),
            tenure_years=str(entry.tenure_years),
            emi=str(entry.emi),
            total_interest=str(entry.total_interest),
        )
        with self._session_factory() as session:
            session.add(payload)
            session.commit()
        self._trim_user(user_token)

    def clear_entries(self, user_token: Optional[str]) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            session.execute(
                LedgerEntryModel.__table__.delete().where(LedgerEntryModel.user_token == user_token)
            )
            session.commit()

    def _trim_user(self, user_token: str) -> None:
        if not self._max_per_user or self._max_per_user < 0:
            return
        with self._session_factory() as session:
            rows = session.execute(
                select(LedgerEntryModel)
                .where(LedgerEntryModel.user_token == user_token)
                .order_by(LedgerEntryModel.pk.desc())
            ).scalars().all()
            if len(rows) <= self._max_per_user:
                return
            for row in rows[self._max_per_user :]:
                session.delete(row)
            session.commit()

    @staticmethod
    def _to_entry(row: LedgerEntryModel) -> HistoryEntry:
        return HistoryEntry(
            id=row.entry_id,
            date=row.display_date,
            principal=Decimal(row.principal),
            rate=Decimal(row.rate),
            tenure_years=Decimal(row.tenure_years),
            emi=Decimal(row.emi),
            total_interest=Decimal(row.total_interest),
        )


def create_store_from_env(url: Optional[str]) -> LedgerStore:
    return LedgerStore(url or DEFAULT_LEDGER_DATABASE_URL)
