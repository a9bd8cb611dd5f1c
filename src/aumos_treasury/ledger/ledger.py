# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import json
import logging
import threading
from datetime import date, datetime, timezone
from typing import Any, Callable

from pydantic import TypeAdapter, ValidationError

from aumos_treasury.amounts import format_usdc
from aumos_treasury.errors import DuplicateEntryError, LedgerImportError, PaymentInstrumentError
from aumos_treasury.ledger.entry import LedgerDocument, LedgerEntry
from aumos_treasury.payment import PaymentRequirement
from aumos_treasury.types import TERMINAL_LEDGER_STATUSES, LedgerStatus

logger = logging.getLogger("aumos.treasury.ledger")

_INSTRUMENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class PaymentLedger:
    """
    Append-mostly record of payment attempts and per-day accepted spend.

    The ledger is the source of truth for how much has actually been spent.
    Entries are appended on authorization and updated once, when they reach a
    terminal status. Nothing is ever deleted.

    Daily buckets are keyed by the UTC day on which an entry became
    ``accepted``, not the day it was created.

    All state is guarded by a single lock; every accessor returns copies.

    Example::

        ledger = PaymentLedger()
        ledger.record_authorization("auth-1", "carol", "get_sensor",
                                    PaymentRequirement(max_amount_required=250_000))
        ledger.update_status("auth-1", "accepted")
        assert ledger.total_spent() == 250_000
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or _utc_now
        self._entries: dict[str, LedgerEntry] = {}
        self._daily_spending: dict[str, int] = {}
        self._lock = threading.RLock()

    # ─── Recording ────────────────────────────────────────────────────────────

    def record_authorization(
        self,
        entry_id: str,
        agent_id: str,
        tool_name: str,
        requirement: PaymentRequirement,
        payment: Any = None,
    ) -> LedgerEntry:
        """
        Create a ``pending`` entry for a newly granted authorization.

        The payment instrument is stored in its JSON form so the entry can
        always be exported.

        Raises:
            DuplicateEntryError: If ``entry_id`` is already recorded.
            PaymentInstrumentError: If ``payment`` has no JSON representation.
        """
        try:
            stored_payment = _INSTRUMENT_ADAPTER.dump_python(payment, mode="json")
        except ValueError as exc:
            raise PaymentInstrumentError(
                f"Payment instrument of type {type(payment).__name__} cannot be recorded: {exc}"
            ) from exc

        with self._lock:
            if entry_id in self._entries:
                raise DuplicateEntryError(entry_id)
            entry = LedgerEntry(
                id=entry_id,
                timestamp=self._clock(),
                agent_id=agent_id,
                tool_name=tool_name,
                amount=requirement.max_amount_required,
                requirement=requirement,
                payment=stored_payment,
            )
            self._entries[entry_id] = entry
        self._log_entry("AUTHORIZED", entry)
        return entry.model_copy(deep=True)

    def update_status(
        self,
        entry_id: str,
        status: LedgerStatus,
        error: str | None = None,
    ) -> bool:
        """
        Move a pending entry to ``status``.

        Terminal entries are never reopened or changed, and unknown ids are
        ignored. Moving to ``accepted`` credits the current UTC day's bucket.

        Returns:
            True if the entry transitioned to a terminal status.
        """
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None:
                logger.warning("Ledger entry not found: %s", entry_id)
                return False
            if entry.status in TERMINAL_LEDGER_STATUSES:
                logger.warning(
                    "Ignoring %s for %s: entry already %s",
                    status,
                    entry_id,
                    entry.status,
                )
                return False
            if status not in TERMINAL_LEDGER_STATUSES:
                return False

            now = self._clock()
            entry.status = status
            entry.settled_at = now
            if error:
                entry.error = error
            if status == "accepted":
                day = now.date().isoformat()
                self._daily_spending[day] = self._daily_spending.get(day, 0) + entry.amount

        self._log_entry(status.upper(), entry)
        return True

    # ─── Lookups ──────────────────────────────────────────────────────────────

    def get_entry(self, entry_id: str) -> LedgerEntry | None:
        """Return a copy of the entry for ``entry_id``, or None."""
        with self._lock:
            entry = self._entries.get(entry_id)
            return entry.model_copy(deep=True) if entry is not None else None

    def entries(self) -> list[LedgerEntry]:
        """Return copies of all entries in insertion order."""
        with self._lock:
            return [entry.model_copy(deep=True) for entry in self._entries.values()]

    def entries_by_agent(self, agent_id: str) -> list[LedgerEntry]:
        """Return copies of all entries for ``agent_id``."""
        with self._lock:
            return [
                entry.model_copy(deep=True)
                for entry in self._entries.values()
                if entry.agent_id == agent_id
            ]

    def pending_entries(self) -> list[LedgerEntry]:
        """Return copies of all entries still awaiting a terminal status."""
        with self._lock:
            return [
                entry.model_copy(deep=True)
                for entry in self._entries.values()
                if entry.status == "pending"
            ]

    def agent_ids(self) -> list[str]:
        """Return every remote-service id that appears in the ledger."""
        with self._lock:
            return list(dict.fromkeys(entry.agent_id for entry in self._entries.values()))

    def recent_entries(self, limit: int = 10) -> list[LedgerEntry]:
        """Return up to ``limit`` entries, newest first."""
        if limit < 0:
            raise ValueError(f"limit must be >= 0; got {limit}.")
        with self._lock:
            ordered = sorted(
                self._entries.values(), key=lambda entry: entry.timestamp, reverse=True
            )
            return [entry.model_copy(deep=True) for entry in ordered[:limit]]

    # ─── Derived totals ───────────────────────────────────────────────────────

    def total_spent(self) -> int:
        """Sum of all accepted entries."""
        with self._lock:
            return sum(
                entry.amount for entry in self._entries.values() if entry.status == "accepted"
            )

    def spent_by_agent(self, agent_id: str) -> int:
        """Sum of accepted entries for ``agent_id``."""
        with self._lock:
            return sum(
                entry.amount
                for entry in self._entries.values()
                if entry.agent_id == agent_id and entry.status == "accepted"
            )

    def today_spending(self) -> int:
        """Accepted spend credited to the current UTC day."""
        return self.spent_on(self._clock().date())

    def spent_on(self, day: date) -> int:
        """Accepted spend credited to ``day``."""
        with self._lock:
            return self._daily_spending.get(day.isoformat(), 0)

    def __len__(self) -> int:
        return len(self._entries)

    # ─── Export / import ──────────────────────────────────────────────────────

    def export_document(self) -> LedgerDocument:
        """Return a deep copy of the full ledger state."""
        with self._lock:
            return LedgerDocument(
                entries=[entry.model_copy(deep=True) for entry in self._entries.values()],
                daily_spending=dict(self._daily_spending),
            )

    def export_json(self, indent: int | None = 2) -> str:
        """Serialize the ledger to its JSON persistence document."""
        payload = self.export_document().model_dump(mode="json", by_alias=True)
        return json.dumps(payload, indent=indent)

    def import_document(self, document: LedgerDocument | dict[str, Any]) -> None:
        """
        Replace all in-memory state with ``document``.

        Raises:
            LedgerImportError: If the document does not validate. The ledger is
                left untouched in that case.
        """
        try:
            if isinstance(document, LedgerDocument):
                validated = LedgerDocument.model_validate(
                    document.model_dump(mode="json", by_alias=True)
                )
            else:
                validated = LedgerDocument.model_validate(document)
        except (ValidationError, ValueError) as exc:
            raise LedgerImportError(f"Invalid ledger document: {exc}") from exc

        entries: dict[str, LedgerEntry] = {}
        for entry in validated.entries:
            if entry.id in entries:
                raise LedgerImportError(f"Duplicate ledger entry id in document: {entry.id}")
            if entry.timestamp.tzinfo is None:
                entry.timestamp = entry.timestamp.replace(tzinfo=timezone.utc)
            entries[entry.id] = entry

        with self._lock:
            self._entries = entries
            self._daily_spending = dict(validated.daily_spending)
        logger.info(
            "Ledger imported: %d entries, %d daily buckets",
            len(entries),
            len(validated.daily_spending),
        )

    def import_json(self, payload: str) -> None:
        """
        Replace all in-memory state with a JSON persistence document.

        Raises:
            LedgerImportError: If ``payload`` is not valid JSON or not a valid
                ledger document.
        """
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise LedgerImportError(f"Ledger payload is not valid JSON: {exc}") from exc
        self.import_document(data)

    # ─── Private helpers ──────────────────────────────────────────────────────

    def _log_entry(self, action: str, entry: LedgerEntry) -> None:
        logger.info(
            "%s | %s | agent=%s | tool=%s | amount=%s USDC",
            action,
            entry.id,
            entry.agent_id,
            entry.tool_name,
            format_usdc(entry.amount, places=6),
            extra={"entry_id": entry.id, "agent_id": entry.agent_id, "status": entry.status},
        )
