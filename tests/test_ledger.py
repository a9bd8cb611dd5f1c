# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""Tests for PaymentLedger and its file persistence helpers."""

from __future__ import annotations

import asyncio
import json
from datetime import date, timedelta

import pytest
from pydantic import BaseModel

from aumos_treasury.errors import DuplicateEntryError, LedgerImportError, PaymentInstrumentError
from aumos_treasury.ledger.file import load_ledger, save_ledger
from aumos_treasury.ledger.ledger import PaymentLedger
from aumos_treasury.payment import PaymentRequirement


def _requirement(amount: int) -> PaymentRequirement:
    return PaymentRequirement(max_amount_required=amount, scheme="exact", network="base-sepolia")


def _populate(ledger: PaymentLedger) -> None:
    ledger.record_authorization("auth-1", "carol", "get_sensor", _requirement(250_000), {"sig": "a"})
    ledger.record_authorization("auth-2", "carol", "set_light", _requirement(1_000_000))
    ledger.record_authorization("auth-3", "dave", "get_weather", _requirement(500_000))
    ledger.update_status("auth-1", "accepted")
    ledger.update_status("auth-2", "rejected", "insufficient funds")
    ledger.update_status("auth-3", "accepted")


# ---------------------------------------------------------------------------
# TestRecording
# ---------------------------------------------------------------------------


class TestRecording:
    def test_new_entry_is_pending(self, ledger: PaymentLedger) -> None:
        entry = ledger.record_authorization("auth-1", "carol", "get_sensor", _requirement(250_000))
        assert entry.status == "pending"
        assert entry.amount == 250_000
        assert entry.settled_at is None
        assert len(ledger) == 1

    def test_duplicate_id_raises(self, ledger: PaymentLedger) -> None:
        ledger.record_authorization("auth-1", "carol", "get_sensor", _requirement(1))
        with pytest.raises(DuplicateEntryError):
            ledger.record_authorization("auth-1", "carol", "get_sensor", _requirement(1))

    def test_pending_entries_do_not_count_as_spend(self, ledger: PaymentLedger) -> None:
        ledger.record_authorization("auth-1", "carol", "get_sensor", _requirement(250_000))
        assert ledger.total_spent() == 0
        assert ledger.today_spending() == 0

    def test_returned_entries_are_copies(self, ledger: PaymentLedger) -> None:
        ledger.record_authorization("auth-1", "carol", "get_sensor", _requirement(250_000))
        entry = ledger.get_entry("auth-1")
        assert entry is not None
        entry.status = "accepted"
        assert ledger.total_spent() == 0

    def test_instrument_without_json_form_is_refused(self, ledger: PaymentLedger) -> None:
        with pytest.raises(PaymentInstrumentError, match="object"):
            ledger.record_authorization("auth-1", "carol", "get_sensor", _requirement(1), object())
        assert len(ledger) == 0
        assert ledger.get_entry("auth-1") is None

    def test_instrument_is_stored_in_json_form(self, ledger: PaymentLedger) -> None:
        entry = ledger.record_authorization(
            "auth-1", "carol", "get_sensor", _requirement(1), {"sig": b"abc", "nonce": (1, 2)}
        )
        assert entry.payment == {"sig": "abc", "nonce": [1, 2]}
        assert json.loads(ledger.export_json())["entries"][0]["payment"] == {"sig": "abc", "nonce": [1, 2]}


# ---------------------------------------------------------------------------
# TestStatusTransitions
# ---------------------------------------------------------------------------


class TestStatusTransitions:
    def test_accepted_credits_totals_and_today(self, ledger: PaymentLedger) -> None:
        _populate(ledger)
        assert ledger.total_spent() == 750_000
        assert ledger.spent_by_agent("carol") == 250_000
        assert ledger.spent_by_agent("dave") == 500_000
        assert ledger.today_spending() == 750_000

    def test_terminal_status_is_final(self, ledger: PaymentLedger) -> None:
        ledger.record_authorization("auth-1", "carol", "get_sensor", _requirement(250_000))
        assert ledger.update_status("auth-1", "rejected") is True
        assert ledger.update_status("auth-1", "accepted") is False
        assert ledger.get_entry("auth-1").status == "rejected"  # type: ignore[union-attr]
        assert ledger.total_spent() == 0

    def test_pending_target_is_not_a_transition(self, ledger: PaymentLedger) -> None:
        ledger.record_authorization("auth-1", "carol", "get_sensor", _requirement(1))
        assert ledger.update_status("auth-1", "pending") is False

    def test_unknown_id_is_ignored(self, ledger: PaymentLedger) -> None:
        assert ledger.update_status("missing", "accepted") is False

    def test_error_text_and_settlement_time_are_recorded(self, ledger: PaymentLedger, clock) -> None:
        ledger.record_authorization("auth-1", "carol", "get_sensor", _requirement(1))
        clock.advance(timedelta(seconds=5))
        ledger.update_status("auth-1", "error", "facilitator timeout")
        entry = ledger.get_entry("auth-1")
        assert entry is not None
        assert entry.error == "facilitator timeout"
        assert entry.settled_at == clock.now

    def test_daily_bucket_uses_acceptance_day(self, ledger: PaymentLedger, clock) -> None:
        ledger.record_authorization("auth-1", "carol", "get_sensor", _requirement(250_000))
        clock.advance(timedelta(days=1))
        ledger.update_status("auth-1", "accepted")
        assert ledger.spent_on(date(2026, 3, 14)) == 0
        assert ledger.spent_on(date(2026, 3, 15)) == 250_000
        assert ledger.today_spending() == 250_000


# ---------------------------------------------------------------------------
# TestLookups
# ---------------------------------------------------------------------------


class TestLookups:
    def test_recent_entries_newest_first(self, ledger: PaymentLedger, clock) -> None:
        for index in range(3):
            ledger.record_authorization(f"auth-{index}", "carol", "t", _requirement(1))
            clock.advance(timedelta(minutes=1))
        assert [entry.id for entry in ledger.recent_entries(2)] == ["auth-2", "auth-1"]

    def test_recent_entries_negative_limit_raises(self, ledger: PaymentLedger) -> None:
        with pytest.raises(ValueError):
            ledger.recent_entries(-1)

    def test_entries_by_agent_and_agent_ids(self, ledger: PaymentLedger) -> None:
        _populate(ledger)
        assert [entry.id for entry in ledger.entries_by_agent("carol")] == ["auth-1", "auth-2"]
        assert ledger.agent_ids() == ["carol", "dave"]

    def test_pending_entries(self, ledger: PaymentLedger) -> None:
        _populate(ledger)
        ledger.record_authorization("auth-4", "dave", "t", _requirement(1))
        assert [entry.id for entry in ledger.pending_entries()] == ["auth-4"]


# ---------------------------------------------------------------------------
# TestExportImport
# ---------------------------------------------------------------------------


class TestExportImport:
    def test_export_uses_camel_case_and_string_amounts(self, ledger: PaymentLedger) -> None:
        _populate(ledger)
        document = json.loads(ledger.export_json())
        first = document["entries"][0]
        assert first["agentId"] == "carol"
        assert first["toolName"] == "get_sensor"
        assert first["amount"] == "250000"
        assert first["requirement"]["maxAmountRequired"] == "250000"
        assert document["dailySpending"] == {"2026-03-14": "750000"}

    def test_round_trip_preserves_totals(self, ledger: PaymentLedger, clock) -> None:
        _populate(ledger)
        restored = PaymentLedger(clock=clock)
        restored.import_json(ledger.export_json())
        assert restored.total_spent() == ledger.total_spent()
        assert restored.spent_by_agent("carol") == ledger.spent_by_agent("carol")
        assert restored.today_spending() == ledger.today_spending()
        assert restored.get_entry("auth-2").error == "insufficient funds"  # type: ignore[union-attr]

    def test_import_accepts_document_instance(self, ledger: PaymentLedger) -> None:
        _populate(ledger)
        restored = PaymentLedger()
        restored.import_document(ledger.export_document())
        assert len(restored) == 3

    def test_invalid_document_leaves_ledger_untouched(self, ledger: PaymentLedger) -> None:
        _populate(ledger)
        with pytest.raises(LedgerImportError):
            ledger.import_document({"entries": [{"id": "x"}], "dailySpending": {}})
        assert len(ledger) == 3

    def test_duplicate_ids_in_document_rejected(self, ledger: PaymentLedger) -> None:
        entry = {
            "id": "dup",
            "timestamp": "2026-03-14T12:00:00+00:00",
            "agentId": "carol",
            "toolName": "t",
            "amount": "1",
            "status": "pending",
        }
        with pytest.raises(LedgerImportError, match="Duplicate"):
            ledger.import_document({"entries": [entry, entry], "dailySpending": {}})

    def test_non_json_payload_rejected(self, ledger: PaymentLedger) -> None:
        with pytest.raises(LedgerImportError, match="not valid JSON"):
            ledger.import_json("{not json")


# ---------------------------------------------------------------------------
# TestLedgerFile
# ---------------------------------------------------------------------------


class TestLedgerFile:
    def test_save_then_load(self, ledger: PaymentLedger, tmp_path) -> None:
        _populate(ledger)
        path = tmp_path / "ledger.json"
        written = asyncio.run(save_ledger(ledger, path))
        assert written == path
        assert not (tmp_path / "ledger.json.tmp").exists()

        restored = PaymentLedger()
        assert asyncio.run(load_ledger(restored, path)) is True
        assert restored.total_spent() == 750_000

    def test_model_instrument_survives_save_and_load(self, ledger: PaymentLedger, tmp_path) -> None:
        class SignedPayload(BaseModel):
            scheme: str
            signature: bytes

        ledger.record_authorization(
            "auth-1", "carol", "get_sensor", _requirement(1), SignedPayload(scheme="exact", signature=b"0xabc")
        )
        path = tmp_path / "ledger.json"
        asyncio.run(save_ledger(ledger, path))

        restored = PaymentLedger()
        assert asyncio.run(load_ledger(restored, path)) is True
        entry = restored.get_entry("auth-1")
        assert entry is not None
        assert entry.payment == {"scheme": "exact", "signature": "0xabc"}

    def test_missing_file_returns_false(self, tmp_path) -> None:
        restored = PaymentLedger()
        assert asyncio.run(load_ledger(restored, tmp_path / "absent.json")) is False
        assert len(restored) == 0

    def test_empty_file_raises(self, tmp_path) -> None:
        path = tmp_path / "ledger.json"
        path.write_text("   ", encoding="utf-8")
        with pytest.raises(LedgerImportError, match="empty"):
            asyncio.run(load_ledger(PaymentLedger(), path))
