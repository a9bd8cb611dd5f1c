# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""Tests for the in-memory audit stream."""

from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from aumos_treasury.audit.logger import AuditLogger
from aumos_treasury.audit.query import AuditFilter, count_by_type
from aumos_treasury.audit.record import AuditEventType
from aumos_treasury.config import AuditConfig


# ---------------------------------------------------------------------------
# TestAuditLogger
# ---------------------------------------------------------------------------


class TestAuditLogger:
    def test_log_returns_stored_event(self, audit: AuditLogger) -> None:
        event = audit.log(
            AuditEventType.RESERVATION_TAKEN,
            "Reserved 0.250000 USDC for carol",
            agent_id="carol",
            amount=250_000,
            data={"reservation_id": "r-1"},
        )
        assert event.event_type == "reservation_taken"
        assert event.amount == 250_000
        assert audit.count() == 1
        assert audit.latest(1) == [event]

    def test_oldest_events_are_evicted(self) -> None:
        audit = AuditLogger(AuditConfig(max_records=3))
        for index in range(5):
            audit.log(AuditEventType.PAYMENT_STATUS, f"event {index}")
        assert audit.count() == 3
        assert [event.detail for event in audit.latest(3)] == ["event 2", "event 3", "event 4"]

    def test_latest_rejects_non_positive(self, audit: AuditLogger) -> None:
        with pytest.raises(ValueError):
            audit.latest(0)

    def test_clear(self, audit: AuditLogger) -> None:
        audit.log(AuditEventType.PAYMENT_STATUS)
        audit.log(AuditEventType.PAYMENT_STATUS)
        assert audit.clear() == 2
        assert audit.count() == 0

    def test_events_are_mirrored_to_logging(self, caplog: pytest.LogCaptureFixture) -> None:
        audit = AuditLogger()
        with caplog.at_level(logging.INFO, logger="aumos.treasury.audit"):
            audit.log(AuditEventType.AUTHORIZATION_DENIED, "over budget", agent_id="carol")
        assert any("authorization_denied: over budget" in message for message in caplog.messages)
        assert caplog.records[-1].agent_id == "carol"

    def test_mirroring_can_be_disabled(self, caplog: pytest.LogCaptureFixture) -> None:
        audit = AuditLogger(AuditConfig(emit_log_records=False))
        with caplog.at_level(logging.INFO, logger="aumos.treasury.audit"):
            audit.log(AuditEventType.AUTHORIZATION_DENIED, "over budget")
        assert caplog.records == []


# ---------------------------------------------------------------------------
# TestAuditQuery
# ---------------------------------------------------------------------------


class TestAuditQuery:
    def _seed(self, audit: AuditLogger) -> None:
        audit.log(AuditEventType.AUTHORIZATION_GRANTED, agent_id="carol")
        audit.log(AuditEventType.AUTHORIZATION_DENIED, agent_id="carol")
        audit.log(AuditEventType.AUTHORIZATION_GRANTED, agent_id="dave")
        audit.log(AuditEventType.AUTHORIZATION_GRANTED, agent_id="carol")

    def test_filter_by_type_and_agent(self, audit: AuditLogger) -> None:
        self._seed(audit)
        result = audit.query(
            AuditFilter(event_type=AuditEventType.AUTHORIZATION_GRANTED, agent_id="carol")
        )
        assert result.total_matched == 2

    def test_pagination(self, audit: AuditLogger) -> None:
        self._seed(audit)
        result = audit.query(AuditFilter(offset=1, limit=2))
        assert result.total_matched == 4
        assert [event.agent_id for event in result.events] == ["carol", "dave"]

    def test_time_window(self, audit: AuditLogger) -> None:
        self._seed(audit)
        first = audit.latest(4)[0]
        assert audit.query(AuditFilter(until=first.timestamp)).total_matched == 0
        assert audit.query(AuditFilter(since=first.timestamp)).total_matched == 4
        later = first.timestamp + timedelta(days=1)
        assert audit.query(AuditFilter(since=later)).total_matched == 0

    def test_count_by_type(self, audit: AuditLogger) -> None:
        self._seed(audit)
        counts = count_by_type(audit.query().events)
        assert counts == {"authorization_granted": 3, "authorization_denied": 1}
