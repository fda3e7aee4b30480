"""Unit tests for telemetry events, counters and identifier masking"""

from __future__ import annotations

import logging

import pytest

from wadesk.observability.telemetry import (
    counter,
    get_counter,
    get_latency_stats,
    log_event,
    mask_identifier,
    time_block,
)


class TestMaskIdentifier:
    @pytest.mark.parametrize(
        "raw, masked",
        [
            ("15551234567@c.us", "***4567@c.us"),
            ("120363041234@g.us", "***1234@g.us"),
            ("+15551234567", "***4567"),
            ("1234", "1234"),
        ],
    )
    def test_keeps_last_four_digits(self, raw, masked):
        assert mask_identifier(raw) == masked


class TestLogEvent:
    def test_identifying_fields_are_masked(self, caplog):
        caplog.set_level(logging.INFO, logger="wadesk.telemetry")

        log_event("chats.archived", chat_id="15551234567@c.us", phone=None, count=2)

        (record,) = caplog.records
        assert "***4567@c.us" in record.getMessage()
        assert "15551234567" not in record.getMessage()
        assert "'count': 2" in record.getMessage()


class TestCountersAndTimings:
    def test_counter_accumulates(self):
        counter("store.flush")
        counter("store.flush", 2)
        assert get_counter("store.flush") == 3

    def test_time_block_records_sample(self):
        with time_block("reconciliation.tag_import"):
            pass

        stats = get_latency_stats("reconciliation.tag_import")
        assert stats["count"] == 1
        assert stats["min"] >= 0.0
