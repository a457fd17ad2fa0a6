"""Tests for controller records and the event log."""

import pytest

from trickle.faucet.events import (
    EventLog,
    FaucetPaused,
    TokensRequested,
    UserBlacklisted,
)

ALICE = "0x3333333333333333333333333333333333333333"


class TestFaucetEvent:
    """Tests for record types."""

    def test_name(self):
        assert TokensRequested(user=ALICE, amount=10, timestamp=0).name == "TokensRequested"

    def test_to_dict(self):
        record = UserBlacklisted(user=ALICE, flag=True)

        assert record.to_dict() == {"event": "UserBlacklisted", "user": ALICE, "flag": True}


class TestEventLog:
    """Tests for EventLog."""

    def test_publish_keeps_order(self):
        log = EventLog()
        first = TokensRequested(user=ALICE, amount=10, timestamp=0)
        second = FaucetPaused(account=ALICE)

        log.publish([first, second])

        assert list(log) == [first, second]
        assert len(log) == 2

    def test_filter(self):
        log = EventLog()
        log.publish(
            [FaucetPaused(account=ALICE), TokensRequested(user=ALICE, amount=10, timestamp=0)]
        )

        assert log.filter(FaucetPaused) == [FaucetPaused(account=ALICE)]

    def test_subscribers_called(self):
        log = EventLog()
        seen = []
        log.subscribe(seen.append)
        record = FaucetPaused(account=ALICE)

        log.publish([record])

        assert seen == [record]

    def test_failing_subscriber_isolated(self):
        """A failing subscriber does not stop the others."""
        log = EventLog()
        seen = []

        def broken(_event):
            raise RuntimeError("boom")

        log.subscribe(broken)
        log.subscribe(seen.append)

        log.publish([FaucetPaused(account=ALICE)])

        assert len(seen) == 1
        assert len(log) == 1

    def test_history_is_bounded(self):
        """Only the most recent records are retained."""
        log = EventLog(history=3)
        seen = []
        log.subscribe(seen.append)
        records = [TokensRequested(user=ALICE, amount=10, timestamp=t) for t in range(5)]

        log.publish(records)

        assert len(log) == 3
        assert list(log) == records[2:]
        assert seen == records

    def test_default_history_does_not_grow_forever(self):
        log = EventLog()
        for t in range(5000):
            log.publish([TokensRequested(user=ALICE, amount=10, timestamp=t)])

        assert len(log) == 1024
        assert next(iter(log)).timestamp == 5000 - 1024

    def test_history_must_be_positive(self):
        with pytest.raises(ValueError):
            EventLog(history=0)
