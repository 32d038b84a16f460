"""Tests for the OTP challenge store and sweeper."""

import asyncio
import logging
from datetime import datetime, timedelta

import pytest

from wallet_ledger.exceptions import (
    NotificationError,
    OtpCodeMismatchError,
    OtpExpiredError,
    OtpNotFoundError,
)
from wallet_ledger.models import BoundOperation, DeliveryChannel, OperationKind
from wallet_ledger.notifications import LogNotifier, Notifier
from wallet_ledger.otp import InMemoryOtpChallengeStore, OtpSweeper

OPERATION = BoundOperation(OperationKind.LOCAL_TRANSFER, 30000)


class RecordingNotifier(Notifier):
    """Captures sends; optionally fails or hangs."""

    channel = DeliveryChannel.EMAIL

    def __init__(self, fail: bool = False, delay: float = 0.0) -> None:
        self.fail = fail
        self.delay = delay
        self.sent: list[tuple] = []

    async def send_otp(self, subject_id, recipient, code, operation, expires_at) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise NotificationError("SMTP unavailable")
        self.sent.append((subject_id, recipient, code, operation, expires_at))


class TestIssue:
    """Tests for challenge issuance."""

    def test_issue_returns_key_and_code(self, clock) -> None:
        store = InMemoryOtpChallengeStore(clock=clock)

        issued = asyncio.run(store.issue("acct-1", OPERATION))

        assert len(issued.key) == 32
        assert issued.code.isdigit() and len(issued.code) == 4
        assert 1000 <= int(issued.code) <= 9999
        assert issued.expires_at == clock() + timedelta(minutes=5)
        assert issued.delivered_via == DeliveryChannel.NONE
        assert issued.key in store

    def test_keys_are_unique(self, clock) -> None:
        store = InMemoryOtpChallengeStore(clock=clock)

        async def scenario() -> set[str]:
            return {(await store.issue("acct-1", OPERATION)).key for _ in range(50)}

        assert len(asyncio.run(scenario())) == 50
        assert len(store) == 50

    def test_custom_ttl_and_length(self, clock) -> None:
        store = InMemoryOtpChallengeStore(clock=clock, code_length=6)

        issued = asyncio.run(store.issue("acct-1", OPERATION, ttl=timedelta(seconds=30)))

        assert len(issued.code) == 6
        assert issued.expires_at == clock() + timedelta(seconds=30)

    def test_code_range(self) -> None:
        store = InMemoryOtpChallengeStore()

        codes = [int(store.generate_code()) for _ in range(500)]

        assert all(1000 <= c <= 9999 for c in codes)

    def test_delivers_to_notifier(self, clock) -> None:
        notifier = RecordingNotifier()
        store = InMemoryOtpChallengeStore(notifier=notifier, clock=clock)

        issued = asyncio.run(store.issue("acct-1", OPERATION, recipient="a@example.com"))

        assert issued.delivered_via == DeliveryChannel.EMAIL
        assert notifier.sent == [("acct-1", "a@example.com", issued.code, OPERATION, issued.expires_at)]

    def test_delivery_failure_does_not_fail_issue(self, clock, caplog) -> None:
        store = InMemoryOtpChallengeStore(notifier=RecordingNotifier(fail=True), clock=clock)

        with caplog.at_level(logging.WARNING, logger="wallet_ledger.otp.store"):
            issued = asyncio.run(store.issue("acct-1", OPERATION))

        assert issued.delivered_via == DeliveryChannel.NONE
        assert issued.key in store
        assert "delivery via EMAIL failed" in caplog.text

    def test_delivery_timeout_does_not_block(self, clock) -> None:
        store = InMemoryOtpChallengeStore(
            notifier=RecordingNotifier(delay=5.0), clock=clock, delivery_timeout=0.01
        )

        issued = asyncio.run(store.issue("acct-1", OPERATION))

        assert issued.delivered_via == DeliveryChannel.NONE
        assert issued.key in store

    def test_log_notifier_channel(self, clock) -> None:
        store = InMemoryOtpChallengeStore(notifier=LogNotifier(), clock=clock)

        issued = asyncio.run(store.issue("acct-1", OPERATION))

        assert issued.delivered_via == DeliveryChannel.LOG


class TestRedeem:
    """Tests for single-use redemption."""

    def test_redeem_returns_challenge(self, clock) -> None:
        store = InMemoryOtpChallengeStore(clock=clock)

        async def scenario():
            issued = await store.issue("acct-1", OPERATION)
            return issued, await store.redeem(issued.key, issued.code)

        issued, challenge = asyncio.run(scenario())

        assert challenge.subject_id == "acct-1"
        assert challenge.operation == OPERATION
        assert issued.key not in store

    def test_second_redeem_is_not_found(self, clock) -> None:
        store = InMemoryOtpChallengeStore(clock=clock)

        async def scenario() -> None:
            issued = await store.issue("acct-1", OPERATION)
            await store.redeem(issued.key, issued.code)
            await store.redeem(issued.key, issued.code)

        with pytest.raises(OtpNotFoundError):
            asyncio.run(scenario())

    def test_unknown_key(self, clock) -> None:
        store = InMemoryOtpChallengeStore(clock=clock)

        with pytest.raises(OtpNotFoundError):
            asyncio.run(store.redeem("missing", "1234"))

    def test_expired_even_with_correct_code(self, clock) -> None:
        store = InMemoryOtpChallengeStore(clock=clock)

        async def scenario():
            issued = await store.issue("acct-1", OPERATION)
            clock.advance(minutes=5, seconds=1)
            with pytest.raises(OtpExpiredError):
                await store.redeem(issued.key, issued.code)
            return issued

        issued = asyncio.run(scenario())

        assert issued.key not in store

    def test_redeem_at_exact_expiry_succeeds(self, clock) -> None:
        store = InMemoryOtpChallengeStore(clock=clock)

        async def scenario():
            issued = await store.issue("acct-1", OPERATION)
            clock.advance(minutes=5)
            return await store.redeem(issued.key, issued.code)

        assert asyncio.run(scenario()).subject_id == "acct-1"

    def test_wrong_code_keeps_challenge(self, clock) -> None:
        store = InMemoryOtpChallengeStore(clock=clock)

        async def scenario():
            issued = await store.issue("acct-1", OPERATION)
            wrong = "0000" if issued.code != "0000" else "1111"
            with pytest.raises(OtpCodeMismatchError):
                await store.redeem(issued.key, wrong)
            assert issued.key in store
            return await store.redeem(issued.key, issued.code)

        assert asyncio.run(scenario()).subject_id == "acct-1"

    def test_concurrent_redeem_single_success(self, clock) -> None:
        store = InMemoryOtpChallengeStore(clock=clock)

        async def scenario() -> list:
            issued = await store.issue("acct-1", OPERATION)
            return await asyncio.gather(
                *(store.redeem(issued.key, issued.code) for _ in range(20)),
                return_exceptions=True,
            )

        results = asyncio.run(scenario())
        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]

        assert len(successes) == 1
        assert len(failures) == 19
        assert all(isinstance(f, OtpNotFoundError) for f in failures)


class TestSweep:
    """Tests for expired challenge sweeping."""

    def test_sweep_removes_only_expired(self, clock) -> None:
        store = InMemoryOtpChallengeStore(clock=clock)

        async def scenario() -> int:
            await store.issue("acct-1", OPERATION, ttl=timedelta(seconds=30))
            await store.issue("acct-2", OPERATION, ttl=timedelta(seconds=30))
            await store.issue("acct-3", OPERATION, ttl=timedelta(minutes=10))
            clock.advance(minutes=1)
            return await store.sweep()

        assert asyncio.run(scenario()) == 2
        assert len(store) == 1

    def test_sweep_empty_store(self, clock) -> None:
        store = InMemoryOtpChallengeStore(clock=clock)

        assert asyncio.run(store.sweep()) == 0


class TestOtpSweeper:
    """Tests for the background sweeper task."""

    def test_sweeper_purges_in_background(self, clock) -> None:
        store = InMemoryOtpChallengeStore(clock=clock)

        async def scenario() -> OtpSweeper:
            await store.issue("acct-1", OPERATION, ttl=timedelta(seconds=1))
            clock.advance(seconds=2)
            async with OtpSweeper(store, interval=0.01) as sweeper:
                assert sweeper.running
                await asyncio.sleep(0.1)
            return sweeper

        sweeper = asyncio.run(scenario())

        assert len(store) == 0
        assert sweeper.runs >= 1
        assert not sweeper.running

    def test_sweeper_survives_sweep_errors(self, clock, caplog) -> None:
        class BrokenStore(InMemoryOtpChallengeStore):
            async def sweep(self) -> int:
                raise RuntimeError("cache offline")

        store = BrokenStore(clock=clock)

        async def scenario() -> OtpSweeper:
            sweeper = OtpSweeper(store, interval=0.01)
            sweeper.start()
            await asyncio.sleep(0.1)
            await sweeper.stop()
            return sweeper

        with caplog.at_level(logging.ERROR, logger="wallet_ledger.otp.sweeper"):
            sweeper = asyncio.run(scenario())

        assert sweeper.runs >= 2
        assert "OTP sweep failed" in caplog.text

    def test_stop_without_start(self, clock) -> None:
        sweeper = OtpSweeper(InMemoryOtpChallengeStore(clock=clock))

        asyncio.run(sweeper.stop())

        assert not sweeper.running

    def test_start_twice_keeps_one_task(self, clock) -> None:
        store = InMemoryOtpChallengeStore(clock=clock)

        async def scenario() -> None:
            sweeper = OtpSweeper(store, interval=10)
            sweeper.start()
            task = sweeper._task
            sweeper.start()
            assert sweeper._task is task
            await sweeper.stop()

        asyncio.run(scenario())
