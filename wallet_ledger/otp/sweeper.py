"""Background task that purges abandoned OTP challenges."""

import asyncio
import contextlib
import logging

from wallet_ledger.otp.store import OtpChallengeStore

logger = logging.getLogger(__name__)


class OtpSweeper:
    """Call ``store.sweep()`` on a fixed interval until stopped.

    Usable as an async context manager::

        async with OtpSweeper(store, interval=60):
            ...
    """

    def __init__(self, store: OtpChallengeStore, interval: float = 60.0) -> None:
        self.store = store
        self.interval = interval
        self.runs = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="otp-sweeper")
        logger.info("OTP sweeper started, interval=%.1fs", self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("OTP sweeper stopped after %d run(s)", self.runs)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.store.sweep()
            except Exception:
                logger.exception("OTP sweep failed")
            self.runs += 1

    async def __aenter__(self) -> "OtpSweeper":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
