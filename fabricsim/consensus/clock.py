"""
Simulation clock for FabricSim.

The clock holds the single inter-phase delay ("simulation speed") applied
uniformly between every phase of every flow. Each wait is a timer-backed future
scheduled on the running event loop, so a reset can cancel all pending waits at
once and no phase transition fires after it.
"""

import asyncio
import logging

from fabricsim.error_mitigation.validator import validate_speed

logger = logging.getLogger(__name__)


class SimulationClock:
    """Cancellable, adjustable pacing for the phase state machine"""

    def __init__(self, delay: float = 2.0):
        self._delay = validate_speed(delay)
        self._pending: dict[asyncio.Future, asyncio.TimerHandle] = {}

    @property
    def delay(self) -> float:
        return self._delay

    def set_speed(self, delay: float) -> None:
        """Change the delay; waits already scheduled keep their original deadline."""
        self._delay = validate_speed(delay)
        logger.info(f"Simulation speed set to {self._delay:.3f}s per phase")

    @property
    def pending_waits(self) -> int:
        return len(self._pending)

    async def wait(self) -> None:
        """
        Suspend for one delay.

        Raises:
            asyncio.CancelledError: If cancel_all() runs before the delay elapses
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        handle = loop.call_later(self._delay, self._fire, future)
        self._pending[future] = handle
        try:
            await future
        finally:
            self._pending.pop(future, None)
            handle.cancel()

    @staticmethod
    def _fire(future: asyncio.Future) -> None:
        if not future.done():
            future.set_result(None)

    def cancel_all(self) -> int:
        """Cancel every pending wait and return how many were cancelled."""
        cancelled = 0
        for future, handle in list(self._pending.items()):
            handle.cancel()
            if not future.done():
                future.cancel()
                cancelled += 1
        self._pending.clear()
        if cancelled:
            logger.warning(f"Cancelled {cancelled} pending phase delay(s)")
        return cancelled
