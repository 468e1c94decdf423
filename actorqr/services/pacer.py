from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable

"""Inter-row pacing to bound the rate of downstream calls.

Sleep and RNG are injectable so tests can assert call counts and bounds
without real elapsed time.
"""

__all__ = [
    "Pacer",
]

logger = logging.getLogger(__name__)


class Pacer:
    def __init__(
        self,
        min_delay_ms: int = 3000,
        max_delay_ms: int = 5000,
        *,
        sleep: Callable[[float], None] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.min_delay_ms = min_delay_ms
        self.max_delay_ms = max_delay_ms
        self._sleep = sleep or time.sleep
        self._rng = rng or random.Random()

    def wait(self, row_number: int | None = None) -> int:
        """Sleep a uniformly random whole number of ms in [min, max]; returns the delay."""
        delay_ms = self._rng.randint(self.min_delay_ms, self.max_delay_ms)
        logger.info("row %s: waiting %d ms before continuing", row_number, delay_ms)
        self._sleep(delay_ms / 1000)
        return delay_ms
