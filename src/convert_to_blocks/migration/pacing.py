"""Poll pacing and retry backoff for the supervisor loop."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass(slots=True)
class PollPacer:
    """Sleeps between status polls; tests inject a recording ``sleep``."""

    poll_interval_seconds: float = 5.0
    final_poll_interval_seconds: float = 1.0
    retry_base_seconds: float = 1.0
    retry_max_seconds: float = 30.0
    sleep: Callable[[float], None] = field(default=time.sleep)

    def delay_for(self, *, ticks_emitted: int, total: int) -> float:
        """Full interval while ticks remain, short interval on the final approach."""

        if ticks_emitted < total:
            return self.poll_interval_seconds
        return self.final_poll_interval_seconds

    def wait(self, *, ticks_emitted: int, total: int) -> float:
        delay = self.delay_for(ticks_emitted=ticks_emitted, total=total)
        self.sleep(delay)
        return delay

    def retry_delay(self, *, retry_number: int) -> float:
        return min(
            self.retry_max_seconds,
            self.retry_base_seconds * (2 ** max(retry_number - 1, 0)),
        )

    def backoff(self, *, retry_number: int) -> float:
        delay = self.retry_delay(retry_number=retry_number)
        self.sleep(delay)
        return delay
