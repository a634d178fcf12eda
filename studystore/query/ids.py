"""
Record identifier generation.

Identifiers have the form ``{prefix}-{epoch_ms}``. Two ids requested in the
same millisecond would collide, so the generator never hands out a
millisecond value twice: it advances past the last one it issued.

Invariants:
    - Ids from one generator are unique and strictly increasing
    - Ids from different processes sharing storage may still collide
"""

from __future__ import annotations

import time
from typing import Callable


class IdGenerator:
    """Monotonic millisecond id source.

    Example:
        >>> ids = IdGenerator(clock=lambda: 1.0)
        >>> ids.new_id("invitations"), ids.new_id("invitations")
        ('invitations-1000', 'invitations-1001')
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last_ms = 0

    def next_ms(self) -> int:
        ms = int(self._clock() * 1000)
        if ms <= self._last_ms:
            ms = self._last_ms + 1
        self._last_ms = ms
        return ms

    def new_id(self, prefix: str) -> str:
        return f"{prefix}-{self.next_ms()}"
