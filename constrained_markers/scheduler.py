from __future__ import annotations

import logging
from enum import IntEnum
from typing import Callable

logger = logging.getLogger("constrained_markers.scheduler")


class RenderPriority(IntEnum):
    FIRST = 0
    INPUT = 100
    CAMERA = 200
    CHARACTER = 300
    LAST = 2000


class FrameScheduler:
    """
    Runs subscribed callbacks once per ``step()``, lowest priority first.

    Callbacks with equal priority run in subscription order. Subscribing an
    existing token replaces its callback.
    """

    def __init__(self):
        self._subs: dict[str, tuple[int, int, Callable[[], None]]] = {}
        self._seq = 0
        self.frame = 0

    def subscribe(self, token: str, priority: int, callback: Callable[[], None]) -> None:
        self._seq += 1
        self._subs[token] = (int(priority), self._seq, callback)

    def unsubscribe(self, token: str) -> None:
        self._subs.pop(token, None)

    def is_subscribed(self, token: str) -> bool:
        return token in self._subs

    def step(self) -> None:
        self.frame += 1
        ordered = sorted(self._subs.items(), key=lambda kv: kv[1][:2])
        for token, entry in ordered:
            # Unsubscribed or replaced by an earlier callback in this frame
            if self._subs.get(token) is not entry:
                continue
            entry[2]()
        logger.debug("frame=%d callbacks=%d", self.frame, len(ordered))
