"""Suspension-aware waiting backed by a wake-capable alarm."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import threading
import time
from typing import Callable


logger = logging.getLogger(__name__)

DEFAULT_ALARM_POLL_MS = 50


def boottime_ms() -> int:
    """Clock that keeps advancing while the host is suspended."""
    if hasattr(time, "CLOCK_BOOTTIME"):
        return int(time.clock_gettime(time.CLOCK_BOOTTIME) * 1000)
    return int(time.time() * 1000)


class Alarm:
    def set(self, delay_ms: int, callback: Callable[[], None]) -> object:
        raise NotImplementedError

    def cancel(self, token: object) -> None:
        raise NotImplementedError


class NullAlarm(Alarm):
    def set(self, delay_ms: int, callback: Callable[[], None]) -> object:
        return None

    def cancel(self, token: object) -> None:
        return


@dataclass
class _AlarmToken:
    deadline_ms: int
    callback: Callable[[], None]
    cancelled: threading.Event = field(default_factory=threading.Event)


class BoottimeAlarm(Alarm):
    """Fires once a suspend-inclusive deadline has passed.

    A monotonic sleep stops counting while the host is suspended; polling the
    boot-time clock in short slices lets the alarm fire right after resume.
    """

    def __init__(self, poll_ms: int = DEFAULT_ALARM_POLL_MS, clock: Callable[[], int] = boottime_ms) -> None:
        self.poll_ms = max(1, int(poll_ms))
        self.clock = clock

    def set(self, delay_ms: int, callback: Callable[[], None]) -> object:
        token = _AlarmToken(deadline_ms=self.clock() + int(delay_ms), callback=callback)
        thread = threading.Thread(target=self._watch, args=(token,), name="ssr-alarm", daemon=True)
        thread.start()
        return token

    def cancel(self, token: object) -> None:
        if isinstance(token, _AlarmToken):
            token.cancelled.set()

    def _watch(self, token: _AlarmToken) -> None:
        while not token.cancelled.is_set():
            remaining = token.deadline_ms - self.clock()
            if remaining <= 0:
                token.callback()
                return
            token.cancelled.wait(min(remaining, self.poll_ms) / 1000.0)


class Waiter:
    def wait(self, duration_ms: int, max_alarm_wait_ms: int | None = None) -> bool:
        raise NotImplementedError


class SuspensionAwareWaiter(Waiter):
    def __init__(self, alarm: Alarm | None = None) -> None:
        self.alarm = alarm if alarm is not None else BoottimeAlarm()

    def wait(self, duration_ms: int, max_alarm_wait_ms: int | None = None) -> bool:
        """Block for `duration_ms`, returning early if the alarm fires.

        The timed block lasts `max_alarm_wait_ms` (defaults to `duration_ms`);
        the alarm is armed for `duration_ms`. Returns True when the alarm woke
        the wait.
        """
        if duration_ms <= 0:
            return False
        block_ms = duration_ms if max_alarm_wait_ms is None else max_alarm_wait_ms
        woken = threading.Event()
        token = self.alarm.set(duration_ms, woken.set)
        try:
            fired = woken.wait(max(block_ms, 0) / 1000.0)
        finally:
            self.alarm.cancel(token)
        logger.debug(
            "SSR: wait finished (duration_ms=%s, block_ms=%s, alarm_fired=%s)",
            duration_ms,
            block_ms,
            fired,
        )
        return fired
