"""Deadline enforcement for journey bodies."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from .errors import JourneyCancelled, JourneyTimedOut
from .models import RunOutcome, RunStatus
from .waiter import boottime_ms


logger = logging.getLogger(__name__)

DEFAULT_CANCEL_GRACE_MS = 100


class TimeoutEnforcer:
    """Runs a body on a worker thread while the caller acts as watchdog.

    Threads cannot be killed, so cancellation is cooperative: the body gets an
    Event that is set at the deadline. A worker still alive after the grace
    join is abandoned (daemon thread).
    """

    def __init__(
        self,
        *,
        clock: Callable[[], int] = boottime_ms,
        cancel_grace_ms: int = DEFAULT_CANCEL_GRACE_MS,
    ) -> None:
        self.clock = clock
        self.cancel_grace_ms = max(0, int(cancel_grace_ms))

    def run(
        self,
        body: Callable[[threading.Event], None],
        deadline_ms: int,
        *,
        label: str = "journey",
    ) -> RunOutcome:
        deadline_ms = max(0, int(deadline_ms))
        cancelled = threading.Event()
        errors: list[BaseException] = []

        def target() -> None:
            try:
                body(cancelled)
            except BaseException as exc:  # noqa: BLE001
                errors.append(exc)

        started = self.clock()
        worker = threading.Thread(target=target, name=f"ssr-{label}", daemon=True)
        worker.start()
        worker.join(deadline_ms / 1000.0)
        if worker.is_alive():
            cancelled.set()
            worker.join(self.cancel_grace_ms / 1000.0)
            elapsed_ms = self.clock() - started
            if worker.is_alive():
                logger.warning(
                    "SSR: %s still running after cancellation; abandoning worker (deadline_ms=%s)",
                    label,
                    deadline_ms,
                )
            else:
                logger.info("SSR: %s stopped after cancellation (deadline_ms=%s)", label, deadline_ms)
            return RunOutcome(
                status=RunStatus.TIMED_OUT,
                elapsed_ms=elapsed_ms,
                error=JourneyTimedOut(deadline_ms, "ms"),
            )

        elapsed_ms = self.clock() - started
        if errors:
            error = errors[0]
            if isinstance(error, JourneyCancelled) and cancelled.is_set():
                return RunOutcome(RunStatus.TIMED_OUT, elapsed_ms, JourneyTimedOut(deadline_ms, "ms"))
            return RunOutcome(RunStatus.FAILED, elapsed_ms, error)
        return RunOutcome(RunStatus.PASSED, elapsed_ms)
