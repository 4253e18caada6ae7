"""Scheduled runner error taxonomy and helpers."""

from __future__ import annotations


class ScheduledRunnerError(RuntimeError):
    """Stable error surfaced with a reason code."""

    code = "RUNNER_ERROR"

    def __init__(self, detail: str | None = None, *, code: str | None = None) -> None:
        if code:
            self.code = code
        self.detail = detail
        message = f"{self.code}:{detail}" if detail else self.code
        super().__init__(message)


class InitializationError(ScheduledRunnerError):
    """Journey identifier cannot be resolved to an executable unit."""

    code = "JOURNEY_UNRESOLVED"


class ArgumentError(ScheduledRunnerError):
    code = "ARGUMENT_INVALID"


class ProfileError(ScheduledRunnerError):
    code = "PROFILE_INVALID"


class JourneyCancelled(ScheduledRunnerError):
    """Raised inside a journey that observed its cancellation signal."""

    code = "CANCELLED"


class JourneyTimedOut(Exception):
    """Journey did not complete within its deadline.

    `timeout` and `unit` report the budget the journey actually had, which is
    the allotted window minus the teardown leeway.
    """

    code = "TIMED_OUT"

    def __init__(self, timeout: int, unit: str = "ms") -> None:
        self.timeout = timeout
        self.unit = unit
        super().__init__(f"test timed out after {timeout} {_UNIT_NAMES.get(unit, unit)}")

    def timeout_ms(self) -> int:
        return int(self.timeout * _UNIT_TO_MS[self.unit])


_UNIT_NAMES = {"ms": "milliseconds", "s": "seconds"}
_UNIT_TO_MS = {"ms": 1, "s": 1000}


def reason_code(exc: BaseException | None) -> str:
    if exc is None:
        return "OK"
    if isinstance(exc, (ScheduledRunnerError, JourneyTimedOut)):
        return exc.code
    if isinstance(exc, AssertionError):
        return "ASSERTION_FAILED"
    text = str(exc or "").strip()
    if ":" in text:
        head = text.split(":", 1)[0].strip()
        if head.isupper() and " " not in head:
            return head
    return "RUNTIME_FAILURE"
