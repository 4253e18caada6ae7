from __future__ import annotations

import threading

import pytest

from longevity.scheduled_runner.arguments import ArgumentStore
from longevity.scheduled_runner.errors import InitializationError, JourneyCancelled
from longevity.scheduled_runner.journey import JourneyContext, resolve_journey
from longevity.scheduled_runner.samples import LongIdleJourney, PassingJourney


def test_resolve_accepts_class_and_identifiers() -> None:
    assert resolve_journey(PassingJourney) is PassingJourney
    assert resolve_journey("longevity.scheduled_runner.samples.PassingJourney") is PassingJourney
    assert resolve_journey("longevity.scheduled_runner.samples:LongIdleJourney") is LongIdleJourney


@pytest.mark.parametrize(
    "identifier",
    [
        "",
        "no_such_package.Journey",
        "longevity.scheduled_runner.samples.MissingJourney",
        "longevity.scheduled_runner.samples:SAMPLE_IDLE_OPTION",
        "longevity.scheduled_runner.arguments:scoped",
    ],
)
def test_resolve_rejects_unusable_identifiers(identifier: str) -> None:
    with pytest.raises(InitializationError):
        resolve_journey(identifier)


def test_resolve_rejects_class_without_run() -> None:
    class NotAJourney:
        pass

    with pytest.raises(InitializationError, match="JOURNEY_UNRESOLVED"):
        resolve_journey(NotAJourney)


def test_context_idle_returns_early_on_cancel() -> None:
    ctx = JourneyContext(arguments=ArgumentStore())
    timer = threading.Timer(0.05, ctx.cancelled.set)
    timer.start()
    try:
        assert ctx.idle(10_000) is True
    finally:
        timer.cancel()
    with pytest.raises(JourneyCancelled):
        ctx.check_cancelled()


def test_context_idle_completes_without_cancel() -> None:
    ctx = JourneyContext(arguments=ArgumentStore())
    assert ctx.idle(10) is False
    ctx.check_cancelled()
