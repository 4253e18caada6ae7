"""Sample journeys with predictable timing, for demos and runner tests."""

from __future__ import annotations

from .journey import Journey, JourneyContext

SAMPLE_IDLE_OPTION = "sample-idle-ms"


class PassingJourney(Journey):
    """Finishes immediately."""

    def run(self, ctx: JourneyContext) -> None:
        return None


class LongIdleJourney(Journey):
    """Idles until cancelled at its deadline."""

    def run(self, ctx: JourneyContext) -> None:
        while not ctx.idle(60_000):
            continue
        ctx.check_cancelled()


class ConfiguredIdleJourney(Journey):
    """Idles for the duration given by the `sample-idle-ms` argument."""

    def run(self, ctx: JourneyContext) -> None:
        ctx.idle(ctx.arguments.get_int(SAMPLE_IDLE_OPTION, 0))
        ctx.check_cancelled()


class FailingJourney(Journey):
    def run(self, ctx: JourneyContext) -> None:
        raise AssertionError("sample journey failed")
