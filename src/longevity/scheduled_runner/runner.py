"""Scheduled scenario execution state machine."""

from __future__ import annotations

from enum import Enum
import logging
import threading
from typing import Any, Callable, Mapping

from .arguments import ArgumentStore
from .errors import ArgumentError, reason_code
from .filters import FILTER_OPTION, canonical_name, is_excluded
from .journey import JourneyContext, resolve_journey
from .models import AfterTest, Failure, JourneyDescription, RunOutcome, RunStatus, ScenarioDescriptor
from .notifier import RunNotifier
from .obs import NullObsSink, ObsEvent, ObsOutcome, ObsPhase, ObsSeverity, ObsSink
from .timeout import TimeoutEnforcer
from .waiter import SuspensionAwareWaiter, Waiter, boottime_ms


TEARDOWN_LEEWAY_OPTION = "teardown-window-ms"
TEARDOWN_LEEWAY_DEFAULT_MS = 3000


class RunnerState(str, Enum):
    INIT = "INIT"
    ARGS_OVERRIDDEN = "ARGS_OVERRIDDEN"
    SKIPPED = "SKIPPED"
    RUNNING = "RUNNING"
    PASSED = "PASSED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"
    IDLE_BEFORE_TEARDOWN = "IDLE_BEFORE_TEARDOWN"
    TEARDOWN = "TEARDOWN"
    IDLE_BEFORE_NEXT = "IDLE_BEFORE_NEXT"
    ARGS_RESTORED = "ARGS_RESTORED"
    DONE = "DONE"


_OBS_OUTCOMES = {
    RunStatus.PASSED: ObsOutcome.OK,
    RunStatus.FAILED: ObsOutcome.FAIL,
    RunStatus.TIMED_OUT: ObsOutcome.TIMEOUT,
    RunStatus.IGNORED: ObsOutcome.SKIP,
}


class ScheduledScenarioRunner:
    """Runs one scenario inside its allotted window.

    The journey gets the window minus the teardown leeway. Whatever remains of
    the window after teardown is spent idling, so the next scenario starts on
    schedule. Both idle phases go through `perform_idle_*` and the injected
    waiter; neither idles when `should_idle` is False (last scenario).
    """

    def __init__(
        self,
        journey: str | type,
        scenario: ScenarioDescriptor,
        window_ms: int,
        should_idle: bool,
        options: Mapping[str, Any] | None = None,
        *,
        store: ArgumentStore | None = None,
        waiter: Waiter | None = None,
        enforcer: TimeoutEnforcer | None = None,
        clock: Callable[[], int] | None = None,
        obs_sink: ObsSink | None = None,
    ) -> None:
        self.logger = logging.getLogger(__name__)
        self.journey_cls = resolve_journey(journey)
        self.journey_name = canonical_name(self.journey_cls)
        self.scenario = scenario
        self.window_ms = int(window_ms)
        self.should_idle = bool(should_idle)
        self.store = store if store is not None else ArgumentStore()
        self.options: dict[str, str] = (
            {str(key): str(value) for key, value in options.items()} if options is not None else self.store.as_dict()
        )
        self.clock = clock or boottime_ms
        self.waiter = waiter or SuspensionAwareWaiter()
        self.enforcer = enforcer or TimeoutEnforcer(clock=self.clock)
        self.obs_sink = obs_sink or NullObsSink()
        self.description = JourneyDescription(journey_name=self.journey_name, scenario_at=scenario.at)
        self.state = RunnerState.INIT
        self._teardown_leeway_ms = self._read_teardown_leeway()
        if self.window_ms < self._teardown_leeway_ms:
            self.logger.warning(
                "SSR: allotted window shorter than teardown leeway (journey=%s, window_ms=%s, leeway_ms=%s)",
                self.journey_name,
                self.window_ms,
                self._teardown_leeway_ms,
            )

    @property
    def teardown_leeway_ms(self) -> int:
        return self._teardown_leeway_ms

    @property
    def effective_deadline_ms(self) -> int:
        return max(self.window_ms - self._teardown_leeway_ms, 0)

    def _read_teardown_leeway(self) -> int:
        raw = str(self.options.get(TEARDOWN_LEEWAY_OPTION) or "").strip()
        if not raw:
            return TEARDOWN_LEEWAY_DEFAULT_MS
        try:
            value = int(raw)
        except ValueError as exc:
            raise ArgumentError(f"{TEARDOWN_LEEWAY_OPTION}={raw!r} is not an integer") from exc
        if value < 0:
            raise ArgumentError(f"{TEARDOWN_LEEWAY_OPTION} must be >= 0, got {value}")
        return value

    def is_ignored(self) -> bool:
        return is_excluded(self.options.get(FILTER_OPTION), self.journey_name)

    def run(self, notifier: RunNotifier) -> None:
        origin = self.clock()
        self.logger.info(
            "SSR: scenario start (scenario=%s, window_ms=%s, leeway_ms=%s, should_idle=%s)",
            self.description.display_name,
            self.window_ms,
            self._teardown_leeway_ms,
            self.should_idle,
        )
        token = self.store.override(self.scenario.extra_pairs())
        self._transition(RunnerState.ARGS_OVERRIDDEN)
        self._emit("ARGS_OVERRIDDEN", ObsPhase.ARGS, ObsOutcome.OK, {"extras": len(self.scenario.extras)})
        try:
            if self.is_ignored():
                self._transition(RunnerState.SKIPPED)
                self._emit("JOURNEY_IGNORED", ObsPhase.GATE, ObsOutcome.SKIP)
                notifier.fire_test_ignored(self.description)
            else:
                self._run_journey(notifier, origin)
            if self.should_idle:
                remaining_ms = self.window_ms - (self.clock() - origin)
                if remaining_ms > 0:
                    self._transition(RunnerState.IDLE_BEFORE_NEXT)
                    self.perform_idle_before_next_scenario(remaining_ms)
        finally:
            self.store.restore(token)
            self._transition(RunnerState.ARGS_RESTORED)
        self._transition(RunnerState.DONE)
        self.logger.info(
            "SSR: scenario done (journey=%s, total_ms=%s)",
            self.journey_name,
            self.clock() - origin,
        )

    def _run_journey(self, notifier: RunNotifier, origin: int) -> None:
        notifier.fire_test_started(self.description)
        self._transition(RunnerState.RUNNING)
        holder: dict[str, Any] = {}

        def body(cancelled: threading.Event) -> None:
            ctx = JourneyContext(arguments=self.store, cancelled=cancelled)
            instance = self.journey_cls()
            holder["instance"] = instance
            holder["ctx"] = ctx
            set_up = getattr(instance, "set_up", None)
            if callable(set_up):
                set_up(ctx)
            instance.run(ctx)

        outcome = self.enforcer.run(body, self.effective_deadline_ms, label="journey")
        self._record_outcome(outcome)
        if outcome.error is not None:
            notifier.fire_test_failure(Failure(self.description, outcome.error))

        if self._should_idle_before_teardown(outcome):
            idle_ms = self.window_ms - (self.clock() - origin) - 2 * self._teardown_leeway_ms
            if idle_ms > 0:
                self._transition(RunnerState.IDLE_BEFORE_TEARDOWN)
                self.perform_idle_before_teardown(idle_ms)

        if "instance" in holder:
            self._transition(RunnerState.TEARDOWN)
            self._tear_down(notifier, holder["instance"], holder["ctx"])
        notifier.fire_test_finished(self.description)

    def _should_idle_before_teardown(self, outcome: RunOutcome) -> bool:
        return (
            self.should_idle
            and self.scenario.after_test == AfterTest.STAY_IN_APP
            and outcome.status == RunStatus.PASSED
        )

    def _tear_down(self, notifier: RunNotifier, instance: Any, ctx: JourneyContext) -> None:
        tear_down = getattr(instance, "tear_down", None)
        if not callable(tear_down):
            return

        def body(cancelled: threading.Event) -> None:
            tear_down(JourneyContext(arguments=ctx.arguments, cancelled=cancelled))

        outcome = self.enforcer.run(body, self._teardown_leeway_ms, label="teardown")
        self._emit(
            "TEARDOWN_FINISHED",
            ObsPhase.TEARDOWN,
            _OBS_OUTCOMES[outcome.status],
            {"duration_ms": outcome.elapsed_ms},
        )
        if outcome.error is not None:
            self.logger.warning(
                "SSR: teardown failed (journey=%s, status=%s, error=%s)",
                self.journey_name,
                outcome.status.value,
                outcome.error,
            )
            notifier.fire_test_failure(Failure(self.description, outcome.error))

    def _record_outcome(self, outcome: RunOutcome) -> None:
        self._transition(RunnerState(outcome.status.value))
        self.logger.info(
            "SSR: journey finished (journey=%s, status=%s, elapsed_ms=%s, deadline_ms=%s)",
            self.journey_name,
            outcome.status.value,
            outcome.elapsed_ms,
            self.effective_deadline_ms,
        )
        details: dict[str, Any] = {"duration_ms": outcome.elapsed_ms, "deadline_ms": self.effective_deadline_ms}
        if outcome.error is not None:
            details["error_type"] = type(outcome.error).__name__
            details["reason_code"] = reason_code(outcome.error)
        severity = ObsSeverity.INFO if outcome.passed else ObsSeverity.ERROR
        self._emit("JOURNEY_FINISHED", ObsPhase.EXECUTE, _OBS_OUTCOMES[outcome.status], details, severity)

    def perform_idle_before_teardown(self, duration_ms: int) -> None:
        self.logger.info("SSR: idling before teardown (journey=%s, duration_ms=%s)", self.journey_name, duration_ms)
        self.waiter.wait(duration_ms)
        self._emit("IDLE_FINISHED", ObsPhase.IDLE_BEFORE_TEARDOWN, ObsOutcome.OK, {"duration_ms": int(duration_ms)})

    def perform_idle_before_next_scenario(self, duration_ms: int) -> None:
        self.logger.info(
            "SSR: idling before next scenario (journey=%s, duration_ms=%s)", self.journey_name, duration_ms
        )
        self.waiter.wait(duration_ms)
        self._emit("IDLE_FINISHED", ObsPhase.IDLE_BEFORE_NEXT, ObsOutcome.OK, {"duration_ms": int(duration_ms)})

    def _transition(self, state: RunnerState) -> None:
        self.logger.debug("SSR: %s -> %s (journey=%s)", self.state.value, state.value, self.journey_name)
        self.state = state

    def _emit(
        self,
        event_kind: str,
        phase: ObsPhase,
        outcome: ObsOutcome,
        details: dict[str, Any] | None = None,
        severity: ObsSeverity = ObsSeverity.INFO,
    ) -> None:
        event = ObsEvent.now(
            event_kind=event_kind,
            phase=phase,
            outcome=outcome,
            severity=severity,
            pins={"journey": self.journey_name, "at": self.scenario.at},
            details=details,
        )
        try:
            self.obs_sink.emit(event)
        except Exception:
            self.logger.warning("SSR: obs emit failed (event_kind=%s)", event_kind, exc_info=True)
