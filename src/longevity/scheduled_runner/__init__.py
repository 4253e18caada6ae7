"""Scheduled scenario runner package."""

from .arguments import ArgumentStore, ArgumentToken, scoped
from .errors import InitializationError, JourneyTimedOut
from .filters import FILTER_OPTION, is_excluded
from .journey import Journey, JourneyContext
from .models import AfterTest, ExtraArg, Failure, JourneyDescription, RunOutcome, RunStatus, ScenarioDescriptor
from .notifier import RecordingListener, RunListener, RunNotifier
from .runner import TEARDOWN_LEEWAY_DEFAULT_MS, TEARDOWN_LEEWAY_OPTION, RunnerState, ScheduledScenarioRunner
from .timeout import TimeoutEnforcer
from .waiter import Alarm, BoottimeAlarm, NullAlarm, SuspensionAwareWaiter

__all__ = [
    "AfterTest",
    "Alarm",
    "ArgumentStore",
    "ArgumentToken",
    "BoottimeAlarm",
    "ExtraArg",
    "FILTER_OPTION",
    "Failure",
    "InitializationError",
    "Journey",
    "JourneyContext",
    "JourneyDescription",
    "JourneyTimedOut",
    "NullAlarm",
    "RecordingListener",
    "RunListener",
    "RunNotifier",
    "RunOutcome",
    "RunStatus",
    "RunnerState",
    "ScenarioDescriptor",
    "ScheduledScenarioRunner",
    "SuspensionAwareWaiter",
    "TEARDOWN_LEEWAY_DEFAULT_MS",
    "TEARDOWN_LEEWAY_OPTION",
    "TimeoutEnforcer",
    "is_excluded",
    "scoped",
]
