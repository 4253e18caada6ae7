"""CLI for running a single scheduled scenario."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from .arguments import ArgumentStore
from .config import RunnerProfile, load_profile, load_scenario
from .filters import FILTER_OPTION
from .logging_utils import configure_logging
from .notifier import RecordingListener, RunNotifier
from .obs import CompositeObsSink, ConsoleObsSink, MetricsObsSink, ObsSink
from .runner import TEARDOWN_LEEWAY_OPTION, ScheduledScenarioRunner
from .timeout import TimeoutEnforcer
from .waiter import BoottimeAlarm, SuspensionAwareWaiter, boottime_ms


def _parse_arg(raw: str) -> tuple[str, str]:
    if "=" not in raw:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {raw!r}")
    key, value = raw.split("=", 1)
    if not key.strip():
        raise argparse.ArgumentTypeError(f"empty key in {raw!r}")
    return key.strip(), value


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scheduled scenario runner CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run one scenario inside its allotted window")
    run_parser.add_argument("--scenario", required=True, help="Path to scenario descriptor YAML")
    run_parser.add_argument("--window-ms", required=True, type=int, help="Allotted window for the scenario")
    run_parser.add_argument("--has-next", action="store_true", help="Idle until the window closes")
    run_parser.add_argument("--profile", default=None, help="Path to runner profile YAML")
    run_parser.add_argument("--journey", default=None, help="Override the descriptor's journey identifier")
    run_parser.add_argument("--arg", action="append", type=_parse_arg, default=[], help="KEY=VALUE argument")
    run_parser.add_argument("--exclude", action="append", default=[], help="Canonical journey name to skip")
    run_parser.add_argument("--teardown-window-ms", type=int, default=None)
    run_parser.add_argument("--obs-console", action="store_true", help="Print observability events as JSON")
    run_parser.add_argument("--log-path", default=None)
    run_parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def _build_options(args: argparse.Namespace, profile: RunnerProfile, store: ArgumentStore) -> dict[str, str]:
    options = profile.as_options()
    options.update(store.as_dict())
    if args.teardown_window_ms is not None:
        options[TEARDOWN_LEEWAY_OPTION] = str(args.teardown_window_ms)
    excludes = [item for item in options.get(FILTER_OPTION, "").split(",") if item.strip()]
    excludes.extend(args.exclude)
    if excludes:
        options[FILTER_OPTION] = ",".join(excludes)
    return options


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_paths=[args.log_path] if args.log_path else None,
    )
    profile = load_profile(Path(args.profile)) if args.profile else RunnerProfile()
    scenario = load_scenario(Path(args.scenario))
    store = ArgumentStore({**profile.arguments, **dict(args.arg)})
    options = _build_options(args, profile, store)

    metrics = MetricsObsSink()
    sinks: list[ObsSink] = [metrics]
    if args.obs_console:
        sinks.append(ConsoleObsSink())

    runner = ScheduledScenarioRunner(
        args.journey or scenario.journey,
        scenario,
        args.window_ms,
        args.has_next,
        options,
        store=store,
        waiter=SuspensionAwareWaiter(BoottimeAlarm(poll_ms=profile.alarm_poll_ms)),
        enforcer=TimeoutEnforcer(clock=boottime_ms, cancel_grace_ms=profile.cancel_grace_ms),
        obs_sink=CompositeObsSink(sinks),
    )
    listener = RecordingListener()
    runner.run(RunNotifier([listener]))

    summary = {
        "journey": runner.journey_name,
        "at": scenario.at,
        "teardown_leeway_ms": runner.teardown_leeway_ms,
        "effective_deadline_ms": runner.effective_deadline_ms,
        "events": [event.as_dict() for event in listener.events],
        "metrics": metrics.snapshot(),
    }
    print(json.dumps(summary, sort_keys=True, ensure_ascii=True))
    return 1 if listener.failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
