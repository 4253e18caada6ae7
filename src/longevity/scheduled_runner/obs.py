"""Structured observability events for the scheduled runner (best-effort)."""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
import json
import logging
import sys
from typing import Any, TextIO


logger = logging.getLogger(__name__)


class ObsPhase(str, Enum):
    ARGS = "ARGS"
    GATE = "GATE"
    EXECUTE = "EXECUTE"
    IDLE_BEFORE_TEARDOWN = "IDLE_BEFORE_TEARDOWN"
    TEARDOWN = "TEARDOWN"
    IDLE_BEFORE_NEXT = "IDLE_BEFORE_NEXT"


class ObsOutcome(str, Enum):
    OK = "OK"
    FAIL = "FAIL"
    TIMEOUT = "TIMEOUT"
    SKIP = "SKIP"


class ObsSeverity(str, Enum):
    INFO = "INFO"
    ERROR = "ERROR"


@dataclass(frozen=True)
class ObsEvent:
    event_kind: str
    phase: ObsPhase
    outcome: ObsOutcome
    severity: ObsSeverity
    pins: dict[str, Any]
    ts_utc: str
    details: dict[str, Any] | None = None

    @classmethod
    def now(
        cls,
        *,
        event_kind: str,
        phase: ObsPhase,
        outcome: ObsOutcome,
        severity: ObsSeverity,
        pins: dict[str, Any],
        details: dict[str, Any] | None = None,
    ) -> "ObsEvent":
        return cls(
            event_kind=event_kind,
            phase=phase,
            outcome=outcome,
            severity=severity,
            pins=pins,
            ts_utc=datetime.now(tz=timezone.utc).isoformat(),
            details=details,
        )

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "event_kind": self.event_kind,
            "phase": self.phase.value,
            "outcome": self.outcome.value,
            "severity": self.severity.value,
            "pins": self.pins,
            "ts_utc": self.ts_utc,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class ObsSink:
    def emit(self, event: ObsEvent) -> None:
        raise NotImplementedError


class NullObsSink(ObsSink):
    def emit(self, event: ObsEvent) -> None:
        return


class CompositeObsSink(ObsSink):
    def __init__(self, sinks: list[ObsSink]) -> None:
        self.sinks = sinks

    def emit(self, event: ObsEvent) -> None:
        for sink in self.sinks:
            try:
                sink.emit(event)
            except Exception:
                logger.warning("SSR: obs sink %s failed", type(sink).__name__, exc_info=True)
                continue


class ConsoleObsSink(ObsSink):
    """Writes one JSON line per event; the CLI points it at stdout."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream

    def emit(self, event: ObsEvent) -> None:
        stream = self.stream or sys.stdout
        stream.write(json.dumps(event.to_dict(), sort_keys=True, ensure_ascii=True) + "\n")
        stream.flush()


_IDLE_PHASES = (ObsPhase.IDLE_BEFORE_TEARDOWN, ObsPhase.IDLE_BEFORE_NEXT)


class MetricsObsSink(ObsSink):
    """Per-run tallies: event counts, outcomes, and time spent in each phase."""

    def __init__(self) -> None:
        self.counters: Counter[str] = Counter()
        self.outcome_counters: Counter[str] = Counter()
        self.phase_ms: dict[ObsPhase, list[int]] = defaultdict(list)

    def emit(self, event: ObsEvent) -> None:
        self.counters[event.event_kind] += 1
        self.outcome_counters[event.outcome.value] += 1
        duration = (event.details or {}).get("duration_ms")
        if isinstance(duration, int):
            self.phase_ms[event.phase].append(duration)

    def idle_ms(self) -> int:
        return sum(sum(self.phase_ms.get(phase, [])) for phase in _IDLE_PHASES)

    def snapshot(self) -> dict[str, Any]:
        return {
            "counters": dict(self.counters),
            "outcomes": dict(self.outcome_counters),
            "phase_ms": {
                phase.value: {"count": len(values), "total_ms": sum(values), "max_ms": max(values)}
                for phase, values in self.phase_ms.items()
                if values
            },
            "idle_ms": self.idle_ms(),
        }
