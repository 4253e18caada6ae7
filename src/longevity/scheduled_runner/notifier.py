"""Run listeners and the notifier that fans events out to them."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

from .models import Failure, JourneyDescription


logger = logging.getLogger(__name__)


class RunListener:
    def test_started(self, description: JourneyDescription) -> None:
        return

    def test_failure(self, failure: Failure) -> None:
        return

    def test_ignored(self, description: JourneyDescription) -> None:
        return

    def test_finished(self, description: JourneyDescription) -> None:
        return


class RunNotifier:
    def __init__(self, listeners: list[RunListener] | None = None) -> None:
        self.listeners: list[RunListener] = list(listeners or [])

    def add_listener(self, listener: RunListener) -> None:
        self.listeners.append(listener)

    def fire_test_started(self, description: JourneyDescription) -> None:
        self._fire("test_started", description)

    def fire_test_failure(self, failure: Failure) -> None:
        self._fire("test_failure", failure)

    def fire_test_ignored(self, description: JourneyDescription) -> None:
        self._fire("test_ignored", description)

    def fire_test_finished(self, description: JourneyDescription) -> None:
        self._fire("test_finished", description)

    def _fire(self, method: str, payload: Any) -> None:
        for listener in list(self.listeners):
            try:
                getattr(listener, method)(payload)
            except Exception:
                logger.exception("SSR: listener %s failed on %s", type(listener).__name__, method)


@dataclass(frozen=True)
class ListenerEvent:
    kind: str
    description: JourneyDescription
    failure: Failure | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kind": self.kind, **self.description.as_dict()}
        if self.failure is not None:
            payload["failure"] = self.failure.as_dict()
        return payload


class RecordingListener(RunListener):
    def __init__(self) -> None:
        self.events: list[ListenerEvent] = []

    def test_started(self, description: JourneyDescription) -> None:
        self.events.append(ListenerEvent("started", description))

    def test_failure(self, failure: Failure) -> None:
        self.events.append(ListenerEvent("failure", failure.description, failure))

    def test_ignored(self, description: JourneyDescription) -> None:
        self.events.append(ListenerEvent("ignored", description))

    def test_finished(self, description: JourneyDescription) -> None:
        self.events.append(ListenerEvent("finished", description))

    def kinds(self) -> list[str]:
        return [event.kind for event in self.events]

    @property
    def failures(self) -> list[Failure]:
        return [event.failure for event in self.events if event.failure is not None]

    @property
    def ignored(self) -> list[JourneyDescription]:
        return [event.description for event in self.events if event.kind == "ignored"]

    @property
    def started(self) -> list[JourneyDescription]:
        return [event.description for event in self.events if event.kind == "started"]

    @property
    def finished(self) -> list[JourneyDescription]:
        return [event.description for event in self.events if event.kind == "finished"]
