"""Journey contract and identifier resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
import importlib
import threading

from .arguments import ArgumentStore
from .errors import InitializationError, JourneyCancelled


@dataclass
class JourneyContext:
    arguments: ArgumentStore
    cancelled: threading.Event = field(default_factory=threading.Event)

    def idle(self, duration_ms: int) -> bool:
        """Sleep cooperatively; returns True if cut short by cancellation."""
        if duration_ms <= 0:
            return self.cancelled.is_set()
        return self.cancelled.wait(duration_ms / 1000.0)

    def check_cancelled(self) -> None:
        if self.cancelled.is_set():
            raise JourneyCancelled("journey cancelled at deadline")


class Journey:
    """A test unit exercised by one scenario.

    Subclasses implement `run`; `set_up` runs inside the same deadline and
    `tear_down` runs afterwards inside the teardown leeway.
    """

    def set_up(self, ctx: JourneyContext) -> None:
        return None

    def run(self, ctx: JourneyContext) -> None:
        raise NotImplementedError

    def tear_down(self, ctx: JourneyContext) -> None:
        return None


def _import_attr(module_name: str, qualname: str) -> object:
    obj: object = importlib.import_module(module_name)
    for part in qualname.split("."):
        obj = getattr(obj, part)
    return obj


def _locate(identifier: str) -> object:
    if ":" in identifier:
        module_name, qualname = identifier.split(":", 1)
        return _import_attr(module_name, qualname)
    parts = identifier.split(".")
    # Longest importable module prefix wins; the rest is the qualified name.
    for split in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:split])
        try:
            importlib.import_module(module_name)
        except ImportError:
            continue
        return _import_attr(module_name, ".".join(parts[split:]))
    raise ImportError(f"no importable module in {identifier!r}")


def resolve_journey(journey: str | type) -> type:
    if isinstance(journey, type):
        target: object = journey
        label = journey.__qualname__
    else:
        label = str(journey or "").strip()
        if not label:
            raise InitializationError("empty journey identifier")
        try:
            target = _locate(label)
        except (ImportError, AttributeError, ValueError) as exc:
            raise InitializationError(f"{label} ({exc})") from exc
    if not isinstance(target, type):
        raise InitializationError(f"{label} is not a class")
    if not callable(getattr(target, "run", None)):
        raise InitializationError(f"{label} has no run() method")
    return target
