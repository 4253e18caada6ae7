"""Scenario descriptor, run outcome and notifier payload models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AfterTest(str, Enum):
    STAY_IN_APP = "STAY_IN_APP"
    EXIT = "EXIT"


class RunStatus(str, Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"
    IGNORED = "IGNORED"


class ExtraArg(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str = Field(..., min_length=1)
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def _scalar_to_str(cls, value: Any) -> Any:
        if isinstance(value, (int, float, bool)):
            return str(value).lower() if isinstance(value, bool) else str(value)
        return value


class ScenarioDescriptor(BaseModel):
    """One scheduled journey execution; read-only to the runner.

    `at` is display-only and takes no part in timing arithmetic.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    at: str = ""
    journey: str = ""
    after_test: AfterTest = AfterTest.STAY_IN_APP
    extras: tuple[ExtraArg, ...] = ()

    @field_validator("extras", mode="before")
    @classmethod
    def _coerce_extras(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return tuple({"key": str(key), "value": str(item)} for key, item in value.items())
        return value

    def extra_pairs(self) -> list[tuple[str, str]]:
        return [(extra.key, extra.value) for extra in self.extras]


@dataclass(frozen=True)
class RunOutcome:
    status: RunStatus
    elapsed_ms: int
    error: BaseException | None = None

    @property
    def passed(self) -> bool:
        return self.status == RunStatus.PASSED


@dataclass(frozen=True)
class JourneyDescription:
    journey_name: str
    scenario_at: str = ""

    @property
    def display_name(self) -> str:
        if self.scenario_at:
            return f"{self.journey_name}@{self.scenario_at}"
        return self.journey_name

    def as_dict(self) -> dict[str, Any]:
        return {"journey": self.journey_name, "at": self.scenario_at}


@dataclass(frozen=True)
class Failure:
    description: JourneyDescription
    exception: BaseException

    @property
    def message(self) -> str:
        return str(self.exception)

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            **self.description.as_dict(),
            "error_type": type(self.exception).__name__,
            "message": self.message,
        }
        timeout = getattr(self.exception, "timeout", None)
        if timeout is not None:
            payload["timeout"] = timeout
            payload["unit"] = getattr(self.exception, "unit", "ms")
        return payload
