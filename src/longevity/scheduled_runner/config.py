"""Configuration loader for runner profiles and scenario descriptors."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ProfileError
from .filters import FILTER_OPTION
from .models import ScenarioDescriptor
from .runner import TEARDOWN_LEEWAY_DEFAULT_MS, TEARDOWN_LEEWAY_OPTION
from .timeout import DEFAULT_CANCEL_GRACE_MS
from .waiter import DEFAULT_ALARM_POLL_MS

_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


class RunnerProfile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    profile_id: str = "local"
    teardown_leeway_ms: int = Field(default=TEARDOWN_LEEWAY_DEFAULT_MS, ge=0)
    alarm_poll_ms: int = Field(default=DEFAULT_ALARM_POLL_MS, ge=1)
    cancel_grace_ms: int = Field(default=DEFAULT_CANCEL_GRACE_MS, ge=0)
    exclude: list[str] = []
    arguments: dict[str, str] = {}

    def as_options(self) -> dict[str, str]:
        options = dict(self.arguments)
        if "teardown_leeway_ms" in self.model_fields_set:
            options[TEARDOWN_LEEWAY_OPTION] = str(self.teardown_leeway_ms)
        if self.exclude:
            options[FILTER_OPTION] = ",".join(self.exclude)
        return options


def _expand_str(value: str) -> str:
    def replacer(match: re.Match[str]) -> str:
        token = match.group(1)
        if ":-" in token:
            key, default = token.split(":-", 1)
            actual = os.getenv(key, "")
            return actual if actual.strip() else default
        actual = os.getenv(token, "")
        if not actual.strip():
            raise ProfileError(f"missing environment variable: {token}")
        return actual

    return _VAR_PATTERN.sub(replacer, value)


def _expand_payload(value: Any) -> Any:
    if isinstance(value, str):
        return _expand_str(value)
    if isinstance(value, list):
        return [_expand_payload(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _expand_payload(item) for key, item in value.items()}
    return value


def _load_mapping(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ProfileError(f"{path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ProfileError(f"{path}: expected a mapping")
    return _expand_payload(data)


def load_profile(path: Path) -> RunnerProfile:
    payload = _load_mapping(path)
    try:
        return RunnerProfile(**payload)
    except ValidationError as exc:
        raise ProfileError(f"{path}: {exc}") from exc


def load_scenario(path: Path) -> ScenarioDescriptor:
    payload = _load_mapping(path)
    if "scenario" in payload and isinstance(payload["scenario"], dict):
        payload = payload["scenario"]
    try:
        return ScenarioDescriptor(**payload)
    except ValidationError as exc:
        raise ProfileError(f"{path}: {exc}") from exc
