"""Explicit argument store with scoped per-scenario overrides."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
import logging
from typing import Any, Iterable, Iterator, Mapping

from .errors import ArgumentError
from .models import ExtraArg


logger = logging.getLogger(__name__)


@dataclass
class ArgumentToken:
    """Snapshot of the store taken before an override."""

    snapshot: dict[str, str]
    restored: bool = field(default=False)


class ArgumentStore:
    """Shared key/value arguments read by journeys.

    One scenario at a time may hold an override; the store does no locking.
    """

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, str] = {}
        for key, value in (values or {}).items():
            self._values[str(key)] = str(value)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._values.get(key, default)

    def get_int(self, key: str, default: int) -> int:
        raw = self._values.get(key)
        if raw is None or not raw.strip():
            return default
        try:
            return int(raw.strip())
        except ValueError as exc:
            raise ArgumentError(f"{key}={raw!r} is not an integer") from exc

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def as_dict(self) -> dict[str, str]:
        return dict(self._values)

    def snapshot(self) -> ArgumentToken:
        return ArgumentToken(snapshot=dict(self._values))

    def override(self, extras: Iterable[ExtraArg | tuple[str, str]]) -> ArgumentToken:
        token = self.snapshot()
        try:
            for key, value in _pairs(extras):
                self._values[key] = value
        except BaseException:
            self._values = dict(token.snapshot)
            token.restored = True
            raise
        return token

    def restore(self, token: ArgumentToken) -> None:
        if token.restored:
            logger.debug("SSR: argument token already restored; ignoring")
            return
        self._values = dict(token.snapshot)
        token.restored = True

    def same_string_pairs(self, other: "ArgumentStore | Mapping[str, str]") -> bool:
        theirs = other.as_dict() if isinstance(other, ArgumentStore) else dict(other)
        return self._values == {str(k): v for k, v in theirs.items() if isinstance(v, str)}


def _pairs(extras: Iterable[ExtraArg | tuple[str, str]]) -> Iterator[tuple[str, str]]:
    for extra in extras:
        if isinstance(extra, ExtraArg):
            key, value = extra.key, extra.value
        else:
            key, value = extra
        if not isinstance(key, str) or not isinstance(value, str):
            raise ArgumentError(f"extra argument must be str->str, got {key!r}={value!r}")
        yield key, value


@contextmanager
def scoped(store: ArgumentStore, extras: Iterable[ExtraArg | tuple[str, str]]) -> Iterator[ArgumentStore]:
    token = store.override(extras)
    try:
        yield store
    finally:
        store.restore(token)
