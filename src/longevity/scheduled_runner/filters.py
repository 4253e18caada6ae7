"""Exclusion gate for journeys listed in the filter option."""

from __future__ import annotations

from typing import Iterable

FILTER_OPTION = "exclude-class"


def canonical_name(journey: type) -> str:
    return f"{journey.__module__}.{journey.__qualname__}"


def normalize_name(name: str) -> str:
    return name.strip().replace(":", ".")


def parse_filter(filter_spec: str | Iterable[str] | None) -> frozenset[str]:
    if filter_spec is None:
        return frozenset()
    if isinstance(filter_spec, str):
        items: Iterable[str] = filter_spec.split(",")
    else:
        items = filter_spec
    return frozenset(normalize_name(item) for item in items if item and item.strip())


def is_excluded(filter_spec: str | Iterable[str] | None, journey_name: str) -> bool:
    if not journey_name:
        return False
    return normalize_name(journey_name) in parse_filter(filter_spec)
