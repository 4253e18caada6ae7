from __future__ import annotations

import pytest

from longevity.scheduled_runner.arguments import ArgumentStore, scoped
from longevity.scheduled_runner.errors import ArgumentError
from longevity.scheduled_runner.models import ExtraArg


def test_override_merges_and_leaves_other_keys() -> None:
    store = ArgumentStore({"a": "1", "b": "2"})
    store.override([ExtraArg(key="b", value="20"), ("c", "3")])
    assert store.as_dict() == {"a": "1", "b": "20", "c": "3"}


def test_restore_reproduces_prior_pairs() -> None:
    store = ArgumentStore({"a": "1", "b": "2"})
    before = store.as_dict()
    token = store.override([("b", "20"), ("c", "3")])
    store.restore(token)
    assert store.same_string_pairs(before)
    assert "c" not in store


def test_restore_applies_once() -> None:
    store = ArgumentStore({"a": "1"})
    token = store.override([("a", "2")])
    store.restore(token)
    store.override([("a", "3")])
    store.restore(token)
    assert store.get("a") == "3"


def test_scoped_restores_when_body_raises() -> None:
    store = ArgumentStore({"a": "1"})
    with pytest.raises(RuntimeError):
        with scoped(store, [("a", "2"), ("z", "9")]):
            assert store.get("a") == "2"
            raise RuntimeError("journey failed")
    assert store.as_dict() == {"a": "1"}


def test_invalid_extra_rolls_back_partial_override() -> None:
    store = ArgumentStore({"a": "1"})
    with pytest.raises(ArgumentError):
        store.override([("a", "2"), ("b", 3)])  # type: ignore[list-item]
    assert store.as_dict() == {"a": "1"}


def test_malformed_extra_rolls_back_partial_override() -> None:
    store = ArgumentStore({"a": "orig"})
    with pytest.raises(ValueError):
        store.override([("a", "new"), ("b", "2", "3")])  # type: ignore[list-item]
    assert store.as_dict() == {"a": "orig"}
    assert "b" not in store


def test_get_int() -> None:
    store = ArgumentStore({"n": " 42 ", "bad": "x"})
    assert store.get_int("n", 0) == 42
    assert store.get_int("missing", 7) == 7
    with pytest.raises(ArgumentError):
        store.get_int("bad", 0)


def test_same_string_pairs_is_order_independent() -> None:
    first = ArgumentStore({"a": "1", "b": "2"})
    second = ArgumentStore({"b": "2", "a": "1"})
    assert first.same_string_pairs(second)
    assert not first.same_string_pairs({"a": "1"})
