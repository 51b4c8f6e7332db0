"""Tests for State snapshots and merge()."""

from functools import reduce

import pytest

from asyncstate import State, StateContractError, UnknownFieldError, merge


class TestState:
    def test_defaults_to_loading(self):
        s = State({"value": 0})
        assert s.loading is True
        assert s["value"] == 0

    def test_as_dict(self):
        s = State({"value": 1, "label": "x"}, loading=False)
        assert s.as_dict() == {"value": 1, "label": "x", "loading": False}

    def test_value_is_read_only(self):
        s = State({"value": 0})
        with pytest.raises(TypeError):
            s.value["value"] = 1  # type: ignore[index]

    def test_copies_input_mapping(self):
        data = {"value": 0}
        s = State(data)
        data["value"] = 99
        assert s["value"] == 0

    def test_equality_ignores_hook(self):
        assert State({"a": 1}, update_state=lambda **kw: None) == State({"a": 1})
        assert State({"a": 1}, loading=True) != State({"a": 1}, loading=False)

    def test_reserved_fields_rejected(self):
        with pytest.raises(StateContractError, match="loading"):
            State({"loading": False})

    def test_repr(self):
        assert repr(State({"a": 1})) == "State({'a': 1}, loading=True)"


class TestMerge:
    def test_patch_overwrites_absent_fields_persist(self):
        s = State({"a": 1, "b": 2})
        merged = merge(s, {"b": 20})
        assert dict(merged.value) == {"a": 1, "b": 20}
        assert dict(s.value) == {"a": 1, "b": 2}  # original untouched

    def test_preserves_field_order(self):
        s = State({"a": 1, "b": 2, "c": 3})
        assert list(merge(s, {"c": 30, "a": 10})) == ["a", "b", "c"]

    def test_loading_override(self):
        s = State({"a": 1})
        assert merge(s, {}, loading=False).loading is False
        assert merge(s, {"a": 2}).loading is True

    def test_keeps_hook(self):
        calls = []
        s = State({"a": 1}, update_state=lambda **kw: calls.append(kw))
        merge(s, {"a": 2}).update_state(a=3)
        assert calls == [{"a": 3}]

    def test_unknown_field(self):
        with pytest.raises(UnknownFieldError) as exc:
            merge(State({"a": 1}), {"a": 2, "zzz": 0})
        assert exc.value.fields == ["zzz"]

    def test_sequential_patches_equal_left_fold(self):
        seed = State({"a": 0, "b": "x", "c": None})
        patches = [{"a": 1}, {"b": "y"}, {"a": 2, "c": [1]}, {}, {"b": "z"}]

        stepwise = seed
        for patch in patches:
            stepwise = merge(stepwise, patch)

        folded = reduce(lambda acc, p: {**acc, **p}, patches, dict(seed.value))
        assert dict(stepwise.value) == folded == {"a": 2, "b": "z", "c": [1]}
