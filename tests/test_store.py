"""Tests for Store."""

import pytest

from spreadcell import StateCell, Store, wrap


class TestStore:
    def test_creation_from_schema(self):
        s = Store({"x": 10, "y": "hello"})
        assert s.get("x") == 10
        assert s.get("y") == "hello"

    def test_initial_overrides(self):
        s = Store({"x": 10, "y": "hello"}, initial={"x": 99})
        assert s.get("x") == 99
        assert s.get("y") == "hello"

    def test_get_nonexistent(self):
        s = Store({"x": 1})
        assert s.get("nope") is None

    def test_set(self):
        s = Store({"x": 0})
        s.set("x", 42)
        assert s.get("x") == 42

    def test_set_nonexistent_is_noop(self):
        s = Store({"x": 0})
        s.set("nope", 99)  # no-op, no error

    def test_cell(self):
        s = Store({"x": 0})
        assert isinstance(s.cell("x"), StateCell)
        with pytest.raises(KeyError):
            s.cell("nope")

    def test_update_batches(self):
        s = Store({"x": 0, "y": 0})
        log = []
        s.track(wrap(lambda x, y: log.append((x, y))).bind_to(s.cell("x"), s.cell("y")))
        s.update({"x": 1, "y": 2})
        assert log == [(1, 2)]  # single wave

    def test_propagates_to_bound_nodes(self):
        s = Store({"count": 0})
        doubled = s.track(wrap(lambda c: c * 2).bind_to(s.cell("count")))
        assert doubled() == 0
        s.set("count", 5)
        assert not doubled.dirty
        assert doubled() == 10

    def test_dispose(self):
        s = Store({"x": 0})
        log = []
        s.track(wrap(lambda v: log.append(v)).bind_to(s.cell("x")))
        s.set("x", 1)
        assert log == [1]

        s.dispose()
        s.set("x", 2)
        assert log == [1]  # nodes disposed
