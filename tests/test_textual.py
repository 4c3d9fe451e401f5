"""Tests for spreadcell.textual — Textual integration layer."""

import threading

import pytest
from textual.css.query import NoMatches

from spreadcell import StateCell
from spreadcell import textual as stx


class _MockApp:
    """Minimal mock matching the Textual App interface stx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


class TestWrap:
    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        s = StateCell(1)
        effects = []
        keep = stx.wrap(app, lambda v: effects.append(v)).bind_to(s)
        s.set(2)
        assert effects == []
        assert keep() is None

    def test_skips_during_pause(self):
        app = _MockApp()
        s = StateCell(1)
        effects = []
        keep = stx.wrap(app, lambda v: effects.append(v)).bind_to(s)
        with stx.pause(app):
            s.set(2)
        assert effects == []
        s.set(3)
        assert effects == [3]
        assert not keep.dirty

    def test_fires_when_safe(self):
        app = _MockApp()
        s = StateCell(1)
        effects = []
        keep = stx.wrap(app, lambda v: effects.append(v)).bind_to(s)
        s.set(2)
        assert effects == [2]
        assert not keep.dirty

    def test_returns_value_when_safe(self):
        app = _MockApp()
        s = StateCell(4)
        label = stx.wrap(app, lambda v: f"count: {v}").bind_to(s)
        assert label() == "count: 4"

    def test_keeps_parameters_as_slots(self):
        app = _MockApp()
        node = stx.wrap(app, lambda a, b: a + b)
        assert len(node.slots) == 2

    def test_context_receiver(self):
        app = _MockApp()

        class Panel:
            title = "Stats"

        node = stx.wrap(app, lambda self, v: f"{self.title}: {v}", Panel()).bind_to(7)
        assert len(node.slots) == 1
        assert node() == "Stats: 7"

    def test_catches_nomatch(self):
        """NoMatches from widget queries are silently swallowed."""
        app = _MockApp()
        s = StateCell(1)

        def _raise_nomatch(v):
            raise NoMatches("StatusFooter")

        # Should not raise
        keep = stx.wrap(app, _raise_nomatch).bind_to(s)
        s.set(2)
        assert keep() is None

    def test_propagates_real_errors(self):
        """Non-NoMatches exceptions propagate normally."""
        app = _MockApp()
        s = StateCell(1)

        def _raise_value_error(v):
            raise ValueError("boom")

        keep = stx.wrap(app, _raise_value_error).bind_to(s)
        with pytest.raises(ValueError, match="boom"):
            s.set(2)
        assert keep.dirty

    def test_dispose_stops_updates(self):
        app = _MockApp()
        s = StateCell(1)
        effects = []
        node = stx.wrap(app, lambda v: effects.append(v)).bind_to(s)
        s.set(2)
        assert effects == [2]
        node.dispose()
        s.set(3)
        assert effects == [2]

    def test_thread_marshal(self):
        """Waves from a background thread use call_from_thread."""
        app = _MockApp()
        s = StateCell(1)
        effects = []
        keep = stx.wrap(app, lambda v: effects.append(v)).bind_to(s)

        def _bg():
            s.set(2)

        t = threading.Thread(target=_bg)
        t.start()
        t.join()

        assert effects == [2]
        assert len(app._call_from_thread_log) == 1
        assert keep() is None


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert stx.is_safe(app)

        with pytest.raises(RuntimeError):
            with stx.pause(app):
                assert not stx.is_safe(app)
                raise RuntimeError("oops")

        # Restored despite exception
        assert stx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        """Pause state lives in the module, not on the app."""
        app = _MockApp()
        attrs_before = set(vars(app))
        with stx.pause(app):
            attrs_during = set(vars(app))
        attrs_after = set(vars(app))
        assert attrs_before == attrs_during, (
            f"pause() added attributes to app: {attrs_during - attrs_before}"
        )
        assert attrs_before == attrs_after

    def test_multiple_apps_independent(self):
        """Pausing one app does not affect another."""
        app_a = _MockApp()
        app_b = _MockApp()
        with stx.pause(app_a):
            assert not stx.is_safe(app_a)
            assert stx.is_safe(app_b)
