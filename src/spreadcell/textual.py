"""Textual integration for spreadcell. Opt-in — requires textual.

Nodes that update widgets are wrapped here so a wave never touches a widget
tree that is not ready: evaluation is skipped while the app is stopped or
paused, NoMatches from widget queries is swallowed, and evaluation from a
background thread is marshaled through call_from_thread.

_paused_apps has a single owner (this module) and is keyed by id(app):
an id is present exactly while inside a pause() context.
"""

import functools
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches
from spreadcell.node import NO_CONTEXT, Node

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded nodes during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def wrap(app, fn, context=NO_CONTEXT) -> Node:
    """wrap() for computations that update Textual widgets.

    The node keeps fn's parameters as its binding slots. While the app is
    not safe the computation is skipped and the node caches None; it runs
    again on the next wave that reaches it.
    """
    _main = threading.get_ident()

    @functools.wraps(fn)
    def _guarded(*args):
        if not is_safe(app):
            return None
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, *args)
            return None
        return _safe(*args)

    def _safe(*args):
        try:
            return fn(*args)
        except NoMatches:
            return None

    return Node(_guarded, context)
