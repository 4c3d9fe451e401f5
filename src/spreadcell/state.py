"""State cells — the roots of every propagation wave.

A StateCell is a Node with no inputs that holds a value directly. set() and
modify() replace the value and push the change through everything bound to
the cell before returning.

Thread safety: call set_scheduler() once from the owning thread. After that,
any set()/modify() from another thread is handed to the scheduler instead of
running in place. Owning-thread writes remain synchronous.
"""

from __future__ import annotations

import functools
import threading
from typing import Callable, TypeVar

from spreadcell import _anchor, _propagation
from spreadcell.node import NO_CONTEXT, Node

T = TypeVar("T")

# ─── Auto-marshal ────────────────────────────────────────────────────────────
_scheduler = None
_scheduler_thread = None


def set_scheduler(scheduler) -> None:
    """Set the global thread scheduler for cross-thread StateCell writes.

    Call once from the main/UI thread:
        spreadcell.set_scheduler(app.call_from_thread)

    After this, any StateCell.set() from a background thread is automatically
    marshaled. Main-thread writes remain synchronous.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread()


class StateCell(Node[T]):
    """A mutable value at the top of the graph."""

    __slots__ = ()

    def __init__(self, initial: T | None = None) -> None:
        cell_id = _anchor.new_id()
        _anchor.values[cell_id] = initial
        self._attach(
            cell_id,
            functools.partial(_anchor.values.__getitem__, cell_id),
            NO_CONTEXT,
            (0, 0, False),
        )

    def __call__(self) -> T:
        return _propagation.read(self._id)

    def get(self) -> T:
        """Read the value without starting a wave."""
        return _anchor.values[self._id]

    def set(self, value: T) -> None:
        """Replace the value and propagate, even if it compares equal."""
        self._marshal(lambda v=value: self._set_direct(v))

    def modify(self, fn: Callable[[T], T]) -> None:
        """Replace the value with fn(current value) and propagate."""
        self._marshal(lambda: self._set_direct(fn(self.get())))

    def _marshal(self, write: Callable[[], None]) -> None:
        if _scheduler is not None and threading.current_thread() != _scheduler_thread:
            _scheduler(write)
        else:
            write()

    def _set_direct(self, value: T) -> None:
        """Store and propagate. Always runs on the scheduler thread."""
        _propagation.ensure_idle(f"set {self!r}")
        _anchor.values[self._id] = value
        _propagation.mutate(self._id)

    def __repr__(self) -> str:
        return f"StateCell({_anchor.values[self._id]!r})"
