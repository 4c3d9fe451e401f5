"""Actions and transactions — batched state mutations.

Inside an @action or `with transaction()`, StateCell writes and node
invocations still mark their downstream nodes dirty right away, so reads
inside the scope see fresh values. The recompute of everything downstream is
held back: when the outermost scope exits, all mutated roots go through a
single wave, and a node fed by several of them runs once.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, ParamSpec, TypeVar

from spreadcell._propagation import begin_batch, end_batch

P = ParamSpec("P")
R = TypeVar("R")


@contextmanager
def transaction():
    """Context manager for batching mutations.

    The wave runs on exit even if the block raised, so nodes never stay
    dirty because of an aborted batch.

    Usage:
        width = StateCell(2)
        height = StateCell(3)
        area = wrap(lambda w, h: w * h).bind_to(width, height)

        with transaction():
            width.set(4)
            height.set(5)
            area()  # 20, pulled early; the wave will not rerun it
        # anything else bound to width/height is recomputed here, once
    """
    begin_batch()
    try:
        yield
    finally:
        end_batch()


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: run fn inside a transaction().

    Usage:
        @action
        def resize(w, h):
            width.set(w)
            height.set(h)
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with transaction():
            return fn(*args, **kwargs)

    return wrapper
