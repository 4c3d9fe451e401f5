"""Exceptions raised by the graph.

Exceptions raised by wrapped computations are never caught or wrapped: they
reach the caller of the read, invocation or ``set`` that triggered them.
"""

from __future__ import annotations


class SpreadcellError(Exception):
    """Base class for graph errors."""


class BindingArityError(SpreadcellError, TypeError):
    """More bind arguments than open slots, or a read with unfilled slots."""


class CyclicDependencyError(SpreadcellError, RuntimeError):
    """A node was reached again before it was resolved.

    Raised for dependency cycles found while planning an evaluation, and for
    mutations or reads issued from inside a running computation. Nodes that
    were not evaluated stay dirty; cached values already written are kept.
    """

    def __init__(self, message: str, nodes: tuple[int, ...] = ()) -> None:
        super().__init__(message)
        self.nodes = nodes
