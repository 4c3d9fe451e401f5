"""Nodes — wrapped computations in the dependency graph.

A Node wraps a callable. Each positional parameter of the callable is a
binding slot: bind_to() fills slots with literals or other Nodes, or leaves
them open with GAP. Calling the Node returns its cached value, recomputing
only when something upstream changed.

All state lives in _anchor — instances are thin handles holding an _id.
"""

from __future__ import annotations

import functools
import inspect
import weakref
from typing import Any, Callable, Generic, TypeVar

from spreadcell import _anchor, _propagation
from spreadcell.errors import BindingArityError
from spreadcell.slots import Open, classify

T = TypeVar("T")

_UNSET = object()


class _NoContext:
    __slots__ = ()

    def __repr__(self) -> str:
        return "NO_CONTEXT"


# Default for wrap(context=...): the computation gets no receiver.
NO_CONTEXT = _NoContext()

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def _shape(fn: Callable) -> tuple[int, int, bool]:
    """(positional parameters, required positional parameters, takes *args)."""
    try:
        params = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        return 0, 0, True
    positional = [p for p in params if p.kind in _POSITIONAL]
    required = sum(1 for p in positional if p.default is p.empty)
    variadic = any(p.kind is p.VAR_POSITIONAL for p in params)
    return len(positional), required, variadic


class Node(Generic[T]):
    """A computation whose value is cached and refreshed by propagation."""

    __slots__ = ("_id", "__weakref__")

    def __init__(self, computation: Callable[..., T], context: Any = NO_CONTEXT) -> None:
        if not callable(computation):
            raise TypeError(f"computation must be callable, got {computation!r}")
        if context is NO_CONTEXT:
            shape = _shape(computation)
        else:
            shape = _shape(functools.partial(computation, context))
        self._attach(_anchor.new_id(), computation, context, shape)

    def _attach(
        self,
        node_id: int,
        computation: Callable[..., T],
        context: Any,
        shape: tuple[int, int, bool],
    ) -> None:
        positional, required, variadic = shape
        self._id = node_id
        _anchor.computations[node_id] = computation
        if context is not NO_CONTEXT:
            _anchor.contexts[node_id] = context
        _anchor.arity[node_id] = (required, variadic)
        _anchor.bindings[node_id] = [Open() for _ in range(positional)]
        _anchor.dependents[node_id] = {}
        _anchor.cached_values[node_id] = _UNSET
        _anchor.dirty_flags[node_id] = True
        _anchor.call_args[node_id] = ()
        weakref.finalize(self, _anchor.release, node_id)

    @property
    def id(self) -> int:
        return self._id

    @property
    def dirty(self) -> bool:
        return _anchor.dirty_flags[self._id]

    @property
    def slots(self) -> tuple:
        """Snapshot of the binding slots, left to right."""
        return tuple(_anchor.bindings[self._id])

    @property
    def dependents(self) -> tuple[int, ...]:
        """Ids of the nodes bound to this one."""
        return tuple(_anchor.dependents[self._id])

    def __call__(self, *args: Any) -> T:
        """Return the current value.

        With no arguments this is a read: a clean node answers from cache.
        Any explicit arguments fill the open slots, are remembered for later
        waves and reads, and start a wave rooted here, even when they equal
        the previous ones.
        """
        if not args:
            return _propagation.read(self._id)
        _propagation.ensure_idle(f"invoke {self!r} with arguments")
        _anchor.call_args[self._id] = args
        _propagation.mutate(self._id)
        return _propagation.read(self._id)

    def bind_to(self, *args: Any) -> Node[T]:
        """Fill open slots left to right. Returns self.

        GAP keeps a slot open, a Node becomes a dependency, anything else is
        a literal. Bound slots are never overwritten: supplying more
        arguments than there are open slots raises BindingArityError.
        """
        _propagation.ensure_idle(f"bind {self!r}")
        slots = _anchor.bindings[self._id]
        open_positions = [i for i, slot in enumerate(slots) if slot.is_open]
        _, variadic = _anchor.arity[self._id]
        if len(args) > len(open_positions) and not variadic:
            raise BindingArityError(
                f"{self!r} has {len(open_positions)} open slot(s), "
                f"got {len(args)} bind argument(s)"
            )

        for position, arg in enumerate(args):
            slot = classify(arg)
            if position < len(open_positions):
                slots[open_positions[position]] = slot
            else:
                slots.append(slot)
            if slot.dependency_id is not None:
                _anchor.dependents[slot.dependency_id][self._id] = None

        _propagation.invalidate(self._id)
        return self

    def dispose(self) -> None:
        """Unbind every slot and drop the cached value.

        The node stops being a dependent of anything; nodes bound to it stay
        bound and become dirty.
        """
        _propagation.ensure_idle(f"dispose {self!r}")
        slots = _anchor.bindings[self._id]
        for i, slot in enumerate(slots):
            dep_id = slot.dependency_id
            if dep_id is not None:
                _anchor.dependents[dep_id].pop(self._id, None)
            slots[i] = Open()
        _anchor.cached_values[self._id] = _UNSET
        _anchor.call_args[self._id] = ()
        _propagation.invalidate(self._id)

    def _name(self) -> str:
        fn = _anchor.computations[self._id]
        return getattr(fn, "__name__", type(fn).__name__)

    def __repr__(self) -> str:
        dirty = _anchor.dirty_flags[self._id]
        val = _anchor.cached_values[self._id]
        state = "dirty" if dirty else f"cached={val!r}"
        return f"Node({self._name()}, {state})"


def wrap(computation: Callable[..., T], context: Any = NO_CONTEXT) -> Node[T]:
    """Wrap a callable into a Node.

    When context is given it is passed as the first argument of every call,
    like a bound method's self, and takes no binding slot.

    Usage:
        greet = wrap(lambda name: "Hello " + name).bind_to("Jane")
        greet()  # "Hello Jane"

        total = wrap(lambda a, b, c: a + b + c).bind_to(a, GAP, c)
        total(10)  # a() + 10 + c()
    """
    return Node(computation, context)
