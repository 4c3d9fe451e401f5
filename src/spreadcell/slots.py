"""Binding slots — one per parameter position of a wrapped computation.

A slot is exactly one of:

- ``Literal(value)``: a fixed argument.
- ``Dependency(node)``: the current value of another Node.
- ``Open()``: filled from call-time arguments.

``GAP`` is what callers pass to ``bind_to`` to leave a slot open.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from spreadcell.node import Node


class _Gap:
    """The gap sentinel. There is exactly one instance: ``GAP``."""

    __slots__ = ()
    _instance: _Gap | None = None

    def __new__(cls) -> _Gap:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "GAP"

    def __reduce__(self):
        return (_Gap, ())


GAP = _Gap()


class Literal:
    __slots__ = ("value",)

    dependency_id = None
    is_open = False

    def __init__(self, value: Any) -> None:
        self.value = value

    def __repr__(self) -> str:
        return f"Literal({self.value!r})"


class Dependency:
    __slots__ = ("node",)

    is_open = False

    def __init__(self, node: Node) -> None:
        self.node = node

    @property
    def dependency_id(self) -> int:
        return self.node._id

    def __repr__(self) -> str:
        return f"Dependency(#{self.node._id})"


class Open:
    __slots__ = ()

    dependency_id = None
    is_open = True

    def __repr__(self) -> str:
        return "Open()"


def classify(arg: Any) -> Literal | Dependency | Open:
    """Turn one ``bind_to`` argument into a slot."""
    # Local import: node imports this module.
    from spreadcell.node import Node

    if arg is GAP:
        return Open()
    if isinstance(arg, Node):
        return Dependency(arg)
    return Literal(arg)
