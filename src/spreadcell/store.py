"""Store — key-based StateCell container with node lifecycle.

A Store wraps a schema of named StateCells. Nodes bound to its cells can be
registered with track() so dispose() detaches them all at once.
"""

from __future__ import annotations

from spreadcell.action import action
from spreadcell.node import Node
from spreadcell.state import StateCell


class Store:
    """Key-based StateCell container."""

    def __init__(self, schema: dict[str, object], initial: dict | None = None) -> None:
        self._cells: dict[str, StateCell] = {}
        self._nodes: list[Node] = []
        for key, default in schema.items():
            value = initial.get(key, default) if initial else default
            self._cells[key] = StateCell(value)

    def cell(self, key: str) -> StateCell:
        """The StateCell behind key, for binding nodes to."""
        return self._cells[key]

    def get(self, key: str) -> object:
        cell = self._cells.get(key)
        return cell.get() if cell is not None else None

    def set(self, key: str, value: object) -> None:
        cell = self._cells.get(key)
        if cell is not None:
            cell.set(value)

    @action
    def update(self, values: dict) -> None:
        for key, value in values.items():
            self.set(key, value)

    def track(self, node: Node) -> Node:
        """Keep node alive with the store and dispose it with the store."""
        self._nodes.append(node)
        return node

    def dispose(self) -> None:
        for node in self._nodes:
            node.dispose()
        self._nodes.clear()
