"""Data anchor — plain Python structures that hold all graph state.

Every Node and StateCell is a thin handle holding an ``_id``; its state lives
here, keyed by that id. Back-edges (``dependents``) are ids, never handles,
so they do not keep downstream nodes alive.
"""

import itertools

# Computation
computations: dict[int, object] = {}  # node_id -> callable
contexts: dict[int, object] = {}  # node_id -> fixed receiver (absent when none)
arity: dict[int, tuple[int, bool]] = {}  # node_id -> (required, variadic)

# Edges
bindings: dict[int, list] = {}  # node_id -> list of slots
dependents: dict[int, dict[int, None]] = {}  # node_id -> ordered set of node ids

# Cache
cached_values: dict[int, object] = {}
dirty_flags: dict[int, bool] = {}
call_args: dict[int, tuple] = {}  # node_id -> last call-time arguments

# StateCell values
values: dict[int, object] = {}

_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)


def release(node_id: int) -> None:
    """Drop every entry for a collected handle and unlink its back-edges."""
    for slot in bindings.pop(node_id, ()):
        dep_id = slot.dependency_id
        if dep_id is not None and dep_id in dependents:
            dependents[dep_id].pop(node_id, None)
    for table in (computations, contexts, arity, dependents, cached_values,
                  dirty_flags, call_args, values):
        table.pop(node_id, None)
