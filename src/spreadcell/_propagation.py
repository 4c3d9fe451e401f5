"""Propagation engine — the heart of spreadcell.

A mutation (StateCell.set, a node invoked with new arguments, bind_to,
dispose) first marks its downstream closure dirty, then runs a *wave*: the
affected nodes are ordered topologically and each dirty one is evaluated
exactly once, after all of its dependencies. Reads pull a dirty node's
upstream closure the same way without touching anything downstream.

Every traversal uses an explicit queue, so chain length is bounded by memory,
not by the interpreter's recursion limit.

Batching: mutations inside an @action or `with transaction()` queue their
roots and a single wave runs when the outermost scope exits.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterable

from spreadcell import _anchor
from spreadcell.errors import BindingArityError, CyclicDependencyError

logger = logging.getLogger("spreadcell.propagation")

# Ids of nodes whose computation is running right now, innermost last.
_evaluating: dict[int, None] = {}

# Batch depth counter. When > 0, waves are deferred.
_batch_depth: int = 0

# Roots mutated during a batch, awaiting flush.
_pending: dict[int, None] = {}


def ensure_idle(action: str) -> None:
    """Reject graph mutations issued from inside a running computation."""
    if _evaluating:
        running = next(reversed(_evaluating))
        raise CyclicDependencyError(
            f"cannot {action} while node #{running} is computing",
            tuple(_evaluating),
        )


def invalidate(root_id: int) -> None:
    """Mark root_id and everything downstream of it dirty."""
    seen = {root_id}
    queue = deque([root_id])
    while queue:
        node_id = queue.popleft()
        _anchor.dirty_flags[node_id] = True
        for dependent_id in list(_anchor.dependents.get(node_id, ())):
            if dependent_id not in seen:
                seen.add(dependent_id)
                queue.append(dependent_id)


def mutate(root_id: int) -> None:
    """Invalidate from root_id and run (or, inside a batch, queue) its wave."""
    invalidate(root_id)
    if _batch_depth > 0:
        _pending[root_id] = None
    else:
        run_wave([root_id])


def _dependency_ids(node_id: int) -> dict[int, None]:
    return dict.fromkeys(
        slot.dependency_id
        for slot in _anchor.bindings.get(node_id, ())
        if slot.dependency_id is not None
    )


def plan(root_ids: Iterable[int], *, downstream: bool) -> list[int]:
    """Order the nodes an evaluation from root_ids has to consider.

    The set is the roots, their dependents (transitively, when downstream is
    true) and every dirty dependency upstream of those. The order puts each
    node after its dependencies; ties keep discovery order.
    """
    members: dict[int, None] = dict.fromkeys(root_ids)

    if downstream:
        queue = deque(members)
        while queue:
            node_id = queue.popleft()
            for dependent_id in list(_anchor.dependents.get(node_id, ())):
                if dependent_id not in members:
                    members[dependent_id] = None
                    queue.append(dependent_id)

    queue = deque(members)
    while queue:
        node_id = queue.popleft()
        for dep_id in _dependency_ids(node_id):
            if dep_id not in members and _anchor.dirty_flags.get(dep_id, False):
                members[dep_id] = None
                queue.append(dep_id)

    # Kahn's algorithm over the induced subgraph.
    indegree = {node_id: 0 for node_id in members}
    for node_id in members:
        for dep_id in _dependency_ids(node_id):
            if dep_id in indegree:
                indegree[node_id] += 1

    ready = deque(node_id for node_id, count in indegree.items() if count == 0)
    order: list[int] = []
    while ready:
        node_id = ready.popleft()
        order.append(node_id)
        for dependent_id in list(_anchor.dependents.get(node_id, ())):
            if dependent_id in indegree:
                indegree[dependent_id] -= 1
                if indegree[dependent_id] == 0:
                    ready.append(dependent_id)

    if len(order) < len(members):
        stuck = tuple(node_id for node_id, count in indegree.items() if count > 0)
        logger.warning("Dependency cycle through nodes %s", list(stuck))
        raise CyclicDependencyError(
            f"dependency cycle through nodes {', '.join(f'#{n}' for n in stuck)}",
            stuck,
        )
    return order


def resolve(node_id: int, call_args: tuple) -> list | None:
    """Build the argument list for node_id, or None if it cannot run yet.

    Bound slots take precedence; open slots consume call_args left to right
    and leftover call_args are appended when the computation takes *args,
    dropped otherwise. Open slots left over at the end are dropped so the
    computation's defaults apply. A node cannot run when an unfilled open
    slot precedes a bound one, when fewer arguments than its required
    parameters are available, or when a dependency is still dirty.
    """
    args: list = []
    position = 0
    exhausted = False
    for slot in _anchor.bindings[node_id]:
        if slot.is_open:
            if position < len(call_args):
                args.append(call_args[position])
                position += 1
            else:
                exhausted = True
            continue
        if exhausted:
            return None
        dep_id = slot.dependency_id
        if dep_id is None:
            args.append(slot.value)
        elif _anchor.dirty_flags[dep_id]:
            return None
        else:
            args.append(_anchor.cached_values[dep_id])
    required, variadic = _anchor.arity[node_id]
    if variadic:
        args.extend(call_args[position:])
    if len(args) < required:
        return None
    return args


def evaluate(node_id: int, args: list) -> object:
    """Run the computation and refresh the cache.

    If the computation raises, the exception propagates unchanged and the
    node stays dirty so the next read retries.
    """
    if node_id in _evaluating:
        raise CyclicDependencyError(
            f"node #{node_id} was reached again while computing", tuple(_evaluating)
        )
    fn = _anchor.computations[node_id]
    _evaluating[node_id] = None
    try:
        if node_id in _anchor.contexts:
            value = fn(_anchor.contexts[node_id], *args)
        else:
            value = fn(*args)
    finally:
        _evaluating.pop(node_id, None)
    _anchor.cached_values[node_id] = value
    _anchor.dirty_flags[node_id] = False
    return value


def read(node_id: int) -> object:
    """Return node_id's value, pulling its dirty upstream closure first."""
    if node_id in _evaluating:
        raise CyclicDependencyError(
            f"node #{node_id} read its own value while computing", tuple(_evaluating)
        )
    if not _anchor.dirty_flags[node_id]:
        return _anchor.cached_values[node_id]

    for current in plan([node_id], downstream=False):
        if not _anchor.dirty_flags.get(current, False):
            continue
        args = resolve(current, _anchor.call_args.get(current, ()))
        if args is None:
            if current == node_id:
                raise BindingArityError(
                    f"node #{node_id} has open slots not covered by call arguments"
                )
            raise BindingArityError(
                f"dependency #{current} of node #{node_id} has open slots "
                "not covered by call arguments"
            )
        evaluate(current, args)
    return _anchor.cached_values[node_id]


def run_wave(root_ids: list[int]) -> None:
    """Evaluate every dirty node downstream of root_ids once, in order.

    Nodes that cannot run (open slots without call arguments, or a dependency
    that could not run) are skipped and stay dirty until their next read.
    """
    order = plan(root_ids, downstream=True)
    evaluated = deferred = 0
    for node_id in order:
        if not _anchor.dirty_flags.get(node_id, False):
            continue
        args = resolve(node_id, _anchor.call_args.get(node_id, ()))
        if args is None:
            deferred += 1
            continue
        evaluate(node_id, args)
        evaluated += 1
    logger.debug(
        "Wave from %s: %d planned, %d evaluated, %d deferred",
        root_ids, len(order), evaluated, deferred,
    )


def begin_batch() -> None:
    """Enter a batching scope. Nested batches are supported."""
    global _batch_depth
    _batch_depth += 1


def end_batch() -> None:
    """Exit a batching scope. When the outermost scope exits, flush pending roots."""
    global _batch_depth
    _batch_depth -= 1
    if _batch_depth == 0:
        _flush_pending()


def _flush_pending() -> None:
    """Run one wave over every root queued during the batch."""
    if not _pending:
        return
    roots = [root_id for root_id in _pending if root_id in _anchor.dirty_flags]
    _pending.clear()
    if roots:
        logger.debug("Flushing batch: %d root(s) %s", len(roots), roots)
        run_wave(roots)


def get_pending_count() -> int:
    """Number of roots waiting for a wave. Useful for testing."""
    return len(_pending)
