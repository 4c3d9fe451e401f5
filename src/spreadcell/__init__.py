"""spreadcell: spreadsheet-style dependency propagation for plain functions."""

from importlib.metadata import version as _version

__version__ = _version("spreadcell")

from spreadcell._propagation import get_pending_count
from spreadcell.errors import SpreadcellError, BindingArityError, CyclicDependencyError
from spreadcell.slots import GAP
from spreadcell.node import NO_CONTEXT, Node, wrap
from spreadcell.state import StateCell, set_scheduler
from spreadcell.action import action, transaction
from spreadcell.store import Store
# textual NOT auto-imported — opt-in only

__all__ = [
    "GAP",
    "Node",
    "wrap",
    "NO_CONTEXT",
    "StateCell",
    "set_scheduler",
    "action",
    "transaction",
    "get_pending_count",
    "Store",
    "SpreadcellError",
    "BindingArityError",
    "CyclicDependencyError",
]
