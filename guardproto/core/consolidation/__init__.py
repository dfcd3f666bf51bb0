from .models import CallbackDispatcher, Clause, ConsolidatedProtocol, DispatchChain
from .consolidator import Consolidator, consolidate, order_implementations, resolve

__all__ = [
    "CallbackDispatcher",
    "Clause",
    "ConsolidatedProtocol",
    "Consolidator",
    "DispatchChain",
    "consolidate",
    "order_implementations",
    "resolve",
]
