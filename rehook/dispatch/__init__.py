"""Delivery dispatch."""

from rehook.dispatch.dispatcher import DeliveryState, DispatchOutcome, Dispatcher

__all__ = [
    "DeliveryState",
    "DispatchOutcome",
    "Dispatcher",
]
