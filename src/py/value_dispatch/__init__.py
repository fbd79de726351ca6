"""Synchronous value dispatch with capability-restricted subscription views.

A dispatcher owns its ``subscribable`` view; hand the view to outside code so
it can read and subscribe but never set or broadcast.
"""

from .core import (
    EventDispatcher,
    EventDispatcherBase,
    EventHandler,
    FlagDispatcher,
    HandlerRecord,
    Subscribable,
    SubscribableEvent,
    SubscribableFlagEvent,
)
from .value import SubscribableValueEvent, ValueDispatcher
from .aio import AsyncEventHandler, AsyncValueDispatcher, SubscribableAsyncValueEvent
from .rwlock import RwLock

__all__ = [
    "AsyncEventHandler",
    "AsyncValueDispatcher",
    "EventDispatcher",
    "EventDispatcherBase",
    "EventHandler",
    "FlagDispatcher",
    "HandlerRecord",
    "RwLock",
    "Subscribable",
    "SubscribableAsyncValueEvent",
    "SubscribableEvent",
    "SubscribableFlagEvent",
    "SubscribableValueEvent",
    "ValueDispatcher",
]
