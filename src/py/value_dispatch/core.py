import logging
import threading
import typing
import weakref
from typing import Any, Callable, Generic, Optional, TypeVar

from typing_extensions import override

T = TypeVar("T")
H = TypeVar("H", bound=Callable[..., Any])

EventHandler = Callable[[T], Any]


class HandlerRecord(Generic[H]):
    """
    A single registration of a handler.

    Two subscriptions of the same function produce two records, so each
    unsubscribe callback only ever removes its own registration.
    """

    __slots__ = ("handler", "active")

    def __init__(self, handler: H) -> None:
        self.handler = handler
        self.active = True


def _deliver(records: list[HandlerRecord[Any]], value: object) -> None:
    first_error: Optional[BaseException] = None
    for record in records:
        try:
            record.handler(value)
        except Exception as e:
            logging.getLogger(__name__).exception(
                "Subscriber %r failed.", record.handler
            )
            if first_error is None:
                first_error = e
    if first_error is not None:
        raise first_error


class EventDispatcherBase(Generic[T]):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        # held for a whole delivery pass so passes never interleave
        self._delivery_lock = threading.RLock()
        self._records: list[HandlerRecord[EventHandler[T]]] = []

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._records)

    def subscribe(self, handler: EventHandler[T]) -> Callable[[], None]:
        """
        Register a handler and return a callback cancelling this registration.
        """
        if not callable(handler):
            raise TypeError(f"handler must be callable, got {handler!r}")
        record = HandlerRecord(handler)
        with self._lock:
            self._records.append(record)
        logging.getLogger(__name__).debug("Subscribed %r.", handler)

        dispatcher_ref = weakref.ref(self)

        def unsubscribe() -> None:
            dispatcher = dispatcher_ref()
            if dispatcher is not None:
                dispatcher._remove(record)

        return unsubscribe

    def unsubscribe(self, handler: EventHandler[T]) -> None:
        """
        Remove the earliest live registration of ``handler``, if any.
        """
        with self._lock:
            for record in self._records:
                if record.handler == handler:
                    break
            else:
                return
        self._remove(record)

    def clear(self) -> None:
        with self._lock:
            records, self._records = self._records, []
            for record in records:
                record.active = False

    def notify_subscribers(self, value: T) -> None:
        """
        Deliver ``value`` to every handler registered when delivery begins.

        Handlers run in subscription order. A failing handler does not stop
        the others; the first exception is re-raised once all have run.
        """
        with self._delivery_lock:
            with self._lock:
                snapshot = list(self._records)
            _deliver(snapshot, value)

    def _remove(self, record: HandlerRecord[EventHandler[T]]) -> None:
        with self._lock:
            if not record.active:
                return
            record.active = False
            self._records = [r for r in self._records if r is not record]
        logging.getLogger(__name__).debug("Unsubscribed %r.", record.handler)


class Subscribable(Generic[T, H]):
    """
    Exposes the subscription side of a dispatcher and nothing else.
    """

    def __init__(self, dispatcher: EventDispatcherBase[T]) -> None:
        self._dispatcher = dispatcher

    def subscribe(self, handler: H) -> Callable[[], None]:
        return self._dispatcher.subscribe(handler)

    def unsubscribe(self, handler: H) -> None:
        self._dispatcher.unsubscribe(handler)


class SubscribableEvent(Subscribable[T, EventHandler[T]], Generic[T]):
    pass


class EventDispatcher(EventDispatcherBase[T], Generic[T]):
    """
    Dispatches a plain event to its subscribers.

    Keep the dispatcher private and hand out ``subscribable`` instead.
    """

    def __init__(self) -> None:
        super().__init__()
        self.subscribable: SubscribableEvent[T] = SubscribableEvent(self)

    def dispatch(self, value: T) -> None:
        self.notify_subscribers(value)


class SubscribableFlagEvent(Subscribable[None, EventHandler[None]]):
    def is_raised(self) -> bool:
        return typing.cast("FlagDispatcher", self._dispatcher).is_raised()


class FlagDispatcher(EventDispatcherBase[None]):
    """
    A one-shot flag. Raising it notifies subscribers once until it is reset.
    """

    def __init__(self) -> None:
        super().__init__()
        self._raised = False
        self.subscribable = SubscribableFlagEvent(self)

    def raise_flag(self) -> None:
        with self._delivery_lock:
            with self._lock:
                if self._raised:
                    return
                self._raised = True
                snapshot = list(self._records)
            _deliver(snapshot, None)

    def reset(self) -> None:
        with self._lock:
            self._raised = False

    def is_raised(self) -> bool:
        with self._lock:
            return self._raised

    @override
    def subscribe(self, handler: EventHandler[None]) -> Callable[[], None]:
        with self._delivery_lock:
            unsubscribe = super().subscribe(handler)
            if self.is_raised():
                handler(None)
        return unsubscribe
