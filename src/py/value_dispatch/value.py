import typing
from typing import Callable, Generic, TypeVar

from typing_extensions import override

from .core import EventDispatcherBase, EventHandler, Subscribable, _deliver

T = TypeVar("T")


class ValueDispatcher(EventDispatcherBase[T], Generic[T]):
    """
    Holds a current value and notifies subscribers whenever it changes.

    Owners keep the dispatcher to themselves and expose ``subscribable``::

        class Example:
            def __init__(self) -> None:
                self._value = ValueDispatcher(0)

            @property
            def on_value_changed(self) -> SubscribableValueEvent[int]:
                return self._value.subscribable

            def change(self) -> None:
                # every subscriber is notified before this returns
                self._value.current = 7
    """

    def __init__(self, initial: T) -> None:
        super().__init__()
        self._value = initial
        self.subscribable: SubscribableValueEvent[T] = SubscribableValueEvent(self)

    @property
    def current(self) -> T:
        with self._lock:
            return self._value

    @current.setter
    def current(self, value: T) -> None:
        with self._delivery_lock:
            with self._lock:
                self._value = value
                snapshot = list(self._records)
            _deliver(snapshot, value)

    @override
    def subscribe(
        self, handler: EventHandler[T], dispatch_immediately: bool = True
    ) -> Callable[[], None]:
        if not dispatch_immediately:
            return super().subscribe(handler)
        # no set can slip between registering and the first delivery
        with self._delivery_lock:
            unsubscribe = super().subscribe(handler)
            handler(self.current)
        return unsubscribe


class SubscribableValueEvent(Subscribable[T, EventHandler[T]], Generic[T]):
    """
    Read and subscribe access to a ``ValueDispatcher``.

    External code can follow the value without being able to change it.
    """

    def __init__(self, dispatcher: ValueDispatcher[T]) -> None:
        super().__init__(dispatcher)

    @property
    def current(self) -> T:
        """
        The most recent value of the dispatcher.
        """
        return typing.cast(ValueDispatcher[T], self._dispatcher).current

    @override
    def subscribe(
        self, handler: EventHandler[T], dispatch_immediately: bool = True
    ) -> Callable[[], None]:
        """
        Subscribe to value changes.

        When ``dispatch_immediately`` is set the handler is also invoked once
        with the most recent value before this returns.

        Returns a callback that cancels the subscription.
        """
        return typing.cast(ValueDispatcher[T], self._dispatcher).subscribe(
            handler, dispatch_immediately
        )
