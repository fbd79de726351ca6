import asyncio
import logging
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from .core import HandlerRecord
from .rwlock import RwLock

T = TypeVar("T")

AsyncEventHandler = Callable[[T], Awaitable[Any]]


class AsyncValueDispatcher(Generic[T]):
    """
    Coroutine counterpart of ``ValueDispatcher``.

    ``await set(value)`` returns once every subscriber has finished handling
    the new value. Subscribers run concurrently; if any of them fail, the
    first failure in subscription order is raised after all have completed.
    """

    def __init__(self, initial: T) -> None:
        records: list[HandlerRecord[AsyncEventHandler[T]]] = []
        self._records: RwLock[list[HandlerRecord[AsyncEventHandler[T]]]] = RwLock(
            records
        )
        self._current: RwLock[T] = RwLock(initial)
        self.subscribable: SubscribableAsyncValueEvent[T] = (
            SubscribableAsyncValueEvent(self)
        )

    @property
    def current(self) -> T:
        return self._current.peek()

    @property
    def subscriber_count(self) -> int:
        return sum(1 for record in self._records.peek() if record.active)

    async def set(self, value: T) -> None:
        async with self._current.write() as writer:
            writer.set_value(value)

        async with self._records.write() as writer:
            live = [record for record in writer.get_value() if record.active]
            writer.set_value(live)

        await self._deliver(live, value)

    async def subscribe(
        self, handler: AsyncEventHandler[T], dispatch_immediately: bool = True
    ) -> Callable[[], None]:
        if not callable(handler):
            raise TypeError(f"handler must be callable, got {handler!r}")
        record = HandlerRecord(handler)
        async with self._records.write() as writer:
            live = [r for r in writer.get_value() if r.active]
            live.append(record)
            writer.set_value(live)
        logging.getLogger(__name__).debug("Subscribed %r.", handler)

        def unsubscribe() -> None:
            # compacted out of the list on the next ``set`` or ``subscribe``
            record.active = False

        if dispatch_immediately:
            async with self._current.read() as rvalue:
                value = rvalue
            await handler(value)
        return unsubscribe

    async def _deliver(
        self, records: list[HandlerRecord[AsyncEventHandler[T]]], value: T
    ) -> None:
        if not records:
            return
        results = await asyncio.gather(
            *(record.handler(value) for record in records), return_exceptions=True
        )
        first_error: Optional[BaseException] = None
        for record, result in zip(records, results, strict=True):
            if isinstance(result, Exception):
                logging.getLogger(__name__).error(
                    "Subscriber %r failed.", record.handler, exc_info=result
                )
                if first_error is None:
                    first_error = result
            elif isinstance(result, BaseException):
                raise result
        if first_error is not None:
            raise first_error


class SubscribableAsyncValueEvent(Generic[T]):
    """
    Read and subscribe access to an ``AsyncValueDispatcher``.
    """

    def __init__(self, dispatcher: AsyncValueDispatcher[T]) -> None:
        self._dispatcher = dispatcher

    @property
    def current(self) -> T:
        return self._dispatcher.current

    async def subscribe(
        self, handler: AsyncEventHandler[T], dispatch_immediately: bool = True
    ) -> Callable[[], None]:
        return await self._dispatcher.subscribe(handler, dispatch_immediately)

