from contextlib import asynccontextmanager
from asyncio import Condition
from typing import AsyncGenerator, Generic, TypeVar

T = TypeVar("T")
TI = TypeVar("TI")


class RwLock(Generic[T]):
    """
    asyncio reader/writer lock around a single value.

    Readers share access; a writer waits for current readers to drain and
    holds off new ones until it is done.
    """

    def __init__(self, value: T):
        self._cond = Condition()
        self._readers = 0
        self._writers_waiting = 0
        self._writing = False
        self._value = value

    def peek(self) -> T:
        """
        Return the value without taking the lock.

        Only safe from the event loop thread, outside any write section.
        """
        return self._value

    @asynccontextmanager
    async def read(self) -> AsyncGenerator["T", None]:
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writing and self._writers_waiting == 0
            )
            self._readers += 1
        try:
            yield self._value
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    class Writer(Generic[TI]):
        def __init__(self, rwlock: "RwLock[TI]"):
            self._rwlock = rwlock

        def get_value(
            self,
        ) -> TI:
            return self._rwlock._value

        def set_value(
            self,
            value: TI,
        ) -> None:
            self._rwlock._value = value

    @asynccontextmanager
    async def write(self) -> AsyncGenerator["RwLock[T].Writer[T]", None]:
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(
                    lambda: not self._writing and self._readers == 0
                )
            finally:
                self._writers_waiting -= 1
                # wake readers held back by a writer that gave up
                self._cond.notify_all()
            self._writing = True
        try:
            yield RwLock.Writer(self)
        finally:
            async with self._cond:
                self._writing = False
                self._cond.notify_all()
