from __future__ import annotations

from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")


class Pool(Generic[T]):
    """
    Arena of reusable objects.

    Every object handed out lives in ``slots`` for the lifetime of the pool;
    ``free`` holds the indices of slots that may be handed out again.
    Released objects keep their fields until they are acquired again, so a caller
    may still read from an object it just released.
    """

    def __init__(self, factory: Callable[[], T]):
        self._factory = factory
        self.slots: List[T] = []
        self.free: List[int] = []

    def acquire(self) -> T:
        if self.free:
            return self.slots[self.free.pop()]
        obj = self._factory()
        obj.slot = len(self.slots)
        self.slots.append(obj)
        return obj

    def release(self, obj: T) -> None:
        self.free.append(obj.slot)

    @property
    def in_use(self) -> int:
        return len(self.slots) - len(self.free)

    def __len__(self) -> int:
        return len(self.slots)
