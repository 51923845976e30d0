from __future__ import annotations

from collections import deque
from typing import Deque, Iterator, List

from enrollcam.errors import PreconditionError


class BoundedHistory:
    """Fixed-capacity FIFO of recent integer scores (oldest evicted first).

    Used to smooth the per-frame recognition score. Not thread-safe: it is only
    touched from the single analysis path.
    """

    def __init__(self, capacity: int):
        if int(capacity) < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = int(capacity)
        self._values: Deque[int] = deque(maxlen=self._capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def push(self, value: int) -> None:
        # deque(maxlen) drops from the left once full
        self._values.append(int(value))

    def average(self) -> int:
        """Mean of the held values, truncated toward zero."""
        if not self._values:
            raise PreconditionError("average() called on an empty history")
        total = sum(self._values)
        n = len(self._values)
        q = abs(total) // n
        return q if total >= 0 else -q

    def youngest(self) -> int:
        if not self._values:
            raise PreconditionError("youngest() called on an empty history")
        return self._values[-1]

    def oldest(self) -> int:
        if not self._values:
            raise PreconditionError("oldest() called on an empty history")
        return self._values[0]

    def values(self) -> List[int]:
        return list(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._values))

    def __repr__(self) -> str:
        return f"BoundedHistory(capacity={self._capacity}, values={list(self._values)})"
