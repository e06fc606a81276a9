"""A sliding window of in-flight append messages."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Inflights:
    """A ring buffer of the last indexes of in-flight messages.

    ``buffer`` grows up to ``cap`` items and is then reused circularly;
    ``start`` is the position of the oldest in-flight index and ``count``
    the number of indexes currently held.
    """

    cap: int
    start: int = 0
    count: int = 0
    buffer: list[int] = field(default_factory=list)

    def full(self) -> bool:
        """Whether no more in-flight messages can be added."""
        return self.count == self.cap

    def add(self, inflight: int) -> None:
        """Record ``inflight`` as the newest in-flight index."""
        if self.full():
            raise RuntimeError("cannot add into a full inflights")
        position = (self.start + self.count) % self.cap
        if position > len(self.buffer):
            raise RuntimeError(
                f"inflights position {position} is past the buffer length {len(self.buffer)}"
            )
        if position == len(self.buffer):
            self.buffer.append(inflight)
        else:
            self.buffer[position] = inflight
        self.count += 1

    def free_to(self, to: int) -> None:
        """Free every in-flight index smaller than or equal to ``to``."""
        if self.count == 0 or to < self.buffer[self.start]:
            return
        freed = 0
        position = self.start
        while freed < self.count and self.buffer[position] <= to:
            position = (position + 1) % self.cap
            freed += 1
        self.count -= freed
        self.start = position

    def free_first_one(self) -> None:
        """Free the oldest in-flight index."""
        self.free_to(self.buffer[self.start])

    def reset(self) -> None:
        """Free all in-flight indexes."""
        self.count = 0
        self.start = 0