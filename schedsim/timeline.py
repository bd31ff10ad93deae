from __future__ import annotations

from typing import List

from .exceptions import SchedulingError
from .models import TimelineEntry

IDLE = "Idle"


class TimelineBuilder:
    """
    Accumulates execution slices into a contiguous Gantt timeline.

    Gaps between one slice and the next are filled with an "Idle" entry so
    that every entry ends where the following one starts. With ``coalesce``
    set, a slice that continues the previous entry's process is merged into
    it instead of opening a new entry (used by the unit-time policies).
    """

    def __init__(self, coalesce: bool = False) -> None:
        self.coalesce = coalesce
        self._entries: List[TimelineEntry] = []

    def append(self, name: str, start: int, end: int) -> None:
        if end <= start:
            raise SchedulingError(f"Empty slice for {name!r}: [{start}, {end})")

        if self._entries:
            last = self._entries[-1]
            if start < last.end:
                raise SchedulingError(
                    f"Slice for {name!r} at {start} overlaps {last.name!r} ending at {last.end}"
                )
            if start > last.end:
                self._entries.append(TimelineEntry(name=IDLE, start=last.end, end=start))
            elif self.coalesce and last.name == name:
                last.end = end
                return

        self._entries.append(TimelineEntry(name=name, start=start, end=end))

    def build(self) -> List[TimelineEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
