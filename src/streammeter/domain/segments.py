"""Watched-segment tracking.

Seconds that have already been paid for are kept as closed integer intervals
``(start, end)``. After every :meth:`WatchedSegmentTracker.mark_watched` the
list is sorted by start, pairwise disjoint and non-adjacent, so ``[0, 4]`` and
``[5, 9]`` can never coexist; they are stored as ``[0, 9]``.

Merging is a single linear scan. Segment count grows with seek-direction
changes, not with watch time, so the scan stays short for normal sessions.
"""

from __future__ import annotations

Segment = tuple[int, int]


class WatchedSegmentTracker:
    """Set of paid-for seconds stored as merged intervals."""

    def __init__(self) -> None:
        self._segments: list[list[int]] = []

    @property
    def segments(self) -> tuple[Segment, ...]:
        """Immutable snapshot, sorted ascending by start."""
        return tuple((start, end) for start, end in self._segments)

    def is_watched(self, second: int) -> bool:
        return any(start <= second <= end for start, end in self._segments)

    def mark_watched(self, second: int) -> None:
        """Record ``second`` as paid for. Re-marking a second is a no-op."""
        if second < 0:
            raise ValueError("second must be non-negative")

        extended: list[int] | None = None
        absorbed: list[int] | None = None
        for segment in self._segments:
            start, end = segment
            if start <= second <= end:
                return
            if second == end + 1 or second == start - 1:
                if extended is None:
                    segment[0] = min(start, second)
                    segment[1] = max(end, second)
                    extended = segment
                else:
                    # second bridged the gap between two segments
                    absorbed = segment

        if extended is None:
            self._segments.append([second, second])
            self._segments.sort(key=lambda seg: seg[0])
            return

        if absorbed is not None:
            extended[0] = min(extended[0], absorbed[0])
            extended[1] = max(extended[1], absorbed[1])
            self._segments = [seg for seg in self._segments if seg is not absorbed]

    def total_watched_seconds(self) -> int:
        return sum(end - start + 1 for start, end in self._segments)

    def clear(self) -> None:
        self._segments.clear()

    def __len__(self) -> int:
        return len(self._segments)
