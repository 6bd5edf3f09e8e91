"""HID state building blocks: pressed item sets, the pending event queue and the keymap."""

from __future__ import annotations

import bisect
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

_log = logging.getLogger(__name__)

_U32 = 0xFFFFFFFF

REPORT_ID_RESERVED = 0


def _uptime_ms() -> int:
    return int(time.monotonic() * 1000) & _U32


@dataclass(frozen=True)
class Item:
    """A HID usage together with its reference-counted value."""

    usage_id: int
    value: int


class ItemSet:
    """The set of usages currently active in one HID report.

    Values act as reference counters: a key down adds one, a key up removes
    one, and the usage disappears once its value drops to zero.
    """

    def __init__(self, count_max: int) -> None:
        if count_max <= 0:
            raise ValueError("count_max must be positive")
        self.count_max = count_max
        self._values: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._values)

    def set(self, usage_id, value) -> bool:
        """Apply a value change to a usage; return True if the report must be updated."""
        if usage_id == 0:
            raise ValueError("Usage ID 0 is reserved")
        if value == 0:
            raise ValueError("A zero value brings no change")

        current = self._values.get(usage_id)
        if current is not None:
            new_value = current + value
            if new_value == 0:
                del self._values[usage_id]
            else:
                self._values[usage_id] = new_value
            return True

        if value < 0:
            # An unpaired key up: the reference counter must not fall below zero.
            return False

        if len(self._values) >= self.count_max:
            _log.warning("No place on the list to store HID item!")
            return False

        self._values[usage_id] = value
        return True

    def clear(self) -> None:
        """Forget every recorded usage."""
        self._values.clear()

    def pressed(self) -> Tuple[Item, ...]:
        """The active items sorted by ascending usage ID."""
        return tuple(Item(usage, self._values[usage]) for usage in sorted(self._values))


@dataclass(frozen=True)
class _QueuedItem:
    item: Item
    timestamp: int


class EventQueue:
    """Usage changes waiting to be applied, each stamped with a 32-bit millisecond time."""

    def __init__(
        self,
        capacity: int,
        expiration: int,
        clock: Callable[[], int] = _uptime_ms,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self.expiration = expiration
        self._clock = clock
        self._events: Deque[_QueuedItem] = deque()

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Tuple[Item, int]]:
        for event in self._events:
            yield event.item, event.timestamp

    def append(self, usage_id, value) -> None:
        """Enqueue a usage change stamped with the current time."""
        timestamp = self._clock() & _U32
        self._events.append(_QueuedItem(Item(usage_id, value), timestamp))

    def pop(self) -> Item:
        """Remove and return the oldest enqueued item."""
        if not self._events:
            raise IndexError("pop from an empty event queue")
        return self._events.popleft().item

    def reset(self) -> None:
        """Drop every enqueued item."""
        self._events.clear()

    def is_full(self) -> bool:
        return len(self._events) >= self.capacity

    def cleanup(self, timestamp) -> int:
        """Remove expired events, but only where every key down is paired with its key up.

        Returns the number of removed events.
        """
        events: List[_QueuedItem] = list(self._events)
        count = len(events)
        first_valid = next(
            (
                pos
                for pos, event in enumerate(events)
                if ((timestamp - event.timestamp) & _U32) < self.expiration
            ),
            count,
        )

        maxfound = 0
        maxfound_pos = 0
        removed = 0

        for cur_pos, cur in enumerate(events):
            if cur.item.value > 0:
                # Every key down must be paired with a key up before the first valid event.
                hit_count = cur.item.value
                pair = count
                for pos in range(cur_pos + 1, count):
                    if pos == first_valid:
                        pair = pos
                        break
                    item = events[pos].item
                    if item.usage_id == cur.item.usage_id:
                        hit_count += item.value
                        if hit_count == 0:
                            pair = pos
                            break

                if pair == first_valid:
                    break

                pair_pos = min(pair, count - 1)
                if pair_pos > maxfound_pos:
                    maxfound = pair
                    maxfound_pos = pair_pos

            if cur_pos == first_valid:
                break

            if cur_pos == maxfound:
                # All events up to this point have pairs and can be deleted.
                purge = maxfound - removed + 1
                for _ in range(purge):
                    self._events.popleft()
                removed = maxfound + 1
                _log.warning("%d stale events removed from the queue!", purge)

        return removed


@dataclass(frozen=True)
class KeymapEntry:
    """Translation of a key ID to a HID usage in a given report."""

    key_id: int
    usage_id: int
    report_id: int


class Keymap:
    """Key ID to HID usage translation table, sorted by key ID."""

    def __init__(
        self,
        entries: Iterable[KeymapEntry],
        report_id_count: Optional[int] = None,
    ) -> None:
        self._entries: Sequence[KeymapEntry] = tuple(entries)
        for prev, cur in zip(self._entries, self._entries[1:]):
            if prev.key_id >= cur.key_id:
                raise ValueError("The keymap must be sorted by key_id!")
        for entry in self._entries:
            if entry.report_id == REPORT_ID_RESERVED or (
                report_id_count is not None and entry.report_id >= report_id_count
            ):
                raise ValueError(f"Invalid report ID {entry.report_id} used in keymap!")
        self._keys = [entry.key_id for entry in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[KeymapEntry]:
        return iter(self._entries)

    def lookup(self, key_id) -> Optional[KeymapEntry]:
        """The entry for a key ID, or None if the key is not mapped."""
        pos = bisect.bisect_left(self._keys, key_id)
        if pos < len(self._keys) and self._keys[pos] == key_id:
            return self._entries[pos]
        return None