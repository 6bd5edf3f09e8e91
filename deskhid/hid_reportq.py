"""Per-subscriber queues of HID input reports forwarded from HID peripherals."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, List, Optional, Sequence

_log = logging.getLogger(__name__)

MAX_INPUT_REPORTS = 16


@dataclass(frozen=True)
class HidReportEvent:
    """A HID input report addressed to a subscriber; ``data`` starts with the report ID."""

    source: Any
    subscriber: Any
    data: bytes

    @property
    def report_id(self) -> int:
        """The report ID carried in the first byte."""
        return self.data[0]

    @property
    def payload(self) -> bytes:
        """The report contents without the report ID."""
        return self.data[1:]


class ReportQueueError(Exception):
    """Raised when a report queue cannot perform the requested operation."""


class HidReportQueue:
    """Queue of HID reports for one subscriber, limited to ``report_max`` in flight.

    Instances are handed out by :class:`HidReportQueuePool`.
    """

    def __init__(
        self,
        input_reports: Sequence[int],
        max_enqueued: int,
        submit: Callable[[HidReportEvent], None],
    ) -> None:
        self._input_reports = tuple(input_reports)
        self._max_enqueued = max_enqueued
        self._submit = submit
        self._lists: List[Deque[HidReportEvent]] = [deque() for _ in self._input_reports]
        self._enabled: set = set()
        self._last_sent_idx = 0
        self.report_max = 0
        self.report_cnt = 0
        self.sub_id: Any = None

    @property
    def allocated(self) -> bool:
        return self.sub_id is not None

    def _check_allocated(self) -> None:
        if self.sub_id is None:
            raise ReportQueueError("Queue is not allocated")

    def _attach(self, sub_id: Any, report_max: int) -> None:
        self.sub_id = sub_id
        self.report_max = report_max

    def _release(self) -> None:
        self._check_allocated()
        for reports in self._lists:
            reports.clear()
        self._enabled.clear()
        self._last_sent_idx = 0
        self.report_max = 0
        self.report_cnt = 0
        self.sub_id = None

    def _report_idx(self, rep_id: int) -> int:
        try:
            return self._input_reports.index(rep_id)
        except ValueError:
            raise ValueError(f"Unknown input report ID {rep_id}") from None

    def _enqueue(self, idx: int, event: HidReportEvent) -> None:
        reports = self._lists[idx]
        if len(reports) >= self._max_enqueued:
            _log.warning("Enqueue dropped the oldest report")
            reports.popleft()
        reports.append(event)

    def _next_enqueued(self) -> Optional[HidReportEvent]:
        count = len(self._lists)
        for step in range(1, count + 1):
            idx = (self._last_sent_idx + step) % count
            if self._lists[idx]:
                self._last_sent_idx = idx
                return self._lists[idx].popleft()
        return None

    def add(self, src_id, rep_id, data) -> None:
        """Send the report now if the subscriber has room, otherwise enqueue it."""
        self._check_allocated()
        idx = self._report_idx(rep_id)
        if idx not in self._enabled:
            raise ReportQueueError(f"Not subscribed to report {rep_id}")

        event = HidReportEvent(src_id, self.sub_id, bytes((rep_id,)) + bytes(data))
        if self.report_cnt < self.report_max:
            self._submit(event)
            self._last_sent_idx = idx
            self.report_cnt += 1
        else:
            self._enqueue(idx, event)

    def sent(self, rep_id, err) -> None:
        """Handle a sent report: submit the next enqueued one in round-robin order."""
        self._check_allocated()
        event = self._next_enqueued()
        if event is not None:
            self._submit(event)
        else:
            self.report_cnt -= 1

    def is_subscribed(self, rep_id) -> bool:
        self._check_allocated()
        return self._report_idx(rep_id) in self._enabled

    def subscribe(self, rep_id) -> None:
        self._check_allocated()
        self._enabled.add(self._report_idx(rep_id))

    def unsubscribe(self, rep_id) -> None:
        """Disable the report and drop everything enqueued for it."""
        self._check_allocated()
        idx = self._report_idx(rep_id)
        self._enabled.discard(idx)
        self._lists[idx].clear()


class HidReportQueuePool:
    """A fixed pool of report queues."""

    def __init__(
        self,
        input_reports: Sequence[int],
        queue_count: int,
        max_enqueued: int,
        submit: Callable[[HidReportEvent], None],
    ) -> None:
        if len(input_reports) > MAX_INPUT_REPORTS:
            raise ValueError(f"At most {MAX_INPUT_REPORTS} input reports are supported")
        if max_enqueued <= 0:
            raise ValueError("max_enqueued must be positive")
        self._queues = [
            HidReportQueue(input_reports, max_enqueued, submit) for _ in range(queue_count)
        ]

    def alloc(self, sub_id, report_max) -> HidReportQueue:
        """Take a free queue for the given subscriber."""
        if sub_id is None:
            raise ValueError("Subscriber ID must be given")
        if report_max <= 0:
            raise ValueError("report_max must be positive")
        for queue in self._queues:
            if not queue.allocated:
                queue._attach(sub_id, report_max)
                return queue
        raise ReportQueueError("No free report queue")

    def free(self, queue) -> None:
        """Return a queue to the pool, dropping its enqueued reports."""
        if not any(queue is q for q in self._queues):
            raise ValueError("Queue does not belong to this pool")
        queue._release()