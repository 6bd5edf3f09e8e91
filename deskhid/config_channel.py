"""Configuration channel transport: report framing and request/response tracking."""

from __future__ import annotations

import enum
import itertools
import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple

TRANSPORT_HEADER_SIZE = 4
CONFIG_STATUS_POS = 2

_log = logging.getLogger(__name__)

_transport_id_bases = itertools.count(1)


class ConfigChannelError(Exception):
    """Raised when a configuration channel frame cannot be handled."""


class TransportBusyError(ConfigChannelError):
    """Raised when a request arrives while a previous one awaits its response."""


class TransportState(enum.Enum):
    DISABLED = enum.auto()
    IDLE = enum.auto()
    WAIT_RSP = enum.auto()
    RSP_READY = enum.auto()


@dataclass(frozen=True)
class StatusCodes:
    """Status byte values used by the transport for its own responses."""

    pending: int
    timeout: int
    disconnected: int


@dataclass
class ConfigEvent:
    """A configuration channel request or response."""

    recipient: int
    event_id: int
    status: int
    data: bytes = b""
    transport_id: int = 0
    is_request: bool = False


def _check_frame_length(length: int, report_size: int) -> None:
    if length < TRANSPORT_HEADER_SIZE or length > report_size:
        raise ConfigChannelError(f"Unsupported report length {length}")


def _check_data_len(data_len: int, report_size: int) -> None:
    if data_len > report_size - TRANSPORT_HEADER_SIZE:
        raise ConfigChannelError(f"Unsupported event data length {data_len}")


def parse_report(buffer, report_size, capacity=None) -> Tuple[ConfigEvent, int]:
    """Parse a report into an event; return the event and the number of bytes used.

    ``capacity`` limits how much payload the event may hold.
    """
    buffer = bytes(buffer)
    _check_frame_length(len(buffer), report_size)

    recipient, event_id, status, data_len = buffer[:TRANSPORT_HEADER_SIZE]
    _check_data_len(data_len, report_size)

    if len(buffer) - TRANSPORT_HEADER_SIZE < data_len:
        raise ConfigChannelError("Not enough data in buffer")
    if capacity is not None and capacity < data_len:
        raise ConfigChannelError(f"Invalid packet size {capacity} < {data_len}")

    end = TRANSPORT_HEADER_SIZE + data_len
    event = ConfigEvent(recipient, event_id, status, buffer[TRANSPORT_HEADER_SIZE:end])
    return event, end


def fill_report(event, length, report_size) -> bytes:
    """Encode an event as report bytes: header followed by the event payload."""
    _check_frame_length(length, report_size)
    data = bytes(event.data)
    _check_data_len(len(data), report_size)
    if TRANSPORT_HEADER_SIZE + len(data) > length:
        raise ConfigChannelError("Event data does not fit into the report")
    header = bytes((event.recipient, event.event_id, event.status, len(data)))
    return header + data


def disabled_response(length, report_size, statuses) -> bytes:
    """Response telling the host that this transport cannot be used."""
    _check_frame_length(length, report_size)
    buffer = bytearray(length)
    buffer[CONFIG_STATUS_POS] = statuses.disconnected
    return bytes(buffer)


class ConfigChannelTransport:
    """Tracks one host-facing configuration channel.

    The owner calls :meth:`expire` when the response timer of a pending
    request runs out.
    """

    def __init__(
        self,
        report_size: int,
        statuses: StatusCodes,
        submit: Optional[Callable[[ConfigEvent], None]] = None,
    ) -> None:
        if report_size <= TRANSPORT_HEADER_SIZE:
            raise ValueError("Report size must exceed the transport header size")
        base = next(_transport_id_bases)
        if base > 0xFF:
            raise ConfigChannelError("Too many transports created")
        self.report_size = report_size
        self.statuses = statuses
        self._submit = submit
        self.transport_id = (base << 8) & 0xFFFF
        self.data = bytearray(report_size)
        self.data_len = 0
        self.state = TransportState.IDLE

    def _drop_transactions(self) -> None:
        if (self.transport_id & 0xFF) == 0xFF:
            self.transport_id &= ~0xFF
        self.transport_id = (self.transport_id + 1) & 0xFFFF

    def get(self, length) -> bytes:
        """Return ``length`` bytes of the stored response for the host."""
        if length > self.report_size:
            raise ValueError(f"Requested length {length} exceeds report size")
        if length < self.data_len:
            _log.error("Host fetched incomplete data")
        result = bytes(self.data[:length])
        if self.state is TransportState.RSP_READY:
            self.state = TransportState.IDLE
        return result

    def set(self, buffer) -> ConfigEvent:
        """Accept a request report from the host and return the request event."""
        if self.state is TransportState.WAIT_RSP:
            raise TransportBusyError(f"Transport {self.transport_id:#06x} busy")
        if self.state is TransportState.RSP_READY:
            _log.warning("Host ignored previous response")

        buffer = bytes(buffer)
        try:
            event, _ = parse_report(
                buffer, self.report_size, len(buffer) - TRANSPORT_HEADER_SIZE
            )
        except ConfigChannelError as exc:
            raise ConfigChannelError("Received improper frame") from exc

        event.transport_id = self.transport_id
        event.is_request = True
        if self._submit is not None:
            self._submit(event)

        self.data[:TRANSPORT_HEADER_SIZE] = bytes(TRANSPORT_HEADER_SIZE)
        self.data[CONFIG_STATUS_POS] = self.statuses.pending
        self.data_len = TRANSPORT_HEADER_SIZE
        self.state = TransportState.WAIT_RSP
        return event

    def receive_response(self, event) -> bool:
        """Store a response; return False when it belongs to another transport."""
        if event.transport_id != self.transport_id:
            return False
        if event.is_request:
            event = replace(event, status=self.statuses.disconnected, data=b"")
        encoded = fill_report(
            event, len(event.data) + TRANSPORT_HEADER_SIZE, self.report_size
        )
        self.data[: len(encoded)] = encoded
        self.state = TransportState.RSP_READY
        return True

    def disconnect(self) -> None:
        """Drop any ongoing transaction and return to idle."""
        if self.state is TransportState.WAIT_RSP:
            self._drop_transactions()
        self.state = TransportState.IDLE

    def expire(self) -> bool:
        """Answer a pending request with a timeout status; False if none is pending."""
        if self.state is not TransportState.WAIT_RSP:
            return False
        self.data[CONFIG_STATUS_POS] = self.statuses.timeout
        self._drop_transactions()
        self.state = TransportState.RSP_READY
        return True