"""Enables the Swift Pair advertising payload depending on the selected peer."""

from __future__ import annotations

import enum
import logging
from typing import Callable, Optional

_log = logging.getLogger(__name__)

DEFAULT_APP_ID = 0
INVALID_APP_ID = 0xFF


class PeerOperation(enum.Enum):
    SELECT = enum.auto()
    SELECTED = enum.auto()
    ERASE = enum.auto()
    ERASE_ADV = enum.auto()
    ERASE_ADV_CANCEL = enum.auto()
    ERASED = enum.auto()
    CANCEL = enum.auto()
    SCAN_REQUEST = enum.auto()


_PAYLOAD_UPDATING_OPS = frozenset(
    {PeerOperation.SELECTED, PeerOperation.ERASE_ADV, PeerOperation.ERASE_ADV_CANCEL}
)


class SwiftPair:
    """Tracks the dongle peer identity and switches the Swift Pair payload."""

    def __init__(
        self,
        advertise_to_dongle: bool = False,
        advertise_to_general: bool = True,
        on_payload_change: Optional[Callable[[bool], None]] = None,
    ) -> None:
        self.advertise_to_dongle = advertise_to_dongle
        self.advertise_to_general = advertise_to_general
        self._on_payload_change = on_payload_change
        self.dongle_app_id = INVALID_APP_ID
        self.payload_enabled: Optional[bool] = None

    def _update_payload(self, selected_app_id: int) -> None:
        if selected_app_id == self.dongle_app_id:
            enable = self.advertise_to_dongle
        else:
            enable = self.advertise_to_general
        self.payload_enabled = enable
        if self._on_payload_change is not None:
            self._on_payload_change(enable)
        _log.debug("Swift Pair payload %sabled", "en" if enable else "dis")

    def on_dongle_peer(self, app_id: int) -> None:
        """Record the application identity used for the dongle peer."""
        if app_id == INVALID_APP_ID:
            raise ValueError("Invalid dongle application ID")
        self.dongle_app_id = app_id
        self._update_payload(DEFAULT_APP_ID)

    def on_peer_operation(self, op: PeerOperation, app_id: int) -> None:
        """React to a peer operation that may change the advertised peer."""
        if self.dongle_app_id == INVALID_APP_ID:
            raise RuntimeError("Dongle peer identity must be known before peer operations")
        if op in _PAYLOAD_UPDATING_OPS:
            self._update_payload(app_id)