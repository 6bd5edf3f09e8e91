"""Power level restrictions driven by the USB connection state."""

from __future__ import annotations

import enum
import logging
from typing import Callable, Optional

_log = logging.getLogger(__name__)


class UsbState(enum.Enum):
    DISCONNECTED = enum.auto()
    POWERED = enum.auto()
    ACTIVE = enum.auto()
    SUSPENDED = enum.auto()


class PowerLevel(enum.IntEnum):
    ALIVE = 0
    SUSPENDED = 1
    OFF = 2
    MAX = 3


_RESTRICTIONS = {
    UsbState.POWERED: PowerLevel.SUSPENDED,
    UsbState.ACTIVE: PowerLevel.ALIVE,
    UsbState.DISCONNECTED: PowerLevel.MAX,
    UsbState.SUSPENDED: PowerLevel.SUSPENDED,
}


def power_restriction(state) -> Optional[PowerLevel]:
    """Deepest power level allowed in a USB state, or None if the state is ignored."""
    return _RESTRICTIONS.get(state)


class UsbPowerManager:
    """Applies power restrictions as the USB state changes."""

    def __init__(
        self,
        restrict: Callable[[PowerLevel], None],
        force_power_down: Optional[Callable[[], None]] = None,
    ) -> None:
        self._restrict = restrict
        self._force_power_down = force_power_down
        self.level: Optional[PowerLevel] = None

    def on_usb_state(self, state) -> Optional[PowerLevel]:
        """Handle a USB state change; return the restriction applied, if any."""
        level = power_restriction(state)
        if level is None:
            return None
        self.level = level
        self._restrict(level)
        if state is UsbState.SUSPENDED:
            _log.debug("USB suspended")
            if self._force_power_down is not None:
                self._force_power_down()
        return level