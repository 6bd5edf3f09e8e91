"""Chooses LED effects that show the system state and the Bluetooth peer state."""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, Mapping, Optional, Sequence

from deskhid.swift_pair import PeerOperation

_log = logging.getLogger(__name__)

_CONNECTED_MAX = 0xFF


class PeerState(enum.Enum):
    CONNECTED = enum.auto()
    DISCONNECTED = enum.auto()
    SECURED = enum.auto()
    CONN_FAILED = enum.auto()
    DISCONNECTING = enum.auto()


class BatteryState(enum.Enum):
    IDLE = enum.auto()
    CHARGING = enum.auto()
    ERROR = enum.auto()


class LedSystemState(enum.Enum):
    IDLE = enum.auto()
    CHARGING = enum.auto()
    ERROR = enum.auto()


class LedPeerState(enum.Enum):
    DISCONNECTED = enum.auto()
    CONNECTED = enum.auto()
    PEER_SEARCH = enum.auto()
    CONFIRM_SELECT = enum.auto()
    CONFIRM_ERASE = enum.auto()
    ERASE_ADV = enum.auto()


_OPERATION_STATES = {
    PeerOperation.SELECT: LedPeerState.CONFIRM_SELECT,
    PeerOperation.ERASE: LedPeerState.CONFIRM_ERASE,
    PeerOperation.ERASE_ADV: LedPeerState.ERASE_ADV,
}

_BATTERY_STATES = {
    BatteryState.CHARGING: LedSystemState.CHARGING,
    BatteryState.IDLE: LedSystemState.IDLE,
    BatteryState.ERROR: LedSystemState.ERROR,
}


class LedStateController:
    """Sends LED effects through ``send(led_id, effect)``.

    ``peer_effects`` holds one mapping of peer LED states to effects for each
    peer; a LED given as None is unavailable.
    """

    def __init__(
        self,
        send: Callable[[int, Any], None],
        system_effects: Mapping[LedSystemState, Any],
        peer_effects: Sequence[Mapping[LedPeerState, Any]],
        system_led: Optional[int] = 0,
        peer_led: Optional[int] = 1,
        ble_events: bool = True,
    ) -> None:
        self._send = send
        self.system_effects = system_effects
        self.peer_effects = peer_effects
        self.system_led = system_led
        self.peer_led = peer_led
        self.ble_events = ble_events

        self.system_state = LedSystemState.IDLE
        self.peer_led_state = LedPeerState.DISCONNECTED
        self.connected = 0
        self.peer_search = False
        self.peer_op = PeerOperation.CANCEL
        self.peer_id = 0

    def _load_peer_state_led(self) -> LedPeerState:
        state = _OPERATION_STATES.get(self.peer_op)
        if state is None:
            if self.peer_search:
                state = LedPeerState.PEER_SEARCH
            elif self.connected > 0:
                state = LedPeerState.CONNECTED
            else:
                state = LedPeerState.DISCONNECTED
        self.peer_led_state = state

        if self.peer_led is None:
            return state
        if not 0 <= self.peer_id < len(self.peer_effects):
            raise ValueError(f"Peer ID {self.peer_id} has no LED effects")
        self._send(self.peer_led, self.peer_effects[self.peer_id][state])
        return state

    def _load_system_state_led(self) -> None:
        if self.system_led is None:
            return
        self._send(self.system_led, self.system_effects[self.system_state])

    def _set_system_state(self, state: LedSystemState) -> None:
        # The error state is final.
        if self.system_state is not LedSystemState.ERROR:
            self.system_state = state
            self._load_system_state_led()

    def on_peer_state(self, state) -> LedPeerState:
        """Track connections; return the peer LED state now shown."""
        if state is PeerState.CONNECTED:
            if self.connected >= _CONNECTED_MAX:
                raise RuntimeError("Too many connected peers")
            self.connected += 1
        elif state is PeerState.DISCONNECTED:
            if self.connected == 0:
                raise RuntimeError("Disconnection without a connected peer")
            self.connected -= 1
        elif not isinstance(state, PeerState):
            raise ValueError(f"Unknown peer state {state!r}")
        return self._load_peer_state_led()

    def on_peer_search(self, active) -> LedPeerState:
        """Track whether a peer search is in progress."""
        self.peer_search = bool(active)
        return self._load_peer_state_led()

    def on_peer_operation(self, op, app_id) -> LedPeerState:
        """Track the ongoing peer operation and the peer it concerns."""
        self.peer_id = app_id
        self.peer_op = op
        return self._load_peer_state_led()

    def on_battery_state(self, state) -> LedSystemState:
        """Show the battery state unless the system is in error."""
        try:
            led_state = _BATTERY_STATES[state]
        except KeyError:
            raise ValueError(f"Unknown battery state {state!r}") from None
        self._set_system_state(led_state)
        return self.system_state

    def on_ready(self) -> None:
        """Show the initial LED effects once the application is ready."""
        self._load_system_state_led()
        if not self.ble_events:
            # Peer state will never be reported; show it now.
            self._load_peer_state_led()

    def on_module_error(self) -> None:
        """Switch the system LED to the error state for good."""
        self._set_system_state(LedSystemState.ERROR)