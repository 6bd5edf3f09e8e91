"""Streams LED effect steps received over the configuration channel."""

from __future__ import annotations

import logging
import struct
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, List, Optional, Tuple

_log = logging.getLogger(__name__)

LED_STREAM_DATA_SIZE = 8
LED_ID_POS = 7
DEFAULT_QUEUE_SIZE = 5

OPTION_NAMES = ("set_led_effect", "get_leds_state")

_STEP_FORMAT = struct.Struct("<3BHH")


def _brightness_to_pct(value: int) -> int:
    return value * 100 // 0xFF


@dataclass(frozen=True)
class LedStep:
    """One LED effect step: colour in percent, substep count and substep time."""

    color: Tuple[int, int, int]
    substep_count: int
    substep_time: int


@dataclass(frozen=True)
class _StreamEffect:
    led_id: int
    steps: Tuple[LedStep, ...]
    stream: Any = field(compare=False, repr=False)


@dataclass
class _Led:
    queue: Deque[LedStep] = field(default_factory=deque)
    state_effect: Any = None
    streaming: bool = False


class LedStream:
    """Queues incoming LED steps per LED and plays them one after another.

    ``send(led_id, effect)`` is called for every effect that should be displayed.
    """

    def __init__(
        self,
        led_count: int,
        send: Callable[[int, Any], None],
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        if queue_size <= 0:
            raise ValueError("queue_size must be positive")
        self.queue_size = queue_size
        self._send = send
        self._leds: List[_Led] = [_Led() for _ in range(led_count)]
        self.initialized = False

    def _free_places(self, led: _Led) -> int:
        return self.queue_size - len(led.queue)

    def _is_own_effect(self, led_id: int, effect: Any) -> bool:
        return (
            isinstance(effect, _StreamEffect)
            and effect.stream is self
            and effect.led_id == led_id
        )

    def _send_from_queue(self, led_id: int) -> None:
        led = self._leds[led_id]
        if led.queue:
            step = led.queue.popleft()
            self._send(led_id, _StreamEffect(led_id, (step,), self))
        else:
            _log.info("No steps ready in queue, stop streaming")
            led.streaming = False
            if led.state_effect is not None:
                self._send(led_id, led.state_effect)

    def set_led_effect(self, data) -> bool:
        """Handle a step frame from the host; return True if the step was queued."""
        data = bytes(data)
        if not self.initialized:
            _log.warning("Not initialized")
            return False
        if len(data) <= LED_ID_POS:
            raise ValueError(f"Invalid stream data size ({len(data)})")

        led_id = data[LED_ID_POS]
        if led_id >= len(self._leds):
            raise ValueError(f"Wrong LED ID: {led_id}, effect ignored")
        led = self._leds[led_id]

        queued = False
        if self._free_places(led) > 0:
            if len(data) != LED_STREAM_DATA_SIZE:
                raise ValueError(f"Invalid stream data size ({len(data)})")
            r, g, b, substep_count, substep_time = _STEP_FORMAT.unpack_from(data)
            if substep_count == 0:
                raise ValueError("Dropped led_effect with substep count equal 0")
            color = (_brightness_to_pct(r), _brightness_to_pct(g), _brightness_to_pct(b))
            led.queue.append(LedStep(color, substep_count, substep_time))
            queued = True
        else:
            _log.warning("Queue is full - drop incoming step")

        if not led.streaming:
            led.streaming = True
            self._send_from_queue(led_id)
        return queued

    def leds_state(self) -> bytes:
        """The initialized flag followed by the number of free queue places per LED."""
        return bytes([int(self.initialized)] + [self._free_places(led) for led in self._leds])

    def on_led_event(self, led_id, effect) -> bool:
        """Remember a state effect; return True if it must be held back while streaming."""
        led = self._leds[led_id]
        if self._is_own_effect(led_id, effect):
            return False
        if effect is None:
            raise ValueError("LED effect must be given")
        led.state_effect = effect
        return led.streaming

    def on_led_ready(self, led_id, effect) -> bool:
        """Play the next queued step once the previous streamed step has finished."""
        if self._is_own_effect(led_id, effect):
            self._send_from_queue(led_id)
        return True

    def on_leds_ready(self) -> bool:
        """Mark the LEDs as ready; return True if this changed the state."""
        if self.initialized:
            return False
        self.initialized = True
        return True

    def on_leds_off(self) -> None:
        """Mark the LEDs as switched off or in standby."""
        self.initialized = False