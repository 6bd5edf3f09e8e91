"""Encoding of HID input reports from the recorded HID state."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Tuple, Union

from deskhid.hid_items import Item, ItemSet

_log = logging.getLogger(__name__)

MOUSE_BUTTON_COUNT = 8
BOOT_MOUSE_XY_MIN = -128
BOOT_MOUSE_XY_MAX = 127

Items = Union[ItemSet, Iterable[Item]]


@dataclass(frozen=True)
class ReportLayout:
    """Limits and usage ranges that shape the keyboard and mouse reports."""

    keyboard_key_count: int = 6
    keyboard_last_key: int = 0x65
    keyboard_first_modifier: int = 0xE0
    keyboard_last_modifier: int = 0xE7
    mouse_xy_min: int = -0x07FF
    mouse_xy_max: int = 0x07FF
    mouse_wheel_min: int = -0x7F
    mouse_wheel_max: int = 0x7F

    def __post_init__(self) -> None:
        if self.keyboard_key_count <= 0:
            raise ValueError("keyboard_key_count must be positive")
        if self.keyboard_last_key > 0xFF:
            raise ValueError("Keyboard keys must fit into one byte")
        if not 0 <= self.keyboard_last_modifier - self.keyboard_first_modifier < 8:
            raise ValueError("Modifiers must fit into one byte bitmask")


@dataclass
class MouseAxes:
    """Motion accumulated since the last mouse report."""

    x: int = 0
    y: int = 0
    wheel: int = 0

    def clear(self) -> None:
        """Forget all accumulated motion."""
        self.x = 0
        self.y = 0
        self.wheel = 0


def _clamp(value: int, low: int, high: int) -> int:
    return max(min(value, high), low)


def _half_toward_zero(value: int) -> int:
    half = abs(value) // 2
    return half if value >= 0 else -half


def _sorted_items(items: Items) -> Tuple[Item, ...]:
    if isinstance(items, ItemSet):
        return items.pressed()
    return tuple(sorted(items, key=lambda item: item.usage_id))


def _button_bitmask(items: Items) -> int:
    bitmask = 0
    for item in _sorted_items(items):
        if not 1 <= item.usage_id <= MOUSE_BUTTON_COUNT:
            raise ValueError(f"Invalid mouse button usage {item.usage_id}")
        if item.value <= 0:
            raise ValueError(f"Invalid value {item.value} of usage {item.usage_id}")
        bitmask |= 1 << (item.usage_id - 1)
    return bitmask


def encode_keyboard(report_id, items, layout=None) -> bytes:
    """Keyboard report: report ID, modifier bitmask, reserved byte and key usages.

    Keys are taken from the highest usage ID down; the boot keyboard report
    uses the same formatting.
    """
    layout = layout or ReportLayout()
    modifiers = 0
    keys = []
    for item in reversed(_sorted_items(items)):
        if len(keys) >= layout.keyboard_key_count:
            break
        if item.value <= 0:
            raise ValueError(f"Invalid value {item.value} of usage {item.usage_id}")
        if item.usage_id <= layout.keyboard_last_key:
            keys.append(item.usage_id)
        elif layout.keyboard_first_modifier <= item.usage_id <= layout.keyboard_last_modifier:
            modifiers |= 1 << (item.usage_id - layout.keyboard_first_modifier)
        else:
            _log.warning("Undefined usage 0x%x", item.usage_id)
    keys.extend([0] * (layout.keyboard_key_count - len(keys)))
    return bytes([report_id, modifiers, 0, *keys])


def encode_mouse(report_id, axes, items, layout=None) -> Tuple[bytes, bool]:
    """Mouse report with 12-bit X/Y and an 8-bit wheel; consumes the sent motion.

    Returns the report and whether motion is left for another report.
    """
    layout = layout or ReportLayout()

    dx = _clamp(axes.x, layout.mouse_xy_min, layout.mouse_xy_max)
    dy = _clamp(-axes.y, layout.mouse_xy_min, layout.mouse_xy_max)
    axes.x -= dx
    axes.y += dy

    wheel = _clamp(_half_toward_zero(axes.wheel), layout.mouse_wheel_min, layout.mouse_wheel_max)
    axes.wheel -= wheel * 2

    buttons = _button_bitmask(items)

    x = dx & 0xFFFF
    y = dy & 0xFFFF
    x_lo, x_hi = x & 0xFF, x >> 8
    y_lo, y_hi = y & 0xFF, y >> 8
    data = bytes(
        [
            report_id,
            buttons,
            wheel & 0xFF,
            x_lo,
            ((y_lo << 4) | (x_hi & 0x0F)) & 0xFF,
            ((y_hi << 4) | (y_lo >> 4)) & 0xFF,
        ]
    )
    more = axes.x != 0 or axes.y != 0 or axes.wheel < -1 or axes.wheel > 1
    return data, more


def encode_boot_mouse(report_id, axes, items) -> Tuple[bytes, bool]:
    """Boot protocol mouse report: buttons and 8-bit X/Y; the wheel is discarded.

    Returns the report and whether motion is left for another report.
    """
    dx = _clamp(axes.x, BOOT_MOUSE_XY_MIN, BOOT_MOUSE_XY_MAX)
    dy = _clamp(-axes.y, BOOT_MOUSE_XY_MIN, BOOT_MOUSE_XY_MAX)
    axes.x -= dx
    axes.y += dy
    axes.wheel = 0

    buttons = _button_bitmask(items)
    data = bytes([report_id, buttons, dx & 0xFF, dy & 0xFF])
    return data, axes.x != 0 or axes.y != 0


def encode_ctrl(report_id, items) -> bytes:
    """System or consumer control report: the highest active usage as little-endian 16 bits."""
    pressed = _sorted_items(items)
    usage = pressed[-1].usage_id if pressed else 0
    return bytes([report_id]) + usage.to_bytes(2, "little")