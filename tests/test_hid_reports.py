import pytest

from deskhid.hid_items import Item, ItemSet
from deskhid.hid_reports import (
    MouseAxes,
    ReportLayout,
    encode_boot_mouse,
    encode_ctrl,
    encode_keyboard,
    encode_mouse,
)


def _decode_mouse(data):
    x = data[3] | ((data[4] & 0x0F) << 8)
    y = (data[4] >> 4) | (data[5] << 4)
    if x & 0x800:
        x -= 0x1000
    if y & 0x800:
        y -= 0x1000
    wheel = data[2] - 256 if data[2] & 0x80 else data[2]
    return data[1], wheel, x, y


def test_keyboard_key_and_modifier():
    items = ItemSet(6)
    items.set(0x04, 1)
    items.set(0xE1, 1)
    assert encode_keyboard(3, items) == bytes([3, 0x02, 0, 0x04, 0, 0, 0, 0, 0])


def test_keyboard_empty_report_is_zeroed():
    data = encode_keyboard(3, ItemSet(6))
    assert data == bytes([3]) + bytes(8)


def test_keyboard_keys_from_highest_usage():
    items = [Item(4, 1), Item(5, 1), Item(6, 1)]
    data = encode_keyboard(1, items)
    assert list(data[3:6]) == [6, 5, 4]


def test_keyboard_truncates_to_key_count():
    items = [Item(usage, 1) for usage in range(4, 12)]
    layout = ReportLayout()
    data = encode_keyboard(1, items, layout)
    assert len(data) == 3 + layout.keyboard_key_count
    assert list(data[3:]) == list(range(11, 11 - layout.keyboard_key_count, -1))


def test_keyboard_ignores_undefined_usage():
    data = encode_keyboard(1, [Item(0x90, 1), Item(4, 1)])
    assert data[3:] == bytes([4, 0, 0, 0, 0, 0])
    assert data[1] == 0


def test_layout_rejects_wide_modifier_range():
    with pytest.raises(ValueError):
        ReportLayout(keyboard_first_modifier=0xE0, keyboard_last_modifier=0xE8)


@pytest.mark.parametrize("x,y", [(1, -1), (-5, 7), (300, -400), (-2047, 2047), (0, 0)])
def test_mouse_motion_round_trip(x, y):
    axes = MouseAxes(x=x, y=y)
    data, more = encode_mouse(1, axes, [])
    assert len(data) == 6
    buttons, wheel, dx, dy = _decode_mouse(data)
    assert (dx, dy) == (x, -y)
    assert buttons == 0 and wheel == 0
    assert not more
    assert axes == MouseAxes()


def test_mouse_clamps_and_keeps_remainder():
    layout = ReportLayout()
    axes = MouseAxes(x=layout.mouse_xy_max + 10, y=0)
    data, more = encode_mouse(1, axes, [], layout)
    assert _decode_mouse(data)[2] == layout.mouse_xy_max
    assert more
    assert axes.x == 10
    data, more = encode_mouse(1, axes, [], layout)
    assert _decode_mouse(data)[2] == 10
    assert not more


def test_mouse_wheel_is_halved_and_odd_rest_kept():
    axes = MouseAxes(wheel=-5)
    data, more = encode_mouse(1, axes, [])
    assert _decode_mouse(data)[1] == -2
    assert axes.wheel == -1
    assert not more


def test_mouse_buttons_bitmask():
    data, _ = encode_mouse(1, MouseAxes(), [Item(1, 1), Item(3, 1)])
    assert data[1] == 0b101


def test_mouse_rejects_invalid_button():
    with pytest.raises(ValueError):
        encode_mouse(1, MouseAxes(), [Item(9, 1)])


def test_boot_mouse_clamps_and_drops_wheel():
    axes = MouseAxes(x=200, y=-3, wheel=4)
    data, more = encode_boot_mouse(2, axes, [Item(2, 1)])
    assert data == bytes([2, 0b10, 127, 3])
    assert more
    assert axes.wheel == 0
    assert axes.x == 200 - 127
    data, more = encode_boot_mouse(2, axes, [])
    assert data[2] == 200 - 127
    assert not more


def test_boot_mouse_negative_motion_twos_complement():
    axes = MouseAxes(x=-1, y=1)
    data, _ = encode_boot_mouse(2, axes, [])
    assert data[2] == 0xFF and data[3] == 0xFF


def test_ctrl_report_little_endian_usage():
    items = ItemSet(1)
    items.set(0x00E9, 1)
    assert encode_ctrl(4, items) == bytes([4, 0xE9, 0x00])


def test_ctrl_report_empty():
    assert encode_ctrl(5, []) == bytes([5, 0, 0])


def test_mouse_axes_clear():
    axes = MouseAxes(1, 2, 3)
    axes.clear()
    assert (axes.x, axes.y, axes.wheel) == (0, 0, 0)