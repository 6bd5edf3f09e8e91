# deskhid

Event-driven building blocks for a desktop input device such as a mouse,
keyboard or dongle. The package holds the logic that records pressed keys,
encodes HID reports, queues reports for hosts, runs the configuration channel
and drives status LEDs. It has no dependencies outside the standard library.

## Modules

- `deskhid.hid_items`
  - `ItemSet` records the usages active in one report. Values are reference
    counters: `set(usage_id, value)` adds to a usage, and the usage goes away
    at zero. `pressed()` returns the `Item`s sorted by usage ID.
  - `EventQueue` holds pending usage changes, each stamped with a 32-bit
    millisecond time. `cleanup(timestamp)` removes expired events, but only
    where each key down is paired with its key up.
  - `Keymap` translates key IDs to `KeymapEntry` (usage and report ID) with
    `lookup(key_id)`.
- `deskhid.hid_reports`
  - `encode_keyboard`, `encode_mouse`, `encode_boot_mouse` and `encode_ctrl`
    build report bytes from an `ItemSet` or from items.
  - The mouse encoders take motion from a `MouseAxes` and subtract what they
    sent. They return whether motion is left for another report.
  - `ReportLayout` sets key counts, usage ranges and axis limits.
- `deskhid.hid_reportq`
  - `HidReportQueuePool` hands out `HidReportQueue`s, one per subscriber.
  - A queue submits a report at once while fewer than `report_max` are in
    flight. Otherwise it queues the report under its report ID and drops the
    oldest one when that ID's queue is full.
  - `sent()` submits the next queued report, taking report IDs in round-robin
    order.
- `deskhid.config_channel`
  - `parse_report`, `fill_report` and `disabled_response` handle the framing
    of configuration channel reports.
  - `ConfigChannelTransport` tracks a request until its response arrives. The
    caller calls `expire()` when the response timer of a request runs out.
- `deskhid.dfu_lock` – `DfuLock` is a thread-safe ownership lock. When a
  different owner claims it, the previous owner is told through its
  `owner_changed` callback.
- `deskhid.led_stream` – `LedStream` queues LED effect steps that arrive as
  8-byte frames. It plays them one at a time for each LED and restores the LED's
  state effect when its queue runs empty.
- `deskhid.led_state` – `LedStateController` turns peer, peer search, peer
  operation, battery and module error events into system and peer LED effects.
- `deskhid.swift_pair` – `SwiftPair` decides whether the Swift Pair
  advertising payload is enabled for the selected peer.
- `deskhid.usb_power` – `power_restriction` and `UsbPowerManager` map USB
  states to power-level restrictions. Suspend also triggers a forced power-down
  callback.

## Examples

Encoding a keyboard report:

```python
from deskhid.hid_items import ItemSet
from deskhid.hid_reports import encode_keyboard

keys = ItemSet(count_max=6)
keys.set(0x04, 1)   # key "a" down
keys.set(0xE1, 1)   # left shift down
encode_keyboard(1, keys)
# b"\x01\x02\x00\x04\x00\x00\x00\x00\x00"
```

A configuration channel round trip:

```python
from deskhid.config_channel import ConfigChannelTransport, ConfigEvent, StatusCodes

statuses = StatusCodes(pending=0x05, timeout=0x06, disconnected=0x08)
transport = ConfigChannelTransport(report_size=30, statuses=statuses)

request = transport.set(bytes([0, 1, 0, 0]))          # host sends a request
response = ConfigEvent(0, 1, 0, b"\x2a", transport_id=request.transport_id)
transport.receive_response(response)                  # True
transport.get(5)                                      # b"\x00\x01\x00\x01\x2a"
```

Sharing the DFU flash area:

```python
from deskhid.dfu_lock import DfuLock, DfuLockOwner, DfuLockError

lock = DfuLock()
smp = DfuLockOwner("smp")
config = DfuLockOwner("config_channel")

lock.claim(smp)
try:
    lock.claim(config)
except DfuLockError:
    print("update already in progress")
lock.release(smp)
```

## What the package does not do

- The package has no component that ties these parts together into one HID
  state. Nothing here takes button, motion and wheel events, routes them to the
  highest-priority subscriber or keeps each subscriber's report pipeline full.
  An application does this itself with `ItemSet`, `EventQueue`, `Keymap` and
  the encoders.
- It talks to no USB or Bluetooth stack and drives no LEDs itself. Every
  component passes its output to callbacks that the caller provides.
- It runs no timers. Timeouts such as `ConfigChannelTransport.expire()` are
  called by the application.

## Installation

```
pip install deskhid
```

To run the tests, install the `test` extra and run `pytest`:

```
pip install deskhid[test]
pytest
```