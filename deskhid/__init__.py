"""Desktop input device building blocks: HID items, report encoding and queuing, configuration channel, DFU lock and LED logic."""

__version__ = "0.1.0"