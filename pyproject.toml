[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "deskhid"
version = "0.1.0"
description = "Building blocks for desktop input devices: HID items and report encoding, report queues, configuration channel transport, DFU lock and LED logic"
requires-python = ">=3.10"
dependencies = []
keywords = ["hid", "usb", "keyboard", "mouse", "reports", "config-channel", "led"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Hardware :: Universal Serial Bus (USB) :: Human Interface Device (HID)",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["deskhid"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
