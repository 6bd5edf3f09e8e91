import pytest

from deskhid.usb_power import PowerLevel, UsbPowerManager, UsbState, power_restriction


@pytest.mark.parametrize(
    ("state", "level"),
    [
        (UsbState.POWERED, PowerLevel.SUSPENDED),
        (UsbState.ACTIVE, PowerLevel.ALIVE),
        (UsbState.DISCONNECTED, PowerLevel.MAX),
        (UsbState.SUSPENDED, PowerLevel.SUSPENDED),
    ],
)
def test_power_restriction(state, level):
    assert power_restriction(state) is level


def test_unknown_state_ignored():
    assert power_restriction("unknown") is None


@pytest.fixture
def calls():
    return {"restrict": [], "down": []}


@pytest.fixture
def manager(calls):
    return UsbPowerManager(
        restrict=calls["restrict"].append,
        force_power_down=lambda: calls["down"].append(True),
    )


def test_active_restricts_to_alive(manager, calls):
    assert manager.on_usb_state(UsbState.ACTIVE) is PowerLevel.ALIVE
    assert calls["restrict"] == [PowerLevel.ALIVE]
    assert calls["down"] == []
    assert manager.level is PowerLevel.ALIVE


def test_suspend_forces_power_down(manager, calls):
    assert manager.on_usb_state(UsbState.SUSPENDED) is PowerLevel.SUSPENDED
    assert manager.level is PowerLevel.SUSPENDED
    assert calls["restrict"] == [PowerLevel.SUSPENDED]
    assert calls["down"] == [True]


def test_sequence_of_states(manager, calls):
    levels = [
        manager.on_usb_state(state)
        for state in (UsbState.POWERED, UsbState.ACTIVE, UsbState.DISCONNECTED)
    ]
    assert levels == [PowerLevel.SUSPENDED, PowerLevel.ALIVE, PowerLevel.MAX]
    assert manager.level is PowerLevel.MAX
    assert calls["restrict"] == [PowerLevel.SUSPENDED, PowerLevel.ALIVE, PowerLevel.MAX]
    assert calls["down"] == []


def test_ignored_state_keeps_level(manager, calls):
    manager.on_usb_state(UsbState.ACTIVE)
    assert manager.on_usb_state("unknown") is None
    assert manager.level is PowerLevel.ALIVE
    assert calls["restrict"] == [PowerLevel.ALIVE]


def test_restrictions_are_ordered():
    alive = power_restriction(UsbState.ACTIVE)
    suspended = power_restriction(UsbState.POWERED)
    maximum = power_restriction(UsbState.DISCONNECTED)
    assert alive < suspended < maximum