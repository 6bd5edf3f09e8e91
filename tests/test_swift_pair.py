import pytest

from deskhid.swift_pair import DEFAULT_APP_ID, INVALID_APP_ID, PeerOperation, SwiftPair


@pytest.fixture
def changes():
    return []


@pytest.fixture
def swift(changes):
    return SwiftPair(
        advertise_to_dongle=False,
        advertise_to_general=True,
        on_payload_change=changes.append,
    )


def test_dongle_peer_updates_for_default_peer(swift, changes):
    swift.on_dongle_peer(1)
    assert swift.dongle_app_id == 1
    assert changes == [True]
    assert swift.payload_enabled is True


def test_dongle_peer_equal_to_default(swift, changes):
    swift.on_dongle_peer(DEFAULT_APP_ID)
    assert swift.payload_enabled is False
    assert swift.dongle_app_id == DEFAULT_APP_ID
    assert changes == [False]


def test_invalid_dongle_peer_rejected(swift):
    with pytest.raises(ValueError):
        swift.on_dongle_peer(INVALID_APP_ID)


def test_operation_before_dongle_peer_rejected(swift):
    with pytest.raises(RuntimeError):
        swift.on_peer_operation(PeerOperation.SELECTED, 0)


@pytest.mark.parametrize(
    "op",
    [PeerOperation.SELECTED, PeerOperation.ERASE_ADV, PeerOperation.ERASE_ADV_CANCEL],
)
def test_selecting_dongle_peer_disables_payload(swift, changes, op):
    swift.on_dongle_peer(1)
    swift.on_peer_operation(op, 1)
    assert changes == [True, False]
    assert swift.payload_enabled is False


def test_selecting_general_peer_enables_payload(swift, changes):
    swift.on_dongle_peer(1)
    swift.on_peer_operation(PeerOperation.SELECTED, 1)
    assert swift.payload_enabled is False
    swift.on_peer_operation(PeerOperation.SELECTED, 0)
    assert swift.payload_enabled is True
    assert changes == [True, False, True]


@pytest.mark.parametrize(
    "op",
    [PeerOperation.SELECT, PeerOperation.ERASE, PeerOperation.ERASED,
     PeerOperation.CANCEL, PeerOperation.SCAN_REQUEST],
)
def test_other_operations_ignored(swift, changes, op):
    swift.on_dongle_peer(1)
    swift.on_peer_operation(op, 1)
    assert swift.payload_enabled is True
    assert changes == [True]


def test_dongle_advertising_enabled():
    changes = []
    swift = SwiftPair(
        advertise_to_dongle=True,
        advertise_to_general=False,
        on_payload_change=changes.append,
    )
    swift.on_dongle_peer(2)
    assert swift.payload_enabled is False
    swift.on_peer_operation(PeerOperation.SELECTED, 2)
    assert swift.payload_enabled is True
    assert changes == [False, True]