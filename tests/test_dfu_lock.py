import pytest

from deskhid.dfu_lock import DfuLock, DfuLockError, DfuLockOwner


def test_claim_sets_owner():
    lock = DfuLock()
    owner = DfuLockOwner("smp")
    lock.claim(owner)
    assert lock.owner is owner


def test_claim_twice_by_same_owner():
    lock = DfuLock()
    owner = DfuLockOwner("smp")
    lock.claim(owner)
    lock.claim(owner)
    assert lock.owner is owner


def test_claim_by_other_owner_fails():
    lock = DfuLock()
    first = DfuLockOwner("smp")
    lock.claim(first)
    with pytest.raises(DfuLockError):
        lock.claim(DfuLockOwner("config channel"))
    assert lock.owner is first


def test_release_by_non_owner_fails():
    lock = DfuLock()
    first = DfuLockOwner("smp")
    lock.claim(first)
    with pytest.raises(DfuLockError):
        lock.release(DfuLockOwner("config channel"))
    assert lock.owner is first


def test_release_of_free_lock_fails():
    lock = DfuLock()
    with pytest.raises(DfuLockError):
        lock.release(DfuLockOwner("smp"))


def test_release_frees_lock():
    lock = DfuLock()
    owner = DfuLockOwner("smp")
    lock.claim(owner)
    lock.release(owner)
    assert lock.owner is None


def test_previous_owner_notified_of_new_owner():
    notified = []
    lock = DfuLock()
    first = DfuLockOwner("smp", owner_changed=notified.append)
    second = DfuLockOwner("config channel")
    lock.claim(first)
    lock.release(first)
    lock.claim(second)
    assert notified == [second]
    assert lock.owner is second


def test_reclaim_by_previous_owner_not_notified():
    notified = []
    lock = DfuLock()
    owner = DfuLockOwner("smp", owner_changed=notified.append)
    lock.claim(owner)
    lock.release(owner)
    lock.claim(owner)
    assert notified == []
    assert lock.owner is owner


def test_claim_none_rejected():
    with pytest.raises(ValueError):
        DfuLock().claim(None)