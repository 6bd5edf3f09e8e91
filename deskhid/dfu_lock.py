"""Mutual exclusion between the users of the DFU flash area."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

_log = logging.getLogger(__name__)


class DfuLockError(Exception):
    """Raised when the lock is held by another owner or not held by the caller."""


@dataclass(eq=False)
class DfuLockOwner:
    """A DFU lock owner; ``owner_changed`` learns that another owner took the lock."""

    name: str
    owner_changed: Optional[Callable[["DfuLockOwner"], None]] = None


class DfuLock:
    """A lock over the DFU flash memory, aware of its previous owner."""

    def __init__(self) -> None:
        self._mutex = threading.Lock()
        self._current: Optional[DfuLockOwner] = None
        self._previous: Optional[DfuLockOwner] = None

    @property
    def owner(self) -> Optional[DfuLockOwner]:
        """The current owner, or None when the lock is free."""
        with self._mutex:
            return self._current

    def claim(self, owner: DfuLockOwner) -> None:
        """Claim the lock; claiming it again with the same owner has no effect."""
        if owner is None:
            raise ValueError("Owner must be given")
        with self._mutex:
            if self._current is owner:
                return
            if self._current is not None:
                raise DfuLockError(f"DFU lock already claimed by {self._current.name}")
            self._current = owner
            previous = self._previous
            if previous is not None and previous.owner_changed is not None:
                if previous is not owner:
                    previous.owner_changed(owner)
            _log.debug("New DFU owner claimed: %s", owner.name)

    def release(self, owner: DfuLockOwner) -> None:
        """Release the lock held by ``owner``."""
        with self._mutex:
            if self._current is not owner:
                raise DfuLockError("DFU lock is not held by this owner")
            self._previous = self._current
            self._current = None
            _log.debug("DFU lock released by %s", owner.name)