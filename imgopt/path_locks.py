"""
PathLocks - One lock per destination path.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List


class PathLocks:
    """
    Serializes work on the same destination path within a process.

    Entries are dropped once no thread holds or waits for them, so the
    registry stays as small as the number of paths in flight.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, List] = {}

    @contextmanager
    def hold(self, path: str) -> Iterator[None]:
        """Hold the lock for path for the duration of the block."""
        with self._guard:
            entry = self._locks.get(path)
            if entry is None:
                entry = self._locks[path] = [threading.Lock(), 0]
            entry[1] += 1

        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[path]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
