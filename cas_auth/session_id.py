"""Session identifiers used to tag login attempts on the transport."""

from __future__ import annotations

import threading


class AuthIdGenerator:
    """Thread-safe, strictly increasing session id source.

    A single instance is meant to be shared by every ``Auth`` in the
    process so that concurrent attempts never share a transport session.
    """

    def __init__(self, start: int = 0) -> None:
        """Initialise the counter; the first id returned is ``start + 1``."""
        self._id = start
        self._lock = threading.Lock()

    def next_id(self) -> int:
        """Return the next session id."""
        with self._lock:
            self._id += 1
            return self._id
