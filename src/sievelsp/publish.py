"""Ordering of diagnostic publications per document.

Validations run concurrently, so a result computed from an older snapshot can
finish after one computed from a newer snapshot.  :class:`PublishGate` keeps
the newest snapshot sequence published for each URI and refuses anything
older, including results that finish after the document was closed.
"""
from __future__ import annotations

import threading


class PublishGate:

    def __init__(self):
        self._latest: dict[str, int] = {}
        self._retired: set[str] = set()
        self._lock = threading.Lock()

    def admit(self, uri: str, sequence: int) -> bool:
        """Record *sequence* as published for *uri* unless a newer one was."""
        with self._lock:
            if sequence < self._latest.get(uri, -1):
                return False
            self._latest[uri] = sequence
            self._retired.discard(uri)
            return True

    def retire(self, uri: str, sequence: int) -> None:
        """Mark *uri* as closed at *sequence*; earlier results are dropped."""
        with self._lock:
            self._latest[uri] = max(sequence, self._latest.get(uri, -1))
            self._retired.add(uri)

    def prune(self) -> int:
        """Forget closed URIs.  Only safe while no validation is in flight."""
        with self._lock:
            for uri in self._retired:
                del self._latest[uri]
            count = len(self._retired)
            self._retired.clear()
            return count
