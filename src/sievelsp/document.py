"""
Per-document text store.

Each open document is stored as a :class:`Document` holding a
:class:`~sievelsp.buffer.TextBuffer` and the client-assigned version.  The
:class:`DocumentStore` gives every entry its own lock, so edits to one
document never wait on edits or snapshots of another; the store-wide lock is
only held for the instant it takes to insert, look up or remove an entry.

Validation never reads a live buffer.  It works on a :class:`DocumentSnapshot`
copied under the entry lock, so it always sees one complete version of the
text.  Each snapshot carries a store-wide ``sequence`` number that orders
snapshots by the time they were taken (see :mod:`sievelsp.publish`).
"""
from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Iterable

from sievelsp.buffer import TextBuffer, utf16_to_column

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentSnapshot:
    uri: str
    text: str
    version: int
    sequence: int


@dataclass
class Document:
    uri: str
    buffer: TextBuffer
    version: int

    @classmethod
    def create(cls, uri: str, text: str, version: int) -> Document:
        return cls(uri=uri, buffer=TextBuffer(text), version=version)

    def apply_change(self, change) -> None:
        """Apply one LSP content change event.

        *change* has a ``text`` attribute and, for ranged edits, a ``range``
        whose characters are UTF-16 code units.  Without a range the whole
        content is replaced.
        """
        rng = getattr(change, 'range', None)
        if rng is None:
            self.buffer.replace_all(change.text)
            return
        start, end = rng.start, rng.end
        self.buffer.replace(
            start.line, self._column(start.line, start.character),
            end.line, self._column(end.line, end.character),
            change.text,
        )

    def _column(self, line: int, units: int) -> int:
        text = self.buffer.get_line(line)
        return units if text is None else utf16_to_column(text, units)


@dataclass
class _Entry:
    document: Document
    lock: threading.Lock = field(default_factory=threading.Lock)


class DocumentStore:
    """Concurrent URI → :class:`Document` map with per-document locking."""

    def __init__(self):
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._sequence = itertools.count()

    def __contains__(self, uri: str) -> bool:
        with self._lock:
            return uri in self._entries

    def uris(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def next_sequence(self) -> int:
        return next(self._sequence)

    def _entry(self, uri: str) -> _Entry | None:
        with self._lock:
            return self._entries.get(uri)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self, uri: str, text: str, version: int) -> None:
        """Insert *uri*, replacing any existing entry under the same URI."""
        entry = _Entry(Document.create(uri, text, version))
        with self._lock:
            self._entries[uri] = entry
        logger.debug('open: %s (version %s, %d chars)', uri, version, len(text))

    def apply_change(self, uri: str, changes: Iterable, version: int) -> bool:
        """Apply *changes* to *uri* in order and record *version*.

        Returns False, without raising, when *uri* is not open.
        """
        entry = self._entry(uri)
        if entry is None:
            logger.warning('apply_change: received change for unknown document %s', uri)
            return False
        with entry.lock:
            doc = entry.document
            full_replace = False
            for change in changes:
                try:
                    doc.apply_change(change)
                except ValueError as e:
                    logger.warning('apply_change: skipping malformed edit for %s: %s', uri, e)
                    continue
                full_replace = full_replace or getattr(change, 'range', None) is None
            if full_replace or version >= doc.version:
                doc.version = version
            else:
                logger.warning('apply_change: %s version went backwards (%s < %s), keeping %s',
                               uri, version, doc.version, doc.version)
        return True

    def close(self, uri: str) -> int | None:
        """Remove *uri*; return the sequence number marking its removal."""
        with self._lock:
            entry = self._entries.pop(uri, None)
        if entry is None:
            logger.debug('close: %s was not open', uri)
            return None
        with entry.lock:
            return self.next_sequence()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_snapshot(self, uri: str) -> DocumentSnapshot | None:
        entry = self._entry(uri)
        if entry is None:
            return None
        with entry.lock:
            doc = entry.document
            return DocumentSnapshot(
                uri=uri,
                text=doc.buffer.get_full_text(),
                version=doc.version,
                sequence=self.next_sequence(),
            )

    def get_line(self, uri: str, n: int) -> str | None:
        entry = self._entry(uri)
        if entry is None:
            return None
        with entry.lock:
            return entry.document.buffer.get_line(n)
