"""
Chunked line buffer backing every open document.

The text is held as a list of chunks, each a list of at most ``CHUNK_SIZE``
lines.  Every line keeps its terminator except the last line of the
document, which never has one (it may be empty).  A cumulative line index
over the chunks is searched with :mod:`bisect`, so locating a line costs
O(log n) and an edit only re-splits the chunks that hold the edited lines.
"""
from __future__ import annotations

import re
from bisect import bisect_right
from typing import Iterator

CHUNK_SIZE = 64

_TERMINATOR_RE = re.compile(r'\r\n|\r|\n')


def _split_lines(text: str) -> list[str]:
    """Split *text* into lines keeping terminators.

    The result always ends with the (possibly empty) unterminated tail, so
    ``'a\\n'`` gives ``['a\\n', '']`` and ``''`` gives ``['']``.
    """
    lines: list[str] = []
    pos = 0
    for m in _TERMINATOR_RE.finditer(text):
        lines.append(text[pos:m.end()])
        pos = m.end()
    lines.append(text[pos:])
    return lines


def logical_lines(text: str) -> list[str]:
    """Return the lines of *text* without terminators, splitting as LSP clients do.

    ``\\r\\n``, a lone ``\\r`` and ``\\n`` all end a line.  The empty tail after a
    final terminator is not a line of its own.
    """
    lines = [_content(line) for line in _split_lines(text)]
    if lines[-1] == '':
        lines.pop()
    return lines


def _content(line: str) -> str:
    """Return *line* without its terminator."""
    if line.endswith('\r\n'):
        return line[:-2]
    if line.endswith(('\n', '\r')):
        return line[:-1]
    return line


def utf16_to_column(line: str, units: int) -> int:
    """Convert a UTF-16 code-unit offset within *line* to a code-point column."""
    count = 0
    for col, ch in enumerate(line):
        if count >= units:
            return col
        count += 2 if ord(ch) > 0xFFFF else 1
    return len(line)


def column_to_utf16(line: str, column: int) -> int:
    """Convert a code-point column within *line* to UTF-16 code units."""
    return sum(2 if ord(ch) > 0xFFFF else 1 for ch in line[:column])


class TextBuffer:
    """Editable text addressed by (line, column) coordinates."""

    def __init__(self, text: str = ''):
        self._chunks: list[list[str]] = []
        self._starts: list[int] = []
        self._line_count = 0
        self.replace_all(text)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def line_count(self) -> int:
        return self._line_count

    def lines(self) -> Iterator[str]:
        for chunk in self._chunks:
            yield from chunk

    def get_full_text(self) -> str:
        return ''.join(self.lines())

    def get_line(self, n: int) -> str | None:
        """Return line *n* including its terminator, or None when out of bounds."""
        if n < 0 or n >= self._line_count:
            return None
        ci = self._chunk_index(n)
        return self._chunks[ci][n - self._starts[ci]]

    def get_range(self, start_line: int, start_col: int,
                  end_line: int, end_col: int) -> str:
        """Return the text between two (line, column) positions."""
        (start_line, start_col), (end_line, end_col) = self._normalize(
            start_line, start_col, end_line, end_col)
        if start_line == end_line:
            return self.get_line(start_line)[start_col:end_col]
        parts = [self.get_line(start_line)[start_col:]]
        parts.extend(self.get_line(i) for i in range(start_line + 1, end_line))
        parts.append(self.get_line(end_line)[:end_col])
        return ''.join(parts)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def replace_all(self, new_text: str) -> None:
        """Discard all content and load *new_text*."""
        lines = _split_lines(new_text)
        self._chunks = [lines[i:i + CHUNK_SIZE]
                        for i in range(0, len(lines), CHUNK_SIZE)]
        self._reindex()

    def replace(self, start_line: int, start_col: int,
                end_line: int, end_col: int, new_text: str) -> None:
        """Replace the text between two positions with *new_text*.

        Raises :class:`ValueError` if the start lies after the end.
        """
        (start_line, start_col), (end_line, end_col) = self._normalize(
            start_line, start_col, end_line, end_col)

        first = start_line
        prefix = self.get_line(start_line)[:start_col]
        # A lone '\r' ending the previous line could pair with a leading '\n'.
        if first > 0 and not prefix:
            previous = self.get_line(first - 1)
            if previous.endswith('\r'):
                first -= 1
                prefix = previous
        suffix = self.get_line(end_line)[end_col:]

        segment = _split_lines(prefix + new_text + suffix)
        if end_line < self._line_count - 1:
            # suffix carries end_line's terminator, so the tail is empty.
            segment.pop()
        self._splice(first, end_line + 1, segment)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _normalize(self, start_line, start_col, end_line, end_col):
        start = self._clamp(start_line, start_col)
        end = self._clamp(end_line, end_col)
        if start > end:
            raise ValueError(f'range start {start} is after range end {end}')
        return start, end

    def _clamp(self, line: int, col: int) -> tuple[int, int]:
        last = self._line_count - 1
        if line > last:
            return last, len(_content(self.get_line(last)))
        line = max(0, line)
        return line, min(max(0, col), len(_content(self.get_line(line))))

    def _chunk_index(self, n: int) -> int:
        return bisect_right(self._starts, n) - 1

    def _reindex(self) -> None:
        starts = []
        total = 0
        for chunk in self._chunks:
            starts.append(total)
            total += len(chunk)
        self._starts = starts
        self._line_count = total

    def _splice(self, start: int, stop: int, new_lines: list[str]) -> None:
        """Replace lines ``[start, stop)`` with *new_lines*, re-chunking locally."""
        first_ci = self._chunk_index(start)
        last_ci = self._chunk_index(stop - 1)
        # Absorb a small right neighbour so chunks do not fragment over time.
        if last_ci + 1 < len(self._chunks) and len(self._chunks[last_ci + 1]) < CHUNK_SIZE // 2:
            last_ci += 1

        base = self._starts[first_ci]
        lines: list[str] = []
        for chunk in self._chunks[first_ci:last_ci + 1]:
            lines.extend(chunk)
        lines[start - base:stop - base] = new_lines

        count = -(-len(lines) // CHUNK_SIZE)
        size = -(-len(lines) // count)
        self._chunks[first_ci:last_ci + 1] = [
            lines[i:i + size] for i in range(0, len(lines), size)
        ]
        self._reindex()
