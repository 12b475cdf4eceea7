"""
Hover handler.

When the cursor rests on a known test, action, tag or extension name, return
its one-line description.
"""
from __future__ import annotations

import re

from lsprotocol import types as lsp

from sievelsp import keywords
from sievelsp.buffer import column_to_utf16, utf16_to_column

# Tags keep their leading colon, so ':' counts as a word character here.
_WORD_RE = re.compile(r'[\w:]+')


def _word_at(line: str, character: int) -> tuple[str, int, int] | None:
    """Return ``(word, start_col, end_col)`` for the word under *character*."""
    if character > len(line):
        return None
    for m in _WORD_RE.finditer(line):
        if m.start() <= character <= m.end():
            return m.group(0), m.start(), m.end()
    return None


def get_hover(line: str | None, position: lsp.Position) -> lsp.Hover | None:
    """Return LSP hover content for *position*, given the text of its line."""
    if line is None:
        return None
    line = line.rstrip('\r\n')

    result = _word_at(line, utf16_to_column(line, position.character))
    if result is None:
        return None
    word, start_col, end_col = result

    description = keywords.describe(word)
    if description is None:
        return None

    return lsp.Hover(
        contents=lsp.MarkupContent(
            kind=lsp.MarkupKind.PlainText, value=description,
        ),
        range=lsp.Range(
            start=lsp.Position(line=position.line, character=column_to_utf16(line, start_col)),
            end=lsp.Position(line=position.line, character=column_to_utf16(line, end_col)),
        ),
    )
