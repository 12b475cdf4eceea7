"""Tests for sievelsp.handlers.hover — _word_at helper and get_hover."""
from __future__ import annotations

from lsprotocol import types as lsp

LINE = 'if header :contains "from" "test"'


class TestHoverHelpers:
    def test_word_at_cursor(self):
        from sievelsp.handlers.hover import _word_at
        assert _word_at(LINE, 3)[0] == 'header'
        assert _word_at(LINE, 6)[0] == 'header'

    def test_tag_keeps_colon(self):
        from sievelsp.handlers.hover import _word_at
        word, start, end = _word_at(LINE, 10)
        assert word == ':contains'
        assert (start, end) == (10, 19)
        assert _word_at(LINE, 15)[0] == ':contains'

    def test_word_at_start_of_line(self):
        from sievelsp.handlers.hover import _word_at
        assert _word_at(LINE, 0)[0] == 'if'

    def test_out_of_bounds_returns_none(self):
        from sievelsp.handlers.hover import _word_at
        assert _word_at(LINE, 100) is None
        assert _word_at('', 0) is None


class TestGetHover:
    def test_hover_on_test(self):
        from sievelsp.handlers.hover import get_hover
        hover = get_hover(LINE + '\n', lsp.Position(line=4, character=5))
        assert hover is not None
        assert hover.contents.value == 'Tests the contents of specified header fields'
        assert hover.contents.kind == lsp.MarkupKind.PlainText
        assert hover.range.start == lsp.Position(line=4, character=3)
        assert hover.range.end == lsp.Position(line=4, character=9)

    def test_hover_on_tag(self):
        from sievelsp.handlers.hover import get_hover
        hover = get_hover(LINE, lsp.Position(line=0, character=12))
        assert hover.contents.value.startswith('Substring match')

    def test_hover_on_extension_name(self):
        from sievelsp.handlers.hover import get_hover
        hover = get_hover('require ["imap4flags"];', lsp.Position(line=0, character=12))
        assert hover.contents.value == 'IMAP flag manipulation (RFC 5232)'

    def test_hover_on_string_argument_returns_none(self):
        from sievelsp.handlers.hover import get_hover
        assert get_hover('fileinto "Archive";', lsp.Position(line=0, character=12)) is None

    def test_hover_without_line_returns_none(self):
        from sievelsp.handlers.hover import get_hover
        assert get_hover(None, lsp.Position(line=0, character=0)) is None
