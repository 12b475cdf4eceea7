"""
Completion handler.

Provides three kinds of completion items:

1. **Extension names** — offered inside a ``require`` statement.
2. **Tags** — offered when the word being typed starts with ``:``.
3. **Tests and actions** — offered everywhere else, together with tags and
   extension names.  Actions insert a trailing ``;``.

Keywords of the Proton Mail dialect are left out while that dialect is
disabled.
"""
from __future__ import annotations

import re

from lsprotocol import types as lsp

from sievelsp import keywords
from sievelsp.buffer import utf16_to_column
from sievelsp.settings import Settings

# Cursor is inside a require statement: require "fi|  or  require ["body", |
_REQUIRE_PREFIX_RE = re.compile(r'^\s*require\b')

# The partial word immediately before the cursor.
_PARTIAL_WORD_RE = re.compile(r'[\w:]*$')


def _plain_item(label: str, kind: lsp.CompletionItemKind, detail: str,
                documentation: str, insert_text: str | None = None) -> lsp.CompletionItem:
    return lsp.CompletionItem(
        label=label,
        kind=kind,
        detail=detail,
        documentation=documentation,
        insert_text=insert_text if insert_text is not None else label,
        insert_text_format=lsp.InsertTextFormat.PlainText,
    )


def _test_items(settings: Settings) -> list[lsp.CompletionItem]:
    return [
        _plain_item(test, lsp.CompletionItemKind.Function, f'Sieve test: {test}',
                    keywords.describe_test(test))
        for test in keywords.available_tests(settings.extended_dialect)
    ]


def _action_items(settings: Settings) -> list[lsp.CompletionItem]:
    return [
        _plain_item(action, lsp.CompletionItemKind.Method, f'Sieve action: {action}',
                    keywords.describe_action(action), insert_text=f'{action};')
        for action in keywords.available_actions(settings.extended_dialect)
    ]


def _tag_items() -> list[lsp.CompletionItem]:
    return [
        _plain_item(tag, lsp.CompletionItemKind.Property, f'Sieve tag: {tag}',
                    keywords.describe_tag(tag))
        for tag in keywords.TAGS
    ]


def _extension_items() -> list[lsp.CompletionItem]:
    return [
        _plain_item(f'"{name}"', lsp.CompletionItemKind.Module, f'Sieve extension: {name}',
                    description)
        for name, description in keywords.EXTENSIONS.items()
    ]


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def get_completions(
    line: str | None,
    position: lsp.Position,
    settings: Settings,
) -> list[lsp.CompletionItem]:
    """Return completion items for *position*, given the text of its line."""
    line_up_to_cursor = ''
    if line is not None:
        line = line.rstrip('\r\n')
        line_up_to_cursor = line[:utf16_to_column(line, position.character)]

    if _REQUIRE_PREFIX_RE.match(line_up_to_cursor):
        return _extension_items()

    if _PARTIAL_WORD_RE.search(line_up_to_cursor).group(0).startswith(':'):
        return _tag_items()

    return (
        _test_items(settings)
        + _action_items(settings)
        + _tag_items()
        + _extension_items()
    )
