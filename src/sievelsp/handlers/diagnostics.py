"""
Rule-based diagnostics for Sieve scripts.

Rules are applied line by line rather than over a parse tree:

1. Each non-blank, non-comment line is checked for a missing ``;`` after an
   action, for statements that match no known construct, and (when the
   extended dialect is off) for Proton Mail keywords.  While scanning, the
   extensions named by ``require`` and the extensions the script actually uses
   are collected.
2. Every extension that is used but never required is reported once.

Scanning stops as soon as ``Settings.max_diagnostics`` diagnostics exist.
"""
from __future__ import annotations

import logging
import re

from lsprotocol import types as lsp

from sievelsp import keywords
from sievelsp.buffer import column_to_utf16, logical_lines
from sievelsp.settings import Settings

logger = logging.getLogger(__name__)

SOURCE = 'sieve-lsp'

_RFC5228 = 'https://datatracker.ietf.org/doc/html/rfc5228'
_PROTON_FILTERS = 'https://proton.me/support/sieve-advanced-custom-filters'

# require "ext";  or  require ["ext1", "ext2"];
_REQUIRE_RE = re.compile(r'require\s+(?:\[([^\]]+)\]|"([^"]+)")')
_LEADING_TOKEN_RE = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')


class _Collector:
    """Accumulates diagnostics up to a fixed cap."""

    def __init__(self, limit: int):
        self.limit = limit
        self.items: list[lsp.Diagnostic] = []

    @property
    def full(self) -> bool:
        return len(self.items) >= self.limit

    def add(self, diag: lsp.Diagnostic) -> None:
        if not self.full:
            self.items.append(diag)


def _diagnostic(line: int, start: int, end: int, *, code: str, message: str,
                severity: lsp.DiagnosticSeverity, href: str) -> lsp.Diagnostic:
    return lsp.Diagnostic(
        range=lsp.Range(
            start=lsp.Position(line=line, character=start),
            end=lsp.Position(line=line, character=end),
        ),
        message=message,
        severity=severity,
        code=code,
        code_description=lsp.CodeDescription(href=href),
        source=SOURCE,
    )


# ---------------------------------------------------------------------------
# Line classification
# ---------------------------------------------------------------------------

def is_action_line(trimmed: str) -> bool:
    """True when the leading token of *trimmed* is an action command."""
    m = _LEADING_TOKEN_RE.match(trimmed)
    return m is not None and m.group(0) in keywords.ACTIONS


def is_valid_statement(trimmed: str, settings: Settings) -> bool:
    if not trimmed or trimmed.startswith('#'):
        return True
    if trimmed.startswith(keywords.CONTROL_KEYWORDS):
        return True
    enabled = settings.extended_dialect
    if any(test in trimmed for test in keywords.available_tests(enabled)):
        return True
    return trimmed.startswith(keywords.available_actions(enabled))


def parse_require(line: str) -> list[str]:
    """Return the extension names listed by a ``require`` statement.

    A line that is not a well-formed ``require`` yields no names.
    """
    m = _REQUIRE_RE.search(line)
    if m is None:
        return []
    if m.group(1) is not None:
        names = (item.strip().strip('"').strip() for item in m.group(1).split(','))
        return [name for name in names if name]
    return [m.group(2).strip()]


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def _check_line_syntax(out: _Collector, line_idx: int, line: str, trimmed: str,
                       settings: Settings) -> None:
    if is_action_line(trimmed) and not trimmed.endswith(';'):
        content = line.rstrip()
        end = column_to_utf16(content, len(content))
        start = column_to_utf16(content, len(content) - 1)
        out.add(_diagnostic(
            line_idx, start, end,
            code='missing-semicolon',
            message='Missing semicolon after action statement',
            severity=lsp.DiagnosticSeverity.Error,
            href=f'{_RFC5228}#section-2.1',
        ))

    if trimmed.endswith(';') and not is_valid_statement(trimmed, settings):
        out.add(_diagnostic(
            line_idx, 0, column_to_utf16(line, len(line)),
            code='invalid-syntax',
            message='Invalid Sieve statement syntax',
            severity=lsp.DiagnosticSeverity.Error,
            href=f'{_RFC5228}#section-8',
        ))

    if not settings.extended_dialect:
        for word in keywords.EXTENDED_KEYWORDS:
            pos = line.find(word)
            while pos != -1:
                out.add(_diagnostic(
                    line_idx,
                    column_to_utf16(line, pos),
                    column_to_utf16(line, pos + len(word)),
                    code='extension-disabled',
                    message=f"Proton extension '{word}' is disabled in settings",
                    severity=lsp.DiagnosticSeverity.Warning,
                    href=_PROTON_FILTERS,
                ))
                pos = line.find(word, pos + len(word))


def _track_extensions(trimmed: str, required: set[str], used: list[str]) -> None:
    if trimmed.startswith('require'):
        required.update(parse_require(trimmed))
    for name in keywords.extensions_used_by(trimmed):
        if name not in used:
            used.append(name)


def _check_extension_consistency(out: _Collector, required: set[str],
                                 used: list[str]) -> None:
    for name in used:
        if name in required:
            continue
        logger.debug("extension '%s' is used but not required", name)
        # Usage sites are not tracked, so the finding is anchored at the top.
        out.add(_diagnostic(
            0, 0, 0,
            code='missing-require',
            message=f"Extension '{name}' is used but not required",
            severity=lsp.DiagnosticSeverity.Warning,
            href=f'{_RFC5228}#section-3.2',
        ))


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def get_diagnostics(source: str, settings: Settings) -> list[lsp.Diagnostic]:
    """Return LSP ``Diagnostic`` objects for the Sieve script *source*."""
    out = _Collector(settings.max_diagnostics)
    required: set[str] = set()
    used: list[str] = []

    lines = logical_lines(source)
    logger.debug('get_diagnostics: validating %d lines', len(lines))
    for line_idx, line in enumerate(lines):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith('#'):
            continue

        _check_line_syntax(out, line_idx, line, trimmed, settings)
        if settings.semantic_analysis:
            _track_extensions(trimmed, required, used)

        if out.full:
            logger.warning('get_diagnostics: reached the limit of %d diagnostics at line %d',
                           settings.max_diagnostics, line_idx)
            break

    if settings.semantic_analysis:
        _check_extension_consistency(out, required, used)

    logger.debug('get_diagnostics: %d diagnostics', len(out.items))
    return out.items
