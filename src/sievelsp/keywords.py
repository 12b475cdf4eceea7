"""
Sieve keyword tables.

Static data consulted by the diagnostic rules, completion and hover: the
test commands, action commands and tagged arguments of RFC 5228 and its
common extensions, the extensions that can be loaded with ``require``, and
the keywords that belong to the Proton Mail extended dialect.
"""
from __future__ import annotations

from types import MappingProxyType

# ---------------------------------------------------------------------------
# Commands and tags
# ---------------------------------------------------------------------------

TESTS = (
    # RFC 5228
    'address', 'allof', 'anyof', 'envelope', 'exists', 'false', 'header',
    'not', 'size', 'true',
    # extensions
    'body', 'currentdate', 'date', 'environment', 'mailbox', 'mailboxexists',
    'regex', 'spamtest', 'virustest',
)

ACTIONS = (
    # RFC 5228
    'discard', 'fileinto', 'keep', 'redirect', 'reject', 'stop',
    # imap4flags (RFC 5232)
    'addflag', 'removeflag', 'setflag',
    'vacation', 'notify', 'denotify',
    # Proton Mail
    'expire',
)

TAGS = (
    ':is', ':contains', ':matches', ':regex',
    ':count', ':value',
    ':comparator',
    ':localpart', ':domain', ':all',
    ':over', ':under',
    ':copy', ':create',
    ':zone', ':originalzone',
    ':flags', ':importance', ':mime', ':anychild', ':type', ':subtype',
    ':contenttype', ':param',
)

EXTENSIONS = MappingProxyType({
    'body': 'Message body testing (RFC 5173)',
    'copy': 'Copy messages instead of moving (RFC 3894)',
    'date': 'Date/time operations (RFC 5260)',
    'editheader': 'Modify message headers (RFC 5293)',
    'encoded-character': 'Encoded character support (RFC 5228)',
    'envelope': 'SMTP envelope testing (RFC 5228)',
    'environment': 'Access to server environment (RFC 5183)',
    'ereject': 'Enhanced reject with reason (RFC 5429)',
    'fileinto': 'File messages into folders (RFC 5228)',
    'foreverypart': 'Iterate over MIME parts (RFC 5703)',
    'imap4flags': 'IMAP flag manipulation (RFC 5232)',
    'include': 'Include other scripts (RFC 6609)',
    'index': 'Positional testing of headers (RFC 5260)',
    'mailbox': 'Mailbox metadata access (RFC 5490)',
    'mboxmetadata': 'Mailbox metadata operations (RFC 5490)',
    'mime': 'MIME structure operations (RFC 5703)',
    'regex': 'Regular expression support (draft)',
    'reject': 'Reject messages with errors (RFC 5228)',
    'relational': 'Numeric comparisons (RFC 5231)',
    'servermetadata': 'Server metadata access (RFC 5490)',
    'spamtest': 'Spam testing interface (RFC 5235)',
    'subaddress': 'Sub-addressing support (RFC 5233)',
    'vacation': 'Auto-reply functionality (RFC 5230)',
    'variables': 'Variable support (RFC 5229)',
    'virustest': 'Virus testing interface (RFC 5235)',
})

# Statements that are valid whatever follows them on the line.
CONTROL_KEYWORDS = ('require', 'if', 'elsif', 'else', 'stop', '{', '}')

# ---------------------------------------------------------------------------
# Extended (Proton Mail) dialect
# ---------------------------------------------------------------------------

EXTENDED_TESTS = frozenset({'currentdate'})
EXTENDED_ACTIONS = frozenset({'expire'})
EXTENDED_KEYWORDS = ('expire', 'currentdate')


def available_tests(extensions_enabled: bool) -> tuple[str, ...]:
    if extensions_enabled:
        return TESTS
    return tuple(t for t in TESTS if t not in EXTENDED_TESTS)


def available_actions(extensions_enabled: bool) -> tuple[str, ...]:
    if extensions_enabled:
        return ACTIONS
    return tuple(a for a in ACTIONS if a not in EXTENDED_ACTIONS)


# ---------------------------------------------------------------------------
# Extension usage signatures
# ---------------------------------------------------------------------------

def _contains_any(*needles: str):
    return lambda line: any(n in line for n in needles)


# extension name -> predicate telling whether a line uses that extension
EXTENSION_USAGE = MappingProxyType({
    'body': _contains_any('body '),
    'regex': _contains_any(':regex'),
    'fileinto': _contains_any('fileinto'),
    'vacation': _contains_any('vacation'),
    'copy': _contains_any(':copy'),
    'date': _contains_any('date ', 'currentdate'),
    'relational': _contains_any(':value', ':count'),
    'imap4flags': _contains_any('addflag', 'setflag', 'removeflag'),
})


def extensions_used_by(line: str) -> list[str]:
    """Return the extensions whose usage signature appears in *line*."""
    return [name for name, uses in EXTENSION_USAGE.items() if uses(line)]


# ---------------------------------------------------------------------------
# Documentation
# ---------------------------------------------------------------------------

_TEST_DOCS = MappingProxyType({
    'address': 'Tests email addresses in headers like From, To, Cc, Bcc',
    'allof': 'Logical AND operator - all contained tests must be true',
    'anyof': 'Logical OR operator - any contained test can be true',
    'envelope': 'Tests SMTP envelope information (MAIL FROM, RCPT TO)',
    'exists': 'Tests whether specified header fields exist in the message',
    'header': 'Tests the contents of specified header fields',
    'size': 'Tests the size of the message in bytes',
    'body': "Tests the body content of the message (requires 'body' extension)",
    'currentdate': 'Tests the current date/time on the server (Proton extension)',
    'regex': "Provides regular expression matching (requires 'regex' extension)",
})

_ACTION_DOCS = MappingProxyType({
    'fileinto': 'Files the message into the specified mailbox/folder',
    'redirect': 'Redirects the message to the specified email address',
    'reject': 'Rejects the message with an error sent back to sender',
    'discard': 'Silently discards the message (no error sent)',
    'keep': 'Keeps the message in the default location (usually INBOX)',
    'stop': 'Stops processing the current script',
    'vacation': "Sends an auto-reply message (requires 'vacation' extension)",
    'expire': 'Sets message expiration time (Proton extension)',
})

_TAG_DOCS = MappingProxyType({
    ':is': 'Exact string match (case-insensitive by default)',
    ':contains': 'Substring match - tests if the string contains the specified text',
    ':matches': 'Wildcard pattern match using * and ? characters',
    ':regex': "Regular expression match (requires 'regex' extension)",
    ':over': 'Size comparison - tests if size is greater than specified value',
    ':under': 'Size comparison - tests if size is less than specified value',
    ':copy': 'Copy the message instead of moving it (preserves original)',
    ':zone': 'Specifies timezone for date operations',
})


def describe_test(test: str) -> str:
    return _TEST_DOCS.get(test, f'Sieve test command: {test}')


def describe_action(action: str) -> str:
    return _ACTION_DOCS.get(action, f'Sieve action command: {action}')


def describe_tag(tag: str) -> str:
    return _TAG_DOCS.get(tag, f'Sieve tag parameter: {tag}')


def describe(word: str) -> str | None:
    """Return documentation for any known keyword, or None."""
    if word in TESTS:
        return describe_test(word)
    if word in ACTIONS:
        return describe_action(word)
    if word in TAGS:
        return describe_tag(word)
    return EXTENSIONS.get(word)
