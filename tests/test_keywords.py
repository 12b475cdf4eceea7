"""Tests for sievelsp.keywords — keyword tables and usage signatures."""
from __future__ import annotations


class TestTables:
    def test_tables_not_empty(self):
        from sievelsp import keywords
        assert keywords.TESTS
        assert keywords.ACTIONS
        assert keywords.TAGS
        assert keywords.EXTENSIONS

    def test_known_entries(self):
        from sievelsp import keywords
        assert 'header' in keywords.TESTS
        assert 'fileinto' in keywords.ACTIONS
        assert ':contains' in keywords.TAGS
        assert 'body' in keywords.EXTENSIONS

    def test_extensions_table_is_read_only(self):
        import pytest
        from sievelsp import keywords
        with pytest.raises(TypeError):
            keywords.EXTENSIONS['custom'] = 'nope'

    def test_extended_dialect_filtering(self):
        from sievelsp import keywords
        assert 'currentdate' in keywords.available_tests(True)
        assert 'currentdate' not in keywords.available_tests(False)
        assert 'expire' in keywords.available_actions(True)
        assert 'expire' not in keywords.available_actions(False)
        assert 'fileinto' in keywords.available_actions(False)


class TestUsageSignatures:
    def test_body_needs_trailing_space(self):
        from sievelsp.keywords import extensions_used_by
        assert 'body' in extensions_used_by('if body :contains "x" {')
        assert 'body' not in extensions_used_by('require "body";')

    def test_several_extensions_on_one_line(self):
        from sievelsp.keywords import extensions_used_by
        used = extensions_used_by('fileinto :copy "Archive";')
        assert used == ['fileinto', 'copy']

    def test_currentdate_counts_as_date(self):
        from sievelsp.keywords import extensions_used_by
        assert extensions_used_by('if currentdate :value "ge" "hour" "09" {') == ['date', 'relational']

    def test_imap4flags(self):
        from sievelsp.keywords import extensions_used_by
        assert extensions_used_by('addflag "\\\\Seen";') == ['imap4flags']


class TestDescriptions:
    def test_describe_known_words(self):
        from sievelsp.keywords import describe
        assert describe('fileinto') == 'Files the message into the specified mailbox/folder'
        assert describe(':contains').startswith('Substring match')
        assert describe('imap4flags') == 'IMAP flag manipulation (RFC 5232)'

    def test_describe_falls_back_to_generic_text(self):
        from sievelsp.keywords import describe
        assert describe('notify') == 'Sieve action command: notify'
        assert describe(':mime') == 'Sieve tag parameter: :mime'

    def test_describe_unknown_word(self):
        from sievelsp.keywords import describe
        assert describe('Archive') is None
