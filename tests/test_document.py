"""Tests for sievelsp.document — Document and DocumentStore."""
from __future__ import annotations

import threading
from types import SimpleNamespace

from lsprotocol import types as lsp

from sievelsp.document import DocumentStore

URI = 'file:///home/user/filters/main.sieve'


def ranged(start_line, start_char, end_line, end_char, text):
    """A content change event shaped like lsprotocol's partial change."""
    return SimpleNamespace(
        range=lsp.Range(
            start=lsp.Position(line=start_line, character=start_char),
            end=lsp.Position(line=end_line, character=end_char),
        ),
        text=text,
    )


def whole(text):
    return SimpleNamespace(text=text)


class TestOpenAndSnapshot:
    def test_open_then_snapshot(self):
        store = DocumentStore()
        store.open(URI, 'keep;\n', 1)
        snap = store.get_snapshot(URI)
        assert snap.text == 'keep;\n'
        assert snap.version == 1
        assert snap.uri == URI

    def test_open_overwrites_existing(self):
        store = DocumentStore()
        store.open(URI, 'keep;', 4)
        store.open(URI, 'discard;', 1)
        snap = store.get_snapshot(URI)
        assert snap.text == 'discard;'
        assert snap.version == 1

    def test_unknown_document_snapshot_is_none(self):
        store = DocumentStore()
        assert store.get_snapshot(URI) is None
        assert store.get_line(URI, 0) is None

    def test_snapshot_sequences_increase(self):
        store = DocumentStore()
        store.open(URI, 'keep;', 1)
        first = store.get_snapshot(URI)
        second = store.get_snapshot(URI)
        assert second.sequence > first.sequence

    def test_snapshot_is_detached_from_later_edits(self):
        store = DocumentStore()
        store.open(URI, 'keep;', 1)
        snap = store.get_snapshot(URI)
        store.apply_change(URI, [whole('discard;')], 2)
        assert snap.text == 'keep;'
        assert snap.version == 1


class TestApplyChange:
    def test_ranged_edit(self):
        store = DocumentStore()
        store.open(URI, 'fileinto "Archive"', 1)
        assert store.apply_change(URI, [ranged(0, 18, 0, 18, ';')], 2)
        snap = store.get_snapshot(URI)
        assert snap.text == 'fileinto "Archive";'
        assert snap.version == 2

    def test_changes_apply_in_order(self):
        store = DocumentStore()
        store.open(URI, 'keep;', 1)
        store.apply_change(URI, [
            ranged(0, 0, 0, 0, 'require "fileinto";\n'),
            ranged(1, 0, 1, 4, 'fileinto "Junk"'),
        ], 2)
        assert store.get_snapshot(URI).text == 'require "fileinto";\nfileinto "Junk";'

    def test_full_replacement(self):
        store = DocumentStore()
        store.open(URI, 'a\nb\nc\nd', 1)
        store.apply_change(URI, [whole('keep;')], 2)
        assert store.get_line(URI, 0) == 'keep;'
        assert store.get_line(URI, 1) is None

    def test_utf16_columns_are_converted(self):
        store = DocumentStore()
        store.open(URI, 'fileinto "\U0001F4E7"', 1)
        # the closing quote is at UTF-16 column 12 (the emoji takes two units)
        store.apply_change(URI, [ranged(0, 13, 0, 13, ';')], 2)
        assert store.get_snapshot(URI).text == 'fileinto "\U0001F4E7";'

    def test_unknown_document_is_ignored(self, caplog):
        store = DocumentStore()
        with caplog.at_level('WARNING', logger='sievelsp.document'):
            assert store.apply_change(URI, [whole('keep;')], 2) is False
        assert 'unknown document' in caplog.text
        assert URI not in store

    def test_version_never_moves_backwards_on_ranged_edit(self):
        store = DocumentStore()
        store.open(URI, 'keep', 5)
        store.apply_change(URI, [ranged(0, 4, 0, 4, ';')], 3)
        snap = store.get_snapshot(URI)
        assert snap.text == 'keep;'
        assert snap.version == 5

    def test_full_replacement_takes_version_as_given(self):
        store = DocumentStore()
        store.open(URI, 'keep;', 5)
        store.apply_change(URI, [whole('stop;')], 3)
        assert store.get_snapshot(URI).version == 3

    def test_malformed_range_is_skipped(self):
        store = DocumentStore()
        store.open(URI, 'keep;\nstop;', 1)
        store.apply_change(URI, [ranged(1, 0, 0, 0, 'x'), ranged(0, 0, 0, 0, '# ')], 2)
        assert store.get_snapshot(URI).text == '# keep;\nstop;'


class TestClose:
    def test_close_removes_document(self):
        store = DocumentStore()
        store.open(URI, 'keep;', 1)
        assert store.close(URI) is not None
        assert URI not in store

    def test_close_sequence_follows_earlier_snapshots(self):
        store = DocumentStore()
        store.open(URI, 'keep;', 1)
        snap = store.get_snapshot(URI)
        assert store.close(URI) > snap.sequence

    def test_close_unknown_returns_none(self):
        assert DocumentStore().close(URI) is None


class TestConcurrency:
    def test_parallel_edits_to_different_documents(self):
        store = DocumentStore()
        uris = [f'file:///tmp/f{i}.sieve' for i in range(8)]
        for uri in uris:
            store.open(uri, '', 0)

        def writer(uri):
            for n in range(200):
                store.apply_change(uri, [ranged(n, 0, n, 0, 'keep;\n')], n + 1)

        threads = [threading.Thread(target=writer, args=(uri,)) for uri in uris]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for uri in uris:
            snap = store.get_snapshot(uri)
            assert snap.text == 'keep;\n' * 200
            assert snap.version == 200

    def test_snapshots_never_see_half_applied_batch(self):
        store = DocumentStore()
        store.open(URI, 'keep;', 0)
        seen: list[str] = []
        done = threading.Event()

        def writer():
            for n in range(300):
                # two edits per batch: the text is only 'keep;' between batches
                store.apply_change(URI, [
                    ranged(0, 0, 0, 5, 'stop'),
                    ranged(0, 4, 0, 4, ';'),
                ], n * 2 + 1)
                store.apply_change(URI, [whole('keep;')], n * 2 + 2)
            done.set()

        def reader():
            while not done.is_set():
                seen.append(store.get_snapshot(URI).text)

        threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert set(seen) <= {'keep;', 'stop;'}
