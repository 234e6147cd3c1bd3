"""
Unit tests for JSONL listing and streaming.
"""

import logging

import pytest

from archiver.errors import ParseError, StoreError
from archiver.services.jsonl_reader import iter_lines, list_jsonl_keys, parse_line, read_jsonl
from helpers import FakeObjectStore


# ---------------------------------------------------------------------------
# list_jsonl_keys
# ---------------------------------------------------------------------------

class TestListJsonlKeys:
    """Tests for key discovery under a prefix."""

    def test_keeps_only_jsonl_keys(self, fake_store):
        fake_store.objects = {
            "raw/messages_details/a.jsonl": b"",
            "raw/messages_details/b.JSONL": b"",
            "raw/messages_details/airbyte_meta.json": b"",
            "raw/messages_details/c.jsonl.gz": b"",
            "raw/messages/d.jsonl": b"",
        }

        keys = list_jsonl_keys(fake_store, "raw/messages_details/")

        assert keys == ["raw/messages_details/a.jsonl", "raw/messages_details/b.JSONL"]

    def test_follows_continuation_tokens(self):
        store = FakeObjectStore(page_size=2)
        for i in range(5):
            store.objects[f"raw/messages_details/{i}.jsonl"] = b""

        keys = list_jsonl_keys(store, "raw/messages_details/")

        assert keys == [f"raw/messages_details/{i}.jsonl" for i in range(5)]
        assert len(store.ops("list")) == 3

    def test_empty_prefix_returns_empty_list(self, fake_store):
        assert list_jsonl_keys(fake_store, "raw/messages_details/") == []

    def test_listing_failure_propagates(self, fake_store):
        fake_store.fail_list = True
        with pytest.raises(StoreError):
            list_jsonl_keys(fake_store, "raw/messages_details/")


# ---------------------------------------------------------------------------
# iter_lines
# ---------------------------------------------------------------------------

class TestIterLines:
    """Tests for splitting a chunk stream into lines."""

    def test_lf_lines(self):
        assert list(iter_lines([b"a\nb\nc\n"])) == [b"a", b"b", b"c"]

    def test_crlf_lines(self):
        assert list(iter_lines([b"a\r\nb\r\n"])) == [b"a", b"b"]

    def test_line_split_across_chunks(self):
        assert list(iter_lines([b'{"id":', b' "m1"}\n{"id"', b': "m2"}\n'])) == [
            b'{"id": "m1"}',
            b'{"id": "m2"}',
        ]

    def test_cr_and_lf_in_different_chunks(self):
        assert list(iter_lines([b"a\r", b"\nb\r", b"\n"])) == [b"a", b"b"]

    def test_unterminated_last_line_is_yielded(self):
        assert list(iter_lines([b"a\nb"])) == [b"a", b"b"]

    def test_empty_chunks_are_ignored(self):
        assert list(iter_lines([b"", b"a", b"", b"\n", b""])) == [b"a"]

    def test_blank_lines_are_kept_for_caller(self):
        assert list(iter_lines([b"a\n\nb\n"])) == [b"a", b"", b"b"]

    def test_very_long_line(self):
        long_value = b"x" * 1_000_000
        chunks = [long_value[i:i + 4096] for i in range(0, len(long_value), 4096)] + [b"\n"]
        assert list(iter_lines(chunks)) == [long_value]

    def test_is_lazy(self):
        def chunks():
            yield b"first\n"
            raise AssertionError("second chunk should not be pulled")

        lines = iter_lines(chunks())
        assert next(lines) == b"first"


# ---------------------------------------------------------------------------
# parse_line
# ---------------------------------------------------------------------------

class TestParseLine:
    """Tests for single-line JSON parsing."""

    def test_parses_object(self):
        assert parse_line(b'{"id": "m1"}') == {"id": "m1"}

    def test_surrounding_whitespace_is_ignored(self):
        assert parse_line(b'  {"id": "m1"}\t') == {"id": "m1"}

    def test_invalid_json_raises(self):
        with pytest.raises(ParseError) as exc_info:
            parse_line(b'{"id": ')
        assert exc_info.value.error_code == "parse_error"

    def test_invalid_utf8_raises(self):
        with pytest.raises(ParseError):
            parse_line(b'{"id": "\xff"}')


# ---------------------------------------------------------------------------
# read_jsonl
# ---------------------------------------------------------------------------

class TestReadJsonl:
    """Tests for lazy record streaming from the store."""

    def test_yields_records_in_line_order(self, fake_store):
        fake_store.add_jsonl("f.jsonl", [{"id": "m1"}, {"id": "m2"}, {"id": "m3"}])
        assert [r["id"] for r in read_jsonl(fake_store, "f.jsonl")] == ["m1", "m2", "m3"]

    def test_crlf_file(self, fake_store):
        fake_store.add_jsonl("f.jsonl", [{"id": "m1"}, {"id": "m2"}], newline="\r\n")
        assert [r["id"] for r in read_jsonl(fake_store, "f.jsonl")] == ["m1", "m2"]

    def test_skips_blank_and_whitespace_lines(self, fake_store):
        fake_store.objects["f.jsonl"] = b'\n   \n{"id": "m1"}\n\t\n{"id": "m2"}\n\n'
        assert [r["id"] for r in read_jsonl(fake_store, "f.jsonl")] == ["m1", "m2"]

    def test_malformed_line_is_logged_and_skipped(self, fake_store, caplog):
        records = [{"id": f"m{i}"} for i in range(10)]
        records[4] = '{"id": "m4", broken'
        fake_store.add_jsonl("raw/messages_details/f.jsonl", records)

        with caplog.at_level(logging.WARNING):
            parsed = list(read_jsonl(fake_store, "raw/messages_details/f.jsonl"))

        assert len(parsed) == 9
        assert {"id": "m4"} not in parsed
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "raw/messages_details/f.jsonl" in warnings[0].getMessage()

    def test_store_is_not_read_until_iterated(self, fake_store):
        fake_store.add_jsonl("f.jsonl", [{"id": "m1"}])
        records = read_jsonl(fake_store, "f.jsonl")
        assert fake_store.ops("read") == []
        next(records)
        assert fake_store.ops("read") == ["f.jsonl"]

    def test_read_failure_raises_store_error(self, fake_store):
        with pytest.raises(StoreError):
            list(read_jsonl(fake_store, "missing.jsonl"))
