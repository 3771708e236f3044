"""
Tests for the header reader, tree builder, and parse_raw.
"""

import io
import struct

import pytest

from gguf_builders import TEST_CHUNK, f32, header, kv, pad
from gguf_metadata import (
    InvalidMagicError,
    KeyConflictError,
    SchemaValidationError,
    TruncatedReadError,
    UnknownTypeError,
    UnsupportedVersionError,
    parse_raw,
)
from gguf_metadata.io.file_reader import ByteCursor
from gguf_metadata.model_formats.gguf.gguf import GGUFValueType as T
from gguf_metadata.model_formats.gguf.gguf_versions import (
    insert_metadata_value,
    read_header,
    read_metadata_tree,
)


def cursor_for(data: bytes) -> ByteCursor:
    return ByteCursor(io.BytesIO(pad(data)), chunk_size=TEST_CHUNK)


class TestHeader:
    def test_bad_magic_stops_after_four_bytes(self):
        cursor = cursor_for(header([], magic=b"GGML"))
        with pytest.raises(InvalidMagicError):
            read_metadata_tree(cursor)
        assert cursor.offset == 4

    @pytest.mark.parametrize("version", [0, 4, 0x03000000])
    def test_unsupported_version(self, version):
        with pytest.raises(UnsupportedVersionError) as exc:
            read_metadata_tree(cursor_for(header([], version=version)))
        assert exc.value.version == version

    @pytest.mark.parametrize("version, expected_offset", [(1, 16), (2, 24), (3, 24)])
    def test_count_widths(self, version, expected_offset):
        cursor = cursor_for(header([], version=version, n_tensors=291))
        parsed_version, n_tensors, n_kv = read_header(cursor)
        assert int(parsed_version) == version
        assert (n_tensors, n_kv) == (291, 0)
        assert cursor.offset == expected_offset

    def test_empty_header_gives_empty_tree(self):
        assert read_metadata_tree(cursor_for(header([]))) == {}


class TestTreeBuilder:
    def test_nested_paths(self):
        tree = {}
        insert_metadata_value(tree, "general.architecture", "llama")
        insert_metadata_value(tree, "llama.attention.head_count", 32)
        insert_metadata_value(tree, "llama.context_length", 4096)
        insert_metadata_value(tree, "toplevel", True)
        assert tree == {
            "general": {"architecture": "llama"},
            "llama": {"attention": {"head_count": 32}, "context_length": 4096},
            "toplevel": True,
        }

    def test_depth_limited_to_five_segments(self):
        tree = {}
        insert_metadata_value(tree, "a.b.c.d.e.f", 1)
        assert tree == {"a": {"b": {"c": {"d": {"e.f": 1}}}}}

    def test_empty_segment_ends_the_path(self):
        tree = {}
        insert_metadata_value(tree, "general.", 1)
        insert_metadata_value(tree, "llama..context_length", 2)
        insert_metadata_value(tree, "a.b.c.d.", 3)
        assert tree == {"general": 1, "llama": 2, "a": {"b": {"c": {"d": 3}}}}

    def test_empty_segment_over_mapping_is_conflict(self):
        tree = {}
        insert_metadata_value(tree, "general.name", "x")
        with pytest.raises(KeyConflictError) as exc:
            insert_metadata_value(tree, "general.", 1)
        assert exc.value.path == "general"

    def test_leaf_used_as_intermediate_is_conflict(self):
        tree = {}
        insert_metadata_value(tree, "llama.rope", 1)
        with pytest.raises(KeyConflictError) as exc:
            insert_metadata_value(tree, "llama.rope.scale", 2.0)
        assert exc.value.path == "llama.rope"
        assert isinstance(exc.value, SchemaValidationError)
        assert tree == {"llama": {"rope": 1}}

    def test_leaf_over_mapping_is_conflict(self):
        tree = {}
        insert_metadata_value(tree, "llama.rope.scale", 2.0)
        with pytest.raises(KeyConflictError) as exc:
            insert_metadata_value(tree, "llama.rope", 1)
        assert exc.value.path == "llama.rope"

    def test_duplicate_leaf_keeps_last(self):
        tree = {}
        insert_metadata_value(tree, "general.name", "first")
        insert_metadata_value(tree, "general.name", "second")
        assert tree == {"general": {"name": "second"}}


class TestParseRaw:
    def test_every_value_type(self, gguf_file):
        entries = [
            kv("t.u8", T.UINT8, 200),
            kv("t.i8", T.INT8, -100),
            kv("t.u16", T.UINT16, 60000),
            kv("t.i16", T.INT16, -30000),
            kv("t.u32", T.UINT32, 4_000_000_000),
            kv("t.i32", T.INT32, -2_000_000_000),
            kv("t.f32", T.FLOAT32, 0.1),
            kv("t.bool", T.BOOL, True),
            kv("t.str", T.STRING, "text"),
            kv("t.arr", T.ARRAY, (T.UINT32, [1, 2, 3])),
            kv("t.u64", T.UINT64, 2**64 - 1),
            kv("t.i64", T.INT64, -(2**63)),
            kv("t.f64", T.FLOAT64, 0.1),
        ]
        tree = parse_raw(gguf_file(header(entries)), chunk_size=TEST_CHUNK)
        assert tree == {
            "t": {
                "u8": 200,
                "i8": -100,
                "u16": 60000,
                "i16": -30000,
                "u32": 4_000_000_000,
                "i32": -2_000_000_000,
                "f32": f32(0.1),
                "bool": True,
                "str": "text",
                "arr": [1, 2, 3],
                "u64": 2**64 - 1,
                "i64": -(2**63),
                "f64": 0.1,
            }
        }

    def test_version_one_file(self, gguf_file):
        entries = [
            kv("general.architecture", T.STRING, "gpt2", version=1),
            kv("tokenizer.ggml.tokens", T.ARRAY, (T.STRING, ["a", "b"]), version=1),
        ]
        tree = parse_raw(gguf_file(header(entries, version=1)), chunk_size=TEST_CHUNK)
        assert tree == {
            "general": {"architecture": "gpt2"},
            "tokenizer": {"ggml": {"tokens": ["a", "b"]}},
        }

    def test_accepts_open_file_object(self, gguf_file):
        path = gguf_file(header([kv("general.name", T.STRING, "x")]))
        with open(path, "rb") as fh:
            tree = parse_raw(fh, chunk_size=TEST_CHUNK)
            assert not fh.closed
        assert tree == {"general": {"name": "x"}}

    def test_header_spanning_chunks(self, gguf_file):
        long_text = "x" * (TEST_CHUNK * 3 + 5)
        path = gguf_file(header([kv("general.description", T.STRING, long_text)]))
        assert parse_raw(path, chunk_size=TEST_CHUNK)["general"]["description"] == long_text

    def test_unknown_top_level_tag_aborts(self, gguf_file):
        entries = [
            kv("general.name", T.STRING, "ok"),
            struct.pack("<Q", 3) + b"bad" + struct.pack("<I", 99) + b"\x00" * 4,
            kv("general.author", T.STRING, "never read"),
        ]
        with pytest.raises(UnknownTypeError) as exc:
            parse_raw(gguf_file(header(entries)), chunk_size=TEST_CHUNK)
        assert exc.value.type_tag == 99

    def test_nested_array_in_stream_aborts(self, gguf_file):
        entry = struct.pack("<Q", 1) + b"k" + struct.pack("<I", T.ARRAY) + struct.pack("<I", T.ARRAY)
        with pytest.raises(UnknownTypeError):
            parse_raw(gguf_file(header([entry])), chunk_size=TEST_CHUNK)

    def test_kv_count_beyond_data_is_truncated(self, tmp_path):
        path = tmp_path / "short.gguf"
        path.write_bytes(header([kv("general.name", T.STRING, "x")], n_kv=5))
        with pytest.raises(TruncatedReadError):
            parse_raw(path, chunk_size=TEST_CHUNK)

    def test_huge_string_length_fails_without_buffering(self, gguf_file):
        entry = struct.pack("<Q", 2**62) + b"k"
        path = gguf_file(header([entry]))
        with pytest.raises(TruncatedReadError, match="only"):
            parse_raw(path, chunk_size=TEST_CHUNK)

    def test_small_file_with_default_chunk_is_truncated(self, gguf_file):
        path = gguf_file(header([kv("general.name", T.STRING, "x")]))
        with pytest.raises(TruncatedReadError):
            parse_raw(path)

    def test_key_conflict_aborts(self, gguf_file):
        entries = [
            kv("llama.rope", T.UINT32, 1),
            kv("llama.rope.scale", T.FLOAT32, 2.0),
        ]
        with pytest.raises(KeyConflictError):
            parse_raw(gguf_file(header(entries)), chunk_size=TEST_CHUNK)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_raw(tmp_path / "nope.gguf")
