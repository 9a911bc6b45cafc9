"""Tests for explicit public-input encoding modes."""

from __future__ import annotations

import pytest

from worldid_debug.zk_protocol import encoding
from worldid_debug.zk_protocol.config import SNARK_SCALAR_FIELD
from worldid_debug.zk_protocol.encoding import EncodingMode
from worldid_debug.zk_protocol.exceptions import HashingInputError
from worldid_debug.zk_protocol.hashing import hash_encoded_bytes, hash_string


class TestParseEncodingMode:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("plain", EncodingMode.PLAIN_FIELD),
            ("PLAIN_FIELD", EncodingMode.PLAIN_FIELD),
            ("bytes", EncodingMode.HASHED_BYTES),
            (" hashed_bytes ", EncodingMode.HASHED_BYTES),
            ("string", EncodingMode.HASHED_STRING),
            (EncodingMode.HASHED_STRING, EncodingMode.HASHED_STRING),
        ],
    )
    def test_known_names(self, name, expected):
        assert encoding.parse_encoding_mode(name) is expected

    def test_unknown_name_lists_options(self):
        with pytest.raises(ValueError, match="Valid options: plain, bytes, string"):
            encoding.parse_encoding_mode("base64")

    def test_non_string_rejected(self):
        with pytest.raises(ValueError):
            encoding.parse_encoding_mode(3)


class TestParseFieldElement:
    def test_decimal_and_hex(self):
        assert encoding.parse_field_element("255") == 255
        assert encoding.parse_field_element("0xff") == 255
        assert encoding.parse_field_element(7) == 7

    def test_field_bound(self):
        assert encoding.parse_field_element(SNARK_SCALAR_FIELD - 1) == SNARK_SCALAR_FIELD - 1
        with pytest.raises(HashingInputError):
            encoding.parse_field_element(SNARK_SCALAR_FIELD)

    @pytest.mark.parametrize("value", ["-1", "abc", "0xgg", True, None, 1.0])
    def test_rejects(self, value):
        with pytest.raises(HashingInputError):
            encoding.parse_field_element(value)


class TestEncodePublicInput:
    def test_plain_passes_value_through(self):
        out = encoding.encode_public_input("42", "plain")
        assert out.hash == 42

    def test_plain_reads_raw_bytes_big_endian(self):
        assert encoding.encode_public_input(b"\x01\x00", EncodingMode.PLAIN_FIELD).hash == 256

    def test_plain_rejects_out_of_field(self):
        with pytest.raises(HashingInputError):
            encoding.encode_public_input(str(SNARK_SCALAR_FIELD), "plain")

    def test_bytes_mode(self):
        out = encoding.encode_public_input("0x" + "00" * 20, "bytes")
        assert out == hash_encoded_bytes(bytes(20))

    def test_bytes_mode_rejects_text(self):
        with pytest.raises(HashingInputError):
            encoding.encode_public_input("vote", "bytes")

    def test_string_mode_hashes_hex_as_text(self):
        out = encoding.encode_public_input("0x00", "string")
        assert out == hash_string("0x00")
        assert out != hash_encoded_bytes(b"\x00")

    def test_string_mode_rejects_bytes(self):
        with pytest.raises(HashingInputError):
            encoding.encode_public_input(b"vote", "string")

    def test_modes_disagree_on_same_input(self):
        values = {
            encoding.encode_public_input("0x01", mode).hash for mode in EncodingMode
        }
        assert len(values) == 3

    def test_invalid_mode(self):
        with pytest.raises(ValueError):
            encoding.encode_public_input("1", "nope")
