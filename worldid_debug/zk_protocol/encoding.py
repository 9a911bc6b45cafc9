"""
Explicit encoding modes for public inputs (signal, external nullifier).

A raw value can reach the verifier three ways: passed through as a field
element, hashed as bytes, or hashed as text. The caller picks one up front.
"""

from __future__ import annotations

import enum
from typing import Final, Union

from .config import SNARK_SCALAR_FIELD
from .exceptions import HashingInputError
from .hashing import FieldHashOutput, hash_encoded_bytes, hash_string, is_bytes_like


class EncodingMode(str, enum.Enum):
    PLAIN_FIELD = "plain"
    HASHED_BYTES = "bytes"
    HASHED_STRING = "string"


_ALIASES: Final[dict[str, EncodingMode]] = {
    "plain": EncodingMode.PLAIN_FIELD,
    "plain_field": EncodingMode.PLAIN_FIELD,
    "bytes": EncodingMode.HASHED_BYTES,
    "hashed_bytes": EncodingMode.HASHED_BYTES,
    "string": EncodingMode.HASHED_STRING,
    "hashed_string": EncodingMode.HASHED_STRING,
}


def _format_valid_options() -> str:
    return ", ".join(mode.value for mode in EncodingMode)


def parse_encoding_mode(value: str | EncodingMode) -> EncodingMode:
    """
    Resolve an encoding mode from its name.

    Raises:
        ValueError: If the name is not a known mode.
    """
    if isinstance(value, EncodingMode):
        return value
    if not isinstance(value, str):
        raise ValueError(
            f"Invalid encoding mode: {value!r}. Valid options: {_format_valid_options()}"
        )
    mode = _ALIASES.get(value.strip().lower())
    if mode is None:
        raise ValueError(
            f"Invalid encoding mode: {value!r}. Valid options: {_format_valid_options()}"
        )
    return mode


def parse_field_element(value: Union[int, str]) -> int:
    """Parse an int, decimal string or ``0x`` hex string that must already be in the field."""
    if isinstance(value, bool):
        raise HashingInputError("booleans are not field elements")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            number = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
        except ValueError as exc:
            raise HashingInputError(f"not a numeric value: {value!r}") from exc
    else:
        raise HashingInputError(f"cannot read {type(value).__name__} as a field element")

    if number < 0 or number >= SNARK_SCALAR_FIELD:
        raise HashingInputError(f"value {value!r} is outside the scalar field")
    return number


def encode_public_input(
    value: Union[int, str, bytes, bytearray], mode: EncodingMode | str
) -> FieldHashOutput:
    """
    Encode ``value`` for use as a public input according to ``mode``.

    Raises:
        HashingInputError: If the value cannot be read under the chosen mode.
    """
    mode = parse_encoding_mode(mode)

    if mode is EncodingMode.PLAIN_FIELD:
        if isinstance(value, (bytes, bytearray)):
            value = int.from_bytes(bytes(value), "big")
        return FieldHashOutput.from_int(parse_field_element(value))

    if mode is EncodingMode.HASHED_BYTES:
        if not is_bytes_like(value):
            raise HashingInputError(
                f"{value!r} is not hex-encoded bytes; use the string mode to hash it as text"
            )
        return hash_encoded_bytes(value)

    if isinstance(value, (bytes, bytearray)):
        raise HashingInputError("string mode expects text, got raw bytes")
    return hash_string(str(value))
