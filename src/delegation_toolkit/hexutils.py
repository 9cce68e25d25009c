"""Helpers for converting between hex strings, bytes, addresses and words.

All byte-oriented APIs in this package accept either ``bytes`` or a
``0x``-prefixed hex string; these helpers perform the conversion and raise
:class:`~delegation_toolkit.errors.CaveatValidationError` on malformed input.
"""
from __future__ import annotations

from typing import Union

from eth_utils import (
    decode_hex,
    encode_hex,
    is_0x_prefixed,
    is_address,
    is_hex,
    to_checksum_address,
)

from delegation_toolkit.errors import CaveatValidationError

HexLike = Union[str, bytes, bytearray]

MAX_UINT256: int = 2**256 - 1


def is_hex_string(value: object) -> bool:
    """Return True when *value* is a ``0x``-prefixed hex string."""
    return isinstance(value, str) and is_0x_prefixed(value) and is_hex(value)


def to_bytes(value: HexLike, field: str = "value") -> bytes:
    """Coerce *value* to ``bytes``.

    Parameters
    ----------
    value:
        Raw bytes or a ``0x``-prefixed hex string. ``"0x"`` yields ``b""``.
    field:
        Name used in the error message.

    Raises
    ------
    CaveatValidationError
        If *value* is a string that is not ``0x``-prefixed hex.
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if is_hex_string(value):
        digits = value[2:]
        if len(digits) % 2:
            digits = "0" + digits
        return decode_hex(digits)
    raise CaveatValidationError(f"Invalid {field}: must be a valid hex value")


def to_hex(value: HexLike) -> str:
    """Return the ``0x``-prefixed lowercase hex form of *value*."""
    return encode_hex(to_bytes(value))


def require_address(value: object, field: str = "address") -> str:
    """Validate *value* as an address and return its checksummed form.

    Mixed-case input must carry a valid EIP-55 checksum.

    Raises
    ------
    CaveatValidationError
        If *value* is not a well-formed address.
    """
    if not isinstance(value, str) or not is_address(value):
        raise CaveatValidationError(f"Invalid {field}: must be a valid address")
    return to_checksum_address(value)


def address_bytes(value: object, field: str = "address") -> bytes:
    """Return the 20 raw bytes of a validated address."""
    return decode_hex(require_address(value, field))


def uint_bytes(value: int, size: int = 32, field: str = "value") -> bytes:
    """Encode a non-negative integer as a big-endian word of *size* bytes.

    Raises
    ------
    CaveatValidationError
        If *value* is not an integer or does not fit in *size* bytes.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise CaveatValidationError(f"Invalid {field}: must be an integer")
    if value < 0 or value >= 1 << (8 * size):
        raise CaveatValidationError(
            f"Invalid {field}: must fit in an unsigned {8 * size}-bit integer"
        )
    return value.to_bytes(size, "big")


def parse_uint(value: object, field: str = "value") -> int:
    """Parse an unsigned 256-bit integer given as int, decimal string or ``0x`` hex.

    Raises
    ------
    CaveatValidationError
        If *value* is not one of those forms or is out of range.
    """
    if isinstance(value, bool):
        raise CaveatValidationError(f"Invalid {field}: must be an integer")
    if isinstance(value, str):
        try:
            if value.startswith("0x"):
                value = int(value, 16) if len(value) > 2 else 0
            else:
                value = int(value)
        except ValueError:
            raise CaveatValidationError(f"Invalid {field}: {value!r}") from None
    if not isinstance(value, int) or not 0 <= value <= MAX_UINT256:
        raise CaveatValidationError(f"Invalid {field}: must be an unsigned 256-bit integer")
    return value


def pad_left(value: bytes, size: int = 32) -> bytes:
    """Left-pad *value* with zero bytes to *size* bytes."""
    if len(value) > size:
        raise CaveatValidationError(
            f"Invalid value: {len(value)} bytes exceeds {size} bytes"
        )
    return value.rjust(size, b"\x00")


def same_address(a: str, b: str) -> bool:
    """Case-insensitive address comparison."""
    return a.lower() == b.lower()
