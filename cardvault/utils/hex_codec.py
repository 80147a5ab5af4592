"""
Hex Codec
=========

Text encoding for the final envelope on the wire.

Encoding always emits uppercase digits. Decoding accepts either case,
so producers that emit lowercase hex interoperate.
"""

from __future__ import annotations

import re
from typing import Final, Optional, Pattern

from cardvault.core.crypto.errors import FormatError

_NON_HEX: Final[Pattern[str]] = re.compile(r"[^0-9A-Fa-f]")


def encode(data: Optional[bytes]) -> str:
    """
    Encode bytes as uppercase hexadecimal text.

    Raises:
        FormatError: If data is None
    """
    if data is None:
        raise FormatError("Byte sequence cannot be None")
    return bytes(data).hex().upper()


def decode(text: Optional[str]) -> bytes:
    """
    Decode hexadecimal text into bytes.

    Args:
        text: Hex digits, either case, no separators

    Returns:
        Decoded bytes (empty for empty text)

    Raises:
        FormatError: If text is None, has odd length, or contains a non-hex character
    """
    if text is None:
        raise FormatError("Hex string cannot be None")

    if len(text) % 2 != 0:
        raise FormatError(
            "Hex string must have even length",
            context={"length": len(text)},
        )

    # bytes.fromhex tolerates whitespace; the wire format does not
    match = _NON_HEX.search(text)
    if match is not None:
        raise FormatError(
            f"Invalid hex character at position {match.start()}",
            context={"position": match.start()},
        )

    return bytes.fromhex(text)
