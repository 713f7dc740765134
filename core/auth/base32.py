"""
Permissive RFC 4648 base32 decoding for TOTP secrets.

``base64.b32decode`` rejects lowercase input, missing padding, spaces and stray
symbols. Secrets pasted from authenticator setup screens routinely contain all
of those, so this decoder never raises: unknown symbols are skipped and a
trailing partial byte is dropped.
"""

from __future__ import annotations

__all__ = ["BASE32_ALPHABET", "b32decode"]

BASE32_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

_SYMBOL_VALUES: dict[str, int] = {ch: i for i, ch in enumerate(BASE32_ALPHABET)}


def b32decode(secret: str) -> bytes:
    """Decode a base32 secret into raw key bytes.

    Args:
        secret: Base32 text, any case, optional trailing ``=`` padding.

    Returns:
        One byte per complete group of 8 bits. Empty for empty or
        all-invalid input.

    Examples:
        >>> b32decode("MZXW6===")
        b'foo'
        >>> b32decode("mzxw6")
        b'foo'
        >>> b32decode("!!")
        b''
    """
    out = bytearray()
    buffer = 0
    bits = 0

    for ch in secret.upper().rstrip("="):
        value = _SYMBOL_VALUES.get(ch)
        if value is None:
            continue
        buffer = (buffer << 5) | value
        bits += 5
        if bits >= 8:
            bits -= 8
            out.append((buffer >> bits) & 0xFF)
            buffer &= (1 << bits) - 1

    return bytes(out)
