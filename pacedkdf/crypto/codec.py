"""Byte <-> 32-bit word packing.

Two conventions live here and must not be mixed:

- :func:`pack_le` / :func:`unpack_le` is the generic little-endian codec:
  byte 0 occupies bits 0-7 of word 0.
- :func:`pack_be` / :func:`unpack_be` / :func:`pack_chars` follow the SHA-1
  message layout: byte 0 occupies bits 24-31 of word 0.

Word arrays are ``numpy.uint32`` arrays. Trailing bytes that do not fill a
word are zero padded, so unpacking takes an explicit bit length.
"""

from __future__ import annotations

import numpy as np

WORD_SIZE = 4


def _to_words(data: bytes, dtype: str) -> np.ndarray:
    n_words = -(-len(data) // WORD_SIZE)
    padded = bytes(data).ljust(n_words * WORD_SIZE, b"\x00")
    return np.frombuffer(padded, dtype=dtype).astype(np.uint32)


def _from_words(words, dtype: str, bit_length: int | None) -> bytes:
    raw = np.asarray(words, dtype=np.uint32).astype(dtype).tobytes()
    if bit_length is None:
        return raw
    if bit_length < 0 or bit_length % 8:
        raise ValueError("bit_length must be a non-negative multiple of 8")
    if bit_length > len(raw) * 8:
        raise ValueError("bit_length exceeds the size of the word array")
    return raw[: bit_length // 8]


def pack_le(data: bytes) -> np.ndarray:
    """Pack ``data`` into ``ceil(len(data) / 4)`` words, least significant byte first."""

    return _to_words(data, "<u4")


def unpack_le(words, bit_length: int | None = None) -> bytes:
    """Inverse of :func:`pack_le`.

    Args:
        words: Word array (anything :func:`numpy.asarray` accepts).
        bit_length: Number of bits to emit. Defaults to every bit of ``words``.
    """

    return _from_words(words, "<u4", bit_length)


def pack_be(data: bytes) -> np.ndarray:
    """Pack ``data`` into words, most significant byte first (SHA-1 order)."""

    return _to_words(data, ">u4")


def unpack_be(words, bit_length: int | None = None) -> bytes:
    """Inverse of :func:`pack_be`."""

    return _from_words(words, ">u4", bit_length)


def chars_to_bytes(text: str, bits_per_char: int = 8) -> bytes:
    """Serialize each character code of ``text`` as a ``bits_per_char`` field.

    With 8 bits every code is masked to its low byte; with 16 bits ``text``
    is taken as UTF-16 code units, so astral characters become surrogate pairs.
    """

    if bits_per_char == 8:
        return bytes(ord(ch) & 0xFF for ch in text)
    if bits_per_char == 16:
        return text.encode("utf-16-be", "surrogatepass")
    raise ValueError("bits_per_char must be 8 or 16")


def pack_chars(text: str, bits_per_char: int = 8) -> np.ndarray:
    """Pack the character codes of ``text`` in SHA-1 bit order."""

    return pack_be(chars_to_bytes(text, bits_per_char))


def words_to_hex(words) -> str:
    """Format a big-endian word array as lowercase hex, eight digits per word."""

    return unpack_be(words).hex()
