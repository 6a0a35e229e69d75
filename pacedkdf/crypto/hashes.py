"""Digest primitives.

SHA-1 is provided by :pypi:`cryptography`; this module only adapts it to the
word-array calling convention used by the PBKDF2 engine.
"""

from __future__ import annotations

import numpy as np
from cryptography.hazmat.primitives import hashes

from .codec import pack_be, unpack_be

DIGEST_SIZE = 20
DIGEST_WORDS = DIGEST_SIZE // 4
BLOCK_SIZE = 64
BLOCK_WORDS = BLOCK_SIZE // 4


def sha1_digest(data: bytes) -> bytes:
    """Compute the 20-byte SHA-1 digest of ``data``."""

    h = hashes.Hash(hashes.SHA1())
    h.update(bytes(data))
    return h.finalize()


def sha1_hex(data: bytes) -> str:
    """Lowercase hex SHA-1 digest of ``data``."""

    return sha1_digest(data).hex()


def sha1_words(words, bit_length: int) -> np.ndarray:
    """Hash the first ``bit_length`` bits of a big-endian word array.

    Args:
        words: Message packed with :func:`~pacedkdf.crypto.codec.pack_be`.
        bit_length: Message length in bits; must be byte aligned.

    Returns:
        Read-only array of five words.
    """

    digest = pack_be(sha1_digest(unpack_be(words, bit_length)))
    digest.setflags(write=False)
    return digest
