"""Key derivation primitives.

The hash function itself comes from :pypi:`cryptography`; modules in this
package add the word packing and the chunked PBKDF2 state machine on top.

The most important exported API for higher layers is
:class:`~pacedkdf.crypto.pbkdf2.PBKDF2`.
"""

from __future__ import annotations

from .codec import (
    chars_to_bytes,
    pack_be,
    pack_chars,
    pack_le,
    unpack_be,
    unpack_le,
    words_to_hex,
)
from .errors import (
    CryptoError,
    DerivationCancelledError,
    DerivationStateError,
    InvalidParameterError,
)
from .hashes import sha1_digest, sha1_hex, sha1_words
from .pbkdf2 import (
    PBKDF2,
    CancellationToken,
    DerivationState,
    DerivationStatus,
    Done,
    HmacKey,
    Running,
    pbkdf2_hmac_sha1,
)

__all__ = [
    "CancellationToken",
    "CryptoError",
    "DerivationCancelledError",
    "DerivationState",
    "DerivationStateError",
    "DerivationStatus",
    "Done",
    "HmacKey",
    "InvalidParameterError",
    "PBKDF2",
    "Running",
    "chars_to_bytes",
    "pack_be",
    "pack_chars",
    "pack_le",
    "pbkdf2_hmac_sha1",
    "sha1_digest",
    "sha1_hex",
    "sha1_words",
    "unpack_be",
    "unpack_le",
    "words_to_hex",
]
