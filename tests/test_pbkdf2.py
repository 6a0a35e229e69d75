from __future__ import annotations

import asyncio
import hashlib

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from pacedkdf import (
    PBKDF2,
    BlockIndexEncoding,
    DerivationConfig,
    pbkdf2_hmac_sha1,
)
from pacedkdf.crypto import sha1_digest


RFC6070 = [
    ("password", "salt", 1, 20, "0c60c80f961f0e71f3a9b524af6012062fe037a6"),
    ("password", "salt", 2, 20, "ea6c014dc72d6f8ccd1ed92ace1d41f0d8de8957"),
    ("password", "salt", 4096, 20, "4b007901b765489abead49d926f721d065a429c1"),
    (
        "passwordPASSWORDpassword",
        "saltSALTsaltSALTsaltSALTsaltSALTsalt",
        4096,
        25,
        "3d2eec4fe41c849b80c8d83662c0e44a8b291a964cf2f07038",
    ),
]


def _reference(password: bytes, salt: bytes, c: int, dk_len: int) -> str:
    return hashlib.pbkdf2_hmac("sha1", password, salt, c, dk_len).hex()


@pytest.mark.parametrize("password,salt,c,dk_len,expected", RFC6070)
def test_rfc6070_vectors(password: str, salt: str, c: int, dk_len: int, expected: str) -> None:
    result = PBKDF2(password, salt, c, dk_len).run()
    assert result.key_hex == expected
    assert len(result.key_hex) == 2 * dk_len


def test_embedded_nul_bytes_match_hashlib() -> None:
    key = pbkdf2_hmac_sha1(b"pass\x00word", b"sa\x00lt", 4096, 16)
    assert key.hex() == _reference(b"pass\x00word", b"sa\x00lt", 4096, 16)


def test_matches_cryptography_pbkdf2hmac() -> None:
    kdf = PBKDF2HMAC(algorithm=hashes.SHA1(), length=64, salt=b"NaCl", iterations=77)
    expected = kdf.derive(b"hunter2")
    assert pbkdf2_hmac_sha1(b"hunter2", b"NaCl", 77, 64) == expected


@pytest.mark.parametrize("chunk", [1, 3, 10, 64, 5000])
def test_chunk_size_does_not_change_key(chunk: int) -> None:
    config = DerivationConfig(iterations_per_chunk=chunk)
    key = PBKDF2("password", "salt", 100, 60, config=config).run().key_hex
    assert key == _reference(b"password", b"salt", 100, 60)


def test_two_blocks_extend_single_block(rfc6070_vector) -> None:
    password, salt, c, _, expected = rfc6070_vector
    two_blocks = PBKDF2(password, salt, c, 40).run().key_hex
    assert two_blocks[:40] == expected
    assert two_blocks == _reference(b"password", b"salt", 1, 40)


@pytest.mark.parametrize("dk_len", [1, 19, 21, 39, 41, 55])
def test_final_block_truncation(dk_len: int) -> None:
    key = PBKDF2("password", "salt", 3, dk_len).run().key_hex
    assert len(key) == 2 * dk_len
    assert key == _reference(b"password", b"salt", 3, dk_len)


def test_password_of_one_block_is_not_shortened() -> None:
    password = b"p" * 64
    key = pbkdf2_hmac_sha1(password, b"salt", 2, 20)
    assert key.hex() == _reference(password, b"salt", 2, 20)
    assert key != pbkdf2_hmac_sha1(sha1_digest(password), b"salt", 2, 20)


def test_long_password_is_shortened_by_hashing() -> None:
    password = b"p" * 65
    key = pbkdf2_hmac_sha1(password, b"salt", 2, 20)
    assert key == pbkdf2_hmac_sha1(sha1_digest(password), b"salt", 2, 20)
    assert key.hex() == _reference(password, b"salt", 2, 20)


def test_str_and_utf8_bytes_agree() -> None:
    assert pbkdf2_hmac_sha1("pässwörd", "sält", 5, 20) == pbkdf2_hmac_sha1(
        "pässwörd".encode("utf-8"), "sält".encode("utf-8"), 5, 20
    )


def test_wide_character_packing_uses_utf16_code_units() -> None:
    config = DerivationConfig(bits_per_char=16)
    wide = pbkdf2_hmac_sha1("password", "salt", 1, 20, config=config)
    expected = _reference("password".encode("utf-16-be"), "salt".encode("utf-16-be"), 1, 20)
    assert wide.hex() == expected


def test_legacy_block_index_matches_standard_for_small_blocks() -> None:
    legacy = DerivationConfig(block_index_encoding=BlockIndexEncoding.LEGACY_NIBBLE)
    standard = PBKDF2("password", "salt", 1, 340).run().key_hex
    old = PBKDF2("password", "salt", 1, 340, config=legacy).run().key_hex

    # Blocks 1..15 agree; block 16 encodes as 0x00000000 and block 17 as 0x00000001.
    assert old[: 15 * 40] == standard[: 15 * 40]
    assert old[15 * 40 : 16 * 40] != standard[15 * 40 : 16 * 40]
    assert old[16 * 40 :] == standard[:40]
    assert standard == _reference(b"password", b"salt", 1, 340)


@pytest.mark.asyncio
async def test_concurrent_derivations_interleave() -> None:
    config = DerivationConfig(iterations_per_chunk=5)
    a = PBKDF2("password", "salt", 200, 20, config=config)
    b = PBKDF2("other", "pepper", 200, 20, config=config)

    order: list[str] = []
    ra, rb = await asyncio.gather(
        a.derive(lambda _: order.append("a")),
        b.derive(lambda _: order.append("b")),
    )

    assert ra.key_hex == _reference(b"password", b"salt", 200, 20)
    assert rb.key_hex == _reference(b"other", b"pepper", 200, 20)
    assert order[:4] == ["a", "b", "a", "b"]
