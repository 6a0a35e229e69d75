"""Test configuration for pacedkdf package."""

import pytest


@pytest.fixture
def rfc6070_vector():
    """RFC 6070 test case 1: ``(password, salt, c, dkLen, hex)``."""
    return ("password", "salt", 1, 20, "0c60c80f961f0e71f3a9b524af6012062fe037a6")


@pytest.fixture
def small_chunk_config():
    """Configuration that forces many chunks for short iteration counts."""
    from pacedkdf.config import DerivationConfig
    return DerivationConfig(iterations_per_chunk=3)


@pytest.fixture
def engine_factory():
    """Build engines with default password/salt for state-machine tests."""
    from pacedkdf.crypto import PBKDF2

    def make(iterations=25, key_length=40, **kwargs):
        return PBKDF2("password", "salt", iterations, key_length, **kwargs)

    return make
