"""Configuration management for pacedkdf derivations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional
import os


class BlockIndexEncoding(Enum):
    """How the PBKDF2 block counter is appended to the salt."""

    STANDARD = "standard"
    """RFC 2898 ``INT(i)``: four bytes, big endian."""

    LEGACY_NIBBLE = "legacy_nibble"
    """Each shifted byte masked with ``0xF``. Only agrees with ``STANDARD`` for i <= 15."""


class SchedulingProfile(Enum):
    """How much work a derivation does before yielding to the host loop."""
    INTERACTIVE = "interactive"
    BALANCED = "balanced"
    BATCH = "batch"


_CHUNK_SIZES = {
    SchedulingProfile.INTERACTIVE: 10,
    SchedulingProfile.BALANCED: 100,
    SchedulingProfile.BATCH: 1000,
}


@dataclass(frozen=True)
class DerivationConfig:
    """Settings shared by every chunk of a derivation.

    Args:
        iterations_per_chunk: Upper bound of PRF iterations run before the
            engine yields control.
        block_index_encoding: Encoding of the block counter appended to the salt.
        bits_per_char: ``None`` encodes ``str`` inputs as UTF-8. ``8`` or ``16``
            packs each character code (masked to that width) instead.
    """

    iterations_per_chunk: int = 10
    block_index_encoding: BlockIndexEncoding = BlockIndexEncoding.STANDARD
    bits_per_char: Optional[int] = None

    @classmethod
    def for_profile(cls, profile: SchedulingProfile) -> DerivationConfig:
        """Create a configuration with the chunk size of ``profile``."""
        return cls(iterations_per_chunk=_CHUNK_SIZES[profile])

    @classmethod
    def from_environment(cls, prefix: str = "PACEDKDF_") -> DerivationConfig:
        """
        Build a configuration from environment variables.

        Reads ``<prefix>ITERATIONS_PER_CHUNK``, ``<prefix>BLOCK_INDEX_ENCODING``
        and ``<prefix>BITS_PER_CHAR``; unset variables keep their defaults.

        Raises:
            ValueError: If a variable holds an unparseable value.
        """
        defaults = cls()

        chunk = os.getenv(prefix + "ITERATIONS_PER_CHUNK")
        encoding = os.getenv(prefix + "BLOCK_INDEX_ENCODING")
        bits = os.getenv(prefix + "BITS_PER_CHAR")

        return cls(
            iterations_per_chunk=int(chunk) if chunk is not None else defaults.iterations_per_chunk,
            block_index_encoding=(
                BlockIndexEncoding(encoding.strip().lower())
                if encoding is not None
                else defaults.block_index_encoding
            ),
            bits_per_char=int(bits) if bits else defaults.bits_per_char,
        )

    def validate(self) -> List[str]:
        """
        Validate this configuration.

        Returns:
            List of validation errors. Empty if valid.
        """
        errors = []

        if isinstance(self.iterations_per_chunk, bool) or not isinstance(self.iterations_per_chunk, int):
            errors.append("iterations_per_chunk must be an integer")
        elif self.iterations_per_chunk <= 0:
            errors.append("iterations_per_chunk must be positive")

        if not isinstance(self.block_index_encoding, BlockIndexEncoding):
            errors.append("block_index_encoding must be a BlockIndexEncoding")

        if self.bits_per_char not in (None, 8, 16):
            errors.append("bits_per_char must be None, 8 or 16")

        return errors
