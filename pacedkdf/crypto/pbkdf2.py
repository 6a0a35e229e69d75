"""Resumable PBKDF2-HMAC-SHA1.

This module implements RFC 2898 PBKDF2 with HMAC-SHA1 as the pseudorandom
function, executed as a sequence of bounded chunks so that a long derivation
never monopolizes a single-threaded host.

The primary API is :class:`PBKDF2`, which can be driven in three ways:

- :meth:`PBKDF2.step` advances at most one chunk and reports where it is,
  leaving scheduling entirely to the caller.
- :meth:`PBKDF2.derive` is a coroutine yielding to the event loop between chunks.
- :meth:`PBKDF2.derive_key` takes progress/completion callbacks and schedules
  each chunk on an asyncio loop with ``call_soon``.

Exactly one block ``T_i`` is in progress at any time and its accumulator is
only written by XOR-folding one PRF output at a time, in iteration order.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

import numpy as np

from ..config import BlockIndexEncoding, DerivationConfig
from .codec import chars_to_bytes, pack_be, words_to_hex
from .errors import DerivationCancelledError, DerivationStateError, InvalidParameterError
from .hashes import BLOCK_WORDS, DIGEST_SIZE, DIGEST_WORDS, sha1_words

logger = logging.getLogger(__name__)

IPAD_WORD = 0x36363636
OPAD_WORD = 0x5C5C5C5C

# RFC 2898 limits the number of blocks to 2**32 - 1.
MAX_BLOCKS = 0xFFFFFFFF

ProgressCallback = Callable[[float], None]
CompletionCallback = Callable[[str, int], None]


@dataclass(frozen=True, slots=True)
class HmacKey:
    """Inner and outer pad keys for HMAC-SHA1.

    Args:
        ipad: 16 words, ``key XOR 0x36363636``.
        opad: 16 words, ``key XOR 0x5C5C5C5C``.
    """

    ipad: np.ndarray
    opad: np.ndarray

    @classmethod
    def from_password(cls, words: np.ndarray, bit_length: int) -> "HmacKey":
        """Derive the pad keys from a big-endian packed password.

        Passwords longer than the 64-byte hash block are replaced by their
        digest first; shorter ones are zero extended.
        """

        if len(words) > BLOCK_WORDS:
            words = sha1_words(words, bit_length)

        key = np.zeros(BLOCK_WORDS, dtype=np.uint32)
        key[: len(words)] = words

        ipad = key ^ np.uint32(IPAD_WORD)
        opad = key ^ np.uint32(OPAD_WORD)
        ipad.setflags(write=False)
        opad.setflags(write=False)
        return cls(ipad=ipad, opad=opad)

    def prf(self, message: np.ndarray, bit_length: int) -> np.ndarray:
        """Compute ``HMAC(key, message)`` as a five-word digest."""

        inner = sha1_words(np.concatenate((self.ipad, message)), 512 + bit_length)
        return sha1_words(np.concatenate((self.opad, inner)), 512 + DIGEST_SIZE * 8)


@dataclass(slots=True)
class DerivationState:
    """Mutable progress of one derivation.

    ``block_index`` is 1-based and exceeds the block count once the last
    block has been finished.
    """

    block_index: int = 1
    iterations_done: int = 0
    accumulator: np.ndarray = field(
        default_factory=lambda: np.zeros(DIGEST_WORDS, dtype=np.uint32)
    )
    previous: Optional[np.ndarray] = None
    blocks: list[str] = field(default_factory=list)

    def fold(self, u: np.ndarray) -> None:
        """XOR one PRF output into the accumulator and chain from it."""

        np.bitwise_xor(self.accumulator, u, out=self.accumulator)
        self.previous = u
        self.iterations_done += 1

    def finish_block(self, hex_chars: int) -> str:
        """Emit the current block truncated to ``hex_chars`` and start the next one."""

        block = words_to_hex(self.accumulator)[:hex_chars]
        self.blocks.append(block)

        self.block_index += 1
        self.iterations_done = 0
        self.accumulator = np.zeros(DIGEST_WORDS, dtype=np.uint32)
        self.previous = None
        return block


class DerivationStatus(Enum):
    """Lifecycle of a :class:`PBKDF2` engine."""
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class Running:
    """The derivation needs more chunks."""

    progress: float


@dataclass(frozen=True, slots=True)
class Done:
    """The derivation finished.

    Args:
        key_hex: Derived key, ``2 * key_length`` lowercase hex characters.
        elapsed_ms: Wall time since the derivation started.
        progress: Progress reported by the final chunk.
    """

    key_hex: str
    elapsed_ms: int
    progress: float = 1.0

    @property
    def key(self) -> bytes:
        return bytes.fromhex(self.key_hex)


StepResult = Running | Done


class CancellationToken:
    """Cooperative cancellation flag, checked at the start of every chunk."""

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


def _check_count(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameterError(f"{name} must be an integer, not {type(value).__name__}")
    if value <= 0:
        raise InvalidParameterError(f"{name} must be positive")
    return value


class PBKDF2:
    """PBKDF2-HMAC-SHA1 engine, ``PBKDF2(P, S, c, dkLen)`` in RFC 2898 terms.

    All validation and the HMAC key setup happen here; no work is done until
    the engine is stepped or one of the drivers is started.

    Args:
        password: Password as ``str`` or bytes, any length.
        salt: Salt as ``str`` or bytes, any length.
        iterations: Iteration count ``c``.
        key_length: Derived key length ``dkLen`` in bytes.
        config: Chunking and encoding settings.

    Raises:
        InvalidParameterError: If any argument or the configuration is invalid.
    """

    def __init__(
        self,
        password: str | bytes,
        salt: str | bytes,
        iterations: int,
        key_length: int,
        *,
        config: Optional[DerivationConfig] = None,
    ) -> None:
        self.config = config or DerivationConfig()
        errors = self.config.validate()
        if errors:
            raise InvalidParameterError("; ".join(errors))

        self.iterations = _check_count("iterations", iterations)
        self.key_length = _check_count("key_length", key_length)
        self.total_blocks = -(-key_length // DIGEST_SIZE)
        if self.total_blocks > MAX_BLOCKS:
            raise InvalidParameterError("key_length exceeds (2**32 - 1) * 20 bytes")

        password_octets = self._octets("password", password)
        self._salt = self._octets("salt", salt)
        self._hmac = HmacKey.from_password(pack_be(password_octets), len(password_octets) * 8)

        self._state = DerivationState()
        self._status = DerivationStatus.IDLE
        self._claimed = False
        self._started_at: Optional[float] = None

        logger.debug(
            "PBKDF2 engine ready: c=%d dkLen=%d blocks=%d chunk=%d",
            self.iterations,
            self.key_length,
            self.total_blocks,
            self.config.iterations_per_chunk,
        )

    def _octets(self, name: str, value: str | bytes) -> bytes:
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        if not isinstance(value, str):
            raise InvalidParameterError(f"{name} must be str or bytes, not {type(value).__name__}")

        bits = self.config.bits_per_char
        try:
            return value.encode("utf-8") if bits is None else chars_to_bytes(value, bits)
        except UnicodeEncodeError as exc:
            raise InvalidParameterError(f"{name} is not encodable: {exc.reason}") from exc

    def _block_salt(self, block_index: int) -> bytes:
        if self.config.block_index_encoding is BlockIndexEncoding.LEGACY_NIBBLE:
            index = bytes((block_index >> shift) & 0xF for shift in (24, 16, 8, 0))
        else:
            index = block_index.to_bytes(4, "big")
        return self._salt + index

    @property
    def status(self) -> DerivationStatus:
        return self._status

    @property
    def progress(self) -> float:
        """Fraction of the total work done so far."""

        if self._status is DerivationStatus.DONE:
            return 1.0
        st = self._state
        return (st.block_index - 1 + st.iterations_done / self.iterations) / self.total_blocks

    def step(self, cancel_token: Optional[CancellationToken] = None) -> StepResult:
        """Run at most ``config.iterations_per_chunk`` iterations.

        Returns:
            :class:`Running` while blocks remain, :class:`Done` once the last
            block has been finished.

        Raises:
            DerivationCancelledError: If ``cancel_token`` has been cancelled.
            DerivationStateError: If the engine already finished or was cancelled.
        """

        if self._status in (DerivationStatus.DONE, DerivationStatus.CANCELLED):
            raise DerivationStateError(f"derivation is {self._status.value}")

        if cancel_token is not None and cancel_token.cancelled:
            self._status = DerivationStatus.CANCELLED
            logger.debug("PBKDF2 cancelled at block %d", self._state.block_index)
            raise DerivationCancelledError("derivation cancelled")

        if self._started_at is None:
            self._started_at = time.monotonic()
        self._status = DerivationStatus.RUNNING

        st = self._state
        todo = min(self.config.iterations_per_chunk, self.iterations - st.iterations_done)
        for _ in range(todo):
            if st.iterations_done == 0:
                message = self._block_salt(st.block_index)
                u = self._hmac.prf(pack_be(message), len(message) * 8)
            else:
                u = self._hmac.prf(st.previous, DIGEST_SIZE * 8)
            st.fold(u)

        progress = (st.block_index - 1 + st.iterations_done / self.iterations) / self.total_blocks

        if st.iterations_done < self.iterations:
            return Running(progress)

        if st.block_index < self.total_blocks:
            st.finish_block(2 * DIGEST_SIZE)
            logger.debug("PBKDF2 block %d/%d complete", st.block_index - 1, self.total_blocks)
            return Running(progress)

        st.finish_block(2 * (self.key_length - (self.total_blocks - 1) * DIGEST_SIZE))
        self._status = DerivationStatus.DONE
        elapsed_ms = int((time.monotonic() - self._started_at) * 1000)
        logger.debug("PBKDF2 finished in %d ms", elapsed_ms)
        return Done(key_hex="".join(st.blocks), elapsed_ms=elapsed_ms, progress=progress)

    def _claim(self) -> None:
        if self._claimed:
            raise DerivationStateError("a derivation was already started on this engine")
        if self._status in (DerivationStatus.DONE, DerivationStatus.CANCELLED):
            raise DerivationStateError(f"derivation is {self._status.value}")
        self._claimed = True
        if self._started_at is None:
            self._started_at = time.monotonic()

    def run(self, on_progress: Optional[ProgressCallback] = None) -> Done:
        """Drive the derivation to completion on the calling thread."""

        self._claim()
        while True:
            result = self.step()
            if on_progress is not None:
                on_progress(result.progress)
            if isinstance(result, Done):
                return result

    async def derive(
        self,
        on_progress: Optional[ProgressCallback] = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Done:
        """Run the derivation, yielding to the event loop after every chunk.

        Raises:
            DerivationCancelledError: If ``cancel_token`` is cancelled mid-way.
            asyncio.CancelledError: If the awaiting task is cancelled.
        """

        self._claim()
        try:
            while True:
                result = self.step(cancel_token)
                if on_progress is not None:
                    on_progress(result.progress)
                if isinstance(result, Done):
                    return result
                await asyncio.sleep(0)
        except asyncio.CancelledError:
            self._status = DerivationStatus.CANCELLED
            logger.debug("PBKDF2 task cancelled at block %d", self._state.block_index)
            raise

    def derive_key(
        self,
        on_progress: ProgressCallback,
        on_complete: CompletionCallback,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        """Start the derivation and return immediately.

        Each chunk runs as its own ``loop.call_soon`` callback. ``on_progress``
        is called after every chunk and ``on_complete(key_hex, elapsed_ms)``
        exactly once at the end. A cancelled derivation stops without calling
        ``on_complete``.

        Args:
            on_progress: Receives the fraction of work done.
            on_complete: Receives the hex key and elapsed milliseconds.
            loop: Loop to schedule on; defaults to the running loop.
            cancel_token: Optional token checked before every chunk.
        """

        if loop is None:
            loop = asyncio.get_running_loop()
        self._claim()
        loop.call_soon(self._run_chunk, loop, on_progress, on_complete, cancel_token)

    def _run_chunk(
        self,
        loop: asyncio.AbstractEventLoop,
        on_progress: ProgressCallback,
        on_complete: CompletionCallback,
        cancel_token: Optional[CancellationToken],
    ) -> None:
        try:
            result = self.step(cancel_token)
        except DerivationCancelledError:
            return

        on_progress(result.progress)
        if isinstance(result, Done):
            on_complete(result.key_hex, result.elapsed_ms)
            return
        loop.call_soon(self._run_chunk, loop, on_progress, on_complete, cancel_token)


def pbkdf2_hmac_sha1(
    password: str | bytes,
    salt: str | bytes,
    iterations: int,
    key_length: int,
    *,
    config: Optional[DerivationConfig] = None,
) -> bytes:
    """Derive ``key_length`` bytes synchronously.

    Convenience wrapper around :meth:`PBKDF2.run` for callers that do not
    need progress reporting.
    """

    return PBKDF2(password, salt, iterations, key_length, config=config).run().key
