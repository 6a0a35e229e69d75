"""Shared exceptions for :mod:`pacedkdf.crypto`.

The library raises a small set of domain-specific exceptions so callers can
tell bad parameters apart from misuse of a running derivation.
"""

from __future__ import annotations


class CryptoError(Exception):
    """Base error for key derivation operations."""


class InvalidParameterError(CryptoError, ValueError):
    """Raised when derivation inputs or configuration are malformed."""


class DerivationStateError(CryptoError):
    """Raised for illegal transitions of a derivation state machine."""


class DerivationCancelledError(CryptoError):
    """Raised when a cancellation request is observed between chunks."""
