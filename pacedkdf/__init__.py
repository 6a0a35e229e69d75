"""pacedkdf: PBKDF2 that yields to the host between chunks of work."""

__version__ = "0.1.0"

from .config import BlockIndexEncoding, DerivationConfig, SchedulingProfile
from .crypto import PBKDF2, CancellationToken, pbkdf2_hmac_sha1

__all__ = [
    "BlockIndexEncoding",
    "CancellationToken",
    "DerivationConfig",
    "PBKDF2",
    "SchedulingProfile",
    "pbkdf2_hmac_sha1",
]
