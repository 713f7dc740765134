"""
Time-based one-time passwords (RFC 6238) for broker two-factor login.

The generator is fixed to the parameters Angel One's verifier uses: HMAC-SHA1,
30-second steps and 6 digits. The HMAC primitive and the clock are injected so
the code for a given window can be reproduced exactly in tests.
"""

from __future__ import annotations

import hashlib
import hmac
import math
import struct
from collections.abc import Callable
from datetime import datetime

from core.auth.base32 import b32decode
from core.clock import Clock, get_clock, unix_seconds

__all__ = ["Signer", "TOTPGenerator", "hmac_sha1", "generate_totp"]

Signer = Callable[[bytes, bytes], bytes]

DEFAULT_STEP_SECONDS = 30
DEFAULT_DIGITS = 6


def hmac_sha1(key: bytes, message: bytes) -> bytes:
    """RFC 2104 HMAC-SHA1, returning the 20-byte digest."""
    return hmac.new(key, message, hashlib.sha1).digest()


class TOTPGenerator:
    """Derive TOTP codes from a base32 secret and the current time.

    Args:
        clock: Time source used when ``generate`` is called without ``now``.
        signer: HMAC primitive ``(key, message) -> digest``.
        digits: Code length. Angel One expects 6; 8 is accepted for
            checking against the RFC 6238 reference vectors.
        step: Window length in seconds.

    Example:
        >>> gen = TOTPGenerator()
        >>> gen.generate("GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ", now=59)
        '287082'
    """

    def __init__(
        self,
        clock: Clock | None = None,
        signer: Signer = hmac_sha1,
        digits: int = DEFAULT_DIGITS,
        step: int = DEFAULT_STEP_SECONDS,
    ) -> None:
        if digits < 1 or digits > 9:
            raise ValueError("digits must be between 1 and 9")
        if step <= 0:
            raise ValueError("step must be positive")
        self._clock = clock
        self._signer = signer
        self.digits = digits
        self.step = step

    @property
    def clock(self) -> Clock:
        return self._clock or get_clock()

    def _seconds(self, now: datetime | float | None) -> float:
        if now is None:
            return unix_seconds(self.clock)
        if isinstance(now, datetime):
            return now.timestamp()
        return float(now)

    def time_step(self, now: datetime | float | None = None) -> int:
        """Counter value for the window containing ``now``."""
        return math.floor(self._seconds(now) / self.step)

    def seconds_remaining(self, now: datetime | float | None = None) -> int:
        """Whole seconds until the window containing ``now`` rolls over."""
        seconds = self._seconds(now)
        return math.ceil((self.time_step(seconds) + 1) * self.step - seconds)

    def generate(self, secret: str, now: datetime | float | None = None) -> str:
        """Return the zero-padded code for ``secret`` at ``now``.

        Never raises on a malformed secret: invalid base32 symbols are
        skipped and the code is derived from whatever bytes remain. A wrong
        secret shows up as a rejected login upstream.
        """
        key = b32decode(secret)
        counter = struct.pack(">Q", self.time_step(now))
        mac = self._signer(key, counter)

        # dynamic truncation (RFC 4226 section 5.3)
        offset = mac[-1] & 0x0F
        value = struct.unpack(">I", mac[offset : offset + 4])[0] & 0x7FFFFFFF
        return str(value % 10**self.digits).zfill(self.digits)


def generate_totp(secret: str, now: datetime | float | None = None) -> str:
    """Generate a 6-digit SHA-1 TOTP code with the global clock."""
    return TOTPGenerator().generate(secret, now)
