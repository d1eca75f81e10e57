"""
One-time handoff codes.

A code is drawn uniformly from ``10 ** length`` values with the ``secrets``
CSPRNG at accept time and stored on the delivery.  Verification is an
exact, full-length, constant-time comparison.
"""

from __future__ import annotations

import hmac
import secrets
from typing import Optional

DEFAULT_OTP_LENGTH = 6


def generate_otp(length: int = DEFAULT_OTP_LENGTH) -> str:
    if length < 1:
        raise ValueError("OTP length must be positive")
    return f"{secrets.randbelow(10 ** length):0{length}d}"


def verify_otp(supplied: Optional[str], stored: Optional[str]) -> bool:
    if not isinstance(supplied, str) or not isinstance(stored, str):
        return False
    if not supplied or len(supplied) != len(stored):
        return False
    return hmac.compare_digest(supplied.encode(), stored.encode())
