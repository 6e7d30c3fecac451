"""
Password reset tokens and codes.

Delivery of the token (email) and storage of its hash are left to the
caller; this module only generates, hashes, validates and throttles.
"""

import hashlib
import logging
import re
import secrets
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from config import RESET_REQUEST_INTERVAL
from rate_limiter import RateLimiter

log = logging.getLogger(__name__)

TOKEN_BYTES = 32
TOKEN_PATTERN = re.compile(r"[a-f0-9]{64}")
CODE_PATTERN = re.compile(r"\d{6}")


class ResetThrottledError(Exception):
    """A reset was requested again before the throttle interval passed."""

    def __init__(self, retry_after: float):
        super().__init__(f"Please wait {retry_after:.0f} seconds before requesting another reset link.")
        self.retry_after = retry_after


@dataclass(frozen=True)
class ResetRequest:
    email: str
    token: str
    token_hash: str
    code: str
    expires: str


def generate_reset_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _utc(now) -> pd.Timestamp:
    if now is None:
        return pd.Timestamp.now(tz="UTC")
    ts = pd.Timestamp(now)
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")


def token_expiry(now=None, hours: int = 1) -> str:
    """Expiry as a date-only ISO string (the record store's Date field has no time)."""
    return (_utc(now) + pd.Timedelta(hours=hours)).strftime("%Y-%m-%d")


def is_token_expired(expiry: str, now=None) -> bool:
    """
    True once ``now`` is past ``expiry``.

    Full timestamps are compared as-is; date-only strings last until
    23:59:59.999 UTC of that day. A missing or unparseable expiry counts
    as expired.
    """
    text = "" if expiry is None else str(expiry).strip()
    if not text:
        return True
    try:
        deadline = _utc(text if "T" in text else f"{text}T23:59:59.999Z")
    except (TypeError, ValueError, OverflowError):
        log.warning("Unreadable reset token expiry %r; treating as expired", expiry)
        return True
    if pd.isna(deadline):
        return True
    return _utc(now) > deadline


def is_valid_token_format(token: str) -> bool:
    return bool(TOKEN_PATTERN.fullmatch(token or ""))


def generate_reset_code() -> str:
    return str(100000 + secrets.randbelow(900000))


def is_valid_reset_code(code: str) -> bool:
    return bool(CODE_PATTERN.fullmatch(code or ""))


def make_reset_limiter(interval: float = RESET_REQUEST_INTERVAL) -> RateLimiter:
    return RateLimiter(interval)


def request_reset(email: str, limiter: RateLimiter, now=None) -> ResetRequest:
    """
    Issue a token and code for ``email``.

    ``now`` only sets the expiry date. The throttle runs on the limiter's
    own clock, so pass a limiter with a matching clock when faking time.

    Raises:
        ResetThrottledError: if the same address asked within the limiter's interval.
    """
    key = email.strip().lower()
    if not limiter.allow(key):
        wait = limiter.retry_after(key)
        log.info("Throttled password reset for %s (%.0fs left)", key, wait)
        raise ResetThrottledError(wait)

    token = generate_reset_token()
    return ResetRequest(
        email=key,
        token=token,
        token_hash=hash_reset_token(token),
        code=generate_reset_code(),
        expires=token_expiry(now),
    )


def verify_reset(token: str, stored_hash: str, expiry: str, now: Optional[pd.Timestamp] = None) -> bool:
    """A token is accepted when well-formed, unexpired and matching the stored hash."""
    if not is_valid_token_format(token) or is_token_expired(expiry, now):
        return False
    return secrets.compare_digest(hash_reset_token(token), stored_hash)
