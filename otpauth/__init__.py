"""
otpauth package
===============

HOTP/TOTP one-time codes per RFC 4226 & RFC 6238, plus otpauth:// provisioning
URIs for authenticator apps (Google Authenticator, Authy, ...).

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- HOTP (HMAC-based One-Time Password):
  code = Truncate(HMAC-<alg>(key=secret, msg=counter)) mod 10^digits
  → counter is an 8-byte big-endian moving factor (event-based tokens).

- TOTP (Time-based One-Time Password):
  HOTP with counter = floor(timestamp / period)
  → default period = 30 s, 6 digits, SHA1.

- Dynamic Truncation:
  4 bytes at offset (last byte & 0x0F), sign bit cleared → 31-bit integer.

──────────────────────────────────────────────
Usage
──────────────────────────────────────────────
>>> from otpauth import generate_secret, hotp, totp, totp_uri
>>> secret = generate_secret(20)
>>> code, remaining = totp(secret)
>>> hotp(0, "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ")
'755224'
>>> link = totp_uri(secret, "MyService", "alice@example.com")  # render as QR code

Command line: `otpauth -h` (see otpauth.otp_cli).
"""

from .otp_core import (
    DEFAULT_ALGORITHM,
    DEFAULT_DIGITS,
    DEFAULT_HOTP_COUNTER,
    DEFAULT_TOTP_PERIOD,
    SECRET_BYTES,
    OTPError,
    InvalidSecretEncoding,
    UnsupportedAlgorithm,
    EntropySourceUnavailable,
    hotp,
    totp,
    totp_at,
    generate_secret,
    verify_hotp,
    verify_totp,
    uri,
    hotp_uri,
    totp_uri,
)

__all__ = [
    'DEFAULT_ALGORITHM',
    'DEFAULT_DIGITS',
    'DEFAULT_HOTP_COUNTER',
    'DEFAULT_TOTP_PERIOD',
    'SECRET_BYTES',
    'OTPError',
    'InvalidSecretEncoding',
    'UnsupportedAlgorithm',
    'EntropySourceUnavailable',
    'hotp',
    'totp',
    'totp_at',
    'generate_secret',
    'verify_hotp',
    'verify_totp',
    'uri',
    'hotp_uri',
    'totp_uri',
]
