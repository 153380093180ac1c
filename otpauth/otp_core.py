"""
otp_core.py — Core library for HOTP / TOTP codes and otpauth:// provisioning URIs.

Goals:
- Pure, stateless functions usable directly by the CLI and the HTTP API.
- No argparse, no I/O, no logging here. Errors are raised to the caller.
- RFC4226 (HOTP), RFC6238 (TOTP), RFC4648 (Base32 secrets).

Security note:
- Secrets are never stored by this module; keeping them safe is the caller's job.
"""

from typing import Optional, Tuple
import base64
import hashlib
import hmac
import os
import struct
import time
from urllib.parse import quote

# --- Config / constants ----------------------------------------------------
# Some authenticator apps only support the defaults.
DEFAULT_DIGITS = 6            # 6 - 10
DEFAULT_ALGORITHM = "SHA1"    # HMAC hash
DEFAULT_HOTP_COUNTER = 0      # HOTP start counter
DEFAULT_TOTP_PERIOD = 30      # TOTP step (seconds)
SECRET_BYTES = 20             # 160-bit secret (RFC4226 recommendation)

ALGORITHMS = {
    "SHA1": hashlib.sha1,
    "SHA256": hashlib.sha256,
    "SHA512": hashlib.sha512,
}


# --- Errors ----------------------------------------------------------------
class OTPError(ValueError):
    """Base class for errors raised by otp_core."""


class InvalidSecretEncoding(OTPError):
    """The secret is not a valid Base32 string."""


class UnsupportedAlgorithm(OTPError):
    """The HMAC algorithm is not one of SHA1, SHA256, SHA512."""


class EntropySourceUnavailable(OTPError):
    """The OS cannot supply cryptographically secure random bytes."""


# --- RFC helpers -----------------------------------------------------------
def decode_secret(secret_b32: str) -> bytes:
    """
    Decode a Base32 secret to raw key bytes.

    - Surrounding whitespace is stripped and the string is uppercased.
    - Padding is optional: missing '=' characters are restored before decoding.

    Raises:
        InvalidSecretEncoding: if the string is not valid Base32
    """
    normalized = secret_b32.strip().upper().rstrip("=")
    padded = normalized + "=" * (-len(normalized) % 8)
    try:
        return base64.b32decode(padded)
    except ValueError as e:  # binascii.Error, or non-ASCII input
        raise InvalidSecretEncoding(f"Invalid Base32 secret: {e}") from e


def hash_for(algorithm: str):
    """Return the hashlib constructor for an algorithm name (case-insensitive)."""
    name = algorithm.upper()
    try:
        return ALGORITHMS[name]
    except KeyError:
        raise UnsupportedAlgorithm(
            f"Unsupported algorithm {algorithm!r}, expected one of {', '.join(ALGORITHMS)}"
        ) from None


def int_to_bytes(i: int) -> bytes:
    """
    Convert the counter to the 8-byte big-endian message RFC4226 requires.

    Example: int_to_bytes(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'
    """
    if not 0 <= i < 1 << 64:
        raise ValueError(f"Counter must be a 64-bit unsigned integer, got {i}")
    return struct.pack(">Q", i)


def dynamic_truncate(hmac_digest: bytes) -> int:
    """
    RFC4226 dynamic truncation.

    - offset = low nibble of the last byte
    - 4 bytes from offset, sign bit of the first byte cleared
    - returns a 31-bit unsigned integer
    """
    offset = hmac_digest[-1] & 0x0F
    return (
        ((hmac_digest[offset] & 0x7F) << 24)
        | (hmac_digest[offset + 1] << 16)
        | (hmac_digest[offset + 2] << 8)
        | hmac_digest[offset + 3]
    )


# --- Codes -----------------------------------------------------------------
def hotp(counter: int, secret_b32: str,
         digits: int = DEFAULT_DIGITS,
         algorithm: str = DEFAULT_ALGORITHM) -> str:
    """
    Generate an HOTP code (RFC4226).

    Steps:
    1. Base32-decode secret -> raw key bytes
    2. Message = 8-byte counter (big-endian)
    3. HMAC-<algorithm>(key, message)
    4. Dynamic truncate -> dbc
    5. otp = dbc % 10^digits
    6. Zero-pad to exactly `digits` characters

    Arguments:
        counter: moving factor, 0 <= counter < 2**64
        secret_b32: Base32 secret, case-insensitive, padding optional
        digits: number of code digits (6 - 10)
        algorithm: SHA1, SHA256 or SHA512 (case-insensitive)

    Returns:
        str: zero-padded code, e.g. "000042"

    Raises:
        InvalidSecretEncoding: secret is not valid Base32
        UnsupportedAlgorithm: algorithm is not supported
        ValueError: counter out of range
    """
    key = decode_secret(secret_b32)
    digestmod = hash_for(algorithm)
    msg = int_to_bytes(counter)
    digest = hmac.new(key, msg, digestmod).digest()
    dbc = dynamic_truncate(digest)
    return str(dbc % (10 ** digits)).zfill(digits)


def totp_at(timestamp: int, secret_b32: str,
            period: int = DEFAULT_TOTP_PERIOD,
            digits: int = DEFAULT_DIGITS,
            algorithm: str = DEFAULT_ALGORITHM) -> Tuple[str, int]:
    """
    Generate a TOTP code (RFC6238) at a given Unix timestamp.

    Returns:
        (code, remaining_seconds)
        - remaining_seconds is in (0, period]: exactly on a period boundary the
          full period is reported, the code having just rolled over.

    The counter is floor(timestamp / period), so timestamps before the epoch
    give a negative counter and raise ValueError.
    """
    if period <= 0:
        raise ValueError(f"Period must be a positive number of seconds, got {period}")
    counter, remainder = divmod(timestamp, period)
    return hotp(counter, secret_b32, digits, algorithm), period - remainder


def totp(secret_b32: str,
         period: int = DEFAULT_TOTP_PERIOD,
         digits: int = DEFAULT_DIGITS,
         algorithm: str = DEFAULT_ALGORITHM) -> Tuple[str, int]:
    """Generate the TOTP code for now. Same contract as totp_at."""
    return totp_at(int(time.time()), secret_b32, period, digits, algorithm)


def generate_secret(byte_length: int = SECRET_BYTES) -> str:
    """
    Generate a random Base32 secret without '=' padding.

    Use at least 16 bytes (128 bits); 20 (160 bits) or more is recommended.

    Raises:
        EntropySourceUnavailable: os.urandom has no randomness source
    """
    try:
        raw = os.urandom(byte_length)
    except NotImplementedError as e:
        raise EntropySourceUnavailable("No secure random source available") from e
    return base64.b32encode(raw).decode("ascii").replace("=", "")


# --- Verification ----------------------------------------------------------
def verify_hotp(code: str, counter: int, secret_b32: str,
                look_ahead: int = 1,
                digits: int = DEFAULT_DIGITS,
                algorithm: str = DEFAULT_ALGORITHM) -> Tuple[bool, int]:
    """
    Check an HOTP code against counters counter .. counter + look_ahead.

    Returns:
        (True, next_counter) on a match, next_counter being matched + 1,
        (False, counter) otherwise.
    """
    for i in range(look_ahead + 1):
        expected = hotp(counter + i, secret_b32, digits, algorithm)
        if hmac.compare_digest(expected.encode(), code.encode()):
            return True, counter + i + 1
    return False, counter


def verify_totp(code: str, secret_b32: str,
                timestamp: Optional[int] = None,
                window: int = 1,
                period: int = DEFAULT_TOTP_PERIOD,
                digits: int = DEFAULT_DIGITS,
                algorithm: str = DEFAULT_ALGORITHM) -> bool:
    """
    Check a TOTP code, allowing +/- `window` steps of clock drift.

    Steps before the epoch are skipped. timestamp=None means now.
    """
    if timestamp is None:
        timestamp = int(time.time())
    if period <= 0:
        raise ValueError(f"Period must be a positive number of seconds, got {period}")
    current = timestamp // period
    for offset in range(-window, window + 1):
        step = current + offset
        if step < 0:
            continue
        expected = hotp(step, secret_b32, digits, algorithm)
        if hmac.compare_digest(expected.encode(), code.encode()):
            return True
    return False


# --- Provisioning URIs -----------------------------------------------------
def _encode_component(value: str) -> str:
    # Only RFC3986 unreserved characters pass through unescaped.
    return quote(value, safe="")


def uri(otp_type: str, issuer: str, label: str, image: Optional[str],
        secret_b32: str, digits: Optional[int], algorithm: Optional[str],
        counter: Optional[int], period: Optional[int]) -> str:
    """
    Build an otpauth:// URI.

    Optional parameters are appended in a fixed order (image, algorithm,
    digits, counter, period) and only when given and different from the
    default. None means absent.
    """
    name = _encode_component(f"{issuer}:{label}")
    parts = [f"otpauth://{otp_type}/{name}?secret={secret_b32}&issuer={_encode_component(issuer)}"]
    if image is not None:
        parts.append(f"&image={_encode_component(image)}")
    if algorithm is not None and algorithm.upper() != DEFAULT_ALGORITHM:
        parts.append(f"&algorithm={algorithm.lower()}")
    if digits is not None and digits != DEFAULT_DIGITS:
        parts.append(f"&digits={digits}")
    if counter is not None and counter != DEFAULT_HOTP_COUNTER:
        parts.append(f"&counter={counter}")
    if period is not None and period != DEFAULT_TOTP_PERIOD:
        parts.append(f"&period={period}")
    return "".join(parts)


def hotp_uri(secret_b32: str, issuer: str, label: str,
             image: Optional[str] = None,
             counter: Optional[int] = DEFAULT_HOTP_COUNTER,
             digits: Optional[int] = DEFAULT_DIGITS,
             algorithm: Optional[str] = DEFAULT_ALGORITHM) -> str:
    """
    otpauth://hotp/ URI, usually rendered as a QR code for an authenticator app.

    Arguments:
        secret_b32: Base32 secret, inserted as-is
        issuer: service name; the app shows "issuer:label"
        label: account name, e.g. 'alice@example.com'
        image: optional URL of a small logo for the token entry
    """
    return uri("hotp", issuer, label, image, secret_b32, digits, algorithm, counter, None)


def totp_uri(secret_b32: str, issuer: str, label: str,
             image: Optional[str] = None,
             period: Optional[int] = DEFAULT_TOTP_PERIOD,
             digits: Optional[int] = DEFAULT_DIGITS,
             algorithm: Optional[str] = DEFAULT_ALGORITHM) -> str:
    """otpauth://totp/ URI. Same arguments as hotp_uri, with period instead of counter."""
    return uri("totp", issuer, label, image, secret_b32, digits, algorithm, None, period)
