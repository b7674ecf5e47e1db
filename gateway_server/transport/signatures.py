"""RSA-SHA256 (PKCS#1 v1.5) signatures over canonical payload strings."""

from __future__ import annotations

import base64
import binascii
import string
from typing import Any

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from .canonical import CanonicalFormat, canonical_string
from .errors import InvalidSignatureEncodingError, VerificationError
from .keys import KeyRef, load_private_key, load_public_key, signature_length

_HEX_DIGITS = frozenset(string.hexdigits)


def sign(canonical: str, private_key_ref: KeyRef, *, password: bytes | None = None) -> str:
    """Sign ``canonical`` and return the base64 signature."""
    private_key = load_private_key(private_key_ref, password=password)
    try:
        signature = private_key.sign(canonical.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:  # pragma: no cover - delegated to cryptography
        raise VerificationError("signing failed") from exc
    return base64.b64encode(signature).decode("ascii")


def decode_signature(encoded: Any, expected_length: int | None = None) -> bytes:
    """Decode a base64 signature, falling back to hexadecimal (optionally ``0x``-prefixed).

    Base64 is decoded strictly and only accepted when it yields
    ``expected_length`` bytes; a hex string is valid base64 alphabet too, so
    the length check is what routes it to the hex branch.
    """
    if not isinstance(encoded, str):
        raise InvalidSignatureEncodingError("signature must be a string")
    # Gateways may send line-wrapped base64.
    value = "".join(encoded.split())
    if not value:
        raise InvalidSignatureEncodingError("signature is empty")
    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raw = None
    if raw and _plausible(raw, expected_length):
        return raw
    hex_value = value[2:] if value[:2].lower() == "0x" else value
    if hex_value and len(hex_value) % 2 == 0 and set(hex_value) <= _HEX_DIGITS:
        raw = bytes.fromhex(hex_value)
        if _plausible(raw, expected_length):
            return raw
    raise InvalidSignatureEncodingError("signature is neither base64 nor hexadecimal")


def verify(canonical: str, signature: Any, public_key_ref: KeyRef) -> bool:
    """Return True iff ``signature`` is a valid RSA-SHA256 signature of ``canonical``."""
    public_key = load_public_key(public_key_ref)
    raw = decode_signature(signature, signature_length(public_key))
    try:
        public_key.verify(raw, canonical.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
    except InvalidSignature:
        return False
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise VerificationError("signature verification failed in crypto backend") from exc
    return True


def sign_payload(
    payload: Any,
    private_key_ref: KeyRef,
    *,
    canonical_format: CanonicalFormat | str = CanonicalFormat.JSON,
    password: bytes | None = None,
) -> str:
    return sign(canonical_string(payload, canonical_format), private_key_ref, password=password)


def verify_payload(
    payload: Any,
    signature: Any,
    public_key_ref: KeyRef,
    *,
    canonical_format: CanonicalFormat | str = CanonicalFormat.JSON,
) -> bool:
    return verify(canonical_string(payload, canonical_format), signature, public_key_ref)


def _plausible(raw: bytes, expected_length: int | None) -> bool:
    if expected_length is None:
        return bool(raw)
    return len(raw) == expected_length


def signature_preview(signature: Any, size: int = 12) -> str:
    """Short, log-safe excerpt of a signature."""
    if not isinstance(signature, str) or not signature:
        return "<none>"
    if len(signature) <= size:
        return "***"
    return f"{signature[:size]}...({len(signature)} chars)"
