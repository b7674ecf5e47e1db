"""Typed failures raised by the canonicalization and RSA signing layer."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    KEY_NOT_FOUND = "key_not_found"
    INVALID_KEY_FORMAT = "invalid_key_format"
    CANONICALIZATION = "canonicalization"
    INVALID_SIGNATURE_ENCODING = "invalid_signature_encoding"
    VERIFICATION = "verification"


CONFIGURATION_KINDS = frozenset({ErrorKind.KEY_NOT_FOUND, ErrorKind.INVALID_KEY_FORMAT})


class SignatureError(ValueError):
    """Base class for signing failures; ``kind`` tells callers which policy applies."""

    kind: ErrorKind = ErrorKind.VERIFICATION

    @property
    def is_configuration_error(self) -> bool:
        return self.kind in CONFIGURATION_KINDS


class KeyNotFoundError(SignatureError):
    """Raised when a referenced key file does not exist or cannot be read."""

    kind = ErrorKind.KEY_NOT_FOUND


class InvalidKeyFormatError(SignatureError):
    """Raised when key material is not a usable RSA key of the expected role."""

    kind = ErrorKind.INVALID_KEY_FORMAT


class CanonicalizationError(SignatureError):
    """Raised when a payload cannot be rendered into a canonical string."""

    kind = ErrorKind.CANONICALIZATION


class InvalidSignatureEncodingError(SignatureError):
    """Raised when a signature is neither valid base64 nor hexadecimal."""

    kind = ErrorKind.INVALID_SIGNATURE_ENCODING


class VerificationError(SignatureError):
    """Raised when the crypto backend fails for reasons other than a mismatch."""

    kind = ErrorKind.VERIFICATION
