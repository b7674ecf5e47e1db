"""Signature checks for messages signed by the gateway (webhooks and API responses)."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from ..transport.canonical import CanonicalFormat
from ..transport.envelope import extract_signature, signed_content
from ..transport.errors import ErrorKind, SignatureError
from ..transport.keys import KeyRef
from ..transport.signatures import signature_preview, verify_payload

logger = logging.getLogger(__name__)


class VerificationStatus(str, Enum):
    VERIFIED = "verified"
    SKIPPED = "skipped"
    INVALID = "invalid"
    ABSENT = "absent"


class SignatureRejected(Exception):
    """Raised when a gateway-signed message must not be processed."""

    def __init__(self, status_code: int, message: str, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.kind = kind


class InboundVerifier:
    def __init__(
        self,
        public_key_ref: KeyRef,
        *,
        enabled: bool = True,
        strict: bool = True,
        canonical_format: CanonicalFormat | str = CanonicalFormat.JSON,
    ) -> None:
        self._key_ref = public_key_ref
        self._enabled = enabled
        self._strict = strict
        self._format = CanonicalFormat(canonical_format)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def check(self, body: Any) -> VerificationStatus:
        """Verify ``body`` against the gateway public key or raise ``SignatureRejected``."""
        if not self._enabled:
            return VerificationStatus.SKIPPED
        signature = extract_signature(body)
        if signature is None:
            raise SignatureRejected(401, "Signature is required")
        try:
            valid = verify_payload(
                signed_content(body),
                signature,
                self._key_ref,
                canonical_format=self._format,
            )
        except SignatureError as exc:
            return self._handle_error(exc, signature)
        if not valid:
            logger.warning("invalid gateway signature=%s", signature_preview(signature))
            raise SignatureRejected(401, "Invalid signature")
        logger.debug("gateway signature verified")
        return VerificationStatus.VERIFIED

    def _handle_error(self, exc: SignatureError, signature: str) -> VerificationStatus:
        if exc.is_configuration_error:
            if not self._strict:
                logger.warning("gateway public key unavailable, skipping signature verification: %s", exc.kind.value)
                return VerificationStatus.SKIPPED
            logger.error("gateway public key unusable: %s", exc)
            raise SignatureRejected(500, "Signature verification failed", exc.kind) from exc
        if exc.kind is ErrorKind.INVALID_SIGNATURE_ENCODING:
            logger.warning("malformed gateway signature=%s", signature_preview(signature))
            raise SignatureRejected(401, "Invalid signature", exc.kind) from exc
        if exc.kind is ErrorKind.CANONICALIZATION:
            raise SignatureRejected(400, "Malformed payload", exc.kind) from exc
        logger.error("gateway signature verification error: %s", exc)
        raise SignatureRejected(500, "Signature verification failed", exc.kind) from exc
