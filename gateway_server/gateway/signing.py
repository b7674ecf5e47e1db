"""Attach merchant signatures to outbound gateway payloads."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ..transport.canonical import SIGNATURE_FIELD, CanonicalFormat
from ..transport.errors import SignatureError
from ..transport.keys import KeyRef
from ..transport.signatures import sign_payload, signature_preview

logger = logging.getLogger(__name__)


class RequestSigner:
    """Signs outbound payloads with the merchant private key.

    With ``strict=False`` a missing or unusable key downgrades to an unsigned
    request and a warning; in strict environments the error propagates.
    """

    def __init__(
        self,
        private_key_ref: KeyRef,
        *,
        enabled: bool = True,
        strict: bool = True,
        canonical_format: CanonicalFormat | str = CanonicalFormat.JSON,
        password: bytes | None = None,
    ) -> None:
        self._key_ref = private_key_ref
        self._enabled = enabled
        self._strict = strict
        self._format = CanonicalFormat(canonical_format)
        self._password = password

    @property
    def enabled(self) -> bool:
        return self._enabled

    def signature_for(self, payload: Any) -> str | None:
        if not self._enabled:
            return None
        try:
            signature = sign_payload(
                payload,
                self._key_ref,
                canonical_format=self._format,
                password=self._password,
            )
        except SignatureError as exc:
            if exc.is_configuration_error and not self._strict:
                logger.warning("RSA signing key unavailable, sending unsigned request: %s", exc.kind.value)
                return None
            raise
        logger.debug("signed outbound payload signature=%s", signature_preview(signature))
        return signature

    def sign_flat(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Return a copy of ``payload`` with ``signature`` added at the top level."""
        body = {k: v for k, v in payload.items() if k != SIGNATURE_FIELD}
        signature = self.signature_for(body)
        if signature is not None:
            body[SIGNATURE_FIELD] = signature
        return body

    def sign_envelope(self, request: Mapping[str, Any]) -> dict[str, Any]:
        """Wrap ``request`` as ``{"request": ..., "signature": ...}`` signed over the request object."""
        inner = dict(request)
        body: dict[str, Any] = {"request": inner}
        signature = self.signature_for(inner)
        if signature is not None:
            body[SIGNATURE_FIELD] = signature
        return body
