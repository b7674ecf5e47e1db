"""RSA key loading for request signing and response verification."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Literal, Union
from urllib.parse import unquote, urlparse

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from .errors import InvalidKeyFormatError, KeyNotFoundError, SignatureError

MIN_KEY_SIZE = 2048

KeyRole = Literal["private", "public"]
KeyRef = Union[str, "os.PathLike[str]", RSAPrivateKey, RSAPublicKey]


def resolve_key_path(key_ref: str | os.PathLike[str]) -> Path:
    """Turn a filesystem path or ``file://`` URI into a ``Path``."""
    ref = os.fspath(key_ref)
    if not ref:
        raise KeyNotFoundError("key path is empty")
    if ref.startswith("file://"):
        parsed = urlparse(ref)
        return Path(unquote(parsed.path))
    return Path(ref).expanduser()


def read_key_material(key_ref: str | os.PathLike[str]) -> bytes:
    path = resolve_key_path(key_ref)
    try:
        return path.read_bytes()
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
        raise KeyNotFoundError(f"key file not found: {path}") from exc
    except OSError as exc:
        raise KeyNotFoundError(f"key file unreadable: {path}") from exc


def load_private_key(key_ref: KeyRef, *, password: bytes | None = None) -> RSAPrivateKey:
    """Load an RSA private key from PKCS#8 or PKCS#1 PEM, or pass a key object through."""
    if isinstance(key_ref, RSAPrivateKey):
        key: Any = key_ref
    elif isinstance(key_ref, RSAPublicKey):
        raise InvalidKeyFormatError("expected an RSA private key, got a public key")
    else:
        pem = read_key_material(key_ref)
        try:
            key = serialization.load_pem_private_key(pem, password=password)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise InvalidKeyFormatError("private key is not valid PEM key material") from exc
    if not isinstance(key, RSAPrivateKey):
        raise InvalidKeyFormatError(f"private key is not RSA ({type(key).__name__})")
    _assert_strength(key.key_size)
    return key


def load_public_key(key_ref: KeyRef) -> RSAPublicKey:
    """Load an RSA public key from SubjectPublicKeyInfo / PKCS#1 PEM or an X.509 certificate.

    An unencrypted private key PEM also works; its public half is used.
    """
    if isinstance(key_ref, RSAPublicKey):
        key: Any = key_ref
    elif isinstance(key_ref, RSAPrivateKey):
        key = key_ref.public_key()
    else:
        pem = read_key_material(key_ref)
        try:
            if b"BEGIN CERTIFICATE" in pem:
                key = x509.load_pem_x509_certificate(pem).public_key()
            elif b"PRIVATE KEY" in pem:
                key = serialization.load_pem_private_key(pem, password=None).public_key()
            else:
                key = serialization.load_pem_public_key(pem)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise InvalidKeyFormatError("public key is not valid PEM key material") from exc
    if not isinstance(key, RSAPublicKey):
        raise InvalidKeyFormatError(f"public key is not RSA ({type(key).__name__})")
    _assert_strength(key.key_size)
    return key


def load_key(key_ref: KeyRef, role: KeyRole, *, password: bytes | None = None) -> RSAPrivateKey | RSAPublicKey:
    if role == "private":
        return load_private_key(key_ref, password=password)
    if role == "public":
        return load_public_key(key_ref)
    raise ValueError(f"unknown key role {role!r}")


def validate_key(key_ref: KeyRef, expected_role: KeyRole = "private", *, password: bytes | None = None) -> bool:
    """Return True when ``key_ref`` is an RSA key of ``expected_role`` with at least 2048 bits."""
    try:
        load_key(key_ref, expected_role, password=password)
    except SignatureError:
        return False
    return True


def describe_key(key_ref: KeyRef, role: KeyRole, *, password: bytes | None = None) -> dict[str, Any]:
    """Summarise a key for operational tooling without exposing key bytes."""
    key = load_key(key_ref, role, password=password)
    public_key = key.public_key() if isinstance(key, RSAPrivateKey) else key
    der = public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return {
        "type": "RSA",
        "role": role,
        "bits": key.key_size,
        "fingerprint": hashlib.sha256(der).hexdigest()[:32],
    }


def signature_length(key: RSAPrivateKey | RSAPublicKey) -> int:
    return (key.key_size + 7) // 8


def _assert_strength(key_size: int) -> None:
    if key_size < MIN_KEY_SIZE:
        raise InvalidKeyFormatError(f"RSA key is {key_size} bits, minimum is {MIN_KEY_SIZE}")


def generate_key_files(
    private_path: Path,
    public_path: Path,
    *,
    bits: int = MIN_KEY_SIZE,
    password: bytes | None = None,
    overwrite: bool = False,
) -> RSAPrivateKey:
    """Write a fresh PKCS#8 private key (mode 0600) and its public key (mode 0644)."""
    _assert_strength(bits)
    for path in (private_path, public_path):
        if path.exists() and not overwrite:
            raise FileExistsError(path)
    key = rsa.generate_private_key(public_exponent=65537, key_size=bits)
    encryption: serialization.KeySerializationEncryption = (
        serialization.BestAvailableEncryption(password) if password else serialization.NoEncryption()
    )
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=encryption,
    )
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    private_path.parent.mkdir(parents=True, exist_ok=True)
    public_path.parent.mkdir(parents=True, exist_ok=True)
    private_path.write_bytes(private_pem)
    os.chmod(private_path, 0o600)
    public_path.write_bytes(public_pem)
    os.chmod(public_path, 0o644)
    return key
