"""Shared fixtures: real RSA keys on disk and a config pointing at them."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from gateway_server.config import build_server_config


def _write_private(path: Path, key: Any) -> Path:
    path.write_bytes(
        key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    return path


def _write_public(path: Path, key: Any) -> Path:
    path.write_bytes(
        key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    return path


@pytest.fixture(scope="session")
def key_dir(tmp_path_factory) -> Path:
    """Directory holding the PEM files for the whole session."""
    return tmp_path_factory.mktemp("keys")


@pytest.fixture(scope="session")
def merchant_key() -> rsa.RSAPrivateKey:
    """Merchant signing key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def gateway_key() -> rsa.RSAPrivateKey:
    """Key the gateway signs webhooks and responses with."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def merchant_private_pem(key_dir, merchant_key) -> Path:
    return _write_private(key_dir / "merchant_private_key.pem", merchant_key)


@pytest.fixture(scope="session")
def merchant_public_pem(key_dir, merchant_key) -> Path:
    return _write_public(key_dir / "merchant_public_key.pem", merchant_key)


@pytest.fixture(scope="session")
def gateway_private_pem(key_dir, gateway_key) -> Path:
    return _write_private(key_dir / "gateway_private_key.pem", gateway_key)


@pytest.fixture(scope="session")
def gateway_public_pem(key_dir, gateway_key) -> Path:
    return _write_public(key_dir / "simpaisa_public_key.pem", gateway_key)


@pytest.fixture(scope="session")
def weak_private_pem(key_dir) -> Path:
    """A 1024-bit key, below the accepted minimum."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=1024)
    return _write_private(key_dir / "weak_private_key.pem", key)


@pytest.fixture(scope="session")
def ec_private_pem(key_dir) -> Path:
    key = ec.generate_private_key(ec.SECP256R1())
    return _write_private(key_dir / "ec_private_key.pem", key)


@pytest.fixture
def config_data(merchant_private_pem, merchant_public_pem, gateway_public_pem) -> dict[str, Any]:
    """Raw config mapping pointing at the session keys."""
    return {
        "environment": "production",
        "logging": {"level": "DEBUG"},
        "gateway": {
            "mode": "sandbox",
            "merchant_id": "1000123",
            "timeout_seconds": 5,
            "headers": {"Accept": "application/json", "region": "PK"},
            "operators": {"easypaisa": "100001", "hbl_konnect": "100003", "alfa": "100004"},
            "endpoints": {
                "wallet_initiate": "/v2/wallets/transaction/initiate",
                "wallet_verify": "/v2/wallets/transaction/verify",
                "wallet_finalize": "/v2/wallets/transaction/finalize",
                "wallet_delink": "/v2/wallets/transaction/delink",
                "wallet_inquire": "/v2/inquire/wallet/transaction/inquire",
                "customer": "/merchants/{merchant_id}/disbursements/register-customer",
                "banks": "/merchants/{merchant_id}/disbursements/banks",
                "balance": "/merchants/{merchant_id}/disbursements/balance-data",
                "reasons": "/merchants/{merchant_id}/disbursements/reasons",
                "fetch_account": "/merchants/{merchant_id}/disbursements/fetch-account",
                "disbursement": "/merchants/{merchant_id}/disbursements/initiate",
                "disbursement_list": "/merchants/{merchant_id}/disbursements",
            },
        },
        "rsa": {
            "private_key_path": str(merchant_private_pem),
            "public_key_path": str(merchant_public_pem),
            "gateway_public_key_path": str(gateway_public_pem),
            "sign_requests": True,
            "verify_response_signature": True,
            "verify_incoming_signatures": True,
            "canonical_format": "json",
        },
        "ssl": {"verify_peer": True},
    }


@pytest.fixture
def server_config(config_data, monkeypatch):
    """Strict production config with gateway env overrides cleared."""
    for name in list(os.environ):
        if name.startswith(("SIMPAISA_", "GATEWAY_")):
            monkeypatch.delenv(name, raising=False)
    return build_server_config(config_data)
