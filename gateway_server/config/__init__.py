"""Configuration helpers for the gateway server."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml

from ..transport.canonical import CanonicalFormat

_DEFAULT_SERVER_CONFIG = Path(__file__).resolve().parent / "server.yaml"

NON_STRICT_ENVIRONMENTS = frozenset({"local", "testing"})

BASE_URLS = {
    "sandbox": "https://sandbox.simpaisa.com",
    "production": "https://disb.simpaisa.com",
}


@dataclass(frozen=True)
class GatewaySettings:
    mode: str
    base_url: str
    merchant_id: str
    timeout_seconds: float
    headers: Mapping[str, str]
    operators: Mapping[str, str]
    transaction_types: Mapping[str, str]
    endpoints: Mapping[str, str]

    def endpoint(self, name: str) -> str:
        try:
            template = self.endpoints[name]
        except KeyError as exc:
            raise ValueError(f"unknown gateway endpoint {name}") from exc
        return template.format(merchant_id=self.merchant_id)


@dataclass(frozen=True)
class RsaSettings:
    private_key_path: Path
    public_key_path: Path
    gateway_public_key_path: Path
    private_key_passphrase: str | None
    sign_requests: bool
    verify_response_signature: bool
    verify_incoming_signatures: bool
    canonical_format: CanonicalFormat

    @property
    def password(self) -> bytes | None:
        if not self.private_key_passphrase:
            return None
        return self.private_key_passphrase.encode("utf-8")


@dataclass(frozen=True)
class SslSettings:
    client_certificate_path: Path | None
    client_private_key_path: Path | None
    ca_certificate_path: Path | None
    verify_peer: bool


@dataclass(frozen=True)
class ServerConfig:
    environment: str
    log_level: str
    gateway: GatewaySettings
    rsa: RsaSettings
    ssl: SslSettings

    @property
    def strict(self) -> bool:
        """Missing keys are only tolerated outside strict environments."""
        return self.environment not in NON_STRICT_ENVIRONMENTS


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    return yaml.safe_load(path.read_text()) or {}


def _env(name: str, default: Any) -> Any:
    value = os.getenv(name)
    return default if value is None else value


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _as_path(value: Any) -> Path | None:
    if not value:
        return None
    return Path(str(value)).expanduser()


def build_server_config(data: Mapping[str, Any]) -> ServerConfig:
    gateway = data.get("gateway", {}) or {}
    rsa = data.get("rsa", {}) or {}
    ssl = data.get("ssl", {}) or {}
    logging_cfg = data.get("logging", {}) or {}

    mode = str(_env("SIMPAISA_MODE", gateway.get("mode", "sandbox")))
    base_url = _env("SIMPAISA_BASE_URL", gateway.get("base_url")) or BASE_URLS.get(mode, BASE_URLS["sandbox"])
    canonical_format = _env("SIMPAISA_CANONICAL_FORMAT", rsa.get("canonical_format", "json"))
    return ServerConfig(
        environment=str(_env("GATEWAY_ENVIRONMENT", data.get("environment", "production"))),
        log_level=str(logging_cfg.get("level", "INFO")).upper(),
        gateway=GatewaySettings(
            mode=mode,
            base_url=str(base_url),
            merchant_id=str(_env("SIMPAISA_MERCHANT_ID", gateway.get("merchant_id") or "")),
            timeout_seconds=float(_env("SIMPAISA_TIMEOUT", gateway.get("timeout_seconds", 30))),
            headers={str(k): str(v) for k, v in (gateway.get("headers") or {}).items()},
            operators={str(k): str(v) for k, v in (gateway.get("operators") or {}).items()},
            transaction_types={
                str(k): str(v) for k, v in (gateway.get("transaction_types") or {}).items()
            },
            endpoints=dict(gateway.get("endpoints") or {}),
        ),
        rsa=RsaSettings(
            private_key_path=Path(
                _env("SIMPAISA_RSA_PRIVATE_KEY_PATH", rsa.get("private_key_path", ""))
            ).expanduser(),
            public_key_path=Path(
                _env("SIMPAISA_RSA_PUBLIC_KEY_PATH", rsa.get("public_key_path", ""))
            ).expanduser(),
            gateway_public_key_path=Path(
                _env("SIMPAISA_RSA_GATEWAY_PUBLIC_KEY_PATH", rsa.get("gateway_public_key_path", ""))
            ).expanduser(),
            private_key_passphrase=_env(
                "SIMPAISA_RSA_PRIVATE_KEY_PASSPHRASE", rsa.get("private_key_passphrase")
            ),
            sign_requests=_as_bool(_env("SIMPAISA_SIGN_REQUESTS", rsa.get("sign_requests", True))),
            verify_response_signature=_as_bool(
                _env("SIMPAISA_VERIFY_RESPONSE_SIGNATURE", rsa.get("verify_response_signature", True))
            ),
            verify_incoming_signatures=_as_bool(
                _env("SIMPAISA_VERIFY_INCOMING_SIGNATURES", rsa.get("verify_incoming_signatures", True))
            ),
            canonical_format=CanonicalFormat(str(canonical_format)),
        ),
        ssl=SslSettings(
            client_certificate_path=_as_path(
                _env("SIMPAISA_SSL_CLIENT_CERT_PATH", ssl.get("client_certificate_path"))
            ),
            client_private_key_path=_as_path(
                _env("SIMPAISA_SSL_CLIENT_KEY_PATH", ssl.get("client_private_key_path"))
            ),
            ca_certificate_path=_as_path(_env("SIMPAISA_SSL_CA_CERT_PATH", ssl.get("ca_certificate_path"))),
            verify_peer=_as_bool(_env("SIMPAISA_SSL_VERIFY_PEER", ssl.get("verify_peer", True))),
        ),
    )


@lru_cache(maxsize=1)
def get_server_config() -> ServerConfig:
    path = Path(os.getenv("GATEWAY_CONFIG_PATH", _DEFAULT_SERVER_CONFIG))
    return build_server_config(_load_yaml(path))
