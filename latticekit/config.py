"""Chain and node connection configuration."""

from __future__ import annotations

import ssl
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum

HTTP_PROTOCOL = "http"
HTTPS_PROTOCOL = "https"
WEBSOCKET_PROTOCOL = "ws"

_MAX_PORT = 0xFFFF


class ConfigError(ValueError):
    """Raised when a configuration is incomplete or invalid."""


class Curve(str, Enum):
    """Elliptic curves a chain can be configured with."""

    SECP256K1 = "Secp256k1"
    SM2P256V1 = "Sm2p256v1"

    def __str__(self) -> str:
        return self.value


@dataclass
class ChainConfig:
    """Chain settings: the signing curve and whether the chain has no tokens."""

    curve: Curve | str | None = None
    token_less: bool = False

    def validate(self) -> None:
        """Raise ConfigError if no curve is set."""
        if not self.curve:
            raise ConfigError("ChainConfig has no curve")

    def is_sm2p256v1(self) -> bool:
        """Whether the chain signs with the SM2 curve."""
        return self.curve == Curve.SM2P256V1


def _scheme(insecure: bool) -> str:
    return HTTPS_PROTOCOL if insecure else HTTP_PROTOCOL


@dataclass
class ConnectingNodeConfig:
    """How to reach a node: address, ports and JWT settings."""

    ip: str = ""
    http_port: int = 0
    websocket_port: int = 0
    gin_http_port: int = 0
    jwt_secret: str = ""
    jwt_token_expiration_duration: timedelta = field(default_factory=timedelta)
    insecure: bool = False

    def validate(self) -> None:
        """Raise ConfigError if the IP or HTTP port is missing or a port is out of range."""
        if not self.ip:
            raise ConfigError("node IP must not be empty")
        if not self.http_port:
            raise ConfigError("node HTTP port must not be empty")
        for name, port in (
            ("http_port", self.http_port),
            ("websocket_port", self.websocket_port),
            ("gin_http_port", self.gin_http_port),
        ):
            if not 0 <= port <= _MAX_PORT:
                raise ConfigError(f"{name} {port} is out of range")

    def node_address(self) -> str:
        """The node's address as ip:port."""
        return f"{self.ip}:{self.http_port}"

    def http_url(self) -> str:
        """The node's HTTP endpoint."""
        return f"{_scheme(self.insecure)}://{self.ip}:{self.http_port}"

    def websocket_url(self) -> str:
        """The node's websocket endpoint."""
        return f"{WEBSOCKET_PROTOCOL}://{self.ip}:{self.websocket_port}"

    def gin_server_url(self) -> str:
        """The node's auxiliary HTTP server; defaults to two ports above the HTTP port."""
        if self.gin_http_port == 0:
            port = (self.http_port + 2) & _MAX_PORT
        else:
            port = self.gin_http_port
        return f"{_scheme(self.insecure)}://{self.ip}:{port}"


@dataclass
class Options:
    """Optional HTTP connection settings."""

    insecure_skip_verify: bool = False
    max_idle_conns: int = 0
    max_idle_conns_per_host: int = 0
    _ssl_context: ssl.SSLContext | None = field(default=None, init=False, repr=False, compare=False)

    def ssl_context(self) -> ssl.SSLContext:
        """The TLS context for connections, built once and reused."""
        if self._ssl_context is None:
            context = ssl.create_default_context()
            if self.insecure_skip_verify:
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE
            self._ssl_context = context
        return self._ssl_context