"""Signed token envelope (version 007).

Layout of a token::

    "007" + base64(deflate(
        bytes(signature)
        + string(app_id) + uint32(issue_ts) + uint32(expire) + uint32(salt)
        + uint16(service_count) + service.pack() ...
    ))

The signing key is derived with two chained HMAC-SHA256 rounds where the
issue timestamp and then the salt act as the *key* and the certificate as the
*message*. Verifiers recompute exactly this, so the inversion must stay.
"""
from __future__ import annotations

import base64
import binascii
import hmac
import random
import time
import zlib
from dataclasses import dataclass, field
from hashlib import sha256

from .buffer import BufferUnderflowError, ByteBuffer, ByteReader
from .services import SERVICE_TYPES, Service

VERSION = "007"
CREDENTIAL_LENGTH = 32
SALT_MAX = 99_999_999

_salt_source = random.SystemRandom()


class TokenBuildError(ValueError):
    """Raised when an envelope cannot produce a token a verifier would accept."""


class TokenParseError(ValueError):
    """Raised when a string is not a well-formed 007 token."""


def is_hex_credential(value: str | None) -> bool:
    """Return True when ``value`` is 32 hex characters (16 raw bytes)."""

    if not value or len(value) != CREDENTIAL_LENGTH:
        return False
    try:
        bytes.fromhex(value)
    except ValueError:
        return False
    return True


def _hmac_sha256(key: bytes, message: bytes) -> bytes:
    return hmac.new(key, message, sha256).digest()


def generate_salt() -> int:
    return _salt_source.randint(1, SALT_MAX)


class AccessToken:
    """One token under construction; build once, then discard."""

    def __init__(
        self,
        app_id: str,
        app_certificate: str,
        issue_ts: int | None = None,
        expire: int = 0,
        salt: int | None = None,
    ) -> None:
        self.app_id = app_id
        self._app_certificate = app_certificate
        self.issue_ts = issue_ts if issue_ts else int(time.time())
        self.expire = expire
        self.salt = salt if salt is not None else generate_salt()
        self._services: dict[int, Service] = {}

    def __repr__(self) -> str:
        return (
            f"AccessToken(app_id={self.app_id!r}, issue_ts={self.issue_ts}, "
            f"expire={self.expire}, services={list(self._services)})"
        )

    @property
    def services(self) -> list[Service]:
        return list(self._services.values())

    def add_service(self, service: Service) -> None:
        # Re-adding a type replaces the descriptor but keeps its slot.
        self._services[service.service_type] = service

    def _check(self) -> None:
        if not is_hex_credential(self.app_id):
            raise TokenBuildError("app_id must be a 32 character hex string")
        if not is_hex_credential(self._app_certificate):
            raise TokenBuildError("app_certificate must be a 32 character hex string")
        if not self._services:
            raise TokenBuildError("token has no services")
        for service in self._services.values():
            if not service.privileges:
                raise TokenBuildError(f"service type {service.service_type} grants no privileges")
        if not 1 <= self.salt <= SALT_MAX:
            raise TokenBuildError(f"salt {self.salt} outside 1..{SALT_MAX}")

    def signing_key(self) -> bytes:
        key = _hmac_sha256(ByteBuffer().put_uint32(self.issue_ts).pack(), self._app_certificate.encode("utf-8"))
        return _hmac_sha256(ByteBuffer().put_uint32(self.salt).pack(), key)

    def signing_info(self) -> bytes:
        buffer = (
            ByteBuffer()
            .put_string(self.app_id)
            .put_uint32(self.issue_ts)
            .put_uint32(self.expire)
            .put_uint32(self.salt)
            .put_uint16(len(self._services))
        )
        return buffer.pack() + b"".join(service.pack() for service in self._services.values())

    def build(self) -> str:
        """Sign, compress and encode the envelope.

        Raises :class:`TokenBuildError` instead of returning a token that a
        verifier would reject.
        """

        self._check()
        signing_info = self.signing_info()
        signature = _hmac_sha256(self.signing_key(), signing_info)
        content = ByteBuffer().put_bytes(signature).pack() + signing_info
        return VERSION + base64.b64encode(zlib.compress(content)).decode("ascii")


@dataclass(slots=True)
class ParsedToken:
    """Decoded token contents. The signature is *not* verified."""

    signature: bytes
    app_id: str
    issue_ts: int
    expire: int
    salt: int
    signing_info: bytes
    services: dict[int, Service] = field(default_factory=dict)


def parse_token(token: str) -> ParsedToken:
    """Decode a 007 token back into its envelope fields and services."""

    if not token.startswith(VERSION):
        raise TokenParseError(f"unsupported token version {token[:len(VERSION)]!r}")
    try:
        content = zlib.decompress(base64.b64decode(token[len(VERSION):], validate=True))
    except (binascii.Error, zlib.error) as exc:
        raise TokenParseError("token body is not base64 deflate data") from exc

    reader = ByteReader(content)
    try:
        signature = reader.get_bytes()
        signing_info = reader.rest()
        app_id = reader.get_string()
        issue_ts = reader.get_uint32()
        expire = reader.get_uint32()
        salt = reader.get_uint32()
        services: dict[int, Service] = {}
        for _ in range(reader.get_uint16()):
            service_type = reader.get_uint16()
            service_cls = SERVICE_TYPES.get(service_type)
            if service_cls is None:
                raise TokenParseError(f"unknown service type {service_type}")
            service = service_cls()
            service.unpack(reader)
            services[service_type] = service
    except (BufferUnderflowError, UnicodeDecodeError) as exc:
        raise TokenParseError("token payload is truncated or corrupt") from exc

    if reader.remaining():
        raise TokenParseError(f"{reader.remaining()} trailing bytes after services")

    return ParsedToken(
        signature=signature,
        app_id=app_id,
        issue_ts=issue_ts,
        expire=expire,
        salt=salt,
        signing_info=signing_info,
        services=services,
    )
