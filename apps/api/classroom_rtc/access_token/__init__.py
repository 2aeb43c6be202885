"""Build (and, for tooling, decode) version 007 access tokens."""
from .buffer import BufferUnderflowError, ByteBuffer, ByteReader
from .services import SERVICE_TYPES, ChatService, EducationService, RtcService, RtmService, Service
from .token import (
    VERSION,
    AccessToken,
    ParsedToken,
    TokenBuildError,
    TokenParseError,
    is_hex_credential,
    parse_token,
)

__all__ = [
    "AccessToken",
    "BufferUnderflowError",
    "ByteBuffer",
    "ByteReader",
    "ChatService",
    "EducationService",
    "ParsedToken",
    "RtcService",
    "RtmService",
    "SERVICE_TYPES",
    "Service",
    "TokenBuildError",
    "TokenParseError",
    "VERSION",
    "is_hex_credential",
    "parse_token",
]
