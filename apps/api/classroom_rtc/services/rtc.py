"""RTC/RTM token issuance for lesson rooms.

Each call builds two independent 007 tokens: one granting channel access on the
media transport, one granting a messaging login for the same uid. Nothing is
shared between calls except the immutable signing credentials."""
from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..access_token import AccessToken, EducationService, RtcService, RtmService, is_hex_credential
from ..access_token.buffer import MAX_FIELD_LENGTH

DEFAULT_TOKEN_TTL_SECONDS = 24 * 60 * 60
MAX_UID = 0xFFFFFFFF

# Matched exactly; "Tutor" or " tutor " only get subscriber rights.
PUBLISHER_ROLES = frozenset({"tutor", "publisher"})

logger = logging.getLogger(__name__)


class TokenRequestError(ValueError):
    """Raised for caller mistakes such as a missing channel name or uid."""


class IssuerConfigurationError(RuntimeError):
    """Raised when signing credentials are missing or malformed."""


class Role(str, enum.Enum):
    PUBLISHER = "publisher"
    SUBSCRIBER = "subscriber"

    @classmethod
    def from_user_role(cls, user_role: str | None) -> Role:
        # Exact match only: "Tutor" or " tutor " are subscribers.
        return cls.PUBLISHER if user_role in PUBLISHER_ROLES else cls.SUBSCRIBER


@dataclass(frozen=True, slots=True)
class IssuerCredentials:
    app_id: str
    app_certificate: str = field(repr=False)

    def validate(self) -> None:
        if not is_hex_credential(self.app_id):
            raise IssuerConfigurationError("Agora app id must be a 32 character hex string")
        if not is_hex_credential(self.app_certificate):
            raise IssuerConfigurationError("Agora app certificate must be a 32 character hex string")


@dataclass(slots=True)
class IssuedTokens:
    rtc_token: str
    rtm_token: str
    channel_name: str
    uid: int
    app_id: str
    expire_time: int
    role: Role


def build_rtc_token(
    credentials: IssuerCredentials,
    channel_name: str,
    uid: int,
    role: Role,
    expire_time: int,
    *,
    issue_ts: int | None = None,
    salt: int | None = None,
) -> str:
    """Build a media transport token; publishers may also send audio, video and data."""

    token = AccessToken(credentials.app_id, credentials.app_certificate, issue_ts, expire_time, salt)
    service = RtcService(channel_name, uid)
    service.add_privilege(RtcService.PRIVILEGE_JOIN_CHANNEL, expire_time)
    if role is Role.PUBLISHER:
        service.add_privilege(RtcService.PRIVILEGE_PUBLISH_AUDIO_STREAM, expire_time)
        service.add_privilege(RtcService.PRIVILEGE_PUBLISH_VIDEO_STREAM, expire_time)
        service.add_privilege(RtcService.PRIVILEGE_PUBLISH_DATA_STREAM, expire_time)
    token.add_service(service)
    return token.build()


def build_rtm_token(
    credentials: IssuerCredentials,
    user_id: str,
    expire_time: int,
    *,
    issue_ts: int | None = None,
    salt: int | None = None,
) -> str:
    """Build a messaging login token for ``user_id``."""

    token = AccessToken(credentials.app_id, credentials.app_certificate, issue_ts, expire_time, salt)
    service = RtmService(user_id)
    service.add_privilege(RtmService.PRIVILEGE_LOGIN, expire_time)
    token.add_service(service)
    return token.build()


class EducationRole(enum.IntEnum):
    TEACHER = 1
    STUDENT = 2
    ASSISTANT = 3
    OBSERVER = 4


def build_education_token(
    credentials: IssuerCredentials,
    room_uuid: str,
    user_uuid: str,
    role: EducationRole,
    expire_time: int,
    *,
    issue_ts: int | None = None,
    salt: int | None = None,
) -> str:
    """Build a flexible classroom token admitting ``user_uuid`` to ``room_uuid``."""

    if not room_uuid or not user_uuid:
        raise TokenRequestError("Missing required parameters: roomUuid, userUuid")
    for name, value in (("roomUuid", room_uuid), ("userUuid", user_uuid)):
        if len(value.encode("utf-8")) > MAX_FIELD_LENGTH:
            raise TokenRequestError(f"{name} exceeds {MAX_FIELD_LENGTH} bytes")
    credentials.validate()

    token = AccessToken(credentials.app_id, credentials.app_certificate, issue_ts, expire_time, salt)
    service = EducationService(room_uuid, user_uuid, int(role))
    service.add_privilege(EducationService.PRIVILEGE_ROOM_USER, expire_time)
    token.add_service(service)
    return token.build()


def _validate_request(channel_name: str | None, uid: int | None) -> tuple[str, int]:
    if not channel_name or not channel_name.strip() or uid is None:
        raise TokenRequestError("Missing required parameters: channelName, uid")
    if len(channel_name.encode("utf-8")) > MAX_FIELD_LENGTH:
        raise TokenRequestError(f"channelName exceeds {MAX_FIELD_LENGTH} bytes")
    if isinstance(uid, bool) or not isinstance(uid, int):
        raise TokenRequestError("uid must be an integer")
    if not 0 <= uid <= MAX_UID:
        raise TokenRequestError(f"uid must be between 0 and {MAX_UID}")
    return channel_name, uid


def issue_tokens(
    credentials: IssuerCredentials | None,
    channel_name: str | None,
    uid: int | None,
    user_role: str | None = None,
    expire_time: int | None = None,
    *,
    ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
    now: int | None = None,
) -> IssuedTokens:
    """Issue the RTC and RTM tokens a lesson participant needs.

    ``expire_time`` is absolute epoch seconds and is stamped on every
    privilege as well as the envelope. When omitted it defaults to
    ``now + ttl_seconds``.
    """

    channel_name, uid = _validate_request(channel_name, uid)
    if expire_time is not None and not 0 <= expire_time <= MAX_UID:
        raise TokenRequestError("expireTime must be epoch seconds within uint32 range")
    if credentials is None:
        raise IssuerConfigurationError("Agora credentials not configured")
    credentials.validate()

    issue_ts = now if now is not None else int(time.time())
    resolved_expire = expire_time or issue_ts + ttl_seconds
    role = Role.from_user_role(user_role)

    logger.info(
        "Generating tokens channel=%s uid=%s role=%s expires=%s",
        channel_name,
        uid,
        role.value,
        datetime.fromtimestamp(resolved_expire, tz=timezone.utc).isoformat(),
    )

    rtc_token = build_rtc_token(credentials, channel_name, uid, role, resolved_expire, issue_ts=issue_ts)
    rtm_token = build_rtm_token(credentials, str(uid), resolved_expire, issue_ts=issue_ts)

    return IssuedTokens(
        rtc_token=rtc_token,
        rtm_token=rtm_token,
        channel_name=channel_name,
        uid=uid,
        app_id=credentials.app_id,
        expire_time=resolved_expire,
        role=role,
    )
