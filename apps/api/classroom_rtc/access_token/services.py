"""Service descriptors carried inside an access token.

A service is one capability domain (RTC media, RTM messaging, ...) with its
own privilege set. On the wire each service is packed as its uint16 type tag,
then the privilege map, then the identity fields of the concrete service.
"""
from __future__ import annotations

from typing import ClassVar

from .buffer import ByteBuffer, ByteReader


class Service:
    """Base class holding the type tag and privilege set."""

    service_type: ClassVar[int] = 0

    def __init__(self) -> None:
        self._privileges: dict[int, int] = {}

    @property
    def privileges(self) -> dict[int, int]:
        return dict(self._privileges)

    def add_privilege(self, privilege: int, expire_at: int) -> None:
        self._privileges[privilege] = expire_at

    def _pack_fields(self, buffer: ByteBuffer) -> None:
        """Write identity fields; overridden by concrete services."""

    def _unpack_fields(self, reader: ByteReader) -> None:
        """Read identity fields; overridden by concrete services."""

    def pack(self) -> bytes:
        buffer = ByteBuffer().put_uint16(self.service_type).put_privilege_map(self._privileges)
        self._pack_fields(buffer)
        return buffer.pack()

    def unpack(self, reader: ByteReader) -> None:
        """Populate from ``reader`` positioned just after the type tag."""

        self._privileges = reader.get_privilege_map()
        self._unpack_fields(reader)


class RtcService(Service):
    """Real-time audio/video channel access."""

    service_type = 1

    PRIVILEGE_JOIN_CHANNEL = 1
    PRIVILEGE_PUBLISH_AUDIO_STREAM = 2
    PRIVILEGE_PUBLISH_VIDEO_STREAM = 3
    PRIVILEGE_PUBLISH_DATA_STREAM = 4

    def __init__(self, channel_name: str = "", uid: int | str = 0) -> None:
        super().__init__()
        self.channel_name = channel_name
        # uid 0 is the "any uid" wildcard and travels as an empty string.
        self.uid = "" if uid == 0 else str(uid)

    def _pack_fields(self, buffer: ByteBuffer) -> None:
        buffer.put_string(self.channel_name).put_string(self.uid)

    def _unpack_fields(self, reader: ByteReader) -> None:
        self.channel_name = reader.get_string()
        self.uid = reader.get_string()


class RtmService(Service):
    """Real-time messaging login."""

    service_type = 2

    PRIVILEGE_LOGIN = 1

    def __init__(self, user_id: str = "") -> None:
        super().__init__()
        self.user_id = user_id or ""

    def _pack_fields(self, buffer: ByteBuffer) -> None:
        buffer.put_string(self.user_id)

    def _unpack_fields(self, reader: ByteReader) -> None:
        self.user_id = reader.get_string()


class ChatService(Service):
    """Chat user/app access; recognised when decoding, not issued here."""

    service_type = 5

    PRIVILEGE_USER = 1
    PRIVILEGE_APP = 2

    def __init__(self, user_id: str = "") -> None:
        super().__init__()
        self.user_id = user_id or ""

    def _pack_fields(self, buffer: ByteBuffer) -> None:
        buffer.put_string(self.user_id)

    def _unpack_fields(self, reader: ByteReader) -> None:
        self.user_id = reader.get_string()


class EducationService(Service):
    """Flexible classroom room membership; ``role`` is a signed int16."""

    service_type = 7

    PRIVILEGE_ROOM_USER = 1
    PRIVILEGE_USER = 2
    PRIVILEGE_APP = 3

    def __init__(self, room_uuid: str = "", user_uuid: str = "", role: int = -1) -> None:
        super().__init__()
        self.room_uuid = room_uuid or ""
        self.user_uuid = user_uuid or ""
        self.role = role

    def _pack_fields(self, buffer: ByteBuffer) -> None:
        buffer.put_string(self.room_uuid).put_string(self.user_uuid).put_int16(self.role)

    def _unpack_fields(self, reader: ByteReader) -> None:
        self.room_uuid = reader.get_string()
        self.user_uuid = reader.get_string()
        self.role = reader.get_int16()


SERVICE_TYPES: dict[int, type[Service]] = {
    cls.service_type: cls for cls in (RtcService, RtmService, ChatService, EducationService)
}
