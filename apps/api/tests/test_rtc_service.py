"""Tests for lesson token issuance."""
from __future__ import annotations

import pytest

from classroom_rtc.access_token import AccessToken, EducationService, RtcService, RtmService, parse_token
from classroom_rtc.services import rtc as rtc_service

CREDENTIALS = rtc_service.IssuerCredentials(
    app_id="970ca35de60c44645bbae8a215061b33",
    app_certificate="5cfd2fd1755d40ecb72977518be15d3b",
)
NOW = 1_700_000_000

PUBLISHER_PRIVILEGES = {
    RtcService.PRIVILEGE_JOIN_CHANNEL,
    RtcService.PRIVILEGE_PUBLISH_AUDIO_STREAM,
    RtcService.PRIVILEGE_PUBLISH_VIDEO_STREAM,
    RtcService.PRIVILEGE_PUBLISH_DATA_STREAM,
}


def _rtc(token: str) -> RtcService:
    return parse_token(token).services[RtcService.service_type]


def test_lesson_scenario_for_tutor() -> None:
    issued = rtc_service.issue_tokens(
        CREDENTIALS, "lesson-42", 100007, "tutor", NOW + 3600, now=NOW
    )

    assert issued.role is rtc_service.Role.PUBLISHER
    assert issued.channel_name == "lesson-42"
    assert issued.uid == 100007
    assert issued.app_id == CREDENTIALS.app_id
    assert issued.expire_time == NOW + 3600
    assert issued.rtc_token.startswith("007")
    assert issued.rtm_token.startswith("007")

    rtc = _rtc(issued.rtc_token)
    assert rtc.channel_name == "lesson-42"
    assert rtc.uid == "100007"
    assert set(rtc.privileges) == PUBLISHER_PRIVILEGES
    assert set(rtc.privileges.values()) == {NOW + 3600}

    rtm_parsed = parse_token(issued.rtm_token)
    rtm = rtm_parsed.services[RtmService.service_type]
    assert list(rtm_parsed.services) == [RtmService.service_type]
    assert rtm.user_id == "100007"
    assert rtm.privileges == {RtmService.PRIVILEGE_LOGIN: NOW + 3600}


@pytest.mark.parametrize("user_role", ["student", "", None, "observer"])
def test_non_tutor_roles_only_join(user_role) -> None:
    issued = rtc_service.issue_tokens(CREDENTIALS, "lesson-42", 5, user_role, now=NOW)

    assert issued.role is rtc_service.Role.SUBSCRIBER
    assert _rtc(issued.rtc_token).privileges == {RtcService.PRIVILEGE_JOIN_CHANNEL: issued.expire_time}


def test_publisher_role_alias_grants_publish() -> None:
    issued = rtc_service.issue_tokens(CREDENTIALS, "lesson-42", 5, "publisher", now=NOW)

    assert issued.role is rtc_service.Role.PUBLISHER
    assert set(_rtc(issued.rtc_token).privileges) == PUBLISHER_PRIVILEGES


@pytest.mark.parametrize("user_role", ["Tutor", " TUTOR ", "tutor ", "PUBLISHER", "Publisher"])
def test_role_matching_is_exact(user_role) -> None:
    issued = rtc_service.issue_tokens(CREDENTIALS, "lesson-42", 5, user_role, now=NOW)

    assert issued.role is rtc_service.Role.SUBSCRIBER
    assert set(_rtc(issued.rtc_token).privileges) == {RtcService.PRIVILEGE_JOIN_CHANNEL}


def test_oversized_channel_name_is_request_error() -> None:
    with pytest.raises(rtc_service.TokenRequestError):
        rtc_service.issue_tokens(CREDENTIALS, "c" * 70_000, 5, "tutor", now=NOW)


def test_channel_name_limit_counts_utf8_bytes() -> None:
    # 32768 two-byte characters encode to 65536 bytes.
    with pytest.raises(rtc_service.TokenRequestError):
        rtc_service.issue_tokens(CREDENTIALS, "é" * 32_768, 5, "tutor", now=NOW)

    issued = rtc_service.issue_tokens(CREDENTIALS, "c" * 65_535, 5, "tutor", now=NOW)
    assert len(_rtc(issued.rtc_token).channel_name) == 65_535


def test_education_token_grants_room_membership() -> None:
    built = rtc_service.build_education_token(
        CREDENTIALS, "room-1", "user-7", rtc_service.EducationRole.STUDENT, NOW + 60, issue_ts=NOW, salt=9
    )

    parsed = parse_token(built)
    assert list(parsed.services) == [EducationService.service_type]
    service = parsed.services[EducationService.service_type]
    assert (service.room_uuid, service.user_uuid, service.role) == ("room-1", "user-7", 2)
    assert service.privileges == {EducationService.PRIVILEGE_ROOM_USER: NOW + 60}
    assert (parsed.issue_ts, parsed.expire, parsed.salt) == (NOW, NOW + 60, 9)


@pytest.mark.parametrize(("room_uuid", "user_uuid"), [("", "user-7"), ("room-1", ""), ("r" * 70_000, "u")])
def test_education_token_rejects_bad_identity(room_uuid, user_uuid) -> None:
    with pytest.raises(rtc_service.TokenRequestError):
        rtc_service.build_education_token(
            CREDENTIALS, room_uuid, user_uuid, rtc_service.EducationRole.TEACHER, NOW + 60
        )


def test_education_token_requires_valid_credentials() -> None:
    credentials = rtc_service.IssuerCredentials(app_id="nope", app_certificate=CREDENTIALS.app_certificate)

    with pytest.raises(rtc_service.IssuerConfigurationError):
        rtc_service.build_education_token(
            credentials, "room-1", "user-7", rtc_service.EducationRole.TEACHER, NOW + 60
        )


def test_default_expiry_is_now_plus_ttl() -> None:
    issued = rtc_service.issue_tokens(CREDENTIALS, "lesson-42", 5, "student", now=NOW)
    assert issued.expire_time == NOW + 24 * 60 * 60

    shorter = rtc_service.issue_tokens(CREDENTIALS, "lesson-42", 5, "student", now=NOW, ttl_seconds=60)
    assert shorter.expire_time == NOW + 60


def test_tokens_share_issue_time_and_expiry() -> None:
    issued = rtc_service.issue_tokens(CREDENTIALS, "lesson-42", 5, "tutor", now=NOW)
    rtc = parse_token(issued.rtc_token)
    rtm = parse_token(issued.rtm_token)

    assert rtc.issue_ts == rtm.issue_ts == NOW
    assert rtc.expire == rtm.expire == issued.expire_time
    assert rtc.signature != rtm.signature


def test_uid_zero_means_any_uid_on_rtc_only() -> None:
    issued = rtc_service.issue_tokens(CREDENTIALS, "lesson-42", 0, "student", now=NOW)

    assert _rtc(issued.rtc_token).uid == ""
    assert parse_token(issued.rtm_token).services[RtmService.service_type].user_id == "0"


def test_build_rtc_token_matches_manual_envelope() -> None:
    expected = AccessToken(CREDENTIALS.app_id, CREDENTIALS.app_certificate, NOW, NOW + 10, 77)
    service = RtcService("lesson-42", 9)
    service.add_privilege(RtcService.PRIVILEGE_JOIN_CHANNEL, NOW + 10)
    expected.add_service(service)

    built = rtc_service.build_rtc_token(
        CREDENTIALS, "lesson-42", 9, rtc_service.Role.SUBSCRIBER, NOW + 10, issue_ts=NOW, salt=77
    )

    assert built == expected.build()


@pytest.mark.parametrize(
    ("channel_name", "uid"),
    [(None, 1), ("", 1), ("   ", 1), ("lesson-42", None), ("lesson-42", -1), ("lesson-42", 2**32)],
)
def test_invalid_request_rejected(channel_name, uid) -> None:
    with pytest.raises(rtc_service.TokenRequestError):
        rtc_service.issue_tokens(CREDENTIALS, channel_name, uid, "tutor", now=NOW)


def test_request_errors_win_over_configuration_errors() -> None:
    with pytest.raises(rtc_service.TokenRequestError):
        rtc_service.issue_tokens(None, "", None)


def test_expire_time_out_of_range_rejected() -> None:
    with pytest.raises(rtc_service.TokenRequestError):
        rtc_service.issue_tokens(CREDENTIALS, "lesson-42", 1, expire_time=2**32, now=NOW)


@pytest.mark.parametrize(
    "credentials",
    [
        None,
        rtc_service.IssuerCredentials(app_id="not-hex", app_certificate=CREDENTIALS.app_certificate),
        rtc_service.IssuerCredentials(app_id=CREDENTIALS.app_id, app_certificate="short"),
    ],
)
def test_bad_credentials_are_configuration_errors(credentials) -> None:
    with pytest.raises(rtc_service.IssuerConfigurationError):
        rtc_service.issue_tokens(credentials, "lesson-42", 1, "tutor", now=NOW)


def test_credentials_repr_hides_certificate() -> None:
    assert CREDENTIALS.app_certificate not in repr(CREDENTIALS)
