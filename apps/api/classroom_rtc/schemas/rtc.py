"""Data contracts for RTC token endpoints."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class RtcTokenRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    channel_name: str | None = Field(default=None, alias="channelName", description="Channel to join")
    uid: int | None = Field(default=None, description="Numeric uid; 0 lets the media server assign one")
    user_role: str | None = Field(default=None, alias="userRole", description="tutor, student, ...")
    expire_time: int | None = Field(
        default=None, alias="expireTime", description="Absolute expiry in epoch seconds"
    )


class RtcTokenResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: Literal[True] = True
    rtc_token: str = Field(..., alias="rtcToken")
    rtm_token: str = Field(..., alias="rtmToken")
    channel_name: str = Field(..., alias="channelName")
    uid: int
    app_id: str = Field(..., alias="appId")
    expire_time: int = Field(..., alias="expireTime")
    role: Literal["publisher", "subscriber"]


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str
