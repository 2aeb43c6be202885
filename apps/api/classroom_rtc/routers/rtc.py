"""RTC token issuance endpoint."""
from __future__ import annotations

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from ..access_token import TokenBuildError
from ..core.config import settings
from ..schemas.rtc import ErrorResponse, RtcTokenRequest, RtcTokenResponse
from ..services import rtc as rtc_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


@router.post(
    "/token",
    response_model=RtcTokenResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_rtc_token(payload: RtcTokenRequest) -> RtcTokenResponse | JSONResponse:
    """Return RTC and RTM tokens for a lesson participant."""

    try:
        credentials = settings.issuer_credentials()
        issued = rtc_service.issue_tokens(
            credentials,
            payload.channel_name,
            payload.uid,
            payload.user_role,
            payload.expire_time,
            ttl_seconds=settings.token_ttl_seconds,
        )
    except rtc_service.TokenRequestError as exc:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))
    except rtc_service.IssuerConfigurationError as exc:
        logger.error("Token issuer misconfigured: %s", exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
    except TokenBuildError as exc:
        logger.error("Failed to generate tokens: %s", exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to generate tokens")
    except Exception as exc:  # noqa: BLE001 - single JSON error path for callers
        logger.exception("Token issuance failed: %s", exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    logger.info("Tokens generated for channel=%s uid=%s", issued.channel_name, issued.uid)
    return RtcTokenResponse(
        rtc_token=issued.rtc_token,
        rtm_token=issued.rtm_token,
        channel_name=issued.channel_name,
        uid=issued.uid,
        app_id=issued.app_id,
        expire_time=issued.expire_time,
        role=issued.role.value,
    )
