"""OTP router — the public issuance endpoint.

Endpoints
---------
POST /send-otp   → validate, rate-limit, generate and deliver an OTP

The body may be JSON or ``application/x-www-form-urlencoded``.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from whatsapp_otp.dependencies import get_issuer
from whatsapp_otp.errors import OTPServiceError
from whatsapp_otp.services.issuer import OTPIssuer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["otp"])

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


# ── Response / request models ────────────────────────────

class SendOTPRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Nullable so that missing and null values reach the issuer's own checks
    phone: str | None = None
    consent_given: bool | None = Field(None, alias="consentGiven")


class SendOTPResponse(BaseModel):
    success: bool = True
    message: str = "OTP sent successfully via WhatsApp"
    expires_in: int = Field(serialization_alias="expiresIn")
    delivery_id: str | None = Field(None, serialization_alias="deliveryId")
    status: str | None = None


class ErrorResponse(BaseModel):
    success: bool = False
    message: str


async def read_send_otp_body(request: Request) -> SendOTPRequest:
    """Parse a JSON or form-encoded body into ``SendOTPRequest``.

    An empty body counts as ``{}``.  Anything undecodable, or not an object,
    raises ``RequestValidationError``.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPE):
        data: object = dict(await request.form())
    elif not await request.body():
        data = {}
    else:
        try:
            data = await request.json()
        except ValueError as exc:
            raise RequestValidationError(
                [{"type": "json_invalid", "loc": ("body",), "msg": str(exc)}]
            ) from exc

    if not isinstance(data, dict):
        raise RequestValidationError(
            [{"type": "dict_type", "loc": ("body",), "msg": "Body must be an object"}]
        )
    try:
        return SendOTPRequest.model_validate(data)
    except PydanticValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc


# ── Endpoints ────────────────────────────────────────────

@router.post(
    "/send-otp",
    response_model=SendOTPResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    openapi_extra={
        "requestBody": {
            "content": {
                "application/json": {"schema": SendOTPRequest.model_json_schema(by_alias=True)},
                FORM_CONTENT_TYPE: {"schema": SendOTPRequest.model_json_schema(by_alias=True)},
            },
        },
    },
)
async def send_otp(
    body: SendOTPRequest = Depends(read_send_otp_body),
    issuer: OTPIssuer = Depends(get_issuer),
):
    """Issue an OTP to the given phone over WhatsApp."""
    try:
        result = await issuer.issue_otp(body.phone, body.consent_given)
    except OTPServiceError:
        raise
    except Exception as exc:
        logger.exception("Error in /send-otp")
        raise OTPServiceError("Failed to send OTP") from exc

    return SendOTPResponse(
        expires_in=result.expires_in_seconds,
        delivery_id=result.delivery_id,
        status=result.delivery_status,
    )
