"""FastAPI dependencies — hand out the singletons built in the app lifespan."""

from fastapi import Request

from whatsapp_otp.services.issuer import OTPIssuer


def get_issuer(request: Request) -> OTPIssuer:
    return request.app.state.issuer
