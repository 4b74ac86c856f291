# restaurant_auth/routers/auth_router.py
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from ..application.services.auth_service import RESEND_COOLDOWN_TEXT, AuthService
from ..deps import get_auth_service
from ..exceptions import create_success_response
from ..schemas import (
    ClearRateLimitRequest,
    ClearRateLimitResponse,
    MessagingCheckRequest,
    MessagingCheckResponse,
    RequestOTPRequest,
    RequestOTPResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/request-otp", response_model=RequestOTPResponse)
def request_otp(
    payload: RequestOTPRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
):
    outcome = service.request_otp(
        payload.phoneNumber,
        purpose=payload.purpose,
        preferred_method=payload.preferredMethod,
        country_hint=payload.countryHint,
        ip_address=_client_ip(request),
    )
    data = {
        "phoneNumber": outcome.display_phone,
        "method": outcome.method.value,
        "expiresIn": outcome.expires_in,
        "canResendIn": RESEND_COOLDOWN_TEXT,
        "isDemo": outcome.is_demo,
    }
    if outcome.demo_code:
        data["demoCode"] = outcome.demo_code
    message = "Demo OTP ready" if outcome.is_demo else f"OTP sent via {outcome.method.value}"
    return create_success_response(message, data=data)


@router.post("/verify-otp", response_model=VerifyOTPResponse)
def verify_otp(
    payload: VerifyOTPRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    service: AuthService = Depends(get_auth_service),
):
    outcome = service.verify_otp(
        payload.phoneNumber,
        payload.otpCode,
        country_hint=payload.countryHint,
        ip_address=_client_ip(request),
    )
    # sweep is throttled by the engine to once per cleanup interval
    background_tasks.add_task(service.engine.sweep_expired)
    return create_success_response("Phone number verified", token=outcome.token, user=outcome.user)


@router.post("/clear-rate-limit", response_model=ClearRateLimitResponse)
def clear_rate_limit(
    payload: ClearRateLimitRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
):
    phone = service.clear_rate_limit(payload.phoneNumber, country_hint=payload.countryHint,
                                     ip_address=_client_ip(request))
    return create_success_response("Rate limit cleared", phoneNumber=phone)


@router.post("/test-messaging", response_model=MessagingCheckResponse)
def test_messaging(
    payload: MessagingCheckRequest,
    service: AuthService = Depends(get_auth_service),
):
    data = service.test_messaging(
        payload.testType,
        phone_number=payload.phoneNumber,
        method=payload.method,
        country_hint=payload.countryHint,
    )
    message = "Twilio connection OK" if payload.testType == "connection" else "Test message sent"
    return create_success_response(message, data=data)
