# restaurant_auth/schemas/auth/otp.py
from pydantic import BaseModel, Field, validator
from typing import Optional, Dict, Any, Literal

from ...application.ports.otp_store import OtpPurpose

class RequestOTPRequest(BaseModel):
    phoneNumber: str = Field(..., min_length=1, description="Phone number, local or with country code")
    purpose: OtpPurpose = Field(OtpPurpose.LOGIN, description="login, registration or password_reset")
    preferredMethod: Literal["whatsapp", "sms", "auto"] = Field("auto", description="Delivery channel")
    countryHint: Optional[str] = Field(None, min_length=2, max_length=2, description="ISO country used for local numbers")

    @validator('phoneNumber')
    def validate_phone(cls, v):
        if not v.strip():
            raise ValueError('Phone number is required')
        return v

    @validator('countryHint')
    def validate_country_hint(cls, v):
        return v.upper() if v else v

class RequestOTPData(BaseModel):
    phoneNumber: str
    method: str
    expiresIn: str
    canResendIn: str
    isDemo: bool = False
    demoCode: Optional[str] = None

class RequestOTPResponse(BaseModel):
    success: bool
    message: str
    data: RequestOTPData

class VerifyOTPRequest(BaseModel):
    phoneNumber: str = Field(..., min_length=1, description="Phone number the code was sent to")
    otpCode: str = Field(..., min_length=1, description="Numeric one-time code")
    countryHint: Optional[str] = Field(None, min_length=2, max_length=2)

    @validator('otpCode')
    def strip_otp(cls, v):
        return v.strip()

    @validator('countryHint')
    def validate_country_hint(cls, v):
        return v.upper() if v else v

class VerifiedUser(BaseModel):
    phone: str
    formattedPhone: str
    country: str
    role: str
    requiresRoleSelection: bool
    restaurantName: Optional[str] = None

class VerifyOTPResponse(BaseModel):
    success: bool
    message: str
    token: str
    user: VerifiedUser

class ClearRateLimitRequest(BaseModel):
    phoneNumber: str = Field(..., min_length=1)
    countryHint: Optional[str] = Field(None, min_length=2, max_length=2)

class ClearRateLimitResponse(BaseModel):
    success: bool
    message: str
    phoneNumber: str

class MessagingCheckRequest(BaseModel):
    phoneNumber: Optional[str] = None
    method: Literal["whatsapp", "sms"] = "sms"
    testType: Literal["connection", "message"] = "connection"
    countryHint: Optional[str] = Field(None, min_length=2, max_length=2)

class MessagingCheckResponse(BaseModel):
    success: bool
    message: str
    data: Dict[str, Any]
