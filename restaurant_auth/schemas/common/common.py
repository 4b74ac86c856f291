# restaurant_auth/schemas/common/common.py
from pydantic import BaseModel
from typing import Optional

class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: str

class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    timestamp: str
    environment: str
    otp_store: str
    otp_config_source: Optional[str] = None
