from typing import Any, Dict

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

class APIException(HTTPException):
    def __init__(self, status_code: int, error: str, message: str, **extra: Any):
        super().__init__(status_code=status_code, detail={"error": error, "message": message, **extra})

def create_error_response(error: str, message: str, **extra: Any) -> Dict[str, Any]:
    """Create a standardized error response"""
    return {
        "success": False,
        "error": error,
        "message": message,
        **extra,
    }

def create_success_response(message: str, **payload: Any) -> Dict[str, Any]:
    """Create a standardized success response"""
    return {
        "success": True,
        "message": message,
        **payload,
    }

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTPException (and APIException) as the standard error body"""
    if isinstance(exc.detail, dict):
        detail = dict(exc.detail)
        error = detail.pop("error", "ERROR")
        message = detail.pop("message", "")
        content = create_error_response(error, message, **detail)
    else:
        content = create_error_response("ERROR", str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request bodies that fail schema validation are a 400, not FastAPI's default 422"""
    details = [
        {"field": ".".join(str(part) for part in err.get("loc", ())[1:]), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=create_error_response("INVALID_REQUEST", "Invalid request data", details=details),
    )
