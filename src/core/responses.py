"""Standard error envelope."""

from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from ..utils.helpers import generate_request_id, utcnow

REQUEST_ID_HEADER = "X-Request-ID"


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    field: Optional[str] = None,
) -> JSONResponse:
    """
    Build an error body carrying the request's correlation id.
    Format: {"success": false, "error": {"code", "message"}, "request_id", "timestamp"}
    """
    request_id = getattr(request.state, "request_id", None) or generate_request_id()
    error = {"code": code, "message": message}
    if field:
        error["field"] = field
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "request_id": request_id,
            "timestamp": utcnow().isoformat(),
        },
        headers={REQUEST_ID_HEADER: request_id},
    )
