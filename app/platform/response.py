from typing import Any, Mapping, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def api_response(
    *,
    data: Optional[Mapping[str, Any]] = None,
    message: str = "Operation successful",
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """
    Single source of truth for ALL API responses.

    Sets status = "success" if < 400 else "error". The payload fields are
    laid out at the top level next to the envelope keys, so a click response
    reads {"status_code": 200, "status": "success", "message": ..., "clickId": ...}.
    """
    status_str = "success" if status_code < 400 else "error"
    content = {
        "status_code": status_code,
        "status": status_str,
        "message": message,
    }
    if data:
        content.update(jsonable_encoder(dict(data)))

    return JSONResponse(status_code=status_code, content=content)
