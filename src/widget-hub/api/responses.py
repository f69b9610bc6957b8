"""Response envelope shared by every API endpoint.

Success:  ``{"success": true, "data": ...}``
Failure:  ``{"success": false, "error": "..."}`` with the result's HTTP status
"""

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from neuroglia.core import OperationResult


def envelope(result: OperationResult[Any]) -> JSONResponse:
    if result.is_success:
        return JSONResponse(status_code=result.status, content={"success": True, "data": jsonable_encoder(result.data)})
    return JSONResponse(status_code=result.status, content={"success": False, "error": result.detail or result.title})


def error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})
