"""Request body parsing and result-to-response mapping shared by the routers."""

import json
from typing import Any, Dict

from fastapi import Request, status
from fastapi.responses import JSONResponse

from ..errors import ErrorCode, InvalidPayloadError
from ..schemas import OperationResult

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

STATUS_BY_ERROR_CODE = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_JSON: status.HTTP_400_BAD_REQUEST,
    ErrorCode.MISSING_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.OPERATION_NOT_ALLOWED: status.HTTP_403_FORBIDDEN,
    ErrorCode.TASK_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CATEGORY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


async def read_payload(request: Request) -> Dict[str, Any]:
    """Read a JSON object or form body into a plain dict.

    Raises:
        InvalidPayloadError: If a JSON body is malformed or not an object
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    body = await request.body()
    if not body.strip():
        return {}

    try:
        payload = json.loads(body)
    except ValueError as e:
        raise InvalidPayloadError(str(e)) from e

    if not isinstance(payload, dict):
        raise InvalidPayloadError("Request body must be a JSON object")
    return payload


def respond(result: OperationResult, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    """Render a service result with the HTTP status its outcome maps to."""
    if result.success:
        status_code = success_status
    else:
        status_code = STATUS_BY_ERROR_CODE.get(
            result.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    return JSONResponse(status_code=status_code, content=result.to_response())
