from enum import Enum
from typing import Optional, Union
from fastapi import status
from fastapi.responses import JSONResponse
from parasocial.services.follow import ServiceResult

# Service codes plus the ones only the HTTP layer produces
ERROR_STATUS = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "INVALID_USER_ID": status.HTTP_400_BAD_REQUEST,
    "INVALID_PARAMETERS": status.HTTP_400_BAD_REQUEST,
    "INVALID_FOLLOWER_ID": status.HTTP_400_BAD_REQUEST,
    "INVALID_USER_IDS": status.HTTP_400_BAD_REQUEST,
    "INVALID_ACTOR_ID": status.HTTP_400_BAD_REQUEST,
    "TOO_MANY_USERS": status.HTTP_400_BAD_REQUEST,
    "AUTHENTICATION_REQUIRED": status.HTTP_401_UNAUTHORIZED,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "USER_INACTIVE": status.HTTP_403_FORBIDDEN,
    "USER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "NOT_FOLLOWING": status.HTTP_404_NOT_FOUND,
    "FOLLOWER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "TARGET_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "NO_FOLLOWER_IDENTITY": status.HTTP_409_CONFLICT,
    "ALREADY_FOLLOWING": status.HTTP_409_CONFLICT,
    "SELF_FOLLOW_ERROR": status.HTTP_409_CONFLICT,
}


def status_for_code(code: Optional[Union[str, Enum]]) -> int:
    if code is None:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    key = code.value if isinstance(code, Enum) else code
    return ERROR_STATUS.get(key, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_response(code: Union[str, Enum], error: str) -> JSONResponse:
    key = code.value if isinstance(code, Enum) else code
    return JSONResponse(
        status_code=status_for_code(key),
        content={"success": False, "error": error, "code": key},
    )


def failed_result_response(result: ServiceResult) -> JSONResponse:
    return error_response(result.code or "INTERNAL_ERROR", result.error or "Unknown error")
