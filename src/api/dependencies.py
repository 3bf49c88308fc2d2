"""FastAPI dependencies for authentication."""

import secrets

from fastapi import Header, HTTPException, status

from api.models.responses import ErrorCodes
from core import config


def _auth_error(status_code: int, error: str, code: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"error": error, "code": code, "details": []},
    )


async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> str:
    """
    Check the X-API-Key header against AVAILABILITY_API_KEY.

    Raises:
        HTTPException: 500 if no key is configured, 401 if the key does not match
    """
    expected = config.AVAILABILITY_API_KEY
    if not expected:
        raise _auth_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "API key not configured on server",
            ErrorCodes.INTERNAL_ERROR,
        )

    if not secrets.compare_digest(x_api_key.encode(), expected.encode()):
        raise _auth_error(
            status.HTTP_401_UNAUTHORIZED,
            "Invalid or missing API key",
            ErrorCodes.UNAUTHORIZED,
        )

    return x_api_key
