import hmac

from fastapi import Header, HTTPException, status

from sessionstore.settings import settings


def _check_token(token: str) -> str:
    expected = settings.admin_api_token
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Admin API token is not configured",
        )
    if not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API token",
        )
    return token


async def require_admin_token(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> str:
    """
    Guard for the admin API.

    Accepts `Authorization: Bearer <token>` or `X-API-Key: <token>`; the token
    must equal ADMIN_API_TOKEN.
    """
    token_value: str | None = None

    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid Authorization header, expected 'Bearer <token>'",
            )
        token_value = token.strip()
    elif x_api_key:
        token_value = x_api_key.strip() or None

    if not token_value:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization or X-API-Key header",
        )

    return _check_token(token_value)
