from fastapi import HTTPException, Request

from shared.models.auth import Principal

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the credential of an "Authorization: Bearer <token>" header, or None."""
    if not authorization:
        return None
    authorization = authorization.strip()
    if not authorization.startswith(BEARER_PREFIX):
        return None
    return authorization[len(BEARER_PREFIX):].strip() or None


async def verify_bearer_token(request: Request) -> Principal:
    """Verify the bearer credential of the request with the configured identity verifier.

    Args:
        request (Request): The FastAPI request object (provides app.state).

    Returns:
        Principal: The authenticated caller.

    Raises:
        HTTPException: 401 if the credential is missing or rejected.
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    principal = await request.app.state.auth_client.do_verify_token(token)
    if principal is None:
        raise HTTPException(status_code=401, detail="Invalid or missing bearer token.")
    return principal
