"""
Console login/logout.
Login exchanges the admin password for a JWT stored in an httpOnly cookie.
"""
from fastapi import APIRouter, Depends, Request, Response
import logging

from app.schemas import LoginRequest, TokenResponse
from app.utils.auth import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    TOKEN_COOKIE,
    authenticate_admin,
    create_access_token,
    verify_cms_token,
)
from app.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=TokenResponse)
@limiter.limit(RATE_LIMITS["login"])
async def login(request: Request, response: Response, credentials: LoginRequest):
    """
    Log in to the console.

    Raises:
        HTTPException: 401 on a wrong password, 429 when rate limited,
            500 if no admin password is configured
    """
    claims = authenticate_admin(credentials.password)
    token = create_access_token(claims)
    max_age = ACCESS_TOKEN_EXPIRE_MINUTES * 60

    response.set_cookie(
        key=TOKEN_COOKIE,
        value=token,
        max_age=max_age,
        httponly=True,
        samesite="lax",
    )
    logger.info(f"Console login from {request.client.host if request.client else 'unknown'}")
    return TokenResponse(message="Login successful", access_token=token, expires_in=max_age)


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE)
    return {"message": "Logged out"}


@router.get("/session")
async def session(claims: dict = Depends(verify_cms_token)):
    """Report whether the caller holds a valid console token."""
    return {"authenticated": True, "role": claims.get("role"), "expires_at": claims.get("exp")}
