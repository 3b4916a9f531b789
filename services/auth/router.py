"""
services/auth/router.py
Session endpoints: issue the signed `token` cookie and log out.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from jose import JWTError

from config.redis_client import SessionStore, get_redis
from config.settings import settings
from shared.schemas.schemas import MessageResponse, SessionClaims
from shared.utils.security import (
    clear_session_cookie,
    create_access_token,
    get_token_remaining_ttl,
    set_session_cookie,
    verify_access_token,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


@router.post("/jwt", response_model=MessageResponse, summary="Issue session cookie")
async def issue_token(claims: SessionClaims, response: Response):
    """
    Sign the posted claims into a 10-hour JWT and deliver it as the
    HTTP-only `token` cookie.
    """
    extra = claims.model_dump(exclude={"email"})
    token, _ = create_access_token(email=claims.email, extra=extra)
    set_session_cookie(response, token)
    return MessageResponse(message="Session issued")


@router.get("/logOut", response_model=MessageResponse, summary="Logout user")
async def logout(
    request: Request,
    response: Response,
    redis=Depends(get_redis),
):
    """
    Clear the session cookie. A still-valid token is also added to the Redis
    deny-list so a copied cookie cannot be replayed until it expires.
    """
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if token:
        try:
            payload = verify_access_token(token)
        except JWTError:
            payload = None
        if payload and payload.get("jti"):
            ttl = get_token_remaining_ttl(payload)
            if ttl > 0:
                await SessionStore(redis).revoke(payload["jti"], ttl)
                logger.info("Revoked session %s for %s", payload["jti"], payload["email"])

    clear_session_cookie(response)
    return MessageResponse(message="Logged out successfully")
