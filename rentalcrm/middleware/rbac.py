# rentalcrm/middleware/rbac.py
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from rentalcrm.core.error_messages import ErrorResponses
from rentalcrm.utils.auth_utils import decode_token

AUTH_COOKIE = "token"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_token(request: Request, bearer: Optional[str] = Depends(oauth2_scheme)) -> str:
    token = request.cookies.get(AUTH_COOKIE) or bearer
    if not token:
        raise ErrorResponses.MISSING_TOKEN
    return token


def get_current_user(token: str = Depends(get_token)) -> dict:
    try:
        payload = decode_token(token)
    except jwt.PyJWTError:
        raise ErrorResponses.INVALID_TOKEN
    if not isinstance(payload, dict) or not payload.get("id"):
        raise ErrorResponses.INVALID_TOKEN
    return payload


def get_current_agent(user: dict = Depends(get_current_user)) -> dict:
    """Acting agent identity used for bookings, notes and timelines."""
    return {
        "id": str(user["id"]),
        "name": user.get("name") or "",
        "email": user.get("email") or "",
        "role": user.get("role") or "user",
    }
