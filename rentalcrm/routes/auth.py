# rentalcrm/routes/auth.py
import logging

from fastapi import APIRouter, Depends, Response, status

from rentalcrm.core.config import settings
from rentalcrm.core.error_messages import ErrorResponses
from rentalcrm.middleware.rbac import AUTH_COOKIE, get_current_user
from rentalcrm.models.agents import find_agent_by_email
from rentalcrm.schemas.user import EmailSchema, LoginSchema, RegisterTenantSchema, VerifyOtpSchema
from rentalcrm.services import auth as auth_service
from rentalcrm.utils.api_response import success
from rentalcrm.utils.auth_utils import create_access_token
from rentalcrm.utils.hash_utils import verify_password

logger = logging.getLogger(__name__)

auth_router = APIRouter(tags=["Auth"])

TENANT_COOKIE = "auth-token"
COOKIE_MAX_AGE = 60 * 60 * 24


def _set_auth_cookie(response: Response, name: str, token: str, samesite: str):
    response.set_cookie(
        name,
        token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=samesite,
        max_age=COOKIE_MAX_AGE,
        path="/",
    )


@auth_router.post("/login")
async def login(data: LoginSchema, response: Response):
    agent = await find_agent_by_email(data.email)
    if not agent or not verify_password(data.password, agent["password"]):
        logger.warning("Failed login attempt", extra={"email": data.email})
        raise ErrorResponses.INVALID_CREDENTIALS

    token = create_access_token({
        "id": str(agent["_id"]),
        "email": agent["email"],
        "name": agent["name"],
    })
    _set_auth_cookie(response, AUTH_COOKIE, token, "strict")
    logger.info("Agent logged in", extra={"email": agent["email"]})
    return success(
        {
            "id": str(agent["_id"]),
            "name": agent["name"],
            "email": agent["email"],
            "access_token": token,
            "token_type": "bearer",
        },
        "Login successful",
    )


@auth_router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(AUTH_COOKIE, path="/", secure=settings.COOKIE_SECURE, httponly=True, samesite="strict")
    return success({"loggedOut": True}, "Logged out successfully")


@auth_router.get("/me")
async def me(current_user: dict = Depends(get_current_user)):
    if not current_user.get("email") or not current_user.get("name"):
        raise ErrorResponses.INVALID_TOKEN
    return success(
        {
            "user": {
                "id": current_user["id"],
                "email": current_user["email"],
                "name": current_user["name"],
                "role": current_user.get("role") or "user",
            }
        },
        "Authenticated",
    )


@auth_router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(data: RegisterTenantSchema):
    tenant = await auth_service.register_tenant(data)
    return success(tenant, "Tenant registered successfully")


@auth_router.post("/verify-otp")
async def verify_otp(data: VerifyOtpSchema, response: Response):
    tenant = await auth_service.verify_tenant_email(data.email, data.otp)
    token = create_access_token({
        "id": tenant["id"],
        "email": tenant["email"],
        "name": tenant["name"],
        "role": "tenant",
    })
    _set_auth_cookie(response, TENANT_COOKIE, token, "lax")
    response.headers["X-Auth-Type"] = "JWT"
    response.headers["X-Tenant-Id"] = tenant["id"]
    return success({"tenant": tenant}, "Email verified successfully")


@auth_router.post("/resend-otp")
async def resend_otp(data: EmailSchema, response: Response):
    expires, delivered = await auth_service.resend_otp(data.email)
    if not delivered:
        response.status_code = status.HTTP_202_ACCEPTED
        return success(
            {"otpExpires": expires.isoformat()},
            "Could not send OTP email, but OTP was generated. Please try again or contact support.",
        )
    return success({"otpExpires": expires.isoformat()}, "A new OTP has been sent to your email address.")
