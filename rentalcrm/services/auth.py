# rentalcrm/services/auth.py
"""Tenant registration and email OTP verification."""
import logging
import re
from datetime import datetime, timedelta, timezone

from fastapi.concurrency import run_in_threadpool
from pymongo.errors import DuplicateKeyError

from rentalcrm.core.config import settings
from rentalcrm.core.error_messages import ErrorResponses, conflict, unprocessable
from rentalcrm.models import tenants as tenant_store
from rentalcrm.schemas.user import RegisterTenantSchema
from rentalcrm.utils.email_utils import EmailDeliveryError, generate_otp_email, send_email
from rentalcrm.utils.hash_utils import hash_password
from rentalcrm.utils.mongo_utils import as_utc
from rentalcrm.utils.otp_utils import generate_otp, otp_expiry
from rentalcrm.utils.slugify import generate_slug, generate_unique_slug

logger = logging.getLogger(__name__)

PASSWORD_RULES = (
    (re.compile(r".{8,}"), "Must be at least 8 characters"),
    (re.compile(r"[A-Z]"), "Must contain an uppercase letter"),
    (re.compile(r"[a-z]"), "Must contain a lowercase letter"),
    (re.compile(r"\d"), "Must contain a number"),
    (re.compile(r"[^A-Za-z0-9]"), "Must contain a special character"),
)
# bcrypt rejects longer input
PASSWORD_MAX_BYTES = 72


def password_problems(password: str):
    problems = [message for rule, message in PASSWORD_RULES if not rule.search(password)]
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        problems.append(f"Must be at most {PASSWORD_MAX_BYTES} bytes long")
    return problems


def tenant_dto(tenant: dict) -> dict:
    return {
        "id": str(tenant["_id"]),
        "name": tenant["name"],
        "slug": tenant["slug"],
        "email": tenant["email"],
        "phoneNumber": tenant.get("phoneNumber"),
        "plan": tenant.get("plan", "free"),
        "isVerified": bool(tenant.get("isVerified", False)),
        "trialEndsAt": as_utc(tenant["trialEndsAt"]).isoformat() if tenant.get("trialEndsAt") else None,
    }


async def _unique_slug(name: str) -> str:
    base = generate_slug(name) or "tenant"
    slug = generate_unique_slug(base)
    while await tenant_store.slug_exists(slug):
        slug = generate_unique_slug(base)
    return slug


async def issue_otp(email: str, name: str):
    """Store a fresh OTP for ``email`` and mail it.

    Returns (expires, delivered). The OTP stays valid when mailing fails.
    """
    otp = generate_otp()
    expires = otp_expiry()
    await tenant_store.replace_otp(email, otp, expires)
    try:
        await run_in_threadpool(send_email, email, "Verify your email address", generate_otp_email(otp, name))
    except EmailDeliveryError:
        logger.warning("OTP email not delivered", extra={"email": email})
        return expires, False
    return expires, True


async def register_tenant(data: RegisterTenantSchema) -> dict:
    problems = password_problems(data.password)
    if problems:
        raise unprocessable("Weak password", details={"password": problems})

    email = data.email.strip().lower()
    if await tenant_store.find_tenant_by_email(email):
        raise conflict("Tenant with this email already exists", details={"email": email})

    now = datetime.now(timezone.utc)
    try:
        tenant = await tenant_store.create_tenant({
            "name": data.name.strip(),
            "slug": await _unique_slug(data.name),
            "email": email,
            "password": hash_password(data.password),
            "phoneNumber": data.phoneNumber,
            "plan": "free",
            "dbStrategy": "shared",
            "features": dict(tenant_store.DEFAULT_FEATURES),
            "isVerified": False,
            "trialEndsAt": now + timedelta(days=settings.TENANT_TRIAL_DAYS),
            "createdAt": now,
            "updatedAt": now,
        })
    except DuplicateKeyError:
        raise conflict("Tenant with this email already exists", details={"email": email})

    # an undelivered code can be replaced through resend-otp
    await issue_otp(email, tenant["name"])

    logger.info("Tenant registered", extra={"email": email})
    return tenant_dto(tenant)


async def verify_tenant_email(email: str, otp: str) -> dict:
    email = email.strip().lower()
    tenant = await tenant_store.find_tenant_by_email(email)
    if not tenant:
        raise ErrorResponses.TENANT_NOT_FOUND
    if tenant.get("isVerified"):
        raise ErrorResponses.ALREADY_VERIFIED

    token = await tenant_store.find_latest_otp(email)
    if not token or token["otp"] != otp:
        logger.warning("OTP mismatch", extra={"email": email})
        raise ErrorResponses.INVALID_OTP
    if as_utc(token["expires"]) < datetime.now(timezone.utc):
        raise ErrorResponses.OTP_EXPIRED

    tenant = await tenant_store.mark_tenant_verified(tenant["_id"])
    await tenant_store.delete_otps(email)
    logger.info("Tenant email verified", extra={"email": email})
    return tenant_dto(tenant)


async def resend_otp(email: str):
    """Replace the pending OTP. Returns (expires, delivered)."""
    email = email.strip().lower()
    tenant = await tenant_store.find_tenant_by_email(email)
    if not tenant:
        raise ErrorResponses.TENANT_NOT_FOUND
    if tenant.get("isVerified"):
        raise ErrorResponses.ALREADY_VERIFIED

    return await issue_otp(email, tenant["name"])
