# rentalcrm/models/tenants.py
from datetime import datetime, timezone

from bson import ObjectId

from rentalcrm import database

DEFAULT_FEATURES = {
    "maxPipelines": 3,
    "maxUsers": 5,
    "maxEntitiesPerPipeline": 100,
    "customBranding": False,
    "apiAccess": False,
}


def _tenants():
    return database.db.tenants


def _tokens():
    return database.db.verification_tokens


async def find_tenant_by_email(email: str):
    return await _tenants().find_one({"email": email.strip().lower()})


async def slug_exists(slug: str) -> bool:
    return await _tenants().count_documents({"slug": slug}) > 0


async def create_tenant(data: dict) -> dict:
    result = await _tenants().insert_one(data)
    return await _tenants().find_one({"_id": result.inserted_id})


async def mark_tenant_verified(tenant_id):
    await _tenants().update_one(
        {"_id": ObjectId(tenant_id)},
        {"$set": {"isVerified": True, "verifiedAt": datetime.now(timezone.utc)}},
    )
    return await _tenants().find_one({"_id": ObjectId(tenant_id)})


async def replace_otp(email: str, otp: str, expires: datetime):
    """Store ``otp`` as the only live code for ``email``."""
    await _tokens().delete_many({"email": email})
    await _tokens().insert_one({
        "email": email,
        "otp": otp,
        "expires": expires,
        "createdAt": datetime.now(timezone.utc),
    })


async def find_latest_otp(email: str):
    cursor = _tokens().find({"email": email}).sort("createdAt", -1).limit(1)
    tokens = await cursor.to_list(length=1)
    return tokens[0] if tokens else None


async def delete_otps(email: str):
    await _tokens().delete_many({"email": email})
