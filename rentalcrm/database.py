# rentalcrm/database.py
import certifi
from motor.motor_asyncio import AsyncIOMotorClient

from rentalcrm.core.config import settings


def _client_options() -> dict:
    options = {"tz_aware": True}
    if settings.MONGO_TLS:
        options["tlsCAFile"] = certifi.where()
    return options


client = AsyncIOMotorClient(settings.MONGO_URL, **_client_options())
db = client[settings.MONGO_DB_NAME]


async def ensure_indexes():
    await db.agents.create_index("email", unique=True)
    await db.tenants.create_index("email", unique=True)
    await db.tenants.create_index("slug", unique=True)
    await db.rental_companies.create_index("name", unique=True)
    await db.bookings.create_index([("isDeleted", 1), ("createdAt", -1)])
    # expired OTPs are removed by MongoDB's TTL monitor
    await db.verification_tokens.create_index("expires", expireAfterSeconds=0)
