# rentalcrm/models/rental_companies.py
import re
from datetime import datetime, timezone

from rentalcrm import database

DEFAULT_COMPANY_NAME = "Other"


def _companies():
    return database.db.rental_companies


async def ensure_default_company():
    if await _companies().count_documents({}) == 0:
        await create_company(DEFAULT_COMPANY_NAME)


async def get_companies():
    return await _companies().find().sort("name", 1).to_list(length=None)


async def find_company_by_name(name: str):
    """Case-insensitive exact match on the company name."""
    pattern = f"^{re.escape(name.strip())}$"
    return await _companies().find_one({"name": {"$regex": pattern, "$options": "i"}})


async def create_company(name: str):
    now = datetime.now(timezone.utc)
    doc = {"name": name, "createdAt": now, "updatedAt": now}
    result = await _companies().insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc
