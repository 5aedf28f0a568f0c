# rentalcrm/routes/rental_companies.py
import logging
import re

from fastapi import APIRouter, Body, status
from pymongo.errors import DuplicateKeyError

from rentalcrm.core.error_messages import ErrorCode, bad_request, unprocessable
from rentalcrm.models import rental_companies as company_store
from rentalcrm.utils.api_response import success
from rentalcrm.utils.mongo_utils import serialize_doc

logger = logging.getLogger(__name__)

rental_company_router = APIRouter(tags=["Rental Companies"])

COMPANY_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\s\-&.'()]+$")
MAX_NAME_LENGTH = 100


def is_valid_company_name(name: str) -> bool:
    trimmed = name.strip()
    return 0 < len(trimmed) <= MAX_NAME_LENGTH and bool(COMPANY_NAME_PATTERN.match(trimmed))


def _already_exists(details=None):
    return unprocessable(
        "This rental company already exists. Please select it from the list or use 'Other'",
        ErrorCode.ALREADY_EXISTS,
        details,
    )


@rental_company_router.get("/")
async def list_companies():
    await company_store.ensure_default_company()
    companies = await company_store.get_companies()
    return success(
        {"companies": serialize_doc(companies), "totalCount": len(companies)},
        f"Retrieved {len(companies)} rental company/companies",
    )


@rental_company_router.post("/", status_code=status.HTTP_201_CREATED)
async def create_company(data: dict = Body(...)):
    name = data.get("name")
    if not name or not isinstance(name, str):
        raise bad_request("Company name is required and must be a string", ErrorCode.REQUIRED_FIELD, {"field": "name"})

    name = name.strip()
    if not is_valid_company_name(name):
        raise bad_request(
            "Company name must be between 1-100 characters and contain only letters, numbers, "
            "spaces, and common characters (-&.'())",
            ErrorCode.VALIDATION_ERROR,
            {"providedName": name, "maxLength": MAX_NAME_LENGTH, "allowedCharacters": "letters, numbers, spaces, -&.'()"},
        )

    existing = await company_store.find_company_by_name(name)
    if existing:
        raise _already_exists({"existingCompanyId": str(existing["_id"]), "existingCompanyName": existing["name"]})

    try:
        company = await company_store.create_company(name)
    except DuplicateKeyError:
        raise _already_exists()

    logger.info("Rental company created: %s", name)
    return success({"company": serialize_doc(company)}, "Rental company created successfully")
