# rentalcrm/utils/api_response.py
from typing import Any


def success(data: Any = None, message: str = "Success") -> dict:
    return {"success": True, "message": message, "data": data}
