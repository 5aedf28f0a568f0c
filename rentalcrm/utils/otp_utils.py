# rentalcrm/utils/otp_utils.py
from datetime import datetime, timedelta, timezone

import pyotp

from rentalcrm.core.config import settings


def generate_otp() -> str:
    """Return a fresh numeric one-time code.

    Each call draws a new random secret, so consecutive codes for the same
    email are unrelated.
    """
    return pyotp.HOTP(pyotp.random_base32(), digits=settings.OTP_DIGITS).at(0)


def otp_expiry(now: datetime = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)
