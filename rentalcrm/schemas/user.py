# rentalcrm/schemas/user.py
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class LoginSchema(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterTenantSchema(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str
    phoneNumber: Optional[str] = Field(None, pattern=r"^\+?[1-9]\d{1,14}$")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class VerifyOtpSchema(BaseModel):
    email: EmailStr
    otp: str = Field(..., pattern=r"^\d{4,8}$")


class EmailSchema(BaseModel):
    email: EmailStr
