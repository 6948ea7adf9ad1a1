from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from app.core.enums import SellerStatus


class _CamelIn(BaseModel):
    # Accept both snake_case and the camelCase payloads sent by the seller portal.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


class SellerRegisterIn(_CamelIn):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    business_name: str = Field(min_length=1, max_length=200)
    trading_name: str | None = Field(default=None, max_length=200)
    business_address: str = Field(min_length=1, max_length=500)
    contact_number: str = Field(min_length=1, max_length=50)
    tin: str = Field(min_length=1, max_length=50)
    registration_number: str | None = Field(default=None, max_length=80)
    bank_account_name: str = Field(min_length=1, max_length=200)
    bank_account_number: str = Field(min_length=1, max_length=64)
    bank_name: str = Field(min_length=1, max_length=200)
    contact_person: str | None = Field(default=None, max_length=200)
    city: str | None = Field(default=None, max_length=120)


class SellerLoginIn(_CamelIn):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)


class TokenRefreshIn(_CamelIn):
    refresh_token: str = Field(min_length=1)


class SellerProfileUpdate(_CamelIn):
    business_name: str | None = Field(default=None, min_length=1, max_length=200)
    trading_name: str | None = Field(default=None, max_length=200)
    business_address: str | None = Field(default=None, min_length=1, max_length=500)
    contact_number: str | None = Field(default=None, min_length=1, max_length=50)
    registration_number: str | None = Field(default=None, max_length=80)
    bank_account_name: str | None = Field(default=None, max_length=200)
    bank_account_number: str | None = Field(default=None, max_length=64)
    bank_name: str | None = Field(default=None, max_length=200)
    contact_person: str | None = Field(default=None, max_length=200)
    city: str | None = Field(default=None, max_length=120)


class SellerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    business_name: str
    trading_name: str | None
    business_address: str
    contact_number: str
    tin: str
    registration_number: str | None
    bank_account_name: str | None
    bank_account_number: str | None
    bank_name: str | None
    contact_person: str | None
    city: str | None
    status: SellerStatus
    sri_score_bp: int
    created_at: datetime
    updated_at: datetime


class SellerSessionOut(BaseModel):
    seller: SellerOut
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    access_expires_at: datetime
    refresh_expires_at: datetime


class TokenPairOut(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    access_expires_at: datetime
    refresh_expires_at: datetime
