"""
Database Schemas

Define your MongoDB collection schemas here using Pydantic models.
Each Pydantic model represents a collection in your database.
Model name lowercased is the collection name.

Request bodies are declared further down. They take camelCase keys (the
snake_case field names work too) and reject anything they do not declare.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from bson import ObjectId
from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


PaymentStatus = Literal["pending", "paid", "failed"]
CheckoutStatus = Literal["created", "verified", "fulfilled", "failed", "cancelled"]
PropertySort = Literal["recent", "price_asc", "price_desc", "area_desc", "beds_desc"]


class User(BaseModel):
    name: str = Field(..., description="Full name")
    email: EmailStr = Field(..., description="Email address, unique")
    password_hash: str = Field(..., description="BCrypt hashed password")
    phone: str
    created_at: datetime = Field(default_factory=utcnow)


class Coordinates(BaseModel):
    model_config = ConfigDict(extra="forbid")

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Property(BaseModel):
    title: str
    description: str
    price: float = Field(..., ge=0, description="Monthly rent")
    location: str
    coordinates: Coordinates
    bedrooms: int = Field(..., ge=0)
    bathrooms: int = Field(..., ge=0)
    area: float = Field(..., gt=0, description="Square feet")
    amenities: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    owner: str
    owner_phone: str
    available: bool = True
    sold: bool = False
    sold_to: Optional[str] = None
    sold_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)


class CartItem(BaseModel):
    property_id: str
    check_in: datetime
    check_out: datetime
    total_price: float = Field(..., ge=0)


class Cart(BaseModel):
    user_id: str
    items: List[CartItem] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Booking(BaseModel):
    user_id: str
    property_id: str
    check_in: datetime
    check_out: datetime
    total_price: float
    payment_status: PaymentStatus = "pending"
    payment_id: Optional[str] = None
    order_id: Optional[str] = None
    payment_method: str = "razorpay"
    created_at: datetime = Field(default_factory=utcnow)


class Payment(BaseModel):
    order_id: str
    user_id: str
    amount: int = Field(..., description="Minor units (paise)")
    currency: str
    receipt: str
    items: List[CartItem]
    status: CheckoutStatus = "created"
    payment_id: Optional[str] = None
    booking_ids: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# Request bodies

class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class RegisterInput(RequestModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: str = Field(..., min_length=7)


class LoginInput(RequestModel):
    email: EmailStr
    password: str


class PropertyIn(RequestModel):
    title: str = Field(..., min_length=1)
    description: str
    price: float = Field(..., ge=0)
    location: str = Field(..., min_length=1)
    coordinates: Coordinates
    bedrooms: int = Field(..., ge=0)
    bathrooms: int = Field(..., ge=0)
    area: float = Field(..., gt=0)
    amenities: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)


class CartAddInput(RequestModel):
    property_id: str
    check_in: datetime
    check_out: datetime
    total_price: float = Field(..., gt=0)

    @field_validator("property_id")
    @classmethod
    def _canonical_id(cls, value: str) -> str:
        # one cart line per property, whatever the hex case
        if not ObjectId.is_valid(value):
            raise ValueError("Invalid property id")
        return str(ObjectId(value))

    @field_validator("check_in", "check_out")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _dates_in_order(self):
        if self.check_out <= self.check_in:
            raise ValueError("checkOut must be after checkIn")
        return self


class CreateOrderInput(RequestModel):
    amount: Optional[int] = Field(None, description="Minor units (paise)")
    currency: str = "INR"
    receipt: Optional[str] = Field(None, max_length=40)


class VerifyPaymentInput(RequestModel):
    order_id: str = Field(..., validation_alias=AliasChoices("orderId", "razorpay_order_id", "order_id"))
    payment_id: str = Field(..., validation_alias=AliasChoices("paymentId", "razorpay_payment_id", "payment_id"))
    signature: str = Field(..., validation_alias=AliasChoices("signature", "razorpay_signature"))
    property_id: Optional[str] = Field(None, validation_alias=AliasChoices("propertyId", "property_id"))


class CancelPaymentInput(RequestModel):
    order_id: str


class FromCartInput(RequestModel):
    payment_id: str
    payment_method: Literal["razorpay"] = "razorpay"
