from datetime import date, datetime
from pydantic import BaseModel, field_validator

from ..models.booking import BookingStatus, PaymentMethod, PaymentStatus
from .user import UserSummary
from .warnet import WarnetSummary


class BookingCreate(BaseModel):
    warnet_id: int | None = None
    pc_number: int | None = None
    booking_date: date | None = None
    booking_time: str | None = None
    duration: int | None = None
    payment_method: PaymentMethod | None = None
    payment_account_name: str | None = None
    payment_notes: str | None = None

    @field_validator("payment_method", mode="before")
    @classmethod
    def normalize_method(cls, value: object) -> PaymentMethod | None:
        if value is None or isinstance(value, PaymentMethod):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            if not normalized:
                return None
            aliases: dict[str, PaymentMethod] = {
                "dompetbowar": PaymentMethod.dompet_bowar,
                "wallet": PaymentMethod.dompet_bowar,
                "transfer": PaymentMethod.bank_transfer,
            }
            if normalized in aliases:
                return aliases[normalized]
            return PaymentMethod(normalized)
        raise ValueError("Invalid payment method")

    @field_validator("booking_time")
    @classmethod
    def check_time(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if not value:
            return None
        parts = value.split(":")
        if len(parts) < 2 or not all(part.isdigit() for part in parts):
            raise ValueError("Booking time must use HH:MM")
        hour, minute = int(parts[0]), int(parts[1])
        if hour > 23 or minute > 59:
            raise ValueError("Booking time must use HH:MM")
        return f"{hour:02d}:{minute:02d}"


class Booking(BaseModel):
    id: int
    user_id: int
    warnet_id: int
    pc_number: int
    booking_date: date
    booking_time: str
    duration: int
    status: BookingStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    is_session_active: bool
    price_per_hour: float
    total_price: float
    is_member_booking: bool
    can_cancel_until: datetime | None = None
    payment_proof_image: str | None = None
    payment_account_name: str | None = None
    payment_notes: str | None = None
    approved_by: int | None = None
    approved_at: datetime | None = None
    created_at: datetime
    warnet: WarnetSummary | None = None
    user: UserSummary | None = None

    class Config:
        from_attributes = True


class BookingCancelResult(BaseModel):
    booking: Booking
    refunded: float
