import math
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum as PyEnum
from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..session import Base


class BookingStatus(str, PyEnum):
    pending = "pending"
    active = "active"
    cancelled = "cancelled"
    completed = "completed"


class PaymentStatus(str, PyEnum):
    pending = "pending"
    paid = "paid"
    rejected = "rejected"


class PaymentMethod(str, PyEnum):
    dompet_bowar = "dompet_bowar"
    bank_transfer = "bank_transfer"
    cash = "cash"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps read back from the database as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    warnet_id: Mapped[int] = mapped_column(ForeignKey("warnets.id", ondelete="CASCADE"), index=True)
    pc_number: Mapped[int] = mapped_column(Integer, nullable=False)
    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    booking_time: Mapped[str] = mapped_column(String(8), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[BookingStatus] = mapped_column(Enum(BookingStatus), default=BookingStatus.pending)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus), default=PaymentStatus.pending
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(Enum(PaymentMethod), nullable=False)
    is_session_active: Mapped[bool] = mapped_column(Boolean, default=False)
    price_per_hour: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False)
    total_price: Mapped[float] = mapped_column(Numeric(15, 2), nullable=False)
    is_member_booking: Mapped[bool] = mapped_column(Boolean, default=False)
    can_cancel_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    payment_proof_image: Mapped[str | None] = mapped_column(String(512))
    payment_account_name: Mapped[str | None] = mapped_column(String(255))
    payment_notes: Mapped[str | None] = mapped_column(Text)
    approved_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user = relationship("User", foreign_keys=[user_id])
    approver = relationship("User", foreign_keys=[approved_by])
    warnet = relationship("Warnet")

    def can_cancel(self, now: datetime) -> bool:
        if self.status in (BookingStatus.cancelled, BookingStatus.completed):
            return False
        if self.can_cancel_until is None:
            return False
        return as_utc(now) <= as_utc(self.can_cancel_until)

    def starts_at(self, tz: tzinfo) -> datetime:
        hour, minute = (int(part) for part in self.booking_time.split(":")[:2])
        return datetime.combine(self.booking_date, time(hour, minute), tzinfo=tz)

    def remaining_minutes(self, now: datetime, tz: tzinfo) -> int:
        """Minutes left in the booked session, counted from ``now``."""
        start = self.starts_at(tz)
        end = start + timedelta(hours=self.duration)
        if now < start:
            return self.duration * 60
        if now >= end:
            return 0
        return math.ceil((end - now).total_seconds() / 60)
