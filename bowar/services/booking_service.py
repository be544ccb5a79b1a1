import logging
from decimal import Decimal

from fastapi import UploadFile
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, selectinload

from ..core.constants import (
    BOOKING_CANCEL_WINDOW,
    BOOKING_PROOF_EXTENSIONS,
    BOOKING_PROOF_MAX_BYTES,
    BOOKING_PROOF_SUBDIR,
)
from ..core.context import RequestContext
from ..db import models, schemas
from ..db.models.booking import BookingStatus, PaymentMethod, PaymentStatus, as_utc, utc_now
from ..db.session import atomic
from . import storage, wallet_service
from .errors import ForbiddenError, NotFoundError, StateError, ValidationError
from .pagination import Page, paginate

logger = logging.getLogger(__name__)

INSUFFICIENT_BALANCE_MESSAGE = "Saldo Warnet ini tidak cukup. Silakan top up khusus di warnet ini."

_REQUIRED_FIELDS = {
    "warnet_id": "Warnet ID is required",
    "pc_number": "PC number is required",
    "booking_date": "Booking date is required",
    "booking_time": "Booking time is required",
    "duration": "Duration is required",
    "payment_method": "Payment method is required",
}


class BookingError(StateError):
    pass


def _validate_payload(
    payload: schemas.BookingCreate, proof: UploadFile | None
) -> None:
    missing = {
        field: message
        for field, message in _REQUIRED_FIELDS.items()
        if not getattr(payload, field)
    }
    if missing:
        raise ValidationError("Missing required fields", errors=missing)
    if payload.duration < 1:
        raise ValidationError(
            "Duration must be at least 1 hour",
            errors={"duration": "Duration must be a positive number of hours"},
        )
    if payload.payment_method == PaymentMethod.bank_transfer:
        if not (payload.payment_account_name or "").strip():
            raise ValidationError("Account name is required for bank transfer")
        if proof is None or not proof.filename:
            raise ValidationError("Payment proof image is required for bank transfer")


def quote_price(
    user: RequestContext, warnet: models.Warnet, duration: int
) -> tuple[bool, Decimal, Decimal]:
    """Return ``(is_member_booking, price_per_hour, total_price)``."""
    is_member = user.role == models.UserRole.member and user.warnet_id == warnet.id
    if is_member and duration <= 1:
        raise ValidationError(
            "Member booking must be more than 1 hour",
            errors={
                "duration": "Member booking requires a minimum duration of more than 1 hour (e.g., 2 hours)",
            },
        )
    rate = warnet.member_price_per_hour if is_member else warnet.regular_price_per_hour
    price_per_hour = wallet_service.to_decimal(rate)
    return is_member, price_per_hour, price_per_hour * duration


def _pay_with_wallet(
    db: Session, booking: models.Booking, warnet: models.Warnet
) -> None:
    total = wallet_service.to_decimal(booking.total_price)
    wallet = wallet_service.get_wallet(db, booking.user_id, booking.warnet_id)
    if not wallet or not wallet_service.debit_wallet(db, wallet, total):
        available = float(wallet.balance) if wallet else 0.0
        raise BookingError(
            INSUFFICIENT_BALANCE_MESSAGE,
            data={"required": float(total), "available": available},
        )
    wallet_service.record_transaction(
        db,
        user_id=booking.user_id,
        type_=models.TransactionType.payment,
        amount=-total,
        description=f"Payment for booking at {warnet.name} - PC #{booking.pc_number}",
        warnet_id=booking.warnet_id,
        booking_id=booking.id,
    )
    booking.payment_status = PaymentStatus.paid
    booking.status = BookingStatus.active


def create_booking(
    db: Session,
    user: RequestContext,
    payload: schemas.BookingCreate,
    proof: UploadFile | None = None,
) -> models.Booking:
    _validate_payload(payload, proof)
    warnet = db.get(models.Warnet, payload.warnet_id)
    if not warnet:
        raise NotFoundError("Warnet not found")
    is_member, price_per_hour, total_price = quote_price(user, warnet, payload.duration)
    if payload.pc_number < 1 or (warnet.total_pcs and payload.pc_number > warnet.total_pcs):
        raise ValidationError(
            "PC number is out of range",
            errors={
                "pc_number": f"PC number must be between 1 and {warnet.total_pcs}"
                if warnet.total_pcs
                else "PC number must be at least 1"
            },
        )
    pc = wallet_service.get_pc(db, warnet.id, payload.pc_number)
    if pc and pc.status == models.PcStatus.maintenance:
        raise BookingError("PC is under maintenance")

    proof_path = None
    if payload.payment_method == PaymentMethod.bank_transfer:
        proof_path = storage.save_upload(
            proof,
            BOOKING_PROOF_SUBDIR,
            allowed_extensions=BOOKING_PROOF_EXTENSIONS,
            max_bytes=BOOKING_PROOF_MAX_BYTES,
            invalid_message="File upload failed",
        )

    try:
        with atomic(db):
            booking = models.Booking(
                user_id=user.user_id,
                warnet_id=warnet.id,
                pc_number=payload.pc_number,
                booking_date=payload.booking_date,
                booking_time=payload.booking_time,
                duration=payload.duration,
                status=BookingStatus.pending,
                payment_status=PaymentStatus.pending,
                payment_method=payload.payment_method,
                is_session_active=False,
                price_per_hour=price_per_hour,
                total_price=total_price,
                is_member_booking=is_member,
                can_cancel_until=utc_now() + BOOKING_CANCEL_WINDOW,
            )
            if payload.payment_method == PaymentMethod.bank_transfer:
                booking.payment_proof_image = proof_path
                booking.payment_account_name = payload.payment_account_name.strip()
                booking.payment_notes = payload.payment_notes or None
            db.add(booking)
            db.flush()

            if payload.payment_method == PaymentMethod.dompet_bowar:
                _pay_with_wallet(db, booking, warnet)
            # other methods wait for an operator to approve the payment

            if booking.payment_status == PaymentStatus.paid:
                wallet_service.occupy_pc(db, booking)
    except Exception:
        storage.remove_upload(proof_path)
        raise

    db.refresh(booking)
    logger.info(
        "Booking %s created for user %s at warnet %s (%s, %s)",
        booking.id,
        user.user_id,
        warnet.id,
        booking.payment_method.value,
        booking.payment_status.value,
    )
    return booking


def list_user_bookings(db: Session, user: RequestContext, page: int, limit: int) -> Page:
    query = (
        select(models.Booking)
        .options(selectinload(models.Booking.warnet))
        .where(models.Booking.user_id == user.user_id)
        .order_by(models.Booking.created_at.desc(), models.Booking.id.desc())
    )
    return paginate(db, query, page=page, limit=limit)


def _completed_total(db: Session, booking_id: int, type_: models.TransactionType) -> Decimal:
    total = db.scalar(
        select(func.coalesce(func.sum(models.BowarTransaction.amount), 0)).where(
            models.BowarTransaction.booking_id == booking_id,
            models.BowarTransaction.type == type_,
            models.BowarTransaction.status == models.TransactionStatus.completed,
        )
    )
    return wallet_service.to_decimal(total)


def refunded_total(db: Session, booking_id: int) -> Decimal:
    return _completed_total(db, booking_id, models.TransactionType.refund)


def refundable_amount(db: Session, booking: models.Booking) -> Decimal:
    """What was paid for ``booking`` from the wallet and not yet given back."""
    # payments are stored as negative amounts
    paid = -_completed_total(db, booking.id, models.TransactionType.payment)
    return max(paid - refunded_total(db, booking.id), Decimal("0"))


def cancel_booking(
    db: Session, user: RequestContext, booking_id: int
) -> tuple[models.Booking, Decimal]:
    """Cancel an owned booking inside its cancel window.

    Wallet-paid bookings are refunded in full and the PC is released in the
    same transaction. Returns the booking and the refunded amount.
    """
    booking = db.get(models.Booking, booking_id)
    if not booking:
        raise NotFoundError("Booking not found")
    if booking.user_id != user.user_id:
        raise ForbiddenError("You are not authorized to cancel this booking")
    if booking.status == BookingStatus.cancelled:
        raise BookingError("Booking is already cancelled")
    if booking.status == BookingStatus.completed:
        raise BookingError("Cannot cancel a completed booking")
    now = utc_now()
    if not booking.can_cancel(now):
        raise BookingError(
            "Cancel window has expired",
            data={
                "can_cancel_until": as_utc(booking.can_cancel_until).isoformat()
                if booking.can_cancel_until
                else None,
                "current_time": now.isoformat(),
            },
        )

    refunded = Decimal("0")
    with atomic(db):
        result = db.execute(
            update(models.Booking)
            .where(
                models.Booking.id == booking.id,
                models.Booking.status.notin_([BookingStatus.cancelled, BookingStatus.completed]),
            )
            .values(status=BookingStatus.cancelled)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise BookingError("Booking is already cancelled")
        db.refresh(booking)

        if booking.payment_status == PaymentStatus.paid:
            refunded = min(
                wallet_service.to_decimal(booking.total_price), refundable_amount(db, booking)
            )
        if refunded > 0:
            wallet = wallet_service.get_or_create_wallet(db, booking.user_id, booking.warnet_id)
            wallet_service.credit_wallet(db, wallet, refunded)
            wallet_service.record_transaction(
                db,
                user_id=booking.user_id,
                type_=models.TransactionType.refund,
                amount=refunded,
                description=(
                    f"Refund for cancelled booking (Warnet ID: {booking.warnet_id})"
                    f" - PC #{booking.pc_number}"
                ),
                warnet_id=booking.warnet_id,
                booking_id=booking.id,
            )

        wallet_service.release_pc(db, booking)

    db.refresh(booking)
    if refunded:
        logger.info("Refunded %s to user %s for booking %s", refunded, booking.user_id, booking.id)
    return booking, refunded


__all__ = [
    "BookingError",
    "INSUFFICIENT_BALANCE_MESSAGE",
    "quote_price",
    "create_booking",
    "list_user_bookings",
    "refunded_total",
    "refundable_amount",
    "cancel_booking",
]
