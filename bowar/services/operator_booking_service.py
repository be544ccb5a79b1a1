import logging

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session, selectinload

from ..core.context import RequestContext
from ..db import models
from ..db.models.booking import BookingStatus, PaymentStatus, utc_now
from ..db.session import atomic
from . import wallet_service
from .errors import ForbiddenError, NotFoundError, StateError, ValidationError
from .pagination import Page, paginate

logger = logging.getLogger(__name__)


def require_operator_warnet(operator: RequestContext) -> int:
    if not operator.is_operator:
        raise ForbiddenError("Only operators can access this endpoint")
    if not operator.warnet_id:
        raise ValidationError("Operator must be assigned to a warnet")
    return operator.warnet_id


def _base_query(warnet_id: int):
    return (
        select(models.Booking)
        .options(
            selectinload(models.Booking.user),
            selectinload(models.Booking.warnet),
        )
        .where(models.Booking.warnet_id == warnet_id)
        .order_by(models.Booking.created_at.desc(), models.Booking.id.desc())
    )


def list_pending(db: Session, operator: RequestContext) -> list[models.Booking]:
    warnet_id = require_operator_warnet(operator)
    query = _base_query(warnet_id).where(
        models.Booking.payment_status == PaymentStatus.pending,
        models.Booking.payment_proof_image.is_not(None),
    )
    return list(db.scalars(query))


def list_bookings(
    db: Session,
    operator: RequestContext,
    *,
    page: int,
    limit: int,
    status: str | None = None,
    search: str | None = None,
) -> Page:
    warnet_id = require_operator_warnet(operator)
    query = _base_query(warnet_id)
    if status and status != "all":
        if status == "pending":
            query = query.where(models.Booking.payment_status == PaymentStatus.pending)
        else:
            try:
                status_value = BookingStatus(status)
            except ValueError as exc:
                raise ValidationError(f"Unknown booking status '{status}'") from exc
            query = query.where(models.Booking.status == status_value)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.join(models.Booking.user).where(
            or_(
                models.User.username.ilike(pattern),
                models.User.email.ilike(pattern),
            )
        )
    return paginate(db, query, page=page, limit=limit)


def _load_for_review(
    db: Session, operator: RequestContext, booking_id: int, action: str
) -> models.Booking:
    if not operator.is_operator:
        raise ForbiddenError("Only operators can access this endpoint")
    booking = db.get(models.Booking, booking_id)
    if not booking:
        raise NotFoundError("Booking not found")
    if booking.warnet_id != operator.warnet_id:
        raise ForbiddenError(f"You can only {action} bookings for your warnet")
    return booking


def _transition(db: Session, booking: models.Booking, **values) -> None:
    """Apply ``values`` only while the booking is still awaiting review."""
    result = db.execute(
        update(models.Booking)
        .where(
            models.Booking.id == booking.id,
            models.Booking.payment_status == PaymentStatus.pending,
            models.Booking.status != BookingStatus.cancelled,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise StateError("Booking has already been processed")
    db.refresh(booking)


def approve_booking(db: Session, operator: RequestContext, booking_id: int) -> models.Booking:
    booking = _load_for_review(db, operator, booking_id, "approve")
    if booking.payment_status == PaymentStatus.paid:
        raise StateError("Booking payment already approved")
    if booking.status == BookingStatus.cancelled:
        raise StateError("Cannot approve cancelled booking")

    with atomic(db):
        _transition(
            db,
            booking,
            payment_status=PaymentStatus.paid,
            status=BookingStatus.active,
            approved_by=operator.user_id,
            approved_at=utc_now(),
        )
        wallet_service.occupy_pc(db, booking)

    db.refresh(booking)
    logger.info("Operator %s approved booking %s", operator.user_id, booking.id)
    return booking


def reject_booking(db: Session, operator: RequestContext, booking_id: int) -> models.Booking:
    booking = _load_for_review(db, operator, booking_id, "reject")
    if booking.payment_status == PaymentStatus.paid:
        raise StateError("Cannot reject already approved booking")
    if booking.status == BookingStatus.cancelled:
        raise StateError("Booking already cancelled")

    with atomic(db):
        _transition(
            db,
            booking,
            payment_status=PaymentStatus.rejected,
            status=BookingStatus.cancelled,
        )

    db.refresh(booking)
    logger.info("Operator %s rejected booking %s", operator.user_id, booking.id)
    return booking


__all__ = [
    "require_operator_warnet",
    "list_pending",
    "list_bookings",
    "approve_booking",
    "reject_booking",
]
