from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from sqlalchemy.orm import Session
from ...api import deps
from ...core.constants import DEFAULT_PAGE_SIZE
from ...core.context import RequestContext
from ...db.session import get_db
from ...db import models, schemas
from ...services import booking_service, storage

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _blank_to_none(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value


def booking_out(request: Request, booking: models.Booking) -> schemas.Booking:
    data = schemas.Booking.model_validate(booking)
    return data.model_copy(
        update={
            "payment_proof_image": storage.absolute_url(
                str(request.base_url), booking.payment_proof_image
            )
        }
    )


@router.post(
    "",
    response_model=schemas.ApiResponse[schemas.Booking],
    status_code=status.HTTP_201_CREATED,
)
def create_booking(
    request: Request,
    warnet_id: str | None = Form(None, alias="warnetId"),
    pc_number: str | None = Form(None, alias="pcNumber"),
    booking_date: str | None = Form(None, alias="bookingDate"),
    booking_time: str | None = Form(None, alias="bookingTime"),
    duration: str | None = Form(None),
    payment_method: str | None = Form(None, alias="paymentMethod"),
    payment_account_name: str | None = Form(None, alias="paymentAccountName"),
    payment_notes: str | None = Form(None, alias="paymentNotes"),
    payment_proof_image: UploadFile | None = File(None, alias="paymentProofImage"),
    db: Session = Depends(get_db),
    user: RequestContext = Depends(deps.get_request_context),
):
    payload = schemas.BookingCreate(
        warnet_id=_blank_to_none(warnet_id),
        pc_number=_blank_to_none(pc_number),
        booking_date=_blank_to_none(booking_date),
        booking_time=_blank_to_none(booking_time),
        duration=_blank_to_none(duration),
        payment_method=_blank_to_none(payment_method),
        payment_account_name=payment_account_name,
        payment_notes=payment_notes,
    )
    booking = booking_service.create_booking(db, user, payload, payment_proof_image)
    if booking.payment_status == models.PaymentStatus.paid:
        message = "Booking created and paid successfully"
    else:
        message = "Booking created successfully, waiting for payment confirmation"
    return schemas.ApiResponse[schemas.Booking](message=message, data=booking_out(request, booking))


@router.get("", response_model=schemas.ApiResponse[list[schemas.Booking]])
def list_bookings(
    request: Request,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    db: Session = Depends(get_db),
    user: RequestContext = Depends(deps.get_request_context),
):
    result = booking_service.list_user_bookings(db, user, page, limit)
    return schemas.ApiResponse[list[schemas.Booking]](
        message="Bookings retrieved successfully",
        data=[booking_out(request, booking) for booking in result.items],
        meta=result.meta,
    )


@router.post("/{booking_id}/cancel", response_model=schemas.ApiResponse[schemas.BookingCancelResult])
def cancel_booking(
    booking_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: RequestContext = Depends(deps.get_request_context),
):
    booking, refunded = booking_service.cancel_booking(db, user, booking_id)
    message = "Booking cancelled successfully"
    if refunded:
        message = f"Booking cancelled and Rp {refunded:,.0f} refunded to your DompetBowar"
    return schemas.ApiResponse[schemas.BookingCancelResult](
        message=message,
        data=schemas.BookingCancelResult(booking=booking_out(request, booking), refunded=float(refunded)),
    )
