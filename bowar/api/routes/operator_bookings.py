from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from ...api import deps
from ...core.constants import OPERATOR_PAGE_SIZE
from ...core.context import RequestContext
from ...db.session import get_db
from ...db import schemas
from ...services import operator_booking_service
from .bookings import booking_out

router = APIRouter(prefix="/operator/bookings", tags=["operator"])


@router.get("/pending", response_model=schemas.ApiResponse[list[schemas.Booking]])
def pending_bookings(
    request: Request,
    db: Session = Depends(get_db),
    operator: RequestContext = Depends(deps.get_request_context),
):
    bookings = operator_booking_service.list_pending(db, operator)
    return schemas.ApiResponse[list[schemas.Booking]](
        message="Pending bookings retrieved successfully",
        data=[booking_out(request, booking) for booking in bookings],
    )


@router.get("", response_model=schemas.ApiResponse[list[schemas.Booking]])
def all_bookings(
    request: Request,
    page: int = 1,
    limit: int = OPERATOR_PAGE_SIZE,
    status: str | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
    operator: RequestContext = Depends(deps.get_request_context),
):
    result = operator_booking_service.list_bookings(
        db, operator, page=page, limit=limit, status=status, search=search
    )
    return schemas.ApiResponse[list[schemas.Booking]](
        message="Bookings retrieved successfully",
        data=[booking_out(request, booking) for booking in result.items],
        meta=result.meta,
    )


@router.post("/{booking_id}/approve", response_model=schemas.ApiResponse[schemas.Booking])
def approve_booking(
    booking_id: int,
    request: Request,
    db: Session = Depends(get_db),
    operator: RequestContext = Depends(deps.get_request_context),
):
    booking = operator_booking_service.approve_booking(db, operator, booking_id)
    return schemas.ApiResponse[schemas.Booking](
        message="Booking approved successfully", data=booking_out(request, booking)
    )


@router.post("/{booking_id}/reject", response_model=schemas.ApiResponse[schemas.Booking])
def reject_booking(
    booking_id: int,
    request: Request,
    db: Session = Depends(get_db),
    operator: RequestContext = Depends(deps.get_request_context),
):
    booking = operator_booking_service.reject_booking(db, operator, booking_id)
    return schemas.ApiResponse[schemas.Booking](
        message="Booking rejected", data=booking_out(request, booking)
    )
