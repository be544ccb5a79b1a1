import io

import pytest
from fastapi import UploadFile

from bowar.db import models, schemas
from bowar.services import booking_service, operator_booking_service, wallet_service
from bowar.services.errors import ForbiddenError, StateError, ValidationError

from conftest import booking_date, context, make_user, make_warnet


def _transfer_booking(db, user, warnet, pc_number=4) -> models.Booking:
    payload = schemas.BookingCreate(
        warnet_id=warnet.id,
        pc_number=pc_number,
        booking_date=booking_date(),
        booking_time="10:00",
        duration=1,
        payment_method="bank_transfer",
        payment_account_name="Budi",
    )
    proof = UploadFile(file=io.BytesIO(b"image-bytes"), filename="bukti.jpg")
    return booking_service.create_booking(db, context(user), payload, proof)


@pytest.fixture()
def venue(db_session):
    warnet = make_warnet(db_session)
    other = make_warnet(db_session, name="Other Net")
    operator = make_user(db_session, "op", role=models.UserRole.operator, warnet_id=warnet.id)
    other_operator = make_user(db_session, "op2", role=models.UserRole.operator, warnet_id=other.id)
    customer = make_user(db_session, "budi")
    return warnet, operator, other_operator, customer


def test_approve_marks_paid_and_occupies_pc(db_session, venue):
    warnet, operator, _, customer = venue
    booking = _transfer_booking(db_session, customer, warnet)

    approved = operator_booking_service.approve_booking(db_session, context(operator), booking.id)

    assert approved.payment_status == models.PaymentStatus.paid
    assert approved.status == models.BookingStatus.active
    assert approved.approved_by == operator.id
    assert approved.approved_at is not None
    pc = wallet_service.get_pc(db_session, warnet.id, 4)
    assert pc.status == models.PcStatus.occupied
    assert pc.current_booking_id == booking.id


def test_operator_of_other_warnet_cannot_review(db_session, venue):
    warnet, _, other_operator, customer = venue
    booking = _transfer_booking(db_session, customer, warnet)

    with pytest.raises(ForbiddenError):
        operator_booking_service.approve_booking(db_session, context(other_operator), booking.id)
    with pytest.raises(ForbiddenError):
        operator_booking_service.reject_booking(db_session, context(other_operator), booking.id)

    db_session.refresh(booking)
    assert booking.payment_status == models.PaymentStatus.pending
    assert booking.status == models.BookingStatus.pending
    assert booking.approved_by is None


def test_customer_cannot_review(db_session, venue):
    warnet, _, _, customer = venue
    booking = _transfer_booking(db_session, customer, warnet)

    with pytest.raises(ForbiddenError):
        operator_booking_service.approve_booking(db_session, context(customer), booking.id)


def test_approve_twice_is_rejected(db_session, venue):
    warnet, operator, _, customer = venue
    booking = _transfer_booking(db_session, customer, warnet)
    operator_booking_service.approve_booking(db_session, context(operator), booking.id)

    with pytest.raises(StateError):
        operator_booking_service.approve_booking(db_session, context(operator), booking.id)
    with pytest.raises(StateError):
        operator_booking_service.reject_booking(db_session, context(operator), booking.id)


def test_reject_cancels_without_touching_pc(db_session, venue):
    warnet, operator, _, customer = venue
    booking = _transfer_booking(db_session, customer, warnet)

    rejected = operator_booking_service.reject_booking(db_session, context(operator), booking.id)

    assert rejected.payment_status == models.PaymentStatus.rejected
    assert rejected.status == models.BookingStatus.cancelled
    assert wallet_service.get_pc(db_session, warnet.id, 4) is None
    with pytest.raises(StateError):
        operator_booking_service.approve_booking(db_session, context(operator), booking.id)


def test_pending_list_is_scoped_to_operator_warnet(db_session, venue):
    warnet, operator, other_operator, customer = venue
    booking = _transfer_booking(db_session, customer, warnet)

    assert [item.id for item in operator_booking_service.list_pending(db_session, context(operator))] == [booking.id]
    assert operator_booking_service.list_pending(db_session, context(other_operator)) == []


def test_list_bookings_filters(db_session, venue):
    warnet, operator, _, customer = venue
    siti = make_user(db_session, "siti")
    first = _transfer_booking(db_session, customer, warnet, pc_number=1)
    second = _transfer_booking(db_session, siti, warnet, pc_number=2)
    operator_booking_service.approve_booking(db_session, context(operator), first.id)

    everything = operator_booking_service.list_bookings(db_session, context(operator), page=1, limit=50, status="all")
    assert everything.meta.total == 2

    pending = operator_booking_service.list_bookings(db_session, context(operator), page=1, limit=50, status="pending")
    assert [item.id for item in pending.items] == [second.id]

    active = operator_booking_service.list_bookings(db_session, context(operator), page=1, limit=50, status="active")
    assert [item.id for item in active.items] == [first.id]

    by_name = operator_booking_service.list_bookings(db_session, context(operator), page=1, limit=50, search="sit")
    assert [item.id for item in by_name.items] == [second.id]


def test_operator_without_warnet(db_session):
    lonely = make_user(db_session, "lonely", role=models.UserRole.operator)

    with pytest.raises(ValidationError):
        operator_booking_service.list_pending(db_session, context(lonely))
