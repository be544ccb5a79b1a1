from decimal import Decimal
import io

import pytest
from fastapi import UploadFile

from bowar.db import models, schemas
from bowar.services import booking_service, transaction_service, wallet_service
from bowar.services.errors import ForbiddenError, NotFoundError, StateError, ValidationError

from conftest import booking_date, context, fund_wallet, make_user, make_warnet


@pytest.fixture()
def venue(db_session):
    warnet = make_warnet(db_session)
    other = make_warnet(db_session, name="Other Net")
    operator = make_user(db_session, "op", role=models.UserRole.operator, warnet_id=warnet.id)
    other_operator = make_user(db_session, "op2", role=models.UserRole.operator, warnet_id=other.id)
    customer = make_user(db_session, "budi")
    return warnet, operator, other_operator, customer


def _topup(db, user, warnet, amount="50000"):
    return transaction_service.create_topup(
        db,
        context(user),
        amount=amount,
        sender_name="Budi Santoso",
        warnet_id=str(warnet.id),
        proof_file=UploadFile(file=io.BytesIO(b"png-bytes"), filename="transfer.png"),
    )


def test_topup_is_created_pending(db_session, venue, upload_root):
    warnet, _, _, customer = venue

    topup = _topup(db_session, customer, warnet)

    assert topup.type == models.TransactionType.topup
    assert topup.status == models.TransactionStatus.pending
    assert Decimal(str(topup.amount)) == Decimal("50000")
    assert topup.proof_image.startswith("/uploads/topups/")
    assert (upload_root / topup.proof_image[len("/uploads/"):]).exists()
    assert wallet_service.get_wallet(db_session, customer.id, warnet.id) is None


def test_topup_accepts_proof_reference_string(db_session, venue):
    warnet, _, _, customer = venue

    topup = transaction_service.create_topup(
        db_session,
        context(customer),
        amount=20000,
        sender_name="Budi",
        warnet_id=warnet.id,
        proof_text="https://cdn.example.com/bukti.png",
    )

    assert topup.proof_image == "https://cdn.example.com/bukti.png"


@pytest.mark.parametrize("amount", ["0", "-100", "abc", None])
def test_topup_amount_must_be_positive(db_session, venue, amount):
    warnet, _, _, customer = venue

    with pytest.raises(ValidationError):
        _topup(db_session, customer, warnet, amount=amount)
    assert db_session.query(models.BowarTransaction).count() == 0


def test_topup_requires_sender_and_proof(db_session, venue):
    warnet, _, _, customer = venue

    with pytest.raises(ValidationError):
        transaction_service.create_topup(
            db_session, context(customer), amount=1000, sender_name="", warnet_id=warnet.id, proof_text="x"
        )
    with pytest.raises(ValidationError):
        transaction_service.create_topup(
            db_session, context(customer), amount=1000, sender_name="Budi", warnet_id=warnet.id
        )
    with pytest.raises(NotFoundError):
        transaction_service.create_topup(
            db_session, context(customer), amount=1000, sender_name="Budi", warnet_id=999, proof_text="x"
        )


def test_approve_topup_credits_wallet_once(db_session, venue):
    warnet, operator, _, customer = venue
    topup = _topup(db_session, customer, warnet)

    approved, wallet = transaction_service.approve_topup(db_session, context(operator), topup.id)

    assert approved.status == models.TransactionStatus.completed
    assert approved.approved_by == operator.id
    assert Decimal(str(wallet.balance)) == Decimal("50000")

    with pytest.raises(StateError) as exc:
        transaction_service.approve_topup(db_session, context(operator), topup.id)
    assert exc.value.message == transaction_service.ALREADY_PROCESSED_MESSAGE
    wallet = wallet_service.get_wallet(db_session, customer.id, warnet.id)
    assert Decimal(str(wallet.balance)) == Decimal("50000")


def test_approve_topup_adds_to_existing_balance(db_session, venue):
    warnet, operator, _, customer = venue
    fund_wallet(db_session, customer, warnet, 10000)
    topup = _topup(db_session, customer, warnet, amount="2500.50")

    _, wallet = transaction_service.approve_topup(db_session, context(operator), topup.id)

    assert Decimal(str(wallet.balance)) == Decimal("12500.50")
    assert db_session.query(models.CafeWallet).count() == 1


def test_operator_of_other_warnet_cannot_approve(db_session, venue):
    warnet, _, other_operator, customer = venue
    topup = _topup(db_session, customer, warnet)

    with pytest.raises(ForbiddenError):
        transaction_service.approve_topup(db_session, context(other_operator), topup.id)
    with pytest.raises(ForbiddenError):
        transaction_service.approve_topup(db_session, context(customer), topup.id)

    db_session.refresh(topup)
    assert topup.status == models.TransactionStatus.pending
    assert wallet_service.get_wallet(db_session, customer.id, warnet.id) is None


def test_reject_topup_keeps_balance(db_session, venue):
    warnet, operator, _, customer = venue
    topup = _topup(db_session, customer, warnet)

    rejected = transaction_service.reject_topup(db_session, context(operator), topup.id, "Bukti tidak jelas")

    assert rejected.status == models.TransactionStatus.failed
    assert rejected.rejection_note == "Bukti tidak jelas"
    assert wallet_service.get_wallet(db_session, customer.id, warnet.id) is None
    with pytest.raises(StateError):
        transaction_service.approve_topup(db_session, context(operator), topup.id)


def test_list_transactions_scopes(db_session, venue):
    warnet, operator, other_operator, customer = venue
    topup = _topup(db_session, customer, warnet)

    own = transaction_service.list_transactions(db_session, context(customer), page=1, limit=20)
    assert [item.id for item in own.items] == [topup.id]

    review = transaction_service.list_transactions(
        db_session, context(operator), page=1, limit=20, type_="topup"
    )
    assert [item.id for item in review.items] == [topup.id]

    elsewhere = transaction_service.list_transactions(
        db_session, context(other_operator), page=1, limit=20, type_="topup"
    )
    assert elsewhere.items == []

    with pytest.raises(ValidationError):
        transaction_service.list_transactions(db_session, context(customer), page=1, limit=20, status="weird")


def test_transaction_detail_access(db_session, venue):
    warnet, operator, other_operator, customer = venue
    topup = _topup(db_session, customer, warnet)
    stranger = make_user(db_session, "stranger")

    assert transaction_service.get_transaction(db_session, context(customer), topup.id).id == topup.id
    assert transaction_service.get_transaction(db_session, context(operator), topup.id).id == topup.id
    with pytest.raises(ForbiddenError):
        transaction_service.get_transaction(db_session, context(other_operator), topup.id)
    with pytest.raises(ForbiddenError):
        transaction_service.get_transaction(db_session, context(stranger), topup.id)
    with pytest.raises(NotFoundError):
        transaction_service.get_transaction(db_session, context(customer), 999)


def _pending_booking(db, user, warnet) -> models.Booking:
    payload = schemas.BookingCreate(
        warnet_id=warnet.id,
        pc_number=2,
        booking_date=booking_date(),
        booking_time="09:00",
        duration=2,
        payment_method="cash",
    )
    return booking_service.create_booking(db, context(user), payload)


def test_pay_booking_debits_wallet(db_session, venue):
    warnet, _, _, customer = venue
    fund_wallet(db_session, customer, warnet, 30000)
    booking = _pending_booking(db_session, customer, warnet)

    payment, wallet = transaction_service.pay_booking(
        db_session, context(customer), booking_id=booking.id, amount=20000
    )

    assert payment.type == models.TransactionType.payment
    assert Decimal(str(payment.amount)) == Decimal("-20000")
    assert Decimal(str(wallet.balance)) == Decimal("10000")

    with pytest.raises(StateError):
        transaction_service.pay_booking(db_session, context(customer), booking_id=booking.id, amount=20000)
    wallet = wallet_service.get_wallet(db_session, customer.id, warnet.id)
    assert Decimal(str(wallet.balance)) == Decimal("10000")


def test_refund_is_limited_to_what_was_paid(db_session, venue):
    warnet, _, _, customer = venue
    fund_wallet(db_session, customer, warnet, 30000)
    booking = _pending_booking(db_session, customer, warnet)
    transaction_service.pay_booking(db_session, context(customer), booking_id=booking.id, amount=20000)

    refund, wallet = transaction_service.refund_booking(
        db_session, context(customer), booking_id=booking.id, amount=15000
    )
    assert refund.type == models.TransactionType.refund
    assert Decimal(str(wallet.balance)) == Decimal("25000")

    with pytest.raises(StateError):
        transaction_service.refund_booking(db_session, context(customer), booking_id=booking.id, amount=6000)
    assert booking_service.refundable_amount(db_session, booking) == Decimal("5000")


def test_cannot_pay_or_refund_someone_elses_booking(db_session, venue):
    warnet, _, _, customer = venue
    stranger = make_user(db_session, "stranger")
    fund_wallet(db_session, stranger, warnet, 30000)
    booking = _pending_booking(db_session, customer, warnet)

    with pytest.raises(ForbiddenError):
        transaction_service.pay_booking(db_session, context(stranger), booking_id=booking.id, amount=1000)
    with pytest.raises(ForbiddenError):
        transaction_service.refund_booking(db_session, context(stranger), booking_id=booking.id, amount=1000)
