"""DompetBowar transaction log: top-ups, wallet payments and refunds."""

import logging
from decimal import Decimal, InvalidOperation

from fastapi import UploadFile
from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from ..core.constants import TOPUP_PROOF_EXTENSIONS, TOPUP_PROOF_MAX_BYTES, TOPUP_PROOF_SUBDIR
from ..core.context import RequestContext
from ..db import models
from ..db.models.booking import utc_now
from ..db.models.bowar_transaction import TransactionStatus, TransactionType
from ..db.session import atomic
from . import storage, wallet_service
from .booking_service import INSUFFICIENT_BALANCE_MESSAGE, refundable_amount
from .errors import ForbiddenError, NotFoundError, StateError, ValidationError
from .pagination import Page, paginate

logger = logging.getLogger(__name__)

ALREADY_PROCESSED_MESSAGE = "Transaksi ini sudah diproses"


def parse_amount(raw, message: str) -> Decimal:
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError(message) from exc
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(message)
    return amount.quantize(Decimal("0.01"))


def _parse_enum(enum_cls, value: str | None, field: str):
    if not value:
        return None
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ValidationError(f"Nilai {field} tidak valid: {value}") from exc


def is_operator_topup_view(user: RequestContext, type_: str | None) -> bool:
    return user.is_operator and type_ == TransactionType.topup.value


def list_transactions(
    db: Session,
    user: RequestContext,
    *,
    page: int,
    limit: int,
    status: str | None = None,
    type_: str | None = None,
) -> Page:
    status_value = _parse_enum(TransactionStatus, status, "status")
    type_value = _parse_enum(TransactionType, type_, "type")
    query = (
        select(models.BowarTransaction)
        .options(
            selectinload(models.BowarTransaction.warnet),
            selectinload(models.BowarTransaction.user),
        )
        .order_by(models.BowarTransaction.created_at.desc(), models.BowarTransaction.id.desc())
    )
    if is_operator_topup_view(user, type_):
        # operators only see top-ups sent to their own warnet
        query = query.where(
            models.BowarTransaction.type == TransactionType.topup,
            models.BowarTransaction.warnet_id == user.warnet_id,
        )
    else:
        query = query.where(models.BowarTransaction.user_id == user.user_id)
        if type_value:
            query = query.where(models.BowarTransaction.type == type_value)
    if status_value:
        query = query.where(models.BowarTransaction.status == status_value)
    return paginate(db, query, page=page, limit=limit)


def get_transaction(db: Session, user: RequestContext, transaction_id: int) -> models.BowarTransaction:
    transaction = db.execute(
        select(models.BowarTransaction)
        .options(
            selectinload(models.BowarTransaction.user),
            selectinload(models.BowarTransaction.warnet),
        )
        .where(models.BowarTransaction.id == transaction_id)
    ).scalar_one_or_none()
    if not transaction:
        raise NotFoundError("Transaksi tidak ditemukan")
    is_owner = transaction.user_id == user.user_id
    is_reviewing_operator = (
        user.is_operator
        and transaction.type == TransactionType.topup
        and transaction.warnet_id == user.warnet_id
    )
    if not is_owner and not is_reviewing_operator:
        raise ForbiddenError("Anda tidak memiliki akses ke transaksi ini")
    return transaction


def create_topup(
    db: Session,
    user: RequestContext,
    *,
    amount,
    sender_name: str | None,
    warnet_id,
    description: str | None = None,
    proof_file: UploadFile | None = None,
    proof_text: str | None = None,
) -> models.BowarTransaction:
    proof_image = proof_text or None
    if proof_file is not None and proof_file.filename:
        proof_image = storage.save_upload(
            proof_file,
            TOPUP_PROOF_SUBDIR,
            allowed_extensions=TOPUP_PROOF_EXTENSIONS,
            max_bytes=TOPUP_PROOF_MAX_BYTES,
            invalid_message="Bukti transfer tidak valid atau terlalu besar (maks 5MB)",
        )
    try:
        value = parse_amount(amount, "Jumlah top up harus lebih dari 0")
        sender_name = (sender_name or "").strip()
        if not proof_image or not sender_name or not warnet_id:
            raise ValidationError("Bukti transfer, nama pengirim, dan warnet wajib diisi")
        try:
            warnet_id = int(warnet_id)
        except (TypeError, ValueError) as exc:
            raise ValidationError("Warnet tidak valid") from exc
        if not db.get(models.Warnet, warnet_id):
            raise NotFoundError("Warnet tidak ditemukan")

        with atomic(db):
            transaction = wallet_service.record_transaction(
                db,
                user_id=user.user_id,
                type_=TransactionType.topup,
                amount=value,
                description=description or f"Top Up DompetBowar sebesar Rp {value:,.0f}",
                warnet_id=warnet_id,
                status=TransactionStatus.pending,
            )
            transaction.proof_image = proof_image
            transaction.sender_name = sender_name
    except Exception:
        if proof_image != proof_text:
            storage.remove_upload(proof_image)
        raise
    db.refresh(transaction)
    return transaction


def _owned_booking(db: Session, user: RequestContext, booking_id) -> models.Booking:
    booking = db.get(models.Booking, booking_id)
    if not booking:
        raise NotFoundError("Booking tidak ditemukan")
    if booking.user_id != user.user_id:
        raise ForbiddenError("Anda tidak memiliki akses ke booking ini")
    return booking


def pay_booking(
    db: Session,
    user: RequestContext,
    *,
    booking_id,
    amount,
    description: str | None = None,
) -> tuple[models.BowarTransaction, models.CafeWallet]:
    if not booking_id or not amount:
        raise ValidationError("bookingId dan amount wajib diisi")
    value = parse_amount(amount, "Jumlah pembayaran harus lebih dari 0")
    booking = _owned_booking(db, user, booking_id)

    with atomic(db):
        wallet = wallet_service.get_wallet(db, user.user_id, booking.warnet_id)
        if not wallet or not wallet_service.debit_wallet(db, wallet, value):
            raise StateError(INSUFFICIENT_BALANCE_MESSAGE)
        transaction = wallet_service.record_transaction(
            db,
            user_id=user.user_id,
            type_=TransactionType.payment,
            amount=-value,
            description=description or f"Pembayaran booking #{booking.id}",
            warnet_id=booking.warnet_id,
            booking_id=booking.id,
        )

    db.refresh(transaction)
    logger.info("User %s paid %s from wallet %s for booking %s", user.user_id, value, wallet.id, booking.id)
    return transaction, wallet


def refund_booking(
    db: Session,
    user: RequestContext,
    *,
    booking_id,
    amount,
    description: str | None = None,
) -> tuple[models.BowarTransaction, models.CafeWallet]:
    value = parse_amount(amount, "Jumlah refund harus lebih dari 0")
    if not booking_id:
        raise ValidationError("bookingId wajib diisi")
    booking = _owned_booking(db, user, booking_id)

    with atomic(db):
        if value > refundable_amount(db, booking):
            raise StateError("Jumlah refund melebihi pembayaran booking ini")
        wallet = wallet_service.get_or_create_wallet(db, user.user_id, booking.warnet_id)
        wallet_service.credit_wallet(db, wallet, value)
        transaction = wallet_service.record_transaction(
            db,
            user_id=user.user_id,
            type_=TransactionType.refund,
            amount=value,
            description=description or f"Refund untuk booking #{booking.id}",
            warnet_id=booking.warnet_id,
            booking_id=booking.id,
        )

    db.refresh(transaction)
    logger.info("Refunded %s to wallet %s for booking %s", value, wallet.id, booking.id)
    return transaction, wallet


def _load_for_review(
    db: Session, operator: RequestContext, transaction_id: int, denied_message: str, scope_message: str
) -> models.BowarTransaction:
    if not operator.is_operator:
        raise ForbiddenError(denied_message)
    transaction = db.get(models.BowarTransaction, transaction_id)
    if not transaction:
        raise NotFoundError("Transaksi tidak ditemukan")
    if operator.warnet_id is None or transaction.warnet_id != operator.warnet_id:
        raise ForbiddenError(scope_message)
    if transaction.status != TransactionStatus.pending:
        raise StateError(ALREADY_PROCESSED_MESSAGE)
    return transaction


def _settle(db: Session, transaction: models.BowarTransaction, **values) -> None:
    """Move a pending transaction forward; a concurrent reviewer matches no row."""
    result = db.execute(
        update(models.BowarTransaction)
        .where(
            models.BowarTransaction.id == transaction.id,
            models.BowarTransaction.status == TransactionStatus.pending,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise StateError(ALREADY_PROCESSED_MESSAGE)
    db.refresh(transaction)


def approve_topup(
    db: Session, operator: RequestContext, transaction_id: int
) -> tuple[models.BowarTransaction, models.CafeWallet]:
    transaction = _load_for_review(
        db,
        operator,
        transaction_id,
        "Hanya operator yang dapat menyetujui top up",
        "Anda tidak memiliki akses untuk menyetujui transaksi warnet ini",
    )
    if transaction.type != TransactionType.topup:
        raise StateError("Hanya transaksi topup yang dapat disetujui")
    if not db.get(models.User, transaction.user_id):
        raise NotFoundError("User pemilik transaksi tidak ditemukan")

    with atomic(db):
        _settle(
            db,
            transaction,
            status=TransactionStatus.completed,
            approved_by=operator.user_id,
            approved_at=utc_now(),
        )
        wallet = wallet_service.get_or_create_wallet(db, transaction.user_id, transaction.warnet_id)
        previous = wallet_service.to_decimal(wallet.balance)
        wallet_service.credit_wallet(db, wallet, wallet_service.to_decimal(transaction.amount))

    logger.info(
        "Topup approved: user %s wallet (warnet %s) balance updated from %s to %s",
        transaction.user_id,
        transaction.warnet_id,
        previous,
        wallet.balance,
    )
    return transaction, wallet


def reject_topup(
    db: Session,
    operator: RequestContext,
    transaction_id: int,
    rejection_note: str | None = None,
) -> models.BowarTransaction:
    transaction = _load_for_review(
        db,
        operator,
        transaction_id,
        "Hanya operator yang dapat menolak top up",
        "Anda tidak memiliki akses untuk menolak transaksi warnet ini",
    )
    values = {"status": TransactionStatus.failed}
    if rejection_note:
        values["rejection_note"] = rejection_note
    with atomic(db):
        _settle(db, transaction, **values)
    logger.info("Operator %s rejected transaction %s", operator.user_id, transaction.id)
    return transaction


__all__ = [
    "ALREADY_PROCESSED_MESSAGE",
    "parse_amount",
    "is_operator_topup_view",
    "list_transactions",
    "get_transaction",
    "create_topup",
    "pay_booking",
    "refund_booking",
    "approve_topup",
    "reject_topup",
]
