"""Wallet ledger and PC occupancy helpers.

None of these functions commit. They are meant to run inside a transaction
opened by the calling service (see ``db.session.atomic``) so that wallet
balance, transaction log and PC rows change together.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..db import models


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def get_wallet(db: Session, user_id: int, warnet_id: int) -> models.CafeWallet | None:
    return db.execute(
        select(models.CafeWallet).where(
            models.CafeWallet.user_id == user_id,
            models.CafeWallet.warnet_id == warnet_id,
        )
    ).scalar_one_or_none()


def get_or_create_wallet(db: Session, user_id: int, warnet_id: int) -> models.CafeWallet:
    wallet = get_wallet(db, user_id, warnet_id)
    if wallet:
        return wallet
    wallet = models.CafeWallet(
        user_id=user_id,
        warnet_id=warnet_id,
        balance=Decimal("0"),
        remaining_minutes=0,
        is_active=False,
    )
    db.add(wallet)
    db.flush()
    return wallet


def debit_wallet(db: Session, wallet: models.CafeWallet, amount: Decimal) -> bool:
    """Subtract ``amount`` only if the stored balance still covers it."""
    result = db.execute(
        update(models.CafeWallet)
        .where(
            models.CafeWallet.id == wallet.id,
            models.CafeWallet.balance >= amount,
        )
        .values(balance=models.CafeWallet.balance - amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return False
    db.refresh(wallet)
    return True


def credit_wallet(db: Session, wallet: models.CafeWallet, amount: Decimal) -> models.CafeWallet:
    db.execute(
        update(models.CafeWallet)
        .where(models.CafeWallet.id == wallet.id)
        .values(balance=models.CafeWallet.balance + amount)
        .execution_options(synchronize_session=False)
    )
    db.refresh(wallet)
    return wallet


def record_transaction(
    db: Session,
    *,
    user_id: int,
    type_: models.TransactionType,
    amount: Decimal,
    description: str,
    warnet_id: int | None,
    booking_id: int | None = None,
    status: models.TransactionStatus = models.TransactionStatus.completed,
) -> models.BowarTransaction:
    transaction = models.BowarTransaction(
        user_id=user_id,
        type=type_,
        amount=amount,
        description=description,
        warnet_id=warnet_id,
        booking_id=booking_id,
        status=status,
    )
    db.add(transaction)
    db.flush()
    return transaction


def get_pc(db: Session, warnet_id: int, pc_number: int) -> models.Pc | None:
    return db.execute(
        select(models.Pc).where(
            models.Pc.warnet_id == warnet_id,
            models.Pc.pc_number == pc_number,
        )
    ).scalar_one_or_none()


def occupy_pc(db: Session, booking: models.Booking) -> models.Pc:
    pc = get_pc(db, booking.warnet_id, booking.pc_number)
    if not pc:
        pc = models.Pc(warnet_id=booking.warnet_id, pc_number=booking.pc_number)
        db.add(pc)
    pc.status = models.PcStatus.occupied
    pc.current_booking_id = booking.id
    db.flush()
    return pc


def release_pc(db: Session, booking: models.Booking) -> models.Pc | None:
    pc = get_pc(db, booking.warnet_id, booking.pc_number)
    if not pc or pc.current_booking_id != booking.id:
        return None
    pc.status = models.PcStatus.available
    pc.current_booking_id = None
    db.flush()
    return pc


__all__ = [
    "to_decimal",
    "get_wallet",
    "get_or_create_wallet",
    "debit_wallet",
    "credit_wallet",
    "record_transaction",
    "get_pc",
    "occupy_pc",
    "release_pc",
]
