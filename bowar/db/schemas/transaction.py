from datetime import datetime
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from ..models.bowar_transaction import TransactionStatus, TransactionType


class _CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class Transaction(_CamelModel):
    id: int
    type: TransactionType
    amount: float
    description: str | None = None
    status: TransactionStatus
    created_at: datetime
    proof_image: str | None = None
    sender_name: str | None = None
    booking_id: int | None = None
    warnet_id: int | None = None
    warnet_name: str | None = None
    rejection_note: str | None = None
    # filled in for operators reviewing top-ups
    user_id: int | None = None
    username: str | None = None
    email: str | None = None
    user_role: str | None = None


class TransactionResult(_CamelModel):
    id: int
    type: TransactionType
    amount: float
    status: TransactionStatus
    description: str | None = None
    new_balance: float | None = None
    warnet_id: int | None = None
    created_at: datetime | None = None


class WalletMovement(_CamelModel):
    booking_id: int | None = None
    amount: float | None = None
    description: str | None = None


class TransactionReject(BaseModel):
    rejection_note: str | None = None
