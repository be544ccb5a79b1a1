from fastapi import APIRouter, Body, Depends, Query, Request, status
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from ...api import deps
from ...core.constants import DEFAULT_PAGE_SIZE
from ...core.context import RequestContext
from ...db.session import get_db
from ...db import models, schemas
from ...services import storage, transaction_service

router = APIRouter(prefix="/bowar-transactions", tags=["bowar-transactions"])


def transaction_out(
    request: Request, transaction: models.BowarTransaction, *, with_user: bool = False
) -> schemas.Transaction:
    data = schemas.Transaction(
        id=transaction.id,
        type=transaction.type,
        amount=float(transaction.amount),
        description=transaction.description,
        status=transaction.status,
        created_at=transaction.created_at,
        proof_image=storage.absolute_url(str(request.base_url), transaction.proof_image),
        sender_name=transaction.sender_name,
        booking_id=transaction.booking_id,
        warnet_id=transaction.warnet_id,
        warnet_name=transaction.warnet.name if transaction.warnet else None,
        rejection_note=transaction.rejection_note,
    )
    if with_user and transaction.user is not None:
        data = data.model_copy(
            update={
                "user_id": transaction.user.id,
                "username": transaction.user.username,
                "email": transaction.user.email,
                "user_role": transaction.user.role.value,
            }
        )
    return data


def _result(
    transaction: models.BowarTransaction, wallet: models.CafeWallet | None = None
) -> schemas.TransactionResult:
    return schemas.TransactionResult(
        id=transaction.id,
        type=transaction.type,
        amount=float(transaction.amount),
        status=transaction.status,
        description=transaction.description,
        new_balance=float(wallet.balance) if wallet is not None else None,
        warnet_id=transaction.warnet_id,
        created_at=transaction.created_at,
    )


@router.get("", response_model=schemas.ApiResponse[list[schemas.Transaction]])
def list_transactions(
    request: Request,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    status: str | None = None,
    type_: str | None = Query(None, alias="type"),
    db: Session = Depends(get_db),
    user: RequestContext = Depends(deps.get_request_context),
):
    result = transaction_service.list_transactions(
        db, user, page=page, limit=limit, status=status, type_=type_
    )
    with_user = transaction_service.is_operator_topup_view(user, type_)
    return schemas.ApiResponse[list[schemas.Transaction]](
        message="Riwayat transaksi berhasil diambil",
        data=[transaction_out(request, item, with_user=with_user) for item in result.items],
        meta=result.meta,
    )


@router.get("/{transaction_id}", response_model=schemas.ApiResponse[schemas.Transaction])
def get_transaction(
    transaction_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: RequestContext = Depends(deps.get_request_context),
):
    transaction = transaction_service.get_transaction(db, user, transaction_id)
    return schemas.ApiResponse[schemas.Transaction](
        message="Detail transaksi",
        data=transaction_out(request, transaction, with_user=user.is_operator),
    )


@router.post(
    "/topup",
    response_model=schemas.ApiResponse[schemas.Transaction],
    status_code=status.HTTP_201_CREATED,
)
async def create_topup(
    request: Request,
    db: Session = Depends(get_db),
    user: RequestContext = Depends(deps.get_request_context),
):
    form = await request.form()
    proof = form.get("proofImage")
    transaction = transaction_service.create_topup(
        db,
        user,
        amount=form.get("amount"),
        sender_name=form.get("senderName"),
        warnet_id=form.get("warnetId"),
        description=form.get("description") or None,
        proof_file=proof if isinstance(proof, UploadFile) else None,
        proof_text=proof if isinstance(proof, str) else None,
    )
    return schemas.ApiResponse[schemas.Transaction](
        message="Permintaan top up berhasil dikirim, menunggu persetujuan operator",
        data=transaction_out(request, transaction),
    )


@router.post("/payment", response_model=schemas.ApiResponse[schemas.TransactionResult])
def pay_booking(
    payload: schemas.WalletMovement = Body(...),
    db: Session = Depends(get_db),
    user: RequestContext = Depends(deps.get_request_context),
):
    transaction, wallet = transaction_service.pay_booking(
        db,
        user,
        booking_id=payload.booking_id,
        amount=payload.amount,
        description=payload.description,
    )
    return schemas.ApiResponse[schemas.TransactionResult](
        message="Pembayaran berhasil", data=_result(transaction, wallet)
    )


@router.post("/refund", response_model=schemas.ApiResponse[schemas.TransactionResult])
def refund_booking(
    payload: schemas.WalletMovement = Body(...),
    db: Session = Depends(get_db),
    user: RequestContext = Depends(deps.get_request_context),
):
    transaction, wallet = transaction_service.refund_booking(
        db,
        user,
        booking_id=payload.booking_id,
        amount=payload.amount,
        description=payload.description,
    )
    return schemas.ApiResponse[schemas.TransactionResult](
        message="Refund berhasil", data=_result(transaction, wallet)
    )


@router.patch("/{transaction_id}/approve", response_model=schemas.ApiResponse[schemas.TransactionResult])
def approve_topup(
    transaction_id: int,
    db: Session = Depends(get_db),
    operator: RequestContext = Depends(deps.get_request_context),
):
    transaction, wallet = transaction_service.approve_topup(db, operator, transaction_id)
    return schemas.ApiResponse[schemas.TransactionResult](
        message="Top up berhasil disetujui", data=_result(transaction, wallet)
    )


@router.patch("/{transaction_id}/reject", response_model=schemas.ApiResponse[schemas.TransactionResult])
def reject_topup(
    transaction_id: int,
    payload: schemas.TransactionReject | None = Body(None),
    db: Session = Depends(get_db),
    operator: RequestContext = Depends(deps.get_request_context),
):
    note = payload.rejection_note if payload else None
    transaction = transaction_service.reject_topup(db, operator, transaction_id, note)
    return schemas.ApiResponse[schemas.TransactionResult](
        message="Top up ditolak", data=_result(transaction)
    )
