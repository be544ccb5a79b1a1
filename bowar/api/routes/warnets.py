from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ...db.session import get_db
from ...db import schemas
from ...services import warnet_service

router = APIRouter(prefix="/warnets", tags=["warnets"])


@router.get("", response_model=schemas.ApiResponse[list[schemas.WarnetListItem]])
def list_warnets(db: Session = Depends(get_db)):
    items = [warnet_service.to_list_item(warnet) for warnet in warnet_service.list_warnets(db)]
    return schemas.ApiResponse[list[schemas.WarnetListItem]](message="Daftar warnet", data=items)


@router.get("/{warnet_id}", response_model=schemas.ApiResponse[schemas.WarnetDetail])
def get_warnet(warnet_id: int, db: Session = Depends(get_db)):
    warnet = warnet_service.get_warnet(db, warnet_id)
    return schemas.ApiResponse[schemas.WarnetDetail](
        message="Detail warnet", data=warnet_service.to_detail(warnet)
    )


@router.get("/{warnet_id}/rules", response_model=schemas.ApiResponse[schemas.WarnetRules])
def get_rules(warnet_id: int, db: Session = Depends(get_db)):
    warnet = warnet_service.get_warnet(db, warnet_id)
    return schemas.ApiResponse[schemas.WarnetRules](
        message="Aturan warnet", data=warnet_service.to_rules(warnet)
    )
