from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..config import get_settings
from ..db import models, schemas
from ..db.models.booking import utc_now
from .errors import NotFoundError


def _as_float(value) -> float | None:
    return float(value) if value is not None else None


def list_warnets(db: Session) -> list[models.Warnet]:
    return list(db.scalars(select(models.Warnet).order_by(models.Warnet.id)))


def get_warnet(db: Session, warnet_id: int) -> models.Warnet:
    warnet = db.execute(
        select(models.Warnet)
        .options(
            selectinload(models.Warnet.rules),
            selectinload(models.Warnet.pcs).selectinload(models.Pc.current_booking),
        )
        .where(models.Warnet.id == warnet_id)
    ).scalar_one_or_none()
    if not warnet:
        raise NotFoundError("Warnet tidak ditemukan")
    return warnet


def to_list_item(warnet: models.Warnet) -> schemas.WarnetListItem:
    return schemas.WarnetListItem(
        id=warnet.id,
        name=warnet.name,
        location=warnet.address,
        image=warnet.image,
        regular_price_per_hour=float(warnet.regular_price_per_hour),
        member_price_per_hour=float(warnet.member_price_per_hour),
        total_pcs=warnet.total_pcs,
        bank_account_number=warnet.bank_account_number,
        bank_account_name=warnet.bank_account_name,
    )


def pc_slots(warnet: models.Warnet, now: datetime | None = None) -> list[schemas.PcSlot]:
    """One entry per seat; seats without a stored PC row are reported available."""
    now = now or utc_now()
    tz = ZoneInfo(get_settings().timezone)
    records = {pc.pc_number: pc for pc in warnet.pcs}
    slots: list[schemas.PcSlot] = []
    for number in range(1, (warnet.total_pcs or 0) + 1):
        pc = records.get(number)
        if pc is None:
            slots.append(
                schemas.PcSlot(id=f"temp-{warnet.id}-{number}", number=number, status="available")
            )
            continue
        remaining = None
        if pc.status == models.PcStatus.occupied and pc.current_booking is not None:
            remaining = pc.current_booking.remaining_minutes(now, tz) or None
        slots.append(
            schemas.PcSlot(
                id=pc.id,
                number=number,
                status=pc.status.value,
                remaining_minutes=remaining,
            )
        )
    return slots


def to_detail(warnet: models.Warnet, now: datetime | None = None) -> schemas.WarnetDetail:
    item = to_list_item(warnet)
    return schemas.WarnetDetail(
        **item.model_dump(),
        description=warnet.description,
        phone=warnet.phone,
        email=warnet.email,
        operating_hours=warnet.operating_hours,
        latitude=_as_float(warnet.latitude),
        longitude=_as_float(warnet.longitude),
        rules=[rule.description for rule in warnet.rules],
        pcs=pc_slots(warnet, now),
    )


def to_rules(warnet: models.Warnet) -> schemas.WarnetRules:
    return schemas.WarnetRules(
        warnet_id=warnet.id,
        warnet_name=warnet.name,
        rules=[schemas.RuleItem(id=rule.id, text=rule.description) for rule in warnet.rules],
    )
