import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import get_settings
from ..core import security
from ..db import models
from ..db.session import SessionLocal

logger = logging.getLogger(__name__)

DEMO_RULES = (
    "Dilarang merokok di dalam ruangan",
    "Jaga kebersihan area PC",
    "Booking hangus jika terlambat lebih dari 15 menit",
)


def ensure_operator_exists(
    session: Session,
    username: str,
    email: str,
    password: str,
    warnet_id: int | None = None,
) -> models.User:
    operator = session.scalars(
        select(models.User).where(models.User.username == username)
    ).first()
    if operator:
        updated = False
        if not security.verify_password(password, operator.password_hash):
            operator.password_hash = security.get_password_hash(password)
            updated = True
        if operator.role != models.UserRole.operator:
            operator.role = models.UserRole.operator
            updated = True
        if warnet_id is not None and operator.warnet_id != warnet_id:
            operator.warnet_id = warnet_id
            updated = True
        if updated:
            session.commit()
            logger.info("Updated default operator '%s'", username)
        else:
            logger.info("Operator '%s' already exists", username)
        return operator

    operator = models.User(
        username=username,
        email=email.lower(),
        password_hash=security.get_password_hash(password),
        role=models.UserRole.operator,
        warnet_id=warnet_id,
    )
    session.add(operator)
    session.commit()
    logger.info("Created default operator '%s'", username)
    return operator


def seed(session: Session) -> None:
    settings = get_settings()
    warnet = session.scalars(select(models.Warnet).order_by(models.Warnet.id)).first()
    if warnet is None:
        warnet = models.Warnet(
            name="Bowar Gaming Center",
            address="Jl. Merdeka No. 1, Bandung",
            description="Warnet 24 jam dengan PC gaming",
            regular_price_per_hour=10000,
            member_price_per_hour=8000,
            total_pcs=20,
            operating_hours="24 Jam",
            bank_account_number="1234567890",
            bank_account_name="Bowar Gaming Center",
        )
        session.add(warnet)
        session.flush()
        session.add_all(models.Rule(warnet_id=warnet.id, description=text) for text in DEMO_RULES)
        session.commit()
    ensure_operator_exists(
        session,
        settings.default_operator_username,
        settings.default_operator_email,
        settings.default_operator_password,
        warnet_id=warnet.id,
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    with SessionLocal() as session:
        seed(session)
        print("Seed data created")
