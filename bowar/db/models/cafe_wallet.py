from datetime import datetime
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..session import Base


class CafeWallet(Base):
    __tablename__ = "cafe_wallets"
    __table_args__ = (
        UniqueConstraint("user_id", "warnet_id", name="uq_cafe_wallet_user_warnet"),
        CheckConstraint("balance >= 0", name="ck_cafe_wallet_balance_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    warnet_id: Mapped[int] = mapped_column(ForeignKey("warnets.id", ondelete="CASCADE"))
    balance: Mapped[float] = mapped_column(Numeric(15, 2), default=0, nullable=False)
    remaining_minutes: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user = relationship("User")
    warnet = relationship("Warnet")
