from datetime import datetime
from sqlalchemy import DateTime, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..session import Base


class Warnet(Base):
    __tablename__ = "warnets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    address: Mapped[str | None] = mapped_column(String(255))
    image: Mapped[str | None] = mapped_column(String(512))
    description: Mapped[str | None] = mapped_column(Text)
    regular_price_per_hour: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False)
    member_price_per_hour: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False)
    total_pcs: Mapped[int] = mapped_column(Integer, default=0)
    phone: Mapped[str | None] = mapped_column(String(32))
    email: Mapped[str | None] = mapped_column(String(255))
    operating_hours: Mapped[str | None] = mapped_column(String(64))
    latitude: Mapped[float | None] = mapped_column(Numeric(10, 7))
    longitude: Mapped[float | None] = mapped_column(Numeric(10, 7))
    bank_account_number: Mapped[str | None] = mapped_column(String(64))
    bank_account_name: Mapped[str | None] = mapped_column(String(128))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    pcs = relationship("Pc", back_populates="warnet", order_by="Pc.pc_number")
    rules = relationship("Rule", back_populates="warnet", order_by="Rule.id")
