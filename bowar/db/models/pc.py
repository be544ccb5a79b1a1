from enum import Enum as PyEnum
from sqlalchemy import Enum, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..session import Base


class PcStatus(str, PyEnum):
    available = "available"
    occupied = "occupied"
    maintenance = "maintenance"


class Pc(Base):
    __tablename__ = "pcs"
    __table_args__ = (
        UniqueConstraint("warnet_id", "pc_number", name="uq_pc_warnet_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    warnet_id: Mapped[int] = mapped_column(ForeignKey("warnets.id", ondelete="CASCADE"))
    pc_number: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[PcStatus] = mapped_column(Enum(PcStatus), default=PcStatus.available)
    current_booking_id: Mapped[int | None] = mapped_column(
        ForeignKey("bookings.id", ondelete="SET NULL")
    )

    warnet = relationship("Warnet", back_populates="pcs")
    current_booking = relationship("Booking")
