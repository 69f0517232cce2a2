from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, Numeric, String,
)
from sqlalchemy.orm import relationship
from festival_booking.utils.database import Base
from festival_booking.entities import TimestampMixin
from festival_booking.workflow import INITIAL_STATUS, WorkflowStatus


class Reservation(Base, TimestampMixin):
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("final_price >= 0", name="ck_reservations_final_price"),
        CheckConstraint("final_price <= total_price", name="ck_reservations_final_le_total"),
    )

    id = Column(String(50), primary_key=True)
    editor_id = Column(String(50), ForeignKey("editors.id"), nullable=False, index=True)
    festival_id = Column(String(50), ForeignKey("festivals.id"), nullable=False, index=True)
    tables_offered = Column(Integer, nullable=False, default=0)
    monetary_discount = Column(Numeric(10, 2), nullable=False, default=0)
    editor_presents_games = Column(Boolean, nullable=False, default=False)
    total_price = Column(Numeric(10, 2), nullable=False, default=0)
    final_price = Column(Numeric(10, 2), nullable=False, default=0)
    workflow_status = Column(
        Enum(
            WorkflowStatus,
            name="workflow_status",
            values_callable=lambda statuses: [s.value for s in statuses],
            create_constraint=True,
            validate_strings=True,
        ),
        nullable=False,
        default=INITIAL_STATUS,
    )
    paid_at = Column(DateTime(timezone=True))

    # Relationships
    editor = relationship("Editor", back_populates="reservations")
    festival = relationship("Festival", back_populates="reservations")
    lines = relationship(
        "ReservationLine",
        back_populates="reservation",
        cascade="all, delete-orphan",
        order_by="ReservationLine.zone_id",
    )
    invoice = relationship(
        "Invoice",
        back_populates="reservation",
        cascade="all, delete-orphan",
        uselist=False,
    )

    @property
    def table_count(self) -> int:
        return sum(line.table_count for line in self.lines)

    @property
    def editor_name(self) -> str | None:
        return self.editor.name if self.editor is not None else None

    def __repr__(self):
        return f"<Reservation(id='{self.id}', status='{self.workflow_status}')>"


class ReservationLine(Base):
    __tablename__ = "reservation_lines"
    __table_args__ = (
        CheckConstraint("table_count > 0", name="ck_reservation_lines_table_count"),
        CheckConstraint("area >= 0", name="ck_reservation_lines_area"),
    )

    reservation_id = Column(
        String(50), ForeignKey("reservations.id", ondelete="CASCADE"), primary_key=True
    )
    zone_id = Column(String(50), ForeignKey("zones.id"), primary_key=True)
    table_count = Column(Integer, nullable=False)
    area = Column(Numeric(10, 2), nullable=False, default=0)

    # Relationships
    reservation = relationship("Reservation", back_populates="lines")
    zone = relationship("Zone", back_populates="lines")

    def __repr__(self):
        return f"<ReservationLine(reservation_id='{self.reservation_id}', zone_id='{self.zone_id}', tables={self.table_count})>"
