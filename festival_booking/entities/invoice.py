from sqlalchemy import BigInteger, Column, DateTime, Enum, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship
from festival_booking.utils.database import Base
from festival_booking.entities import TimestampMixin
from festival_booking.workflow import InvoiceStatus


class Invoice(Base, TimestampMixin):
    __tablename__ = "invoices"

    id = Column(String(50), primary_key=True)
    reservation_id = Column(
        String(50),
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    number = Column(String(50), nullable=False, unique=True)
    amount_due = Column(Numeric(10, 2), nullable=False)
    status = Column(
        Enum(
            InvoiceStatus,
            name="invoice_status",
            values_callable=lambda statuses: [s.value for s in statuses],
            create_constraint=True,
            validate_strings=True,
        ),
        nullable=False,
        default=InvoiceStatus.ISSUED,
    )
    issued_at = Column(DateTime(timezone=True), nullable=False)
    paid_at = Column(DateTime(timezone=True))

    # Relationships
    reservation = relationship("Reservation", back_populates="invoice")

    def __repr__(self):
        return f"<Invoice(id='{self.id}', number='{self.number}', status='{self.status}')>"


class InvoiceSequence(Base):
    """Named counter backing invoice numbers; incremented under a row lock."""
    __tablename__ = "invoice_sequences"

    name = Column(String(50), primary_key=True)
    current_value = Column(BigInteger, nullable=False, default=0)
