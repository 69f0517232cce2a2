from sqlalchemy import CheckConstraint, Column, String, Integer, ForeignKey, Numeric
from sqlalchemy.orm import relationship
from festival_booking.utils.database import Base
from festival_booking.entities import TimestampMixin

class Zone(Base, TimestampMixin):
    __tablename__ = "zones"
    __table_args__ = (
        CheckConstraint("total_tables >= 0", name="ck_zones_total_tables"),
        CheckConstraint(
            "available_tables >= 0 AND available_tables <= total_tables",
            name="ck_zones_available_tables",
        ),
    )

    id = Column(String(50), primary_key=True)
    festival_id = Column(String(50), ForeignKey("festivals.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    total_tables = Column(Integer, nullable=False)
    available_tables = Column(Integer, nullable=False)
    price_per_table = Column(Numeric(10, 2), nullable=False)
    price_per_area = Column(Numeric(10, 2), nullable=False)

    # Relationships
    festival = relationship("Festival", back_populates="zones")
    lines = relationship("ReservationLine", back_populates="zone")

    @property
    def reserved_tables(self) -> int:
        return self.total_tables - self.available_tables

    def __repr__(self):
        return f"<Zone(id='{self.id}', name='{self.name}', available={self.available_tables}/{self.total_tables})>"
