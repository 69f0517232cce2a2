from sqlalchemy import Column, String, Date
from sqlalchemy.orm import relationship
from festival_booking.utils.database import Base
from festival_booking.entities import TimestampMixin


class Festival(Base, TimestampMixin):
    __tablename__ = "festivals"

    id = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=False, unique=True)
    location = Column(String(255))
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    # Relationships
    zones = relationship("Zone", back_populates="festival", order_by="Zone.name")
    reservations = relationship("Reservation", back_populates="festival")

    def __repr__(self):
        return f"<Festival(id='{self.id}', name='{self.name}')>"


class Editor(Base, TimestampMixin):
    """Game editor booking tables; the catalog around it lives elsewhere."""
    __tablename__ = "editors"

    id = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=False, unique=True)

    # Relationships
    reservations = relationship("Reservation", back_populates="editor")

    def __repr__(self):
        return f"<Editor(id='{self.id}', name='{self.name}')>"
