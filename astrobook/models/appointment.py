from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date
from sqlalchemy.orm import relationship
from datetime import datetime

from ..core.database import Base

# Initial status of every booking; later values are whatever the owner sets
DEFAULT_STATUS = "pending"

class Appointment(Base):
    __tablename__ = "appointments"
    
    id = Column(Integer, primary_key=True, index=True)
    
    # Owner
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    
    # Free-form text is unbounded; only phone has a fixed shape
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String(10), nullable=False)
    
    # Consultation details
    date = Column(Date, nullable=False)
    time = Column(String, nullable=False)
    astrologer = Column(String, nullable=False)
    consultation_type = Column(String, nullable=False)
    status = Column(String, nullable=False, default=DEFAULT_STATUS)
    
    # Tracking; microsecond resolution keeps newest-first ordering stable
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    
    # Relationships
    user = relationship("User", back_populates="appointments")
    
    def __repr__(self):
        return f"<Appointment(id={self.id}, user_id={self.user_id}, date='{self.date}', status='{self.status}')>"
