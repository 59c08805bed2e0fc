from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from datetime import date, datetime
from typing import List, Optional
import logging
import re

from ..models.appointment import Appointment, DEFAULT_STATUS
from ..core.exceptions import (
    APIError, MissingFieldError, InvalidEmailError, InvalidPhoneError,
    InvalidDateError, PastDateError, NotFoundError, InternalError
)
from ..schemas.appointment import AppointmentCreate

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_PATTERN = re.compile(r"[0-9]{10}")

REQUIRED_FIELDS = (
    "name", "email", "phone", "date", "time", "astrologer", "consultation_type"
)

def parse_appointment_date(value: str) -> date:
    """Parse an ISO date or datetime string to its calendar date."""
    try:
        return datetime.fromisoformat(value.strip()).date()
    except ValueError:
        raise InvalidDateError()

def validate_appointment(data: AppointmentCreate, today: Optional[date] = None) -> date:
    """Run the booking checks in order and return the parsed date.

    The first failing check raises; nothing is written before all pass.
    """
    if any(not getattr(data, field) for field in REQUIRED_FIELDS):
        raise MissingFieldError()
    
    if not EMAIL_PATTERN.fullmatch(data.email):
        raise InvalidEmailError()
    
    if not PHONE_PATTERN.fullmatch(data.phone):
        raise InvalidPhoneError()
    
    appointment_date = parse_appointment_date(data.date)
    if appointment_date < (today or date.today()):
        raise PastDateError()
    
    return appointment_date

class AppointmentService:
    def __init__(self, db: Session):
        self.db = db
    
    def create_appointment(self, owner_id: int, data: AppointmentCreate) -> Appointment:
        """Validate and store a new pending appointment for owner_id."""
        try:
            appointment_date = validate_appointment(data)
        except APIError as e:
            logger.info(f"Appointment rejected for user {owner_id}: {e.code}")
            raise
        
        appointment = Appointment(
            user_id=owner_id,
            name=data.name,
            email=data.email,
            phone=data.phone,
            date=appointment_date,
            time=data.time,
            astrologer=data.astrologer,
            consultation_type=data.consultation_type,
            status=DEFAULT_STATUS,
        )
        
        try:
            self.db.add(appointment)
            self.db.commit()
            self.db.refresh(appointment)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError("Error booking appointment", error=str(e))
        
        logger.info(
            f"Appointment created: id={appointment.id} "
            f"name={appointment.name} date={appointment.date}"
        )
        return appointment
    
    def list_for_owner(self, owner_id: int) -> List[Appointment]:
        """Return owner_id's appointments, newest first."""
        try:
            appointments = self.db.query(Appointment).filter(
                Appointment.user_id == owner_id
            ).order_by(
                Appointment.created_at.desc(),
                Appointment.id.desc()
            ).all()
        except SQLAlchemyError as e:
            raise InternalError("Error fetching appointments", error=str(e))
        
        logger.info(f"Fetched {len(appointments)} appointments for user {owner_id}")
        return appointments
    
    def update_status(self, owner_id: int, appointment_id: int, new_status: str) -> Appointment:
        """Overwrite the status of an owned appointment.

        Ownership is part of the UPDATE predicate, so another user's
        appointment is reported exactly like a missing one. Any status
        string is accepted.
        """
        try:
            updated = self._owned(owner_id, appointment_id).update(
                {
                    Appointment.status: new_status,
                    Appointment.updated_at: datetime.utcnow(),
                },
                synchronize_session=False,
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError("Error updating appointment", error=str(e))
        
        if not updated:
            logger.info(f"Update missed: appointment {appointment_id} for user {owner_id}")
            raise NotFoundError("Appointment not found")
        
        try:
            appointment = self._owned(owner_id, appointment_id).first()
        except SQLAlchemyError as e:
            raise InternalError("Error updating appointment", error=str(e))
        
        # Cancelled between the update and the read
        if appointment is None:
            raise NotFoundError("Appointment not found")
        
        return appointment
    
    def cancel(self, owner_id: int, appointment_id: int) -> None:
        """Delete an owned appointment."""
        try:
            deleted = self._owned(owner_id, appointment_id).delete(
                synchronize_session=False
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError("Error cancelling appointment", error=str(e))
        
        if not deleted:
            logger.info(f"Cancel missed: appointment {appointment_id} for user {owner_id}")
            raise NotFoundError("Appointment not found")
        
        logger.info(f"Appointment {appointment_id} cancelled by user {owner_id}")
    
    def _owned(self, owner_id: int, appointment_id: int):
        return self.db.query(Appointment).filter(
            Appointment.id == appointment_id,
            Appointment.user_id == owner_id
        )
