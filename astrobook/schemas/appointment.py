from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional
import datetime

class AppointmentCreate(BaseModel):
    """Raw booking request; every field is validated by AppointmentService."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    astrologer: Optional[str] = None
    consultation_type: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

class AppointmentStatusUpdate(BaseModel):
    status: str

class AppointmentResponse(BaseModel):
    id: int
    user_id: int
    name: str
    email: str
    phone: str
    date: datetime.date
    time: str
    astrologer: str
    consultation_type: str
    status: str
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

class AppointmentEnvelope(BaseModel):
    message: str
    appointment: AppointmentResponse

class MessageResponse(BaseModel):
    message: str
