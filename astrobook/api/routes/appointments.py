from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...core.security import CurrentUser
from ...api.deps import get_current_user
from ...services.appointment_service import AppointmentService
from ...schemas.appointment import (
    AppointmentCreate, AppointmentStatusUpdate, AppointmentResponse,
    AppointmentEnvelope, MessageResponse
)

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.post("", response_model=AppointmentEnvelope, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    appointment_data: AppointmentCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Book a new consultation for the current user."""
    service = AppointmentService(db)
    appointment = service.create_appointment(current_user.user_id, appointment_data)
    
    return AppointmentEnvelope(
        message="Appointment booked successfully Thank you!",
        appointment=AppointmentResponse.model_validate(appointment)
    )

@router.get("/my-appointments", response_model=List[AppointmentResponse])
async def my_appointments(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the current user's appointments, newest first."""
    service = AppointmentService(db)
    appointments = service.list_for_owner(current_user.user_id)
    return [AppointmentResponse.model_validate(a) for a in appointments]

@router.patch("/{appointment_id}", response_model=AppointmentEnvelope)
async def update_appointment_status(
    appointment_id: int,
    update: AppointmentStatusUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Set the status of one of the current user's appointments."""
    service = AppointmentService(db)
    appointment = service.update_status(
        current_user.user_id, appointment_id, update.status
    )
    
    return AppointmentEnvelope(
        message="Appointment updated successfully",
        appointment=AppointmentResponse.model_validate(appointment)
    )

@router.delete("/{appointment_id}", response_model=MessageResponse)
async def cancel_appointment(
    appointment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cancel (delete) one of the current user's appointments."""
    service = AppointmentService(db)
    service.cancel(current_user.user_id, appointment_id)
    
    return MessageResponse(message="Appointment cancelled successfully")
