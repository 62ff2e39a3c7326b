from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_member_user
from ...services.appointment_service import AppointmentService
from ...models.user import User
from ...schemas.appointment import (
    AppointmentCreate, AppointmentEnvelope, AppointmentListResponse, AppointmentResponse
)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.post("", response_model=AppointmentEnvelope, status_code=status.HTTP_201_CREATED)
def book_appointment(
    appointment_data: AppointmentCreate,
    current_user: User = Depends(get_member_user),
    db: Session = Depends(get_db),
):
    """Book an appointment with a doctor; it starts out pending."""
    appointment = AppointmentService(db).book(current_user, appointment_data)
    return AppointmentEnvelope(
        message="Appointment booked successfully (pending confirmation).",
        data=AppointmentResponse.model_validate(appointment),
    )


@router.get("/me", response_model=AppointmentListResponse)
def my_appointments(
    current_user: User = Depends(get_member_user),
    db: Session = Depends(get_db),
):
    appointments = AppointmentService(db).for_patient(current_user)
    return AppointmentListResponse(
        data=[AppointmentResponse.model_validate(a) for a in appointments]
    )
