from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_doctor_user
from ...services.appointment_service import AppointmentService
from ...models.user import User
from ...schemas.appointment import (
    AppointmentEnvelope, AppointmentListResponse, AppointmentResponse
)

router = APIRouter(prefix="/doctors", tags=["Doctors"])


@router.get("/appointments", response_model=AppointmentListResponse)
def doctor_appointments(
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db),
):
    """Appointments booked with the current doctor."""
    appointments = AppointmentService(db).for_doctor(current_user)
    return AppointmentListResponse(
        message="Doctor appointments retrieved successfully",
        data=[AppointmentResponse.model_validate(a) for a in appointments],
    )


@router.put("/appointments/{appointment_id}/cancel", response_model=AppointmentEnvelope)
def cancel_appointment(
    appointment_id: str,
    current_user: User = Depends(get_doctor_user),
    db: Session = Depends(get_db),
):
    appointment = AppointmentService(db).cancel_as_doctor(current_user, appointment_id)
    return AppointmentEnvelope(
        message="Appointment cancelled successfully",
        data=AppointmentResponse.model_validate(appointment),
    )
