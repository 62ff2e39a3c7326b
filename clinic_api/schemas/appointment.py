from pydantic import BaseModel, ConfigDict
from typing import List, Optional
import datetime as dt

from ..models.appointment import AppointmentStatus


class AppointmentCreate(BaseModel):
    doctorId: Optional[str] = None
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    reason: Optional[str] = None


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    doctor_id: str
    date: dt.date
    time: dt.time
    reason: str
    status: AppointmentStatus
    patient: Optional[UserSummary] = None
    doctor: Optional[UserSummary] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class AppointmentEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: AppointmentResponse


class AppointmentListResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: List[AppointmentResponse]
