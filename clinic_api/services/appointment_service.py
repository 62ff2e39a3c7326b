from sqlalchemy.orm import Session, joinedload
from typing import List
import logging

from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.security import UserRole
from ..models.appointment import Appointment, AppointmentStatus
from ..models.user import User
from ..schemas.appointment import AppointmentCreate

logger = logging.getLogger(__name__)


class AppointmentService:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Appointment).options(
            joinedload(Appointment.patient), joinedload(Appointment.doctor)
        )

    def get_appointment(self, appointment_id: str) -> Appointment:
        appointment = self._query().filter(Appointment.id == appointment_id).first()
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def book(self, patient: User, data: AppointmentCreate) -> Appointment:
        if not data.doctorId or not data.date or not data.time or not data.reason:
            raise ValidationError("Doctor, date, time, and reason are required.")

        doctor = self.db.query(User).filter(
            User.id == data.doctorId, User.role == UserRole.DOCTOR
        ).first()
        if not doctor:
            raise NotFoundError("Doctor not found")

        appointment = Appointment(
            patient_id=patient.id,
            doctor_id=doctor.id,
            date=data.date,
            time=data.time,
            reason=data.reason,
            status=AppointmentStatus.PENDING,
        )
        self.db.add(appointment)
        self.db.commit()
        logger.info(f"Appointment {appointment.id} booked by {patient.id} with {doctor.id}")
        return self.get_appointment(appointment.id)

    def for_patient(self, patient: User) -> List[Appointment]:
        return (
            self._query()
            .filter(Appointment.patient_id == patient.id)
            .order_by(Appointment.date, Appointment.time)
            .all()
        )

    def for_doctor(self, doctor: User) -> List[Appointment]:
        return (
            self._query()
            .filter(Appointment.doctor_id == doctor.id)
            .order_by(Appointment.date, Appointment.time)
            .all()
        )

    def list_all(self) -> List[Appointment]:
        return self._query().order_by(Appointment.date, Appointment.time).all()

    def set_status(self, appointment_id: str, new_status: AppointmentStatus) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        appointment.status = new_status
        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"Appointment {appointment.id} marked {new_status.value}")
        return appointment

    def cancel_as_doctor(self, doctor: User, appointment_id: str) -> Appointment:
        """Doctors may cancel only appointments booked with them."""
        appointment = self.get_appointment(appointment_id)
        if appointment.doctor_id != doctor.id:
            raise AuthorizationError("You are not authorized to cancel this appointment")
        return self.set_status(appointment_id, AppointmentStatus.CANCELLED)
