from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import PasswordHasher
from ...api.deps import get_admin_user, get_hasher
from ...services.user_service import UserService
from ...services.appointment_service import AppointmentService
from ...models.appointment import AppointmentStatus
from ...models.user import User
from ...schemas.auth import UserResponse, UserEnvelope
from ...schemas.user import (
    UserCreate, UserUpdate, UserList, UserListResponse,
    DashboardData, DashboardResponse, DashboardStatistics
)
from ...schemas.appointment import (
    AppointmentEnvelope, AppointmentListResponse, AppointmentResponse
)

# Every route below is admin-only
router = APIRouter(
    prefix="/admin",
    tags=["Administration"],
    dependencies=[Depends(get_admin_user)],
)


def get_user_service(
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_hasher),
) -> UserService:
    return UserService(db, hasher)


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(user_service: UserService = Depends(get_user_service)):
    """User counts, overall and per role."""
    return DashboardResponse(
        message="Dashboard data retrieved successfully",
        data=DashboardData(statistics=DashboardStatistics(**user_service.role_statistics())),
    )


@router.get("/users", response_model=UserListResponse)
def list_users(user_service: UserService = Depends(get_user_service)):
    users = user_service.list_users()
    return UserListResponse(
        data=UserList(users=[UserResponse.model_validate(user) for user in users])
    )


@router.post("/users", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    user_service: UserService = Depends(get_user_service),
):
    """Create a doctor or patient account."""
    user = user_service.create_user(user_data)
    return UserEnvelope(message="User created successfully", data=UserResponse.model_validate(user))


@router.patch("/users/{user_id}", response_model=UserEnvelope)
def update_user(
    user_id: str,
    user_data: UserUpdate,
    user_service: UserService = Depends(get_user_service),
):
    user = user_service.update_user(user_id, user_data)
    return UserEnvelope(message="User updated successfully", data=UserResponse.model_validate(user))


@router.delete("/users/{user_id}")
def delete_user(
    user_id: str,
    current_user: User = Depends(get_admin_user),
    user_service: UserService = Depends(get_user_service),
):
    user_service.delete_user(current_user, user_id)
    return {"success": True, "message": "User deleted successfully"}


@router.get("/appointments", response_model=AppointmentListResponse)
def list_appointments(db: Session = Depends(get_db)):
    appointments = AppointmentService(db).list_all()
    return AppointmentListResponse(
        message="Appointments retrieved successfully",
        data=[AppointmentResponse.model_validate(a) for a in appointments],
    )


@router.put("/appointments/{appointment_id}/confirm", response_model=AppointmentEnvelope)
def confirm_appointment(appointment_id: str, db: Session = Depends(get_db)):
    appointment = AppointmentService(db).set_status(appointment_id, AppointmentStatus.CONFIRMED)
    return AppointmentEnvelope(
        message="Appointment confirmed successfully",
        data=AppointmentResponse.model_validate(appointment),
    )


@router.put("/appointments/{appointment_id}/cancel", response_model=AppointmentEnvelope)
def cancel_appointment(appointment_id: str, db: Session = Depends(get_db)):
    appointment = AppointmentService(db).set_status(appointment_id, AppointmentStatus.CANCELLED)
    return AppointmentEnvelope(
        message="Appointment cancelled successfully",
        data=AppointmentResponse.model_validate(appointment),
    )
