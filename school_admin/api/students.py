"""Students API router — enrolment gated by permission and page."""

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from school_admin.api.deps import RequirePagePermission, RequirePermission, get_app_settings
from school_admin.core.config import Settings
from school_admin.db.session import get_db
from school_admin.models.student import Student
from school_admin.schemas.schemas import StudentCreate, StudentOut, GuardianOut
from school_admin.services.audit_service import audit_service
from school_admin.services.authorization import AuthenticatedPrincipal
from school_admin.services.student_service import student_service

router = APIRouter(prefix="/students", tags=["students"])

students_page = RequirePagePermission("students")


def _student_out(student: Student) -> StudentOut:
    return StudentOut(
        id=student.id,
        user_id=student.user_id,
        email=student.user.email,
        first_name=student.user.first_name,
        last_name=student.user.last_name,
        birth_date=student.birth_date,
        phone=student.phone,
        guardian=GuardianOut.model_validate(student.guardian) if student.guardian else None,
        created_at=student.created_at,
    )


@router.get("", response_model=List[StudentOut])
async def list_students(
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(RequirePermission("students:read")),
    _page: AuthenticatedPrincipal = Depends(students_page),
):
    return [_student_out(s) for s in student_service.list_students(db)]


@router.get("/{student_id}", response_model=StudentOut)
async def get_student(
    student_id: str,
    db: Session = Depends(get_db),
    principal: AuthenticatedPrincipal = Depends(RequirePermission("students:read")),
    _page: AuthenticatedPrincipal = Depends(students_page),
):
    return _student_out(student_service.get_student(db, student_id))


@router.post("", response_model=StudentOut, status_code=201)
async def create_student(
    body: StudentCreate,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    principal: AuthenticatedPrincipal = Depends(RequirePermission("students:write")),
    _page: AuthenticatedPrincipal = Depends(students_page),
):
    """Enrol a student. Students under 18 need a guardian."""
    student = student_service.create_student(
        db, settings,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        birth_date=body.birth_date,
        phone=body.phone,
        guardian=body.guardian.model_dump() if body.guardian else None,
    )
    audit_service.record(
        db, request, principal.user_id, principal.email,
        action="student.created", resource_id=student.id,
        new_value={"email": body.email, "guardian": bool(body.guardian)},
    )
    return _student_out(student)
