"""Student service — enrolment with guardian handling for minors."""

from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from school_admin.core.config import Settings
from school_admin.core.exceptions import ResourceNotFoundError, ValidationError
from school_admin.core.roles import STUDENT_ROLE
from school_admin.models.role import Role
from school_admin.models.student import Guardian, Student
from school_admin.services.auth_service import auth_service

ADULT_AGE = 18


def age_on(birth_date: date, today: Optional[date] = None) -> int:
    today = today or date.today()
    years = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        years -= 1
    return years


def is_minor(birth_date: Optional[date], today: Optional[date] = None) -> bool:
    if birth_date is None:
        return False
    return age_on(birth_date, today) < ADULT_AGE


class StudentService:
    """Creates and lists students."""

    @staticmethod
    def create_student(
        db: Session,
        settings: Settings,
        email: str,
        first_name: str,
        last_name: str,
        password: Optional[str] = None,
        birth_date: Optional[date] = None,
        phone: Optional[str] = None,
        guardian: Optional[Dict[str, Any]] = None,
    ) -> Student:
        """Enrol a student: a login with the student role plus the student record.

        Minors must come with a guardian, which is created in the same
        transaction.

        Raises:
            ValidationError: Missing guardian for a minor, or the student
                role is not provisioned.
            ResourceConflictError: If the email is already registered.
        """
        if is_minor(birth_date) and not guardian:
            raise ValidationError("A guardian is required for students under 18", field="guardian")

        role = db.query(Role).filter(Role.name == STUDENT_ROLE).first()
        if not role:
            raise ValidationError("The student role has not been provisioned")

        try:
            user = auth_service.create_user(
                db,
                email=email,
                password=password or settings.DEFAULT_STUDENT_PASSWORD,
                first_name=first_name,
                last_name=last_name,
                role_id=role.id,
                commit=False,
            )
            guardian_row = None
            if guardian:
                guardian_row = Guardian(**guardian)
                db.add(guardian_row)
                db.flush()

            student = Student(
                user_id=user.id,
                guardian_id=guardian_row.id if guardian_row else None,
                birth_date=birth_date,
                phone=phone,
            )
            db.add(student)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        db.refresh(student)
        return student

    @staticmethod
    def list_students(db: Session) -> List[Student]:
        return db.query(Student).order_by(Student.created_at.desc()).all()

    @staticmethod
    def get_student(db: Session, student_id: str) -> Student:
        student = db.query(Student).filter(Student.id == student_id).first()
        if not student:
            raise ResourceNotFoundError(f"Student {student_id} not found")
        return student


student_service = StudentService()
