"""Auth service — login, self-registration and user management."""

from typing import Optional, Dict, Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from school_admin.core.config import Settings
from school_admin.core.exceptions import (
    AuthenticationError, ResourceConflictError, ResourceNotFoundError, ValidationError,
)
from school_admin.core.roles import STUDENT_ROLE
from school_admin.core.security import hash_password, verify_password, create_access_token
from school_admin.models.role import Role
from school_admin.models.user import User


class AuthService:
    """Handles authentication and user management."""

    @staticmethod
    def issue_token(user: User, settings: Settings) -> str:
        # Role claims are informational; the gate re-reads the role per request.
        token_data = {
            "sub": user.id,
            "email": user.email,
            "role": user.role_name,
        }
        return create_access_token(token_data, settings)

    @staticmethod
    def authenticate(db: Session, settings: Settings, email: str, password: str) -> Dict[str, Any]:
        """Authenticate user and return a bearer token.

        Raises:
            AuthenticationError: If credentials are invalid or the account is deactivated.
        """
        user = db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()
        if not user or not verify_password(password, user.hashed_password):
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        return {
            "access_token": AuthService.issue_token(user, settings),
            "token_type": "bearer",
            "user": user,
        }

    @staticmethod
    def register_student(
        db: Session,
        settings: Settings,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> Dict[str, Any]:
        """Self-registration. New accounts always get the student role."""
        role = db.query(Role).filter(Role.name == STUDENT_ROLE).first()
        if not role:
            raise ValidationError("The student role has not been provisioned")
        user = AuthService.create_user(
            db, email, password, first_name, last_name, role_id=role.id,
        )
        return {
            "access_token": AuthService.issue_token(user, settings),
            "token_type": "bearer",
            "user": user,
        }

    @staticmethod
    def _ensure_email_available(db: Session, email: str, exclude_id: Optional[str] = None) -> None:
        query = db.query(User).filter(func.lower(User.email) == email.strip().lower())
        if exclude_id:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise ResourceConflictError(f"User with email {email} already exists")

    @staticmethod
    def _ensure_role_exists(db: Session, role_id: str) -> None:
        if not db.query(Role).filter(Role.id == role_id).first():
            raise ValidationError(f"Role {role_id} does not exist", field="roleId")

    @staticmethod
    def create_user(
        db: Session,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role_id: Optional[str] = None,
        is_active: bool = True,
        commit: bool = True,
    ) -> User:
        """Create a new user.

        With ``commit=False`` the user is only flushed so callers can add
        related rows in the same transaction.
        """
        AuthService._ensure_email_available(db, email)
        if role_id:
            AuthService._ensure_role_exists(db, role_id)

        user = User(
            email=email.strip().lower(),
            hashed_password=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role_id=role_id,
            is_active=is_active,
        )
        db.add(user)
        if commit:
            db.commit()
            db.refresh(user)
        else:
            db.flush()
        return user

    @staticmethod
    def get_user(db: Session, user_id: str) -> User:
        """Get a user by id."""
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ResourceNotFoundError(f"User {user_id} not found")
        return user

    @staticmethod
    def list_users(db: Session, page: int = 1, page_size: int = 20, role_id: Optional[str] = None):
        """List users with pagination."""
        query = db.query(User)
        if role_id:
            query = query.filter(User.role_id == role_id)
        total = query.count()
        users = (
            query.order_by(User.created_at.desc(), User.email.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {"users": users, "total": total, "page": page}

    @staticmethod
    def update_user(db: Session, user_id: str, changes: Dict[str, Any]) -> User:
        """Apply a partial update.

        ``changes`` only holds the fields the caller sent, so an explicit
        ``role_id=None`` removes the user's role.
        """
        user = AuthService.get_user(db, user_id)

        if "email" in changes and changes["email"]:
            AuthService._ensure_email_available(db, changes["email"], exclude_id=user.id)
            user.email = changes["email"].strip().lower()
        if "role_id" in changes:
            if changes["role_id"]:
                AuthService._ensure_role_exists(db, changes["role_id"])
            user.role_id = changes["role_id"]
        if changes.get("password"):
            user.hashed_password = hash_password(changes["password"])
        for field in ("first_name", "last_name", "is_active"):
            if changes.get(field) is not None:
                setattr(user, field, changes[field])

        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def delete_user(db: Session, user_id: str) -> None:
        user = AuthService.get_user(db, user_id)
        db.delete(user)
        db.commit()


auth_service = AuthService()
