"""Page service — page catalog and the page-access resolver."""

from typing import Iterable, List, NamedTuple, Optional, Set

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from school_admin.core.exceptions import (
    ResourceConflictError, ResourceNotFoundError, ValidationError,
)
from school_admin.core.roles import is_admin_role
from school_admin.models.page import Page, RolePagePermission
from school_admin.services.role_service import role_service


class PageAccessEntry(NamedTuple):
    page_id: str
    can_access: bool


class PageService:
    """Manages pages and resolves which pages a role or user may open."""

    # ---- Catalog ----

    @staticmethod
    def list_pages(db: Session, include_inactive: bool = True) -> List[Page]:
        query = db.query(Page)
        if not include_inactive:
            query = query.filter(Page.is_active.is_(True))
        return query.order_by(Page.display_name.asc()).all()

    @staticmethod
    def get_page(db: Session, page_id: str) -> Page:
        page = db.query(Page).filter(Page.id == page_id).first()
        if not page:
            raise ResourceNotFoundError(f"Page {page_id} not found")
        return page

    @staticmethod
    def get_page_by_name(db: Session, name: str) -> Optional[Page]:
        return db.query(Page).filter(Page.name == name).first()

    @staticmethod
    def _ensure_name_available(db: Session, name: str, exclude_id: Optional[str] = None) -> None:
        if not name.strip():
            raise ValidationError("Page name cannot be blank", field="name")
        query = db.query(Page).filter(func.lower(Page.name) == name.strip().lower())
        if exclude_id:
            query = query.filter(Page.id != exclude_id)
        if query.first():
            raise ResourceConflictError(f"Page with name '{name}' already exists")

    @staticmethod
    def create_page(
        db: Session,
        name: str,
        display_name: str,
        route: str,
        description: Optional[str] = None,
        is_active: bool = True,
    ) -> Page:
        PageService._ensure_name_available(db, name)
        page = Page(
            name=name.strip(),
            display_name=display_name,
            route=route,
            description=description,
            is_active=is_active,
        )
        db.add(page)
        db.commit()
        db.refresh(page)
        return page

    @staticmethod
    def update_page(
        db: Session,
        page_id: str,
        name: Optional[str] = None,
        display_name: Optional[str] = None,
        route: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Page:
        page = PageService.get_page(db, page_id)
        if name is not None and name.strip() != page.name:
            PageService._ensure_name_available(db, name, exclude_id=page.id)
            page.name = name.strip()
        if display_name is not None:
            page.display_name = display_name
        if route is not None:
            page.route = route
        if description is not None:
            page.description = description
        if is_active is not None:
            page.is_active = is_active
        db.commit()
        db.refresh(page)
        return page

    @staticmethod
    def delete_page(db: Session, page_id: str) -> None:
        page = PageService.get_page(db, page_id)
        db.delete(page)
        db.commit()

    @staticmethod
    def ensure_page(db: Session, name: str, display_name: str, route: str, description: Optional[str] = None) -> Page:
        """Return the named page, creating it on first bootstrap."""
        page = PageService.get_page_by_name(db, name)
        if page:
            return page
        return PageService.create_page(db, name, display_name, route, description)

    # ---- Access resolution ----

    @staticmethod
    def _role_pages_query(db: Session, role_id: str):
        return (
            db.query(Page)
            .join(RolePagePermission, RolePagePermission.page_id == Page.id)
            .filter(
                RolePagePermission.role_id == role_id,
                RolePagePermission.can_access.is_(True),
                Page.is_active.is_(True),
            )
        )

    @staticmethod
    def role_allowed_pages(db: Session, role_id: str) -> List[Page]:
        """Active pages the role may open. The admin role may open all of them.

        Raises:
            ResourceNotFoundError: If the role does not exist.
        """
        role = role_service.get_role(db, role_id)
        if is_admin_role(role.name):
            return PageService.list_pages(db, include_inactive=False)
        return PageService._role_pages_query(db, role.id).order_by(Page.display_name.asc()).all()

    @staticmethod
    def role_can_access_page(db: Session, role_id: str, page_name: str) -> bool:
        row = PageService._role_pages_query(db, role_id).filter(Page.name == page_name).first()
        return row is not None

    @staticmethod
    def allowed_pages(db: Session, user_id: str) -> Set[str]:
        """Names of the pages the user may open.

        Unknown users, roleless users and users with an inactive role get an
        empty set.
        """
        role = role_service.active_role_for_user(db, user_id)
        if role is None:
            return set()
        if is_admin_role(role.name):
            return {name for (name,) in db.query(Page.name).filter(Page.is_active.is_(True)).all()}
        return {page.name for page in PageService._role_pages_query(db, role.id).all()}

    @staticmethod
    def role_has_page(db: Session, role_id: Optional[str], role_name: Optional[str], page_name: str) -> bool:
        """Page access for an active role, or for no role when both are None.

        The admin role is answered without reading the store.
        """
        if is_admin_role(role_name):
            return True
        if role_id is None:
            return False
        return PageService.role_can_access_page(db, role_id, page_name)

    @staticmethod
    def has_page_permission(db: Session, user_id: str, page_name: str) -> bool:
        role = role_service.active_role_for_user(db, user_id)
        if role is None:
            return False
        return PageService.role_has_page(db, role.id, role.name, page_name)

    # ---- Role page grants ----

    @staticmethod
    def get_role_page_permissions(db: Session, role_id: str) -> List[RolePagePermission]:
        role = role_service.get_role(db, role_id)
        return (
            db.query(RolePagePermission)
            .filter(RolePagePermission.role_id == role.id)
            .all()
        )

    @staticmethod
    def set_role_page_permissions(
        db: Session, role_id: str, entries: Iterable[PageAccessEntry],
    ) -> List[RolePagePermission]:
        """Upsert page access for a role.

        Only the listed pages are touched; pages not in ``entries`` keep their
        current row.

        Raises:
            ResourceNotFoundError: If the role does not exist.
            ValidationError: If a page id is unknown or listed twice.
        """
        role = role_service.get_role(db, role_id)
        entries = list(entries)
        page_ids = [entry.page_id for entry in entries]

        duplicates = sorted({pid for pid in page_ids if page_ids.count(pid) > 1})
        if duplicates:
            raise ValidationError("Duplicate page IDs provided", duplicate_ids=duplicates)

        if page_ids:
            found = {pid for (pid,) in db.query(Page.id).filter(Page.id.in_(page_ids)).all()}
            invalid = [pid for pid in page_ids if pid not in found]
            if invalid:
                raise ValidationError("Invalid page IDs provided", invalid_ids=invalid)

        existing = {
            row.page_id: row
            for row in db.query(RolePagePermission).filter(
                RolePagePermission.role_id == role.id,
                RolePagePermission.page_id.in_(page_ids),
            ).all()
        } if page_ids else {}

        try:
            for entry in entries:
                row = existing.get(entry.page_id)
                if row:
                    row.can_access = entry.can_access
                else:
                    db.add(RolePagePermission(
                        role_id=role.id, page_id=entry.page_id, can_access=entry.can_access,
                    ))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        return PageService.get_role_page_permissions(db, role.id)


page_service = PageService()
