"""Run every bootstrap seed in dependency order."""

from sqlalchemy.orm import Session

from school_admin.core.config import Settings
from school_admin.db.seeds.seed_admin import seed_admin
from school_admin.db.seeds.seed_pages import seed_pages
from school_admin.db.seeds.seed_permissions import seed_permissions
from school_admin.db.seeds.seed_roles import seed_roles


def seed_all(db: Session, settings: Settings) -> None:
    seed_roles(db)
    seed_permissions(db)
    seed_pages(db)
    seed_admin(db, settings)
