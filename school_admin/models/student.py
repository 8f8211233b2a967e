"""Student and Guardian models."""

from sqlalchemy import Column, String, Date, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from school_admin.db.base import Base, new_id


class Guardian(Base):
    """Legal guardian responsible for a minor student."""
    __tablename__ = "guardians"

    id = Column(String(36), primary_key=True, default=new_id)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    relationship_type = Column(String(50), nullable=True)  # mother, father, tutor...
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    students = relationship("Student", back_populates="guardian")


class Student(Base):
    """Enrolled student; the login lives on the linked User."""
    __tablename__ = "students"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    guardian_id = Column(String(36), ForeignKey("guardians.id", ondelete="SET NULL"), nullable=True)
    birth_date = Column(Date, nullable=True)
    phone = Column(String(30), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    user = relationship("User", lazy="joined")
    guardian = relationship("Guardian", back_populates="students", lazy="joined")
