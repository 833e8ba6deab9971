from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base

USER_ROLES = ("candidate", "lecturer", "admin")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # store hashed password
    role = Column(String(20), nullable=False)  # candidate / lecturer / admin
    avatar_url = Column(String(500), nullable=True)
    is_blocked = Column(Boolean, nullable=False, default=False)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    applications = relationship("TutorApplication", back_populates="user")
    course_assignments = relationship("CourseLecturer", back_populates="lecturer")
    selections = relationship("SelectedCandidate", back_populates="selected_by")
