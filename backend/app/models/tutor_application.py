from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base

SESSION_TYPES = ("tutorial", "lab")
AVAILABILITY_OPTIONS = ("Full Time", "Part Time")


class TutorApplication(Base):
    __tablename__ = "tutor_applications"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", "session_type", name="uq_tutor_applications_user_course_session"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    session_type = Column(String(20), nullable=False)  # tutorial | lab
    availability = Column(String(20), nullable=True)  # Full Time | Part Time
    role_applied = Column(String(50), nullable=False)
    previous_roles = Column(Text, nullable=True)
    skills = Column(Text, nullable=True)  # comma-joined list
    credentials = Column(Text, nullable=True)

    # Lecturer-facing review state (see services/selection_engine.py)
    is_selected = Column(Boolean, nullable=False, default=False)
    rank = Column(Integer, nullable=True)  # 1-100
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="applications")
    course = relationship("Course", back_populates="applications")
    # Withdrawing an application removes the selections pointing at it.
    selections = relationship("SelectedCandidate", back_populates="application", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<TutorApplication(id={self.id}, user={self.user_id}, course={self.course_id}, session={self.session_type})>"
