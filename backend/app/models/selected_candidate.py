from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class SelectedCandidate(Base):
    """One row per (application, lecturer) selection."""
    __tablename__ = "selected_candidates"
    __table_args__ = (
        UniqueConstraint("application_id", "selected_by_id", name="uq_selected_candidates_application_lecturer"),
    )

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(
        Integer, ForeignKey("tutor_applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    selected_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    selected_at = Column(DateTime(timezone=True), server_default=func.now())

    application = relationship("TutorApplication", back_populates="selections")
    selected_by = relationship("User", back_populates="selections")
