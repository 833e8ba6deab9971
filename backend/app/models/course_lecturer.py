from sqlalchemy import Column, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from ..database import Base


class CourseLecturer(Base):
    """Assignment edge between a lecturer and a course.

    A lecturer only sees (and ranks) applications for courses assigned here.
    """
    __tablename__ = "course_lecturers"
    __table_args__ = (
        UniqueConstraint("course_id", "lecturer_id", name="uq_course_lecturers_course_lecturer"),
    )

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    lecturer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    course = relationship("Course", back_populates="lecturer_assignments")
    lecturer = relationship("User", back_populates="course_assignments")
