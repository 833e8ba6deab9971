from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from ..database import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), unique=True, index=True, nullable=False)  # e.g. COSC1111
    name = Column(String(255), nullable=False)
    semester = Column(String(10), nullable=False)  # YYYY-S, e.g. 2024-1

    applications = relationship("TutorApplication", back_populates="course", cascade="all, delete-orphan")
    lecturer_assignments = relationship("CourseLecturer", back_populates="course", cascade="all, delete-orphan")
