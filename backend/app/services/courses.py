import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ..models.course import Course
from ..models.course_lecturer import CourseLecturer

logger = logging.getLogger(__name__)

# Default catalogue; used when a submission references a known code without a name.
COURSE_NAMES = {
    "COSC1111": "Python Development",
    "COSC2222": "Web Programming",
    "COSC3333": "Data Structures and Algorithms",
    "COSC4444": "Blockchain Development",
    "COSC5555": "Mobile Programming and development",
    "COSC6666": "Database and Backend development",
}


def current_semester(now: datetime | None = None) -> str:
    """Semester 1 is January-June, semester 2 is July-December."""
    now = now or datetime.now()
    return f"{now.year}-{1 if now.month <= 6 else 2}"


def find_or_create_course(db: Session, *, code: str, name: str | None = None) -> Course:
    """
    Resolve a course by code, creating it on first reference.

    A non-empty `name` that differs from the stored one overwrites it (last submission wins).
    Changes are flushed, not committed; the caller owns the transaction.
    """
    name = (name or "").strip() or None
    course = db.query(Course).filter(Course.code == code).first()
    if course is None:
        course = Course(
            code=code,
            name=name or COURSE_NAMES.get(code, code),
            semester=current_semester(),
        )
        db.add(course)
        db.flush()
        logger.info("Created course %s (%s)", course.code, course.semester)
        return course

    if name and course.name != name:
        logger.info("Renaming course %s: %r -> %r", course.code, course.name, name)
        course.name = name
        db.add(course)
        db.flush()
    return course


def assigned_course_ids(db: Session, *, lecturer_id: int) -> list[int]:
    """Course ids currently assigned to a lecturer. Always read fresh, never cached."""
    rows = (
        db.query(CourseLecturer.course_id)
        .filter(CourseLecturer.lecturer_id == int(lecturer_id))
        .all()
    )
    return [int(r[0]) for r in rows]
