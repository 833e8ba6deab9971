"""
Admin panel endpoints: courses, lecturer assignments, candidate access and reports.
"""
from typing import Any
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.course import Course
from ..models.course_lecturer import CourseLecturer
from ..models.user import User
from ..services import reports
from ..services.reports import course_to_public
from ..utils.error_handlers import NotFoundError, ValidationError, get_error_message, handle_database_error
from ..utils.roles import admin_only
from ..utils.validation import (
    validate_course_code,
    validate_integer_field,
    validate_semester,
    validate_string_field,
)
from .auth import user_to_public

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(admin_only)])


class CourseCreate(BaseModel):
    name: Any = None
    code: Any = None
    semester: Any = None


class CourseUpdate(BaseModel):
    name: Any = None
    code: Any = None
    semester: Any = None


class LecturerAssignment(BaseModel):
    lecturer_id: Any = None
    course_id: Any = None


def _get_course(db: Session, course_id: int) -> Course:
    course = db.query(Course).filter(Course.id == int(course_id)).first()
    if not course:
        raise NotFoundError(get_error_message("course_not_found"))
    return course


def _ensure_code_free(db: Session, code: str, *, course_id: int | None = None) -> None:
    q = db.query(Course).filter(Course.code == code)
    if course_id is not None:
        q = q.filter(Course.id != int(course_id))
    if q.first():
        raise ValidationError(f"Course code {code} already exists", details={"code": code})


# -------------------- Courses --------------------

@router.get("/courses")
def get_all_courses(db: Session = Depends(get_db)):
    return [course_to_public(c) for c in db.query(Course).order_by(Course.code.asc()).all()]


@router.post("/courses", status_code=201)
def add_course(body: CourseCreate, db: Session = Depends(get_db)):
    name = validate_string_field(body.name, "Name", max_length=255)
    semester = validate_semester(body.semester)
    code = validate_course_code(body.code)
    _ensure_code_free(db, code)

    course = Course(name=name, code=code, semester=semester)
    try:
        db.add(course)
        db.commit()
        db.refresh(course)
    except IntegrityError as e:
        db.rollback()
        raise handle_database_error(e, "adding course")
    logger.info("Admin added course %s", code)
    return course_to_public(course)


@router.patch("/courses/{course_id}")
def edit_course(course_id: int, body: CourseUpdate, db: Session = Depends(get_db)):
    """Partial edit; empty values leave the stored field unchanged."""
    course = _get_course(db, course_id)

    if body.name:
        course.name = validate_string_field(body.name, "Name", max_length=255)
    if body.code:
        code = validate_course_code(body.code)
        _ensure_code_free(db, code, course_id=course.id)
        course.code = code
    if body.semester:
        course.semester = validate_semester(body.semester)

    try:
        db.add(course)
        db.commit()
        db.refresh(course)
    except IntegrityError as e:
        db.rollback()
        raise handle_database_error(e, "editing course")
    return course_to_public(course)


@router.delete("/courses/{course_id}")
def delete_course(course_id: int, db: Session = Depends(get_db)):
    course = _get_course(db, course_id)
    try:
        db.delete(course)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Admin deleted course %s", course_id)
    return {"success": True, "deleted_course_id": int(course_id)}


# -------------------- Lecturers --------------------

@router.get("/lecturers")
def get_all_lecturers(db: Session = Depends(get_db)):
    lecturers = db.query(User).filter(User.role == "lecturer").order_by(User.id.asc()).all()
    return [user_to_public(u) for u in lecturers]


@router.post("/lecturers/assign")
def assign_lecturer_to_course(body: LecturerAssignment, db: Session = Depends(get_db)):
    lecturer_id = validate_integer_field(body.lecturer_id, "lecturer_id", min_value=1)
    course_id = validate_integer_field(body.course_id, "course_id", min_value=1)

    lecturer = db.query(User).filter(User.id == lecturer_id).first()
    if not lecturer or lecturer.role != "lecturer":
        raise ValidationError(get_error_message("not_a_lecturer"), details={"lecturer_id": lecturer_id})
    course = _get_course(db, course_id)

    existing = (
        db.query(CourseLecturer)
        .filter(CourseLecturer.course_id == course.id, CourseLecturer.lecturer_id == lecturer.id)
        .first()
    )
    if existing:
        return {"success": True, "assignment_id": int(existing.id), "created": False}

    assignment = CourseLecturer(course_id=course.id, lecturer_id=lecturer.id)
    try:
        db.add(assignment)
        db.commit()
        db.refresh(assignment)
    except IntegrityError as e:
        db.rollback()
        raise handle_database_error(e, "assigning lecturer")
    logger.info("Admin assigned lecturer %s to course %s", lecturer.id, course.code)
    return {"success": True, "assignment_id": int(assignment.id), "created": True}


# -------------------- Candidates --------------------

@router.get("/candidates")
def get_all_candidates(db: Session = Depends(get_db)):
    candidates = db.query(User).filter(User.role == "candidate").order_by(User.id.asc()).all()
    return [user_to_public(u) for u in candidates]


@router.post("/candidates/{user_id}/toggle-block")
def toggle_block_candidate(user_id: int, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user or user.role != "candidate":
        raise NotFoundError(get_error_message("candidate_not_found"))

    user.is_blocked = not bool(user.is_blocked)
    db.add(user)
    db.commit()
    logger.info("Candidate %s is_blocked=%s", user.id, user.is_blocked)
    return {"success": True, "user_id": int(user.id), "is_blocked": bool(user.is_blocked)}


# -------------------- Reports --------------------

@router.get("/reports/selected-by-course")
def selected_candidates_by_course(db: Session = Depends(get_db)):
    return reports.selected_candidates_by_course(db)


@router.get("/reports/overloaded")
def overloaded_candidates(
    threshold: int | None = Query(default=None, ge=0),
    db: Session = Depends(get_db),
):
    return reports.overloaded_candidates(db, threshold=threshold)


@router.get("/reports/unselected-by-course")
def unselected_candidates_by_course(db: Session = Depends(get_db)):
    return reports.unselected_candidates_by_course(db)


@router.get("/reports/unselected")
def unselected_candidates(db: Session = Depends(get_db)):
    return reports.unselected_candidates(db)
