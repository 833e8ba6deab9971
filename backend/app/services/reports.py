"""
Admin reports over selections and applications.

All reports are read-only and only consider users with the candidate role
where the underlying query could otherwise include staff accounts.
"""
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..config import OVERLOAD_THRESHOLD
from ..models.course import Course
from ..models.selected_candidate import SelectedCandidate
from ..models.tutor_application import TutorApplication
from ..models.user import User


def course_to_public(course: Course) -> dict:
    return {
        "id": int(course.id),
        "code": course.code,
        "name": course.name,
        "semester": course.semester,
    }


def _candidate_info(user: User) -> dict:
    return {"id": int(user.id), "name": user.name, "email": user.email}


def _group_candidates_by_course(db: Session, applications) -> list[dict]:
    courses = db.query(Course).order_by(Course.id.asc()).all()
    by_course: dict[int, list[dict]] = {}
    seen: set[tuple[int, int]] = set()
    for a in applications:
        if a.course is None or a.user is None:
            continue
        key = (int(a.course_id), int(a.user_id))
        if key in seen:
            continue
        seen.add(key)
        by_course.setdefault(int(a.course_id), []).append(_candidate_info(a.user))
    return [
        {"course": course_to_public(c), "candidates": by_course.get(int(c.id), [])}
        for c in courses
    ]


def selected_candidates_by_course(db: Session) -> list[dict]:
    """Every course with the distinct candidates any lecturer has selected for it."""
    selections = (
        db.query(SelectedCandidate)
        .options(
            joinedload(SelectedCandidate.application).joinedload(TutorApplication.user),
            joinedload(SelectedCandidate.application).joinedload(TutorApplication.course),
        )
        .order_by(SelectedCandidate.id.asc())
        .all()
    )
    return _group_candidates_by_course(db, [s.application for s in selections if s.application is not None])


def overloaded_candidates(db: Session, *, threshold: int | None = None) -> list[dict]:
    """Candidates whose selection count exceeds `threshold` (default OVERLOAD_THRESHOLD)."""
    limit = OVERLOAD_THRESHOLD if threshold is None else int(threshold)
    total = func.count(SelectedCandidate.id)
    rows = (
        db.query(User.id, User.name, User.email, total.label("total_courses"))
        .join(TutorApplication, TutorApplication.user_id == User.id)
        .join(SelectedCandidate, SelectedCandidate.application_id == TutorApplication.id)
        .group_by(User.id, User.name, User.email)
        .having(total > limit)
        .order_by(total.desc(), User.id.asc())
        .all()
    )
    return [
        {"id": int(r.id), "name": r.name, "email": r.email, "total_courses": int(r.total_courses)}
        for r in rows
    ]


def unselected_candidates_by_course(db: Session) -> list[dict]:
    applications = (
        db.query(TutorApplication)
        .options(joinedload(TutorApplication.user), joinedload(TutorApplication.course))
        .join(User, TutorApplication.user_id == User.id)
        .filter(TutorApplication.is_selected.is_(False), User.role == "candidate")
        .order_by(TutorApplication.id.asc())
        .all()
    )
    return [
        {"course": item["course"], "unselected_candidates": item["candidates"]}
        for item in _group_candidates_by_course(db, applications)
    ]


def unselected_candidates(db: Session) -> list[dict]:
    """Candidates with at least one unselected application, and the courses those are for."""
    applications = (
        db.query(TutorApplication)
        .options(joinedload(TutorApplication.user), joinedload(TutorApplication.course))
        .join(User, TutorApplication.user_id == User.id)
        .filter(TutorApplication.is_selected.is_(False), User.role == "candidate")
        .order_by(TutorApplication.id.asc())
        .all()
    )
    by_user: dict[int, dict] = {}
    for a in applications:
        entry = by_user.setdefault(int(a.user_id), {**_candidate_info(a.user), "unselected_courses": []})
        entry["unselected_courses"].append(
            {"code": a.course.code, "name": a.course.name, "semester": a.course.semester}
        )
    return list(by_user.values())
