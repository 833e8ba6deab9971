import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..models.tutor_application import TutorApplication
from ..models.user import User
from ..utils.error_handlers import ConflictError, ForbiddenError, NotFoundError, get_error_message
from .courses import assigned_course_ids, find_or_create_course

logger = logging.getLogger(__name__)


def session_type_for_role(role: str | None) -> str:
    return "lab" if role == "lab" else "tutorial"


def duplicate_application_message(role: str | None) -> str:
    return f"You have already applied for {role} role in this course."


def submit_application(
    db: Session,
    *,
    email: str,
    course_code: str,
    course_name: str | None,
    role: str | None,
    availability: str,
    previous_roles: str,
    credentials: str,
    skills: list[str] | str | None = None,
) -> TutorApplication:
    """
    Create a tutor application for the candidate identified by `email`.

    One commit covers the course upsert and the application insert; any failure rolls both back.
    """
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise NotFoundError(get_error_message("user_not_found"))

    session_type = session_type_for_role(role)
    try:
        course = find_or_create_course(db, code=course_code, name=course_name)

        existing = (
            db.query(TutorApplication)
            .filter(
                TutorApplication.user_id == int(user.id),
                TutorApplication.course_id == int(course.id),
                TutorApplication.session_type == session_type,
            )
            .first()
        )
        if existing is not None:
            raise ConflictError(duplicate_application_message(role))

        application = TutorApplication(
            user_id=int(user.id),
            course_id=int(course.id),
            session_type=session_type,
            availability=availability,
            role_applied=role or session_type,
            previous_roles=previous_roles,
            skills=", ".join(skills) if isinstance(skills, list) else skills,
            credentials=credentials,
            is_selected=False,
            rank=None,
        )
        db.add(application)
        db.commit()
    except ConflictError:
        db.rollback()
        raise
    except IntegrityError:
        # Lost a race against an identical submission; the unique constraint caught it.
        db.rollback()
        raise ConflictError(duplicate_application_message(role))
    except Exception:
        db.rollback()
        raise

    db.refresh(application)
    logger.info(
        "Application %s submitted by user %s for %s (%s)",
        application.id,
        user.id,
        course_code,
        session_type,
    )
    return application


def withdraw_application(db: Session, *, application_id: int, principal: dict) -> None:
    """Delete an application (and, by cascade, its selections).

    Candidates may only withdraw their own applications.
    """
    application = db.query(TutorApplication).filter(TutorApplication.id == int(application_id)).first()
    if application is None:
        raise NotFoundError(get_error_message("application_not_found"))

    if principal.get("role") == "candidate" and int(application.user_id) != int(principal.get("sub")):
        raise ForbiddenError(get_error_message("own_applications_only"))

    try:
        db.delete(application)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Application %s withdrawn by user %s", application_id, principal.get("sub"))


def _with_relations(query):
    return query.options(joinedload(TutorApplication.user), joinedload(TutorApplication.course))


def list_applications(db: Session) -> list[TutorApplication]:
    return _with_relations(db.query(TutorApplication)).order_by(TutorApplication.id.asc()).all()


def list_user_applications(db: Session, *, user_id: int) -> list[TutorApplication]:
    return (
        _with_relations(db.query(TutorApplication))
        .filter(TutorApplication.user_id == int(user_id))
        .order_by(TutorApplication.id.asc())
        .all()
    )


def list_lecturer_applications(
    db: Session,
    *,
    lecturer_id: int,
    name: str | None = None,
    session_type: str | None = None,
    availability: str | None = None,
    skills: str | None = None,
) -> list[TutorApplication]:
    """Applications in the lecturer's assigned courses, newest first, with optional filters."""
    course_ids = assigned_course_ids(db, lecturer_id=lecturer_id)
    if not course_ids:
        return []

    q = _with_relations(db.query(TutorApplication)).filter(TutorApplication.course_id.in_(course_ids))
    if name:
        q = q.join(User, TutorApplication.user_id == User.id).filter(
            User.name.ilike(f"%{name.strip()}%")
        )
    if session_type:
        q = q.filter(TutorApplication.session_type == session_type)
    if availability:
        q = q.filter(TutorApplication.availability == availability)
    if skills:
        q = q.filter(TutorApplication.skills.ilike(f"%{skills.strip()}%"))

    return q.order_by(TutorApplication.created_at.desc(), TutorApplication.id.desc()).all()
