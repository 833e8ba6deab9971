from datetime import datetime
from typing import Any
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.tutor_application import TutorApplication
from ..services.applications import (
    list_applications,
    list_lecturer_applications,
    list_user_applications,
    submit_application,
    withdraw_application,
)
from ..services.reports import course_to_public
from ..services.selection_engine import UNSET, update_application_review
from ..services.stats import lecturer_application_stats
from ..utils.dependencies import current_user_id, get_current_user
from ..utils.error_handlers import ForbiddenError, get_error_message
from ..utils.roles import candidate_only, lecturer_only
from ..utils.validation import (
    validate_availability,
    validate_comment,
    validate_email,
    validate_id_param,
    validate_is_selected,
    validate_rank,
    validate_session_type,
    validate_skills,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Applications"])


class ApplicationCreate(BaseModel):
    # Field names follow the React client (camelCase where it sends camelCase).
    name: Any = None
    email: Any = None
    course: Any = None
    course_name: Any = Field(default=None, alias="courseName")
    role: Any = None  # tutorial | lab
    previous_roles: Any = Field(default=None, alias="previousRoles")
    availability: Any = None
    skills: Any = None
    credentials: Any = None

    model_config = {"populate_by_name": True}


class ApplicationReviewUpdate(BaseModel):
    is_selected: Any = None
    rank: Any = None
    comment: Any = None
    lecturer_id: Any = Field(default=None, alias="lecturerId")

    model_config = {"populate_by_name": True}


def _application_to_public(a: TutorApplication) -> dict:
    user = a.user
    return {
        "id": int(a.id),
        "user": {
            "id": int(user.id),
            "name": user.name,
            "email": user.email,
            "avatar_url": user.avatar_url,
        } if user else None,
        "course": course_to_public(a.course) if a.course else None,
        "session_type": a.session_type,
        "availability": a.availability,
        "role_applied": a.role_applied,
        "previous_roles": a.previous_roles,
        "skills": a.skills,
        "credentials": a.credentials,
        "is_selected": bool(a.is_selected),
        "rank": a.rank,
        "comment": a.comment,
        "created_at": a.created_at.isoformat() if isinstance(a.created_at, datetime) else a.created_at,
    }


def _non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _validate_submission(body: ApplicationCreate) -> dict:
    if not _non_empty_string(body.name):
        raise HTTPException(status_code=400, detail="Name is required and must be a non-empty string")
    email = validate_email(body.email)
    if not _non_empty_string(body.course):
        raise HTTPException(status_code=400, detail="Course is required")
    availability = validate_availability(body.availability)
    if not _non_empty_string(body.credentials):
        raise HTTPException(status_code=400, detail="Academic credentials are required")
    if not _non_empty_string(body.previous_roles):
        raise HTTPException(status_code=400, detail="Previous roles information is required")
    skills = validate_skills(body.skills)
    if body.role is not None and not isinstance(body.role, str):
        raise HTTPException(status_code=400, detail="Role must be a string")
    if body.course_name is not None and not isinstance(body.course_name, str):
        raise HTTPException(status_code=400, detail="Course name must be a string")

    return {
        "email": email,
        "course_code": body.course.strip(),
        "course_name": body.course_name,
        "role": body.role.strip() if body.role else "tutorial",
        "availability": availability,
        "previous_roles": body.previous_roles.strip(),
        "credentials": body.credentials.strip(),
        "skills": skills,
    }


@router.post("/applications", status_code=201)
def create_application(
    body: ApplicationCreate,
    db: Session = Depends(get_db),
    user=Depends(candidate_only),
):
    fields = _validate_submission(body)
    application = submit_application(db, **fields)
    return {
        "success": True,
        "message": "Application submitted successfully",
        "application": _application_to_public(application),
    }


@router.get("/applications")
def get_applications(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    if user.get("role") == "candidate":
        raise ForbiddenError(get_error_message("forbidden"))
    return [_application_to_public(a) for a in list_applications(db)]


@router.get("/applications/user/{user_id}")
def get_user_applications(
    user_id: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    uid = validate_id_param(user_id, "user ID")
    if user.get("role") == "candidate" and uid != current_user_id(user):
        raise ForbiddenError("Access denied. You can only access your own resources.")
    return [_application_to_public(a) for a in list_user_applications(db, user_id=uid)]


@router.get("/applications/lecturer/{lecturer_id}")
def get_lecturer_applications(
    lecturer_id: str,
    name: str | None = Query(default=None),
    session_type: str | None = Query(default=None, alias="sessionType"),
    availability: str | None = Query(default=None),
    skills: str | None = Query(default=None),
    db: Session = Depends(get_db),
    user=Depends(lecturer_only),
):
    lid = validate_id_param(lecturer_id, "lecturer ID")
    if lid != current_user_id(user):
        raise ForbiddenError("Access denied. You can only access your own resources.")
    if session_type:
        validate_session_type(session_type)
    if availability:
        validate_availability(availability)

    applications = list_lecturer_applications(
        db,
        lecturer_id=lid,
        name=name,
        session_type=session_type,
        availability=availability,
        skills=skills,
    )
    return [_application_to_public(a) for a in applications]


@router.patch("/applications/{application_id}")
def update_application(
    application_id: str,
    body: ApplicationReviewUpdate,
    db: Session = Depends(get_db),
    user=Depends(lecturer_only),
):
    app_id = validate_id_param(application_id, "application ID")
    lecturer_id = current_user_id(user)
    provided = body.model_fields_set

    # The acting lecturer is the token's subject; a body lecturerId may only restate it.
    if "lecturer_id" in provided and body.lecturer_id is not None:
        if validate_id_param(body.lecturer_id, "lecturer ID") != lecturer_id:
            raise ForbiddenError("Access denied. You can only act as yourself.")

    changes: dict[str, Any] = {"is_selected": UNSET, "rank": UNSET, "comment": UNSET}
    if "is_selected" in provided:
        changes["is_selected"] = validate_is_selected(body.is_selected)
    if "rank" in provided:
        changes["rank"] = validate_rank(body.rank)
    if "comment" in provided:
        changes["comment"] = validate_comment(body.comment)

    application = update_application_review(db, application_id=app_id, lecturer_id=lecturer_id, **changes)
    return {
        "success": True,
        "message": "Application updated",
        "application": _application_to_public(application),
    }


@router.delete("/applications/{application_id}")
def delete_application(
    application_id: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    app_id = validate_id_param(application_id, "application ID")
    withdraw_application(db, application_id=app_id, principal=user)
    return {
        "success": True,
        "message": "Application withdrawn successfully",
        "deleted_application_id": app_id,
    }


@router.get("/stats")
def get_application_stats(
    lecturer_id: str | None = Query(default=None, alias="lecturerId"),
    db: Session = Depends(get_db),
    user=Depends(lecturer_only),
):
    if not lecturer_id:
        raise HTTPException(status_code=400, detail=get_error_message("missing_lecturer_id"))
    lid = validate_id_param(lecturer_id, "lecturer ID")
    if lid != current_user_id(user):
        raise ForbiddenError("Access denied. You can only access your own resources.")
    return lecturer_application_stats(db, lecturer_id=lid)
