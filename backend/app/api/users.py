from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..models.user import User
from ..utils.dependencies import current_user_id, get_current_user
from ..utils.error_handlers import ForbiddenError, NotFoundError, get_error_message, handle_database_error
from ..utils.security import hash_password, verify_password
from ..utils.validation import validate_password, validate_string_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


class AvatarUpdate(BaseModel):
    avatar_url: Any = None


class PasswordReset(BaseModel):
    current_password: Any = None
    new_password: Any = None


def _get_user_by_email(db: Session, email: str) -> User:
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise NotFoundError(get_error_message("user_not_found"))
    return user


def _ensure_self_or_admin(user: User, principal: dict) -> None:
    if principal.get("role") != "admin" and int(user.id) != current_user_id(principal):
        raise ForbiddenError(get_error_message("forbidden"))


@router.put("/{email}")
def update_avatar(
    email: str,
    body: AvatarUpdate,
    db: Session = Depends(get_db),
    principal=Depends(get_current_user),
):
    user = _get_user_by_email(db, email)
    _ensure_self_or_admin(user, principal)

    avatar_url = validate_string_field(body.avatar_url, "avatar_url", max_length=500, required=False)
    user.avatar_url = avatar_url
    try:
        db.add(user)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "updating avatar")
    return {"success": True, "message": "Avatar updated", "avatar_url": avatar_url}


@router.post("/{email}/password")
def reset_password(
    email: str,
    body: PasswordReset,
    db: Session = Depends(get_db),
    principal=Depends(get_current_user),
):
    """Change a password. Users must confirm their current password; admins may reset any account."""
    user = _get_user_by_email(db, email)
    _ensure_self_or_admin(user, principal)

    if principal.get("role") != "admin" or int(user.id) == current_user_id(principal):
        if not isinstance(body.current_password, str) or not verify_password(body.current_password, user.password):
            raise HTTPException(status_code=401, detail=get_error_message("invalid_credentials"))

    validate_password(body.new_password)
    try:
        user.password = hash_password(body.new_password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        db.add(user)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "resetting password")
    logger.info("Password reset for user %s by user %s", user.id, principal.get("sub"))
    return {"success": True, "message": "Password updated"}
