from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..models.user import User
from ..utils.jwt import create_access_token
from ..utils.security import hash_password, verify_password
from ..utils.validation import validate_email, validate_password, validate_role, validate_string_field
from ..utils.error_handlers import get_error_message, handle_database_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


class SignupRequest(BaseModel):
    # Loosely typed so the hand-written validators produce the documented messages.
    name: Any = None
    email: Any = None
    password: Any = None
    role: Any = None  # candidate / lecturer / admin
    avatar_url: str | None = None


class LoginRequest(BaseModel):
    email: Any = None
    password: Any = None


def user_to_public(user: User) -> dict:
    return {
        "id": int(user.id),
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "avatar_url": user.avatar_url,
        "is_blocked": bool(user.is_blocked),
        "joined_at": user.joined_at.isoformat() if user.joined_at else None,
    }


@router.post("/signup", status_code=201)
def signup(payload: SignupRequest, db: Session = Depends(get_db)):
    if not payload.name or not payload.email or not payload.password or not payload.role:
        raise HTTPException(status_code=400, detail="All fields are required.")

    name = validate_string_field(payload.name, "Name", min_length=2, max_length=100)
    email = validate_email(payload.email)
    validate_password(payload.password)
    role = validate_role(payload.role)

    try:
        existing = db.query(User).filter(User.email == email).first()
    except SQLAlchemyError as e:
        raise handle_database_error(e, "checking existing user")
    if existing:
        raise HTTPException(status_code=409, detail=get_error_message("email_exists"))

    try:
        hashed = hash_password(payload.password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    user = User(
        name=name,
        email=email,
        password=hashed,
        role=role,
        avatar_url=payload.avatar_url,
        is_blocked=False,
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "creating user")

    logger.info("Registered %s user %s", role, user.id)
    return {
        "success": True,
        "message": "User registered successfully!",
        "user": user_to_public(user),
    }


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required.")
    if not isinstance(payload.password, str):
        raise HTTPException(status_code=400, detail="Password is required")
    email = validate_email(payload.email)

    try:
        user = db.query(User).filter(User.email == email).first()
    except SQLAlchemyError as e:
        raise handle_database_error(e, "login")

    if not user:
        raise HTTPException(status_code=401, detail=get_error_message("invalid_credentials"))

    if user.is_blocked:
        logger.warning("Blocked user %s attempted to log in", user.id)
        raise HTTPException(status_code=403, detail=get_error_message("account_blocked"))

    if not verify_password(payload.password, user.password):
        raise HTTPException(status_code=401, detail=get_error_message("invalid_credentials"))

    token = create_access_token({"sub": str(user.id), "role": user.role})
    return {
        "success": True,
        "message": "Login successful",
        "access_token": token,
        "token_type": "bearer",
        "user": user_to_public(user),
    }


@router.post("/logout")
def logout():
    return {"success": True, "message": "Logged out successfully"}
