#!/usr/bin/env python3
"""
Seed script: default course catalogue, sample lecturers and their course assignments.

Safe to run repeatedly; existing rows are left as they are.

    python backend/seed.py
"""

import logging
import os
import sys
from pathlib import Path

# Add repo root to path so `backend.app` imports work from anywhere.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from backend.app.database import SessionLocal, init_db  # noqa: E402
from backend.app.models import Course, CourseLecturer, User  # noqa: E402
from backend.app.services.courses import COURSE_NAMES  # noqa: E402
from backend.app.utils.security import hash_password  # noqa: E402

logger = logging.getLogger("seed")

DEFAULT_SEMESTER = os.getenv("SEED_SEMESTER", "2024-1")
# Only used for newly created accounts; change it after first login.
SEED_PASSWORD = os.getenv("SEED_LECTURER_PASSWORD", "Password@1234")

LECTURERS = [
    {"name": "Dr. Sarah Johnson", "email": "sarah.johnson@university.edu"},
    {"name": "Prof. Michael Chen", "email": "michael.chen@university.edu"},
    {"name": "Dr. Emily Rodriguez", "email": "emily.rodriguez@university.edu"},
]

COURSE_ASSIGNMENTS = {
    "sarah.johnson@university.edu": ["COSC1111", "COSC2222"],
    "michael.chen@university.edu": ["COSC3333", "COSC4444"],
    "emily.rodriguez@university.edu": ["COSC5555", "COSC6666"],
}


def seed(db) -> dict:
    counts = {"courses": 0, "lecturers": 0, "assignments": 0}

    for code, name in COURSE_NAMES.items():
        if db.query(Course).filter(Course.code == code).first():
            continue
        db.add(Course(code=code, name=name, semester=DEFAULT_SEMESTER))
        counts["courses"] += 1
    db.flush()

    for data in LECTURERS:
        if db.query(User).filter(User.email == data["email"]).first():
            continue
        db.add(User(
            name=data["name"],
            email=data["email"],
            password=hash_password(SEED_PASSWORD),
            role="lecturer",
        ))
        counts["lecturers"] += 1
    db.flush()

    for email, codes in COURSE_ASSIGNMENTS.items():
        lecturer = db.query(User).filter(User.email == email).first()
        if lecturer is None or lecturer.role != "lecturer":
            logger.warning("Skipping assignments for %s: not a lecturer", email)
            continue
        for code in codes:
            course = db.query(Course).filter(Course.code == code).first()
            if course is None:
                logger.warning("Course not found: %s", code)
                continue
            exists = (
                db.query(CourseLecturer)
                .filter(CourseLecturer.course_id == course.id, CourseLecturer.lecturer_id == lecturer.id)
                .first()
            )
            if exists:
                continue
            db.add(CourseLecturer(course_id=course.id, lecturer_id=lecturer.id))
            counts["assignments"] += 1

    db.commit()
    return counts


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    print("Initializing database with all models...")
    init_db()

    db = SessionLocal()
    try:
        counts = seed(db)
    except Exception as e:
        db.rollback()
        print(f"✗ Seeding failed: {e}")
        return 1
    finally:
        db.close()

    print(f"✓ Courses created: {counts['courses']}")
    print(f"✓ Lecturers created: {counts['lecturers']}")
    print(f"✓ Course assignments created: {counts['assignments']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
