from sqlalchemy.orm import Session

from ..models.tutor_application import TutorApplication
from ..models.user import User
from .courses import assigned_course_ids


def lecturer_application_stats(db: Session, *, lecturer_id: int) -> list[dict]:
    """
    Per-candidate selection counts across the lecturer's assigned courses.

    Read-only. Output order follows first appearance in the query result.
    """
    course_ids = assigned_course_ids(db, lecturer_id=lecturer_id)
    if not course_ids:
        return []

    rows = (
        db.query(User.id, User.name, User.email, TutorApplication.is_selected)
        .join(TutorApplication, TutorApplication.user_id == User.id)
        .filter(TutorApplication.course_id.in_(course_ids))
        .all()
    )

    by_user: dict[int, dict] = {}
    for user_id, name, email, is_selected in rows:
        entry = by_user.setdefault(
            int(user_id),
            {
                "user_id": int(user_id),
                "name": name,
                "email": email,
                "times_selected": 0,
                "total_applications": 0,
                "unselected_applications": 0,
            },
        )
        entry["total_applications"] += 1
        if is_selected:
            entry["times_selected"] += 1

    for entry in by_user.values():
        entry["unselected_applications"] = entry["total_applications"] - entry["times_selected"]
    return list(by_user.values())
