"""
Selection engine: lecturer-facing review updates on a tutor application.

A review update is a partial `{is_selected?, rank?, comment?}` applied by one
lecturer. The three parts are processed in a fixed order:

1. selection toggle -> maintains the `selected_candidates` rows for
   (application, lecturer) and re-derives `is_selected`; committed on its own
2. rank           -> must be unique among selected applications in the
   lecturer's currently assigned courses
3. comment        -> set as given

Steps 2 and 3 are saved together. A rank conflict raises `ConflictError`
after step 1 was committed, so the caller sees a partial update: the
selection change stands, rank and comment are not applied.

`is_selected` is true exactly when at least one lecturer has a
`selected_candidates` row for the application. A lecturer deselecting only
removes their own row; the flag stays true while another lecturer's
selection remains.
"""
import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.selected_candidate import SelectedCandidate
from ..models.tutor_application import TutorApplication
from ..models.user import User
from ..utils.error_handlers import ConflictError, NotFoundError, get_error_message
from .courses import assigned_course_ids

logger = logging.getLogger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


# Marks a field that was not part of the update (distinct from an explicit None).
UNSET: Any = _Unset()


def duplicate_rank_message(rank: int, holder_name: str | None) -> str:
    return f"Rank {rank} is already assigned to {holder_name}. Please choose a different rank."


def _get_application(db: Session, application_id: int) -> TutorApplication:
    application = db.query(TutorApplication).filter(TutorApplication.id == int(application_id)).first()
    if application is None:
        raise NotFoundError(get_error_message("application_not_found"))
    return application


def _find_selection(db: Session, *, application_id: int, lecturer_id: int | None) -> SelectedCandidate | None:
    if lecturer_id is None:
        return None
    return (
        db.query(SelectedCandidate)
        .filter(
            SelectedCandidate.application_id == int(application_id),
            SelectedCandidate.selected_by_id == int(lecturer_id),
        )
        .first()
    )


def _has_any_selection(db: Session, *, application_id: int) -> bool:
    return (
        db.query(SelectedCandidate.id)
        .filter(SelectedCandidate.application_id == int(application_id))
        .first()
        is not None
    )


def apply_selection(
    db: Session,
    application: TutorApplication,
    *,
    lecturer_id: int | None,
    is_selected: bool,
) -> TutorApplication:
    """Select/deselect `application` on behalf of one lecturer and commit.

    Selecting twice and deselecting an unselected application are both no-ops.
    """
    application_id = int(application.id)
    existing = _find_selection(db, application_id=application_id, lecturer_id=lecturer_id)

    if is_selected:
        if existing is None:
            lecturer = None
            if lecturer_id is not None:
                lecturer = db.query(User).filter(User.id == int(lecturer_id)).first()
            if lecturer is None:
                raise NotFoundError(get_error_message("lecturer_not_found"))

            db.add(SelectedCandidate(application_id=application_id, selected_by_id=int(lecturer.id)))
            try:
                db.flush()
            except IntegrityError:
                # A concurrent request inserted the same (application, lecturer) row first.
                db.rollback()
                logger.info(
                    "Selection of application %s by lecturer %s already recorded concurrently",
                    application_id,
                    lecturer_id,
                )
                application = _get_application(db, application_id)
            else:
                logger.info("Lecturer %s selected application %s", lecturer_id, application_id)
    elif existing is not None:
        db.delete(existing)
        db.flush()
        logger.info("Lecturer %s deselected application %s", lecturer_id, application_id)

    application.is_selected = _has_any_selection(db, application_id=application_id)
    db.add(application)
    db.commit()
    db.refresh(application)
    return application


def ensure_rank_available(
    db: Session,
    application: TutorApplication,
    *,
    lecturer_id: int | None,
    rank: int,
) -> None:
    """Raise `ConflictError` when another selected application in the lecturer's courses holds `rank`."""
    if lecturer_id is None:
        return

    course_ids = assigned_course_ids(db, lecturer_id=lecturer_id)
    if not course_ids:
        return

    holder = (
        db.query(TutorApplication)
        .filter(
            TutorApplication.id != int(application.id),
            TutorApplication.course_id.in_(course_ids),
            TutorApplication.rank == int(rank),
            TutorApplication.is_selected.is_(True),
        )
        .first()
    )
    if holder is not None:
        holder_name = holder.user.name if holder.user else None
        logger.warning(
            "Rank %s for application %s rejected: held by application %s (lecturer %s)",
            rank,
            application.id,
            holder.id,
            lecturer_id,
        )
        raise ConflictError(
            duplicate_rank_message(rank, holder_name),
            details={"rank": int(rank), "conflicting_application_id": int(holder.id)},
        )


def update_application_review(
    db: Session,
    *,
    application_id: int,
    lecturer_id: int | None,
    is_selected: Any = UNSET,
    rank: Any = UNSET,
    comment: Any = UNSET,
) -> TutorApplication:
    """
    Apply a lecturer's partial review update. Fields left as `UNSET` are not touched.

    Inputs are expected to be validated already (see utils/validation.py).
    Raises `NotFoundError` for a missing application/lecturer and `ConflictError`
    for a duplicate rank.
    """
    application = _get_application(db, application_id)

    if is_selected is not UNSET:
        application = apply_selection(db, application, lecturer_id=lecturer_id, is_selected=bool(is_selected))

    dirty = False
    if rank is not UNSET:
        ensure_rank_available(db, application, lecturer_id=lecturer_id, rank=rank)
        application.rank = rank
        dirty = True

    if comment is not UNSET:
        application.comment = comment
        dirty = True

    if dirty:
        db.add(application)
        db.commit()
        db.refresh(application)
    return application
