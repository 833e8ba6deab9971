from .course import Course
from .course_lecturer import CourseLecturer
from .selected_candidate import SelectedCandidate
from .tutor_application import TutorApplication
from .user import User

__all__ = [
    "Course",
    "CourseLecturer",
    "SelectedCandidate",
    "TutorApplication",
    "User",
]
