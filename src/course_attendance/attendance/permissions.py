from __future__ import annotations

from typing import Sequence

from ..common.validators import require
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..courses.model import Course
from ..courses.repository import CourseRepository
from ..enrollments.repository import EnrollmentRepository


class PermissionGate:
    """Decides who may manage attendance of a course.

    Managing covers listing across students, stats and every mutation. Students
    never pass; their own history goes through a narrower path in the service.
    """

    def __init__(self, courses: CourseRepository, enrollments: EnrollmentRepository):
        self._courses = courses
        self._enrollments = enrollments

    def ensure_course_exists(self, course_id: int) -> Course:
        course = self._courses.get_by_id(int(course_id))
        require(course, NotFoundError, "Course not found")
        return course

    def ensure_manage_permission(self, course_id: int, actor_id: int, role: Role) -> Course:
        return self.check_manage_permission(self.ensure_course_exists(course_id), actor_id, role)

    def check_manage_permission(self, course: Course, actor_id: int, role: Role) -> Course:
        if role == Role.ADMIN:
            return course

        require(role == Role.TEACHER, AuthorizationError, "Not authorized")
        require(course.has_teacher(actor_id), AuthorizationError, "Teacher not assigned to this course")
        return course

    def verify_students_belong_to_course(self, course_id: int, student_ids: Sequence[int]) -> None:
        if not student_ids:
            return

        enrolled = self._enrollments.list_approved_student_ids(course_id=int(course_id), student_ids=student_ids)
        missing = [s for s in student_ids if int(s) not in enrolled]
        require(not missing, ValidationError, "Student not enrolled in course")
