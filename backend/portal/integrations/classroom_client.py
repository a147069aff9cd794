"""
Google Classroom API client integration.

Classroom Reference: https://developers.google.com/classroom/reference/rest
"""
import asyncio
from datetime import date
from typing import List, Optional

from portal.integrations.google_api import GoogleApiClient
from portal.models.classroom import (
    Announcement,
    Course,
    CoursePage,
    CourseWork,
    DriveAttachment,
    Roster,
    RosterMember,
    Submission,
)
from portal.models.result import result_boundary
from portal.utils.errors import RequestFailedError
from portal.utils.logger import get_logger

logger = get_logger(__name__)

CLASSROOM_API_BASE = "https://classroom.googleapis.com/v1"

# Coursework taken from each course for the cross-course list
COURSEWORK_PER_COURSE = 5


def _submissions_path(course_id: str, coursework_id: str) -> str:
    return f"/courses/{course_id}/courseWork/{coursework_id}/studentSubmissions"


class ClassroomClient(GoogleApiClient):
    """
    Classroom operations for a student.

    Submission state changes (turn in, reclaim) are not validated locally:
    the provider is the authority and its answer is returned as-is.

    Usage:
        classroom = ClassroomClient(Provider.CLASSROOM, token_store)
        result = await classroom.get_submission(course_id, coursework_id)
        if result.success and result.data:
            await classroom.turn_in(course_id, coursework_id, result.data.id)
    """

    BASE_URL = CLASSROOM_API_BASE

    @result_boundary("List courses")
    async def list_courses(
        self,
        student_id: Optional[str] = None,
        teacher_id: Optional[str] = None,
        page_token: Optional[str] = None,
    ) -> CoursePage:
        return await self._list_courses(student_id, teacher_id, page_token)

    async def _list_courses(
        self,
        student_id: Optional[str] = None,
        teacher_id: Optional[str] = None,
        page_token: Optional[str] = None,
    ) -> CoursePage:
        params = {}
        if student_id:
            params["studentId"] = student_id
        if teacher_id:
            params["teacherId"] = teacher_id
        if page_token:
            params["pageToken"] = page_token

        data = await self._make_request("GET", "/courses", params=params)
        courses = [Course.model_validate(item) for item in data.get("courses", [])]
        logger.info(f"Listed {len(courses)} courses")
        return CoursePage(courses=courses, next_page_token=data.get("nextPageToken"))

    @result_boundary("Get course")
    async def get_course(self, course_id: str) -> Course:
        data = await self._make_request("GET", f"/courses/{course_id}")
        return Course.model_validate(data)

    @result_boundary("List coursework")
    async def list_coursework(self, course_id: str, page_size: int = 20) -> List[CourseWork]:
        return await self._list_coursework(course_id, page_size)

    async def _list_coursework(self, course_id: str, page_size: int) -> List[CourseWork]:
        data = await self._make_request(
            "GET",
            f"/courses/{course_id}/courseWork",
            params={"pageSize": page_size},
        )
        return [CourseWork.model_validate(item) for item in data.get("courseWork", [])]

    @result_boundary("List announcements")
    async def list_announcements(self, course_id: str, page_size: int = 20) -> List[Announcement]:
        data = await self._make_request(
            "GET",
            f"/courses/{course_id}/announcements",
            params={"pageSize": page_size},
        )
        return [Announcement.model_validate(item) for item in data.get("announcements", [])]

    @result_boundary("Get roster")
    async def get_roster(self, course_id: str) -> Roster:
        """
        Students and teachers of a course, fetched concurrently.

        Either half that fails to load comes back empty.
        """
        students, teachers = await asyncio.gather(
            self._roster_half(course_id, "students"),
            self._roster_half(course_id, "teachers"),
        )
        return Roster(students=students, teachers=teachers)

    async def _roster_half(self, course_id: str, kind: str) -> List[RosterMember]:
        try:
            data = await self._make_request("GET", f"/courses/{course_id}/{kind}")
        except RequestFailedError as e:
            logger.warning(f"Could not load {kind} of course {course_id}: {e.message}")
            return []
        return [RosterMember.model_validate(item) for item in data.get(kind, [])]

    @result_boundary("List submissions")
    async def list_submissions(self, course_id: str, coursework_id: str) -> List[Submission]:
        data = await self._make_request("GET", _submissions_path(course_id, coursework_id))
        return [Submission.model_validate(item) for item in data.get("studentSubmissions", [])]

    @result_boundary("Get submission")
    async def get_submission(self, course_id: str, coursework_id: str) -> Optional[Submission]:
        """
        The signed-in student's own submission.

        None (still a success) when no submission exists yet.
        """
        try:
            data = await self._make_request(
                "GET",
                _submissions_path(course_id, coursework_id),
                params={"userId": "me"},
            )
        except RequestFailedError as e:
            if e.status == 404:
                return None
            raise

        items = data.get("studentSubmissions", [])
        if not items:
            return None
        return Submission.model_validate(items[0])

    @result_boundary("Turn in submission")
    async def turn_in(self, course_id: str, coursework_id: str, submission_id: str) -> dict:
        data = await self._make_request(
            "POST",
            f"{_submissions_path(course_id, coursework_id)}/{submission_id}:turnIn",
            json_data={},
        )
        logger.info(f"Turned in submission {submission_id}")
        return data

    @result_boundary("Reclaim submission")
    async def reclaim(self, course_id: str, coursework_id: str, submission_id: str) -> dict:
        data = await self._make_request(
            "POST",
            f"{_submissions_path(course_id, coursework_id)}/{submission_id}:reclaim",
            json_data={},
        )
        logger.info(f"Reclaimed submission {submission_id}")
        return data

    @result_boundary("Modify attachments")
    async def modify_attachments(
        self,
        course_id: str,
        coursework_id: str,
        submission_id: str,
        drive_files: List[DriveAttachment],
    ) -> Submission:
        """Attach Drive files to a submission."""
        body = {
            "addAttachments": [
                {
                    "driveFile": {
                        "id": f.id,
                        "title": f.title,
                        "alternateLink": f.alternate_link,
                    }
                }
                for f in drive_files
            ]
        }
        data = await self._make_request(
            "POST",
            f"{_submissions_path(course_id, coursework_id)}/{submission_id}:modifyAttachments",
            json_data=body,
        )
        return Submission.model_validate(data)

    @result_boundary("List all coursework")
    async def list_all_coursework(self, limit: int = 20) -> List[CourseWork]:
        """
        Recent coursework across every course, soonest due first.

        Takes a few items per course, one course at a time; a course whose
        coursework fails to load is skipped. Items without a due date sort
        before dated ones.
        """
        page = await self._list_courses()

        items: List[CourseWork] = []
        for course in page.courses:
            try:
                coursework = await self._list_coursework(course.id, COURSEWORK_PER_COURSE)
            except RequestFailedError as e:
                logger.warning(f"Skipping coursework of {course.name}: {e.message}")
                continue
            for cw in coursework:
                items.append(cw.model_copy(update={"course_name": course.name, "course_id": course.id}))

        items.sort(key=lambda cw: cw.due_date.to_date() if cw.due_date else date.min)
        return items[:limit]
