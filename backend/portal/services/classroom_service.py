"""
Classroom service - loads everything the course page shows.

The course page needs coursework, announcements, the roster and the
student's own submission for every coursework item. The three listings
are independent and load concurrently; submissions follow one by one.
"""
import asyncio

from portal.integrations.classroom_client import ClassroomClient
from portal.models.classroom import CourseDetails
from portal.models.result import Result
from portal.utils.logger import get_logger

logger = get_logger(__name__)


class ClassroomService:
    """
    Usage:
        service = ClassroomService(ctx.classroom)
        result = await service.load_course_details(course_id)
    """

    def __init__(self, client: ClassroomClient):
        self.client = client

    async def load_course_details(self, course_id: str) -> Result[CourseDetails]:
        """
        Load a course page.

        Parts that fail are left empty and reported in CourseDetails.errors.
        Only when all three listings fail is the whole load a failure.
        """
        coursework, announcements, roster = await asyncio.gather(
            self.client.list_coursework(course_id),
            self.client.list_announcements(course_id),
            self.client.get_roster(course_id),
        )

        if not (coursework.success or announcements.success or roster.success):
            return coursework

        details = CourseDetails(course_id=course_id)
        for part, result in (
            ("coursework", coursework),
            ("announcements", announcements),
            ("roster", roster),
        ):
            if result.success:
                setattr(details, part, result.data)
            else:
                details.errors[part] = result.error

        for cw in details.coursework:
            submission = await self.client.get_submission(course_id, cw.id)
            if not submission.success:
                details.errors[f"submission:{cw.id}"] = submission.error
            elif submission.data is not None:
                details.submissions[cw.id] = submission.data

        logger.info(
            f"Loaded course {course_id}: {len(details.coursework)} coursework, "
            f"{len(details.announcements)} announcements, {len(details.submissions)} submissions"
        )
        return Result.ok(details)
