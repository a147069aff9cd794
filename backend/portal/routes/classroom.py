"""
Google Classroom routes.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

from portal.models.classroom import DriveAttachment
from portal.services.classroom_service import ClassroomService
from portal.services.session_context import SessionContext
from portal.routes.deps import get_context, respond, respond_scoped

router = APIRouter()

SUBMISSION_PATH = "/courses/{course_id}/coursework/{coursework_id}/submissions/{submission_id}"


@router.get("/courses")
async def list_courses(
    request: Request,
    page_token: Optional[str] = None,
    ctx: SessionContext = Depends(get_context),
):
    return await respond_scoped(request, ctx.classroom.list_courses(page_token=page_token))


@router.get("/courses/{course_id}")
async def course_details(request: Request, course_id: str, ctx: SessionContext = Depends(get_context)):
    """
    Course page: coursework, announcements, roster and own submissions.

    Returns:
        Result with CourseDetails; parts that failed are listed in errors
    """
    service = ClassroomService(ctx.classroom)
    return await respond_scoped(request, service.load_course_details(course_id))


@router.get("/coursework")
async def all_coursework(
    request: Request,
    limit: int = Query(20, ge=1, le=100),
    ctx: SessionContext = Depends(get_context),
):
    """Upcoming coursework across all courses."""
    return await respond_scoped(request, ctx.classroom.list_all_coursework(limit=limit))


@router.get("/courses/{course_id}/coursework/{coursework_id}/submission")
async def own_submission(course_id: str, coursework_id: str, ctx: SessionContext = Depends(get_context)):
    """The student's submission, or data=null if there is none yet."""
    return respond(await ctx.classroom.get_submission(course_id, coursework_id))


@router.post(f"{SUBMISSION_PATH}/turn-in")
async def turn_in(
    course_id: str,
    coursework_id: str,
    submission_id: str,
    ctx: SessionContext = Depends(get_context),
):
    return respond(await ctx.classroom.turn_in(course_id, coursework_id, submission_id))


@router.post(f"{SUBMISSION_PATH}/reclaim")
async def reclaim(
    course_id: str,
    coursework_id: str,
    submission_id: str,
    ctx: SessionContext = Depends(get_context),
):
    return respond(await ctx.classroom.reclaim(course_id, coursework_id, submission_id))


@router.post(f"{SUBMISSION_PATH}/attachments")
async def add_attachments(
    course_id: str,
    coursework_id: str,
    submission_id: str,
    files: List[DriveAttachment],
    ctx: SessionContext = Depends(get_context),
):
    """Attach Drive files to the submission."""
    return respond(await ctx.classroom.modify_attachments(course_id, coursework_id, submission_id, files))
