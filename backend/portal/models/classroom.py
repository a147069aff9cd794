"""
Classroom-related Pydantic models.

Field names mirror the Classroom REST resources through aliases so raw
API payloads validate directly.
"""
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from portal.utils import formatting


class SubmissionState(str, Enum):
    NOT_STARTED = "not_started"
    DRAFT = "draft"
    TURNED_IN = "turned_in"
    RETURNED = "returned"
    RECLAIMED = "reclaimed"

    @classmethod
    def from_provider(cls, state: Optional[str]) -> "SubmissionState":
        """Map the provider's submission state; unknown values count as not started."""
        return _PROVIDER_STATES.get(state or "", cls.NOT_STARTED)


_PROVIDER_STATES = {
    "NEW": SubmissionState.NOT_STARTED,
    "CREATED": SubmissionState.DRAFT,
    "TURNED_IN": SubmissionState.TURNED_IN,
    "RETURNED": SubmissionState.RETURNED,
    "RECLAIMED_BY_STUDENT": SubmissionState.RECLAIMED,
}


class _ClassroomModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Course(_ClassroomModel):
    id: str
    name: str = ""
    section: Optional[str] = None
    description_heading: Optional[str] = Field(None, alias="descriptionHeading")
    room: Optional[str] = None
    course_state: Optional[str] = Field(None, alias="courseState")
    alternate_link: Optional[str] = Field(None, alias="alternateLink")


class DueDate(_ClassroomModel):
    year: int
    month: int
    day: int

    def to_date(self) -> date:
        return date(self.year, self.month, self.day)


class TimeOfDay(_ClassroomModel):
    hours: int = 0
    minutes: int = 0


class CourseWork(_ClassroomModel):
    id: str
    course_id: str = Field("", alias="courseId")
    title: str = ""
    description: Optional[str] = None
    state: Optional[str] = None
    work_type: Optional[str] = Field(None, alias="workType")
    due_date: Optional[DueDate] = Field(None, alias="dueDate")
    due_time: Optional[TimeOfDay] = Field(None, alias="dueTime")
    max_points: Optional[float] = Field(None, alias="maxPoints")
    alternate_link: Optional[str] = Field(None, alias="alternateLink")
    materials: List[Dict[str, Any]] = []
    course_name: Optional[str] = None

    @computed_field
    @property
    def due_label(self) -> str:
        return formatting.due_label(self.due_date.to_date() if self.due_date else None)

    @computed_field
    @property
    def due_time_label(self) -> Optional[str]:
        if self.due_time is None:
            return None
        return formatting.clock_time(self.due_time.hours, self.due_time.minutes)


class Announcement(_ClassroomModel):
    id: str
    course_id: str = Field("", alias="courseId")
    text: str = ""
    state: Optional[str] = None
    creation_time: Optional[str] = Field(None, alias="creationTime")
    update_time: Optional[str] = Field(None, alias="updateTime")
    alternate_link: Optional[str] = Field(None, alias="alternateLink")
    materials: List[Dict[str, Any]] = []


class RosterMember(_ClassroomModel):
    user_id: str = Field("", alias="userId")
    profile: Dict[str, Any] = {}

    @computed_field
    @property
    def display_name(self) -> str:
        name = self.profile.get("name") or {}
        if isinstance(name, str):
            return name
        return name.get("fullName") or " ".join(
            part for part in (name.get("givenName"), name.get("familyName")) if part
        )


class Roster(BaseModel):
    students: List[RosterMember] = []
    teachers: List[RosterMember] = []


class Submission(_ClassroomModel):
    id: str
    course_id: str = Field("", alias="courseId")
    course_work_id: str = Field("", alias="courseWorkId")
    user_id: str = Field("", alias="userId")
    provider_state: Optional[str] = Field(None, alias="state")
    late: bool = False
    assigned_grade: Optional[float] = Field(None, alias="assignedGrade")
    alternate_link: Optional[str] = Field(None, alias="alternateLink")
    assignment_submission: Dict[str, Any] = Field({}, alias="assignmentSubmission")

    @computed_field
    @property
    def state(self) -> SubmissionState:
        return SubmissionState.from_provider(self.provider_state)


class DriveAttachment(BaseModel):
    """Drive file to attach to a submission."""
    id: str
    title: str = ""
    alternate_link: Optional[str] = None


class CourseDetails(BaseModel):
    """
    Everything the course page shows, loaded in one go.

    Parts that failed to load are empty and their message is in errors.
    """
    course_id: str
    coursework: List[CourseWork] = []
    announcements: List[Announcement] = []
    roster: Roster = Field(default_factory=Roster)
    submissions: Dict[str, Submission] = {}
    errors: Dict[str, str] = {}


class CoursePage(BaseModel):
    courses: List[Course] = []
    next_page_token: Optional[str] = None
