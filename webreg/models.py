"""Cleaned-up course and schedule models returned by the client."""

from dataclasses import dataclass, field
from datetime import date

from webreg.constants import (
    CourseLevelFilter,
    GradeOption,
    MeetingType,
    Weekday,
)
from webreg.errors import OperationFailedError


# Meeting days


@dataclass(frozen=True)
class RepeatedDays:
    """A weekly meeting, days in Monday -> Sunday order."""

    days: tuple[Weekday, ...]


@dataclass(frozen=True)
class OneTimeDate:
    """A meeting that happens once, e.g. a final exam."""

    date: date


@dataclass(frozen=True)
class NoMeeting:
    pass


MeetingDays = RepeatedDays | OneTimeDate | NoMeeting


@dataclass(frozen=True)
class Meeting:
    """One lecture, discussion, exam, etc. belonging to a section.

    `type_tag` keeps the portal's tag so that `MeetingType.OTHER` meetings
    can still be displayed. `instructors` only lists instructors that are not
    already in the section's `all_instructors`.
    """

    meeting_type: MeetingType
    type_tag: str
    meeting_days: MeetingDays
    start_hr: int
    start_min: int
    end_hr: int
    end_min: int
    building: str
    room: str
    instructors: tuple[str, ...] = ()


@dataclass(frozen=True)
class CourseSection:
    """A section someone can enroll in: usually a lecture, a discussion and a final."""

    subj_course_id: str
    section_id: str
    section_code: str
    all_instructors: tuple[str, ...]
    available_seats: int
    enrolled_ct: int
    total_seats: int
    waitlist_ct: int
    meetings: tuple[Meeting, ...]
    needs_waitlist: bool = False

    def has_seats(self) -> bool:
        """WebReg sometimes reports open seats while a waitlist still exists."""
        return self.available_seats > 0 and self.waitlist_ct == 0


# Enrollment status


@dataclass(frozen=True)
class Enrolled:
    pass


@dataclass(frozen=True)
class Waitlisted:
    position: int | None = None


@dataclass(frozen=True)
class Planned:
    pass


@dataclass(frozen=True)
class Unknown:
    raw: str = ""


EnrollmentStatus = Enrolled | Waitlisted | Planned | Unknown


@dataclass(frozen=True)
class ScheduledSection:
    """A section in one of the user's schedules (enrolled, waitlisted or planned).

    `waitlist_ct` is None when the schedule feed did not report a count.
    """

    section_id: str
    subject_code: str
    course_code: str
    course_title: str
    section_code: str
    section_capacity: int
    enrolled_count: int
    available_seats: int
    grade_option: str
    all_instructors: tuple[str, ...]
    units: float
    enrolled_status: EnrollmentStatus
    waitlist_ct: int | None
    meetings: tuple[Meeting, ...]

    def has_seats(self) -> bool:
        # An unknown waitlist count never counts as open.
        return self.available_seats > 0 and self.waitlist_ct == 0


@dataclass(frozen=True)
class Event:
    name: str
    location: str
    days: tuple[Weekday, ...]
    start_hr: int
    start_min: int
    end_hr: int
    end_min: int
    timestamp: str


@dataclass(frozen=True)
class Term:
    seq_id: int
    term_code: str
    term_desc: str


@dataclass(frozen=True)
class CoursePrerequisite:
    subject_code: str
    course_code: str
    course_title: str


@dataclass(frozen=True)
class PrerequisiteInfo:
    """Course prerequisites are a list of groups; one course from every group is needed.

    Passing any of the exam prerequisites satisfies all course prerequisites.
    """

    course_prerequisites: tuple[tuple[CoursePrerequisite, ...], ...]
    exam_prerequisites: tuple[str, ...]


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a mutating request, with WebReg's reason when it failed."""

    success: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.success

    def raise_for_failure(self) -> None:
        if not self.success:
            raise OperationFailedError(self.reason)


# Request inputs


@dataclass(frozen=True)
class PlanAdd:
    subject_code: str
    course_code: str
    section_id: str
    section_code: str
    unit_count: int
    grading_option: GradeOption | None = None
    schedule_name: str | None = None


@dataclass(frozen=True)
class EnrollWaitAdd:
    section_id: str
    grading_option: GradeOption | None = None
    unit_count: int | None = None


@dataclass(frozen=True)
class EventAdd:
    name: str
    days: tuple[Weekday, ...]
    start_hr: int
    start_min: int
    end_hr: int
    end_min: int
    location: str | None = None


@dataclass(frozen=True)
class SearchBySection:
    section_id: str


@dataclass(frozen=True)
class SearchByMultipleSections:
    section_ids: tuple[str, ...]


@dataclass
class SearchRequest:
    """Advanced search criteria. Empty fields are left out of the query."""

    subjects: list[str] = field(default_factory=list)
    # e.g. `20E`, `math 20d`, `CSE`
    courses: list[str] = field(default_factory=list)
    departments: list[str] = field(default_factory=list)
    # `Last Name, First Name`
    instructor: str | None = None
    title: str | None = None
    levels: set[CourseLevelFilter] = field(default_factory=set)
    days: set[Weekday] = field(default_factory=set)
    start_time: tuple[int, int] | None = None
    end_time: tuple[int, int] | None = None
    only_open: bool = False


SearchType = SearchBySection | SearchByMultipleSections | SearchRequest
