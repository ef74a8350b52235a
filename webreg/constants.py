import os
from enum import Enum, StrEnum

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class TimeConstants(Enum):
    TIMEOUT_SECONDS = 30


class Weekday(StrEnum):
    MONDAY = "M"
    TUESDAY = "Tu"
    WEDNESDAY = "W"
    THURSDAY = "Th"
    FRIDAY = "F"
    SATURDAY = "Sa"
    SUNDAY = "Su"


# Monday -> Sunday
WEEKDAY_ORDER = list(Weekday)


class MeetingType(StrEnum):
    """Instruction types, keyed by the portal's two-letter tag."""

    LECTURE = "LE"
    DISCUSSION = "DI"
    LAB = "LA"
    SEMINAR = "SE"
    FINAL = "FI"
    MIDTERM = "MI"
    REVIEW = "RE"
    TUTORIAL = "TU"
    STUDIO = "ST"
    FIELDWORK = "FW"
    INDEPENDENT_STUDY = "IN"
    PROBLEM_SESSION = "PB"
    CONFERENCE = "CO"
    OTHER = "other"


class GradeOption(StrEnum):
    LETTER = "L"
    PASS_NO_PASS = "P"
    SATISFACTORY = "S"


class EnrollStatusCode(StrEnum):
    ENROLLED = "EN"
    WAITLISTED = "WT"
    PLANNED = "PL"


class DisplayType(StrEnum):
    ACTIVE = "AC"
    NOT_ENROLLABLE = "NC"
    CANCELED = "CA"


class CourseLevelFilter(Enum):
    """Bit positions for the 12-digit `levels` search parameter."""

    LOWER_DIVISION = 1 << 11
    FRESHMEN_SEMINAR = 1 << 10
    LOWER_DIVISION_INDEP_STUDY = 1 << 9
    UPPER_DIVISION = 1 << 8
    APPRENTICESHIP = 1 << 7
    UPPER_DIVISION_INDEP_STUDY = 1 << 6
    GRADUATE = 1 << 5
    GRADUATE_INDEP_STUDY = 1 << 4
    GRADUATE_RESEARCH = 1 << 3
    LVL_300 = 1 << 2
    LVL_400 = 1 << 1
    LVL_500 = 1 << 0


DEFAULT_SCHEDULE_NAME = "My Schedule"
OPS_SUCCESS = "SUCCESS"
BLANK_SPECIAL_MEETING = "TBA"

# Returned instead of JSON when the cookies have expired (login page) or the
# session is not associated with the requested term.
SESSION_INVALID_MARKERS = (
    "Skip to main content",
    "[Error] Invalid parameter",
)

DEFAULT_BASE_URL = "https://act.ucsd.edu/webreg2"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Environment
COOKIES_ENV = "WEBREG_COOKIES"
TERM_ENV = "WEBREG_TERM"
BASE_URL_ENV = "WEBREG_BASE_URL"
TIMEOUT_ENV = "WEBREG_TIMEOUT_SECONDS"
USER_AGENT_ENV = "WEBREG_USER_AGENT"

BASE_URL = os.getenv(BASE_URL_ENV) or DEFAULT_BASE_URL
USER_AGENT = os.getenv(USER_AGENT_ENV) or DEFAULT_USER_AGENT


class Endpoints(BaseModel):
    """Every portal URL the client talks to."""

    account_name: str
    ping_server: str
    term_list: str
    status_start: str
    eligibility: str
    search: str
    search_by_section: str
    course_data: str
    prerequisites: str
    subject_list: str
    department_list: str
    schedule: str
    schedule_list: str
    rename_schedule: str
    remove_schedule: str
    send_email: str
    change_enroll: str
    plan_add: str
    plan_edit: str
    plan_remove: str
    plan_remove_all: str
    enroll_add: str
    enroll_edit: str
    enroll_drop: str
    waitlist_add: str
    waitlist_edit: str
    waitlist_drop: str
    event_get: str
    event_add: str
    event_edit: str
    event_remove: str

    @classmethod
    def from_base(cls, base_url: str) -> "Endpoints":
        base = base_url.rstrip("/")
        svc = f"{base}/svc/wradapter"
        secure = f"{svc}/secure"
        return cls(
            account_name=f"{svc}/get-current-name",
            ping_server=f"{secure}/ping-server",
            term_list=f"{svc}/get-term",
            status_start=f"{secure}/get-status-start",
            eligibility=f"{secure}/check-eligibility",
            search=f"{secure}/search-by-all",
            search_by_section=f"{secure}/search-by-sectionid",
            course_data=f"{secure}/search-load-group-data",
            prerequisites=f"{secure}/get-prerequisites",
            subject_list=f"{secure}/search-load-subject",
            department_list=f"{secure}/search-load-department",
            schedule=f"{secure}/get-class",
            schedule_list=f"{secure}/sched-get-schednames",
            rename_schedule=f"{secure}/plan-rename",
            remove_schedule=f"{secure}/sched-remove",
            send_email=f"{secure}/send-email",
            change_enroll=f"{secure}/change-enroll",
            plan_add=f"{secure}/plan-add",
            plan_edit=f"{secure}/edit-plan",
            plan_remove=f"{secure}/plan-remove",
            plan_remove_all=f"{secure}/plan-remove-all",
            enroll_add=f"{secure}/add-enroll",
            enroll_edit=f"{secure}/edit-enroll",
            enroll_drop=f"{secure}/drop-enroll",
            waitlist_add=f"{secure}/add-wait",
            waitlist_edit=f"{secure}/edit-wait",
            waitlist_drop=f"{secure}/drop-wait",
            event_get=f"{secure}/event-get",
            event_add=f"{secure}/event-add",
            event_edit=f"{secure}/event-edit",
            event_remove=f"{secure}/event-remove",
        )


DEFAULT_ENDPOINTS = Endpoints.from_base(BASE_URL)
