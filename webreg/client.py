"""Async client for the WebReg enrollment portal."""

import logging
import os

import pendulum
from curl_cffi import CurlError
from curl_cffi.requests import AsyncSession
from pydantic import TypeAdapter, ValidationError

from webreg.constants import (
    COOKIES_ENV,
    DEFAULT_ENDPOINTS,
    DEFAULT_SCHEDULE_NAME,
    OPS_SUCCESS,
    SESSION_INVALID_MARKERS,
    TERM_ENV,
    TIMEOUT_ENV,
    USER_AGENT,
    Endpoints,
    GradeOption,
    TimeConstants,
)
from webreg.errors import (
    BadStatusCodeError,
    InputError,
    ResponseDecodeError,
    SectionNotFoundError,
    SessionInvalidError,
    TransportError,
    WebRegError,
)
from webreg.grouping import (
    enrollment_counts,
    group_course_meetings,
    group_schedule_meetings,
)
from webreg.models import (
    ActionResult,
    CoursePrerequisite,
    CourseSection,
    EnrollWaitAdd,
    Event,
    EventAdd,
    PlanAdd,
    PrerequisiteInfo,
    ScheduledSection,
    SearchByMultipleSections,
    SearchBySection,
    SearchRequest,
    SearchType,
    Term,
)
from webreg.parse import (
    format_course_code,
    format_event_days,
    format_hhmm,
    parse_event_days,
    parse_hhmm,
    strip_leading_zeros,
    strip_tags,
)
from webreg.raw_models import (
    RawCoursePrerequisite,
    RawDepartmentElement,
    RawEvent,
    RawMeetingRecord,
    RawPrerequisite,
    RawScheduledMeetingRecord,
    RawSearchResultItem,
    RawSubjectElement,
    RawTermListItem,
)

logger = logging.getLogger(__name__)

MEETINGS = TypeAdapter(list[RawMeetingRecord])
SCHEDULED_MEETINGS = TypeAdapter(list[RawScheduledMeetingRecord])
SEARCH_RESULTS = TypeAdapter(list[RawSearchResultItem])
EVENTS = TypeAdapter(list[RawEvent])
TERMS = TypeAdapter(list[RawTermListItem])
SUBJECTS = TypeAdapter(list[RawSubjectElement])
DEPARTMENTS = TypeAdapter(list[RawDepartmentElement])
PREREQUISITES = TypeAdapter(list[RawPrerequisite])
NAMES = TypeAdapter(list[str])
JSON_OBJECT = TypeAdapter(dict)

EARLIEST_EVENT_HOUR = 7
LATEST_EVENT_HOUR = 22


def epoch_millis() -> int:
    return round(pendulum.now().timestamp() * 1000)


def subj_course_id(subject_code: str, course_code: str) -> str:
    return f"{subject_code.strip()} {course_code.strip()}".upper()


def format_units(units: float) -> str:
    return f"{units:g}"


def validate_event(event: EventAdd):
    """Raises `InputError` for events WebReg would refuse to store."""
    if event.start_hr * 100 + event.start_min >= event.end_hr * 100 + event.end_min:
        raise InputError("time", "Start time must be before end time.")
    if not EARLIEST_EVENT_HOUR <= event.start_hr <= LATEST_EVENT_HOUR:
        raise InputError(
            "start_hr", "Start hour must be between 7 and 22 (7am and 10pm)."
        )
    if event.start_hr == LATEST_EVENT_HOUR and event.start_min != 0:
        raise InputError("start_min", "Events cannot start after 10pm.")
    if not event.days:
        raise InputError("days", "At least one day must be selected.")


def build_search_params(search: SearchRequest, term: str) -> dict[str, str]:
    courses = ";".join(
        ":".join(format_course_code(part) for part in course.split())
        for course in search.courses
    ).upper()

    levels = sum(level.value for level in search.levels)
    time_str = ""
    if search.start_time or search.end_time:
        start = format_hhmm(*search.start_time) if search.start_time else ""
        end = format_hhmm(*search.end_time) if search.end_time else ""
        time_str = f"{start}:{end}"

    return {
        "subjcode": ":".join(search.subjects),
        "crsecode": courses,
        "department": ":".join(search.departments).upper(),
        "professor": (search.instructor or "").upper(),
        "title": (search.title or "").upper(),
        "levels": f"{levels:012b}" if levels else "",
        "days": format_event_days(search.days) if search.days else "",
        "timestr": time_str,
        "opensection": "true" if search.only_open else "false",
        "isbasic": "true",
        "basicsearchvalue": "",
        "termcode": term,
        "_": str(epoch_millis()),
    }


def build_prerequisites(raw: list) -> PrerequisiteInfo:
    groups: dict[str, list[CoursePrerequisite]] = {}
    exams = []
    for item in raw:
        if isinstance(item, RawCoursePrerequisite):
            groups.setdefault(item.prereq_seq_id.strip(), []).append(
                CoursePrerequisite(
                    subject_code=item.subject_code.strip(),
                    course_code=item.course_code.strip(),
                    course_title=item.course_title.strip(),
                )
            )
        else:
            exams.append(item.test_title.strip())

    def group_order(seq_id: str):
        return (0, int(seq_id), "") if seq_id.isdigit() else (1, 0, seq_id)

    return PrerequisiteInfo(
        course_prerequisites=tuple(
            tuple(groups[seq_id]) for seq_id in sorted(groups, key=group_order)
        ),
        exam_prerequisites=tuple(exams),
    )


def build_event(raw: RawEvent) -> Event:
    start_hr, start_min = parse_hhmm(raw.start_time)
    end_hr, end_min = parse_hhmm(raw.end_time)
    return Event(
        name=raw.description.strip(),
        location=raw.location.strip(),
        days=tuple(parse_event_days(raw.days)),
        start_hr=start_hr,
        start_min=start_min,
        end_hr=end_hr,
        end_min=end_min,
        timestamp=raw.time_stamp,
    )


class WebRegClient:
    """Client bound to one session cookie and one term.

    The session itself (logging in, keeping the cookie alive) is managed by
    the caller. A rejected session raises `SessionInvalidError`.
    """

    def __init__(
        self,
        cookies: str,
        term: str,
        *,
        endpoints: Endpoints = DEFAULT_ENDPOINTS,
        user_agent: str = USER_AGENT,
        timeout: float = TimeConstants.TIMEOUT_SECONDS.value,
        session: AsyncSession | None = None,
    ):
        self.cookies = cookies
        self.term = term
        self.endpoints = endpoints
        self.user_agent = user_agent
        self.timeout = timeout
        self.session = session or AsyncSession(impersonate="chrome")

    @classmethod
    def from_env(cls, **kwargs) -> "WebRegClient":
        cookies = os.getenv(COOKIES_ENV)
        term = os.getenv(TERM_ENV)
        if not cookies:
            raise InputError(COOKIES_ENV, "environment variable is not set")
        if not term:
            raise InputError(TERM_ENV, "environment variable is not set")
        if timeout := os.getenv(TIMEOUT_ENV):
            kwargs.setdefault("timeout", float(timeout))
        return cls(cookies, term, **kwargs)

    def set_cookies(self, cookies: str):
        self.cookies = cookies

    def set_term(self, term: str):
        self.term = term

    async def close(self):
        await self.session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    # Transport

    def _headers(self) -> dict[str, str]:
        return {"Cookie": self.cookies, "User-Agent": self.user_agent}

    async def _request(self, method: str, url: str, **kwargs) -> str:
        logger.debug("%s %s", method, url.rsplit("/", 1)[-1])
        try:
            response = await self.session.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except CurlError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise BadStatusCodeError(response.status_code)

        text = response.text
        if any(marker in text for marker in SESSION_INVALID_MARKERS):
            raise SessionInvalidError()
        return text

    async def _get(self, url: str, adapter: TypeAdapter, params: dict | None = None):
        text = await self._request("GET", url, params=params)
        try:
            return adapter.validate_json(text)
        except ValidationError as e:
            raise ResponseDecodeError(str(e)) from e

    async def _post(self, url: str, data: dict[str, str]) -> ActionResult:
        text = await self._request("POST", url, data=data)
        try:
            body = JSON_OBJECT.validate_json(text)
        except ValidationError as e:
            raise ResponseDecodeError(str(e)) from e

        if body.get("OPS") == OPS_SUCCESS:
            return ActionResult(True)

        reason = strip_tags(str(body.get("REASON") or ""))
        logger.info("WebReg refused %s: %s", url.rsplit("/", 1)[-1], reason)
        return ActionResult(False, reason)

    def _term_params(self, **params) -> dict[str, str]:
        return {**params, "termcode": self.term, "_": str(epoch_millis())}

    # Session and terms

    async def ping_server(self) -> bool:
        """Returns whether WebReg still considers this session logged in."""
        try:
            text = await self._request(
                "GET", self.endpoints.ping_server, params={"_": str(epoch_millis())}
            )
            body = JSON_OBJECT.validate_json(text)
        except (WebRegError, ValidationError) as e:
            logger.info("Ping failed: %s", e)
            return False
        return body.get("SESSION_OK") is True

    async def is_valid(self) -> bool:
        return await self.ping_server()

    async def get_account_name(self) -> str:
        if not await self.is_valid():
            raise SessionInvalidError()
        return (await self._request("GET", self.endpoints.account_name)).strip()

    async def get_all_terms(self) -> list[Term]:
        raw = await self._get(
            self.endpoints.term_list, TERMS, {"_": str(epoch_millis())}
        )
        return [
            Term(seq_id=t.seq_id, term_code=t.term_code.strip(), term_desc=t.term_desc.strip())
            for t in raw
        ]

    async def associate_term(self, term: str):
        """Bind `term` to the session; WebReg rejects requests for unbound terms."""
        terms = await self.get_all_terms()
        match = next((t for t in terms if t.term_code == term.strip().upper()), None)
        if match is None:
            raise InputError("term", f"{term} is not a WebReg term")

        params = {"termcode": match.term_code, "seqid": str(match.seq_id)}
        await self._request(
            "GET",
            self.endpoints.status_start,
            params={**params, "_": str(epoch_millis())},
        )
        await self._request(
            "GET",
            self.endpoints.eligibility,
            params={**params, "logged": "true", "_": str(epoch_millis())},
        )
        logger.info("Associated term %s with the session", match.term_code)

    # Catalog

    async def _course_rows(self, subject_code: str, course_code: str) -> list[RawMeetingRecord]:
        params = self._term_params(
            subjcode=subject_code.strip(), crsecode=format_course_code(course_code)
        )
        return await self._get(self.endpoints.course_data, MEETINGS, params)

    async def get_course_info(self, subject_code: str, course_code: str) -> list[CourseSection]:
        rows = await self._course_rows(subject_code, course_code)
        result = group_course_meetings(rows, subj_course_id(subject_code, course_code))
        return list(result.sections)

    async def get_enrollment_count(
        self, subject_code: str, course_code: str
    ) -> list[CourseSection]:
        """Like `get_course_info` but skips meeting reconstruction."""
        rows = await self._course_rows(subject_code, course_code)
        return enrollment_counts(rows, subj_course_id(subject_code, course_code))

    async def get_prerequisites(self, subject_code: str, course_code: str) -> PrerequisiteInfo:
        params = self._term_params(
            subjcode=subject_code.strip(), crsecode=format_course_code(course_code)
        )
        raw = await self._get(self.endpoints.prerequisites, PREREQUISITES, params)
        return build_prerequisites(raw)

    async def get_subject_codes(self) -> list[str]:
        raw = await self._get(self.endpoints.subject_list, SUBJECTS, self._term_params())
        return [s.subject_code.strip() for s in raw]

    async def get_department_codes(self) -> list[str]:
        raw = await self._get(
            self.endpoints.department_list, DEPARTMENTS, self._term_params()
        )
        return [d.dep_code.strip() for d in raw]

    async def search_courses(self, search: SearchType) -> list[RawSearchResultItem]:
        match search:
            case SearchBySection(section_id=section_id):
                url = self.endpoints.search_by_section
                params = {"sectionid": section_id, "termcode": self.term}
            case SearchByMultipleSections(section_ids=section_ids):
                url = self.endpoints.search_by_section
                params = {"sectionid": ":".join(section_ids), "termcode": self.term}
            case SearchRequest():
                url = self.endpoints.search
                params = build_search_params(search, self.term)
            case _:
                raise InputError("search", f"unsupported search {search!r}")
        return await self._get(url, SEARCH_RESULTS, params)

    async def search_courses_detailed(self, search: SearchType) -> list[CourseSection]:
        """Search, then fetch the sections of every matching course.

        Section searches only keep the requested sections.
        """
        match search:
            case SearchBySection(section_id=section_id):
                wanted = {strip_leading_zeros(section_id)}
            case SearchByMultipleSections(section_ids=section_ids):
                wanted = {strip_leading_zeros(s) for s in section_ids}
            case _:
                wanted = set()

        sections = []
        for item in await self.search_courses(search):
            for section in await self.get_course_info(item.subj_code, item.course_code):
                if wanted and strip_leading_zeros(section.section_id) not in wanted:
                    continue
                sections.append(section)
        return sections

    # Schedules

    async def get_schedule(self, schedule_name: str | None = None) -> list[ScheduledSection]:
        params = self._term_params(
            schedname=schedule_name or DEFAULT_SCHEDULE_NAME, final="", sectnum=""
        )
        rows = await self._get(self.endpoints.schedule, SCHEDULED_MEETINGS, params)
        return list(group_schedule_meetings(rows).sections)

    async def get_schedule_list(self) -> list[str]:
        return await self._get(
            self.endpoints.schedule_list, NAMES, {"termcode": self.term}
        )

    async def rename_schedule(self, old_name: str, new_name: str) -> ActionResult:
        if old_name == DEFAULT_SCHEDULE_NAME:
            raise InputError("old_name", "The default schedule cannot be renamed.")
        return await self._post(
            self.endpoints.rename_schedule,
            {"termcode": self.term, "oldschedname": old_name, "newschedname": new_name},
        )

    async def remove_schedule(self, schedule_name: str) -> ActionResult:
        if schedule_name == DEFAULT_SCHEDULE_NAME:
            raise InputError("schedule_name", "The default schedule cannot be removed.")
        return await self._post(
            self.endpoints.remove_schedule,
            {"termcode": self.term, "schedname": schedule_name},
        )

    async def send_email_to_self(self, content: str) -> bool:
        text = await self._request(
            "POST",
            self.endpoints.send_email,
            data={"actionevent": content, "termcode": self.term},
        )
        return '"YES"' in text

    # Planning

    async def validate_add_to_plan(self, plan: PlanAdd) -> ActionResult:
        return await self._post(
            self.endpoints.plan_edit,
            {
                "section": plan.section_id,
                "subjcode": plan.subject_code,
                "crsecode": format_course_code(plan.course_code),
                "termcode": self.term,
            },
        )

    async def add_to_plan(self, plan: PlanAdd, validate: bool = True) -> ActionResult:
        """Plan a section.

        The validation step registers every component of the section with
        WebReg; it can fail for restricted courses and planning still goes
        ahead.
        """
        if validate:
            result = await self.validate_add_to_plan(plan)
            if not result:
                logger.info("Planning %s without validation: %s", plan.section_id, result.reason)

        return await self._post(
            self.endpoints.plan_add,
            {
                "subjcode": plan.subject_code,
                "crsecode": format_course_code(plan.course_code),
                "sectnum": plan.section_id,
                "sectcode": plan.section_code,
                "unit": str(plan.unit_count),
                "grade": plan.grading_option or GradeOption.LETTER,
                "termcode": self.term,
                "schedname": plan.schedule_name or DEFAULT_SCHEDULE_NAME,
            },
        )

    async def remove_from_plan(
        self, section_id: str, schedule_name: str | None = None
    ) -> ActionResult:
        return await self._post(
            self.endpoints.plan_remove,
            {
                "sectnum": section_id,
                "termcode": self.term,
                "schedname": schedule_name or DEFAULT_SCHEDULE_NAME,
            },
        )

    # Enrollment

    async def validate_add_section(self, is_enroll: bool, options: EnrollWaitAdd) -> ActionResult:
        url = self.endpoints.enroll_edit if is_enroll else self.endpoints.waitlist_edit
        return await self._post(
            url,
            {
                "section": options.section_id,
                "termcode": self.term,
                "subjcode": "",
                "crsecode": "",
            },
        )

    async def add_section(
        self, is_enroll: bool, options: EnrollWaitAdd, validate: bool = True
    ) -> ActionResult:
        """Enroll in (or waitlist) a section, then clear it from every plan.

        WebReg refuses to add a section that was not validated first, so
        `validate=False` only makes sense right after `validate_add_section`.
        """
        if validate:
            result = await self.validate_add_section(is_enroll, options)
            if not result:
                return result

        url = self.endpoints.enroll_add if is_enroll else self.endpoints.waitlist_add
        result = await self._post(
            url,
            {
                "section": options.section_id,
                "termcode": self.term,
                "unit": "" if options.unit_count is None else str(options.unit_count),
                "grade": options.grading_option or "",
                "crsecode": "",
                "subjcode": "",
            },
        )
        if not result:
            return result

        return await self._post(
            self.endpoints.plan_remove_all,
            {"sectnum": options.section_id, "termcode": self.term},
        )

    async def drop_section(self, was_enrolled: bool, section_id: str) -> ActionResult:
        url = self.endpoints.enroll_drop if was_enrolled else self.endpoints.waitlist_drop
        return await self._post(
            url,
            {"subjcode": "", "crsecode": "", "section": section_id, "termcode": self.term},
        )

    async def change_grading_option(
        self, section_id: str, grade_option: GradeOption
    ) -> ActionResult:
        # Schedule ids are integers, so `079911` is listed as `79911`.
        target = strip_leading_zeros(section_id)
        section = next(
            (s for s in await self.get_schedule() if s.section_id == target), None
        )
        if section is None:
            raise SectionNotFoundError(f"Section {section_id} is not in your schedule")

        return await self._post(
            self.endpoints.change_enroll,
            {
                "section": section.section_id,
                "subjCode": "",
                "crseCode": "",
                "unit": format_units(section.units),
                "grade": grade_option,
                "oldGrade": "",
                "oldUnit": "",
                "termcode": self.term,
            },
        )

    # Events

    async def get_events(self) -> list[Event]:
        raw = await self._get(self.endpoints.event_get, EVENTS, {"termcode": self.term})
        return [build_event(e) for e in raw]

    async def add_or_edit_event(self, event: EventAdd, timestamp: str | None = None) -> ActionResult:
        """Create an event, or replace the one created at `timestamp`."""
        validate_event(event)
        data = {
            "termcode": self.term,
            "aename": event.name,
            "aestarttime": format_hhmm(event.start_hr, event.start_min),
            "aeendtime": format_hhmm(event.end_hr, event.end_min),
            "aelocation": event.location or "",
            "aedays": format_event_days(event.days),
        }
        if timestamp is not None:
            data["aetimestamp"] = timestamp
            return await self._post(self.endpoints.event_edit, data)
        return await self._post(self.endpoints.event_add, data)

    async def remove_event(self, timestamp: str) -> ActionResult:
        return await self._post(
            self.endpoints.event_remove,
            {"aetimestamp": timestamp, "termcode": self.term},
        )
