"""Rebuild sections out of WebReg's flat meeting rows.

WebReg returns one row per meeting: every lecture day, discussion, final and
midterm of a course is its own row, and the rows of every section are mixed
together. Rows are grouped into section families by the first character of the
section code (`A00`, `A01` and `A02` are all family `A`):

- main rows: the `X00` code with a blank special-meeting tag (the lecture)
- auxiliary rows: the `X00` code with a special-meeting tag (final, midterm)
- child rows: any other code in the family (discussion, lab)

Each child code becomes one section made of the main rows, its own rows and
the auxiliary rows. A family without child codes is a single section. Section
codes starting with a digit are standalone sections.

Everything here is pure; a batch with inconsistent rows is reported through
`FeedDiagnostic`s instead of raising.
"""

import logging
from dataclasses import dataclass, field, replace

from webreg.constants import WEEKDAY_ORDER, DisplayType, EnrollStatusCode
from webreg.models import (
    CourseSection,
    Enrolled,
    EnrollmentStatus,
    Meeting,
    Planned,
    RepeatedDays,
    ScheduledSection,
    Unknown,
    Waitlisted,
)
from webreg.parse import (
    effective_type_tag,
    is_special_meeting,
    merge_instructors,
    parse_instructor_names,
    parse_meeting_days,
    parse_meeting_type,
)
from webreg.raw_models import RawMeetingRecord, RawScheduledMeetingRecord

logger = logging.getLogger(__name__)

MAIN_SUFFIX = "00"
MISSING_MAIN = "missing-main"
MIXED_MAIN_TYPE = "mixed-main-type"


@dataclass(frozen=True)
class FeedDiagnostic:
    kind: str
    key: str
    message: str


@dataclass(frozen=True)
class GroupingResult:
    sections: tuple[CourseSection | ScheduledSection, ...] = ()
    diagnostics: tuple[FeedDiagnostic, ...] = ()


@dataclass(frozen=True)
class MeetingRow:
    """A raw meeting row with its tags decoded."""

    section_code: str
    section_id: str
    special: bool
    enrollable: bool
    meeting: Meeting
    instructors: tuple[str, ...]
    capacity: int | None
    enrolled: int | None
    waitlist: int | None
    sort_key: tuple
    needs_waitlist: bool = False
    # Schedule feed only
    status: EnrollmentStatus | None = None
    waitlist_pos: int | None = None
    units: float = 0.0
    grade_option: str = ""
    subject_code: str = ""
    course_code: str = ""
    course_title: str = ""

    @property
    def family(self) -> str:
        return self.section_code[:1]

    @property
    def is_numeric(self) -> bool:
        return self.section_code[:1].isdigit()

    @property
    def is_main_code(self) -> bool:
        return self.section_code.endswith(MAIN_SUFFIX)

    @property
    def is_dead(self) -> bool:
        return self.capacity == 0 and self.enrolled == 0


@dataclass
class SectionFamily:
    key: str
    main_code: str | None = None
    main: list[MeetingRow] = field(default_factory=list)
    auxiliary: list[MeetingRow] = field(default_factory=list)
    children: dict[str, list[MeetingRow]] = field(default_factory=dict)


# Raw -> row


def build_meeting(record: RawMeetingRecord | RawScheduledMeetingRecord) -> Meeting:
    tag = effective_type_tag(record.meeting_type, record.special_meeting)
    return Meeting(
        meeting_type=parse_meeting_type(tag),
        type_tag=tag,
        meeting_days=parse_meeting_days(
            record.day_code, record.special_meeting, record.start_date
        ),
        start_hr=record.start_time_hr,
        start_min=record.start_time_min,
        end_hr=record.end_time_hr,
        end_min=record.end_time_min,
        building=record.bldg_code.strip(),
        room=record.room_code.strip(),
    )


def raw_sort_key(record: RawMeetingRecord | RawScheduledMeetingRecord) -> tuple:
    return (
        record.section_code.strip(),
        str(record.section_id).strip(),
        record.special_meeting.strip(),
        record.day_code.strip(),
        record.start_date.strip(),
        record.start_time_hr,
        record.start_time_min,
        record.end_time_hr,
        record.end_time_min,
        record.bldg_code.strip(),
        record.room_code.strip(),
        record.person_full_name,
        record.meeting_type.strip(),
    )


def catalog_row(record: RawMeetingRecord) -> MeetingRow:
    return MeetingRow(
        section_code=record.section_code.strip(),
        section_id=record.section_id.strip(),
        special=is_special_meeting(record.special_meeting),
        enrollable=record.display_type.strip() == DisplayType.ACTIVE,
        meeting=build_meeting(record),
        instructors=tuple(parse_instructor_names(record.person_full_name)),
        capacity=record.section_capacity,
        enrolled=record.enrolled_count,
        waitlist=record.count_on_waitlist,
        sort_key=raw_sort_key(record),
        needs_waitlist=record.needs_waitlist.strip() == "Y",
    )


def decode_status(enroll_status: str, waitlist_pos: int | None) -> EnrollmentStatus:
    match enroll_status.strip():
        case EnrollStatusCode.ENROLLED:
            return Enrolled()
        case EnrollStatusCode.WAITLISTED:
            return Waitlisted(waitlist_pos)
        case EnrollStatusCode.PLANNED:
            return Planned()
        case other:
            return Unknown(other)


def schedule_row(record: RawScheduledMeetingRecord) -> MeetingRow:
    pos = record.waitlist_pos.strip()
    return MeetingRow(
        section_code=record.section_code.strip(),
        section_id=str(record.section_id),
        special=is_special_meeting(record.special_meeting),
        enrollable=True,
        meeting=build_meeting(record),
        instructors=tuple(parse_instructor_names(record.person_full_name)),
        capacity=record.section_capacity,
        enrolled=record.enrolled_count,
        waitlist=record.count_on_waitlist,
        sort_key=(
            record.subj_code.strip(),
            record.course_code.strip(),
            *raw_sort_key(record),
        ),
        status=decode_status(record.enroll_status, None),
        waitlist_pos=int(pos) if pos.isdigit() else None,
        units=record.sect_credit_hrs,
        grade_option=record.grade_option.strip(),
        subject_code=record.subj_code.strip(),
        course_code=record.course_code.strip(),
        course_title=record.course_title.strip(),
    )


# Classification


def split_families(
    rows: list[MeetingRow],
) -> tuple[list[MeetingRow], list[SectionFamily]]:
    """Split sorted rows into standalone numeric rows and lettered families."""
    numeric = [row for row in rows if row.is_numeric]
    by_family: dict[str, list[MeetingRow]] = {}
    for row in rows:
        if not row.is_numeric:
            by_family.setdefault(row.family, []).append(row)

    families = []
    for key, family_rows in by_family.items():
        family = SectionFamily(
            key=key,
            main_code=next(
                (row.section_code for row in family_rows if row.is_main_code), None
            ),
        )
        for row in family_rows:
            if row.section_code != family.main_code:
                family.children.setdefault(row.section_code, []).append(row)
            elif row.special:
                family.auxiliary.append(row)
            else:
                family.main.append(row)
        families.append(family)

    return numeric, families


def check_family(family: SectionFamily, diagnostics: list[FeedDiagnostic]) -> bool:
    """Report families that cannot be turned into sections.

    A family with child rows but no `X00` rows at all is skipped. One whose
    `X00` code only has auxiliary rows is kept: the course has no lecture.
    """
    if family.main:
        tags = {row.meeting.type_tag for row in family.main}
        if len(tags) > 1:
            report(
                diagnostics,
                MIXED_MAIN_TYPE,
                family.key,
                f"main meetings of {family.main_code} have types {sorted(tags)}; "
                f"using {family.main[0].meeting.type_tag}",
            )
        return True

    if family.children and family.auxiliary:
        return True

    report(
        diagnostics,
        MISSING_MAIN,
        family.key,
        f"section family {family.key} has no main meeting; skipping "
        f"{sorted(family.children) or [family.main_code]}",
    )
    return False


def report(diagnostics: list[FeedDiagnostic], kind: str, key: str, message: str):
    logger.warning("Inconsistent WebReg feed (%s): %s", kind, message)
    diagnostics.append(FeedDiagnostic(kind, key, message))


def main_meetings(family: SectionFamily) -> list[Meeting]:
    if not family.main:
        return []
    first = family.main[0].meeting
    return [
        replace(row.meeting, meeting_type=first.meeting_type, type_tag=first.type_tag)
        for row in family.main
    ]


def child_meetings(rows: list[MeetingRow], base: list[str]) -> list[Meeting]:
    meetings = []
    for row in rows:
        extra = [name for name in dict.fromkeys(row.instructors) if name not in base]
        meetings.append(replace(row.meeting, instructors=tuple(extra)))
    return meetings


def family_sections(family: SectionFamily):
    """Yield `(section_code, rows, instructors, meetings)` for each section of a family.

    `rows` starts with the row that carries the section's enrollment counts.
    """
    base = merge_instructors(
        *(row.instructors for row in family.main),
        *(row.instructors for row in family.auxiliary),
    )
    mains = main_meetings(family)
    auxiliary = [row.meeting for row in family.auxiliary]

    if not family.children:
        rows = family.main + family.auxiliary
        yield family.main_code, rows, base, mains + auxiliary
        return

    for code, rows in family.children.items():
        meetings = mains + child_meetings(rows, base) + auxiliary
        yield code, rows + family.main + family.auxiliary, base, meetings


# Assembly


def count(value: int | None) -> int:
    return max(value or 0, 0)


def course_section(
    subj_course_id: str,
    source: MeetingRow,
    section_code: str,
    instructors: list[str],
    meetings: list[Meeting],
) -> CourseSection:
    total = count(source.capacity)
    enrolled = count(source.enrolled)
    return CourseSection(
        subj_course_id=subj_course_id,
        section_id=source.section_id,
        section_code=section_code,
        all_instructors=tuple(instructors),
        available_seats=max(total - enrolled, 0),
        enrolled_ct=enrolled,
        total_seats=total,
        waitlist_ct=count(source.waitlist),
        meetings=tuple(meetings),
        needs_waitlist=source.needs_waitlist,
    )


def scheduled_section(
    rows: list[MeetingRow],
    section_code: str,
    instructors: list[str],
    meetings: list[Meeting],
) -> ScheduledSection:
    source = rows[0]

    def first(attr: str):
        return next((getattr(r, attr) for r in rows if getattr(r, attr) is not None), None)

    status = source.status
    if isinstance(status, Waitlisted):
        status = Waitlisted(first("waitlist_pos"))

    waitlist = first("waitlist")
    capacity = count(first("capacity"))
    enrolled = count(first("enrolled"))
    return ScheduledSection(
        section_id=source.section_id,
        subject_code=source.subject_code,
        course_code=source.course_code,
        course_title=source.course_title,
        section_code=section_code,
        section_capacity=capacity,
        enrolled_count=enrolled,
        available_seats=max(capacity - enrolled, 0),
        grade_option=source.grade_option,
        all_instructors=tuple(instructors),
        units=source.units,
        enrolled_status=status,
        waitlist_ct=None if waitlist is None else max(waitlist, 0),
        meetings=tuple(meetings),
    )


# Entry points


def group_course_meetings(
    records: list[RawMeetingRecord], subj_course_id: str
) -> GroupingResult:
    """Group catalog rows for one course into `CourseSection`s."""
    rows = sorted((catalog_row(r) for r in records), key=lambda r: r.sort_key)
    rows = [
        row
        for row in rows
        # Rows that can't be enrolled in are only useful as `X00` rows.
        if (row.enrollable or row.is_main_code) and not row.is_dead
    ]

    diagnostics: list[FeedDiagnostic] = []
    numeric, families = split_families(rows)
    sections = [
        course_section(
            subj_course_id,
            row,
            row.section_code,
            merge_instructors(row.instructors),
            [row.meeting],
        )
        for row in numeric
    ]

    for family in families:
        if not check_family(family, diagnostics):
            continue
        for code, section_rows, instructors, meetings in family_sections(family):
            assert meetings, f"section {code} was built without meetings"
            sections.append(
                course_section(
                    subj_course_id, section_rows[0], code, instructors, meetings
                )
            )

    return GroupingResult(tuple(sections), tuple(diagnostics))


def merge_numeric_schedule_rows(rows: list[MeetingRow]) -> list[MeetingRow]:
    """The schedule feed splits a weekly meeting into one row per day."""
    by_code: dict[str, list[MeetingRow]] = {}
    for row in rows:
        by_code.setdefault(row.section_code, []).append(row)

    merged = []
    for code_rows in by_code.values():
        first = code_rows[0]
        days = {
            day
            for row in code_rows
            if isinstance(row.meeting.meeting_days, RepeatedDays)
            for day in row.meeting.meeting_days.days
        }
        if days:
            ordered = tuple(day for day in WEEKDAY_ORDER if day in days)
            first = replace(
                first,
                meeting=replace(first.meeting, meeting_days=RepeatedDays(ordered)),
                instructors=tuple(merge_instructors(*(row.instructors for row in code_rows))),
            )
        merged.append(first)
    return merged


def group_schedule_meetings(records: list[RawScheduledMeetingRecord]) -> GroupingResult:
    """Group schedule rows into `ScheduledSection`s, one batch per course."""
    rows = sorted((schedule_row(r) for r in records), key=lambda r: r.sort_key)
    by_course: dict[tuple[str, str], list[MeetingRow]] = {}
    for row in rows:
        if row.is_dead:
            continue
        by_course.setdefault((row.subject_code, row.course_code), []).append(row)

    diagnostics: list[FeedDiagnostic] = []
    sections = []
    for course_rows in by_course.values():
        numeric, families = split_families(course_rows)
        for row in merge_numeric_schedule_rows(numeric):
            sections.append(
                scheduled_section(
                    [row], row.section_code, merge_instructors(row.instructors), [row.meeting]
                )
            )

        for family in families:
            if not check_family(family, diagnostics):
                continue
            for code, section_rows, instructors, meetings in family_sections(family):
                assert meetings, f"section {code} was built without meetings"
                sections.append(
                    scheduled_section(section_rows, code, instructors, meetings)
                )

    return GroupingResult(tuple(sections), tuple(diagnostics))


def enrollment_counts(
    records: list[RawMeetingRecord], subj_course_id: str
) -> list[CourseSection]:
    """One meeting-less section per enrollable section code."""
    rows = sorted((catalog_row(r) for r in records), key=lambda r: r.sort_key)
    sections = []
    seen = set()
    for row in rows:
        if not row.enrollable or row.is_dead or row.section_code in seen:
            continue
        seen.add(row.section_code)
        sections.append(
            course_section(
                subj_course_id, row, row.section_code, merge_instructors(row.instructors), []
            )
        )
    return sections
