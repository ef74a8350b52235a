"""Parsing of WebReg's compact encodings: day codes, meeting tags, instructor fields."""

import re
from collections.abc import Iterable
from datetime import date, datetime

import pendulum
from pendulum.parsing.exceptions import ParserError

from webreg.constants import BLANK_SPECIAL_MEETING, WEEKDAY_ORDER, MeetingType, Weekday
from webreg.errors import DateParseError, DayCodeError
from webreg.models import MeetingDays, NoMeeting, OneTimeDate, RepeatedDays

DAY_CODE_MAP = {str(i): day for i, day in enumerate(WEEKDAY_ORDER[:5], start=1)}
MEETING_TYPE_MAP = {m.value: m for m in MeetingType if m is not MeetingType.OTHER}
TAG_RE = re.compile(r"<[^>]*>?")


def parse_day_code(day_code: str) -> list[Weekday]:
    """Convert a day code such as `"135"` into `[MONDAY, WEDNESDAY, FRIDAY]`.

    Raises:
        DayCodeError: If the code contains anything other than the digits 1-5
    """
    days = set()
    for char in day_code.strip():
        if char not in DAY_CODE_MAP:
            raise DayCodeError(f"Invalid character {char!r} in day code {day_code!r}")
        days.add(DAY_CODE_MAP[char])
    return [day for day in WEEKDAY_ORDER if day in days]


def is_special_meeting(special_meeting: str) -> bool:
    """Regular meetings carry a blank (or `TBA`) special-meeting tag."""
    return bool(special_meeting.replace(BLANK_SPECIAL_MEETING, "").strip())


def parse_date(value: str) -> date:
    try:
        parsed = pendulum.parse(value.strip(), exact=True)
    except ParserError as e:
        raise DateParseError(value) from e
    if isinstance(parsed, datetime):
        return parsed.date()
    if not isinstance(parsed, date):
        raise DateParseError(value)
    return parsed


def parse_meeting_days(day_code: str, special_meeting: str, start_date: str) -> MeetingDays:
    # One-time events (finals, midterms) always use their start date.
    if is_special_meeting(special_meeting):
        return OneTimeDate(parse_date(start_date))
    if not day_code.strip():
        return NoMeeting()
    return RepeatedDays(tuple(parse_day_code(day_code)))


def parse_meeting_type(tag: str) -> MeetingType:
    return MEETING_TYPE_MAP.get(tag.strip().upper(), MeetingType.OTHER)


def effective_type_tag(meeting_type: str, special_meeting: str) -> str:
    """Special meetings are reported as lectures, so their own tag wins."""
    if is_special_meeting(special_meeting):
        return special_meeting.strip()
    return meeting_type.strip()


def parse_instructor_names(person_full_name: str) -> list[str]:
    """Extract names from `name1    ;pid1:name2      ;pid2:...`."""
    names = []
    for entry in person_full_name.split(":"):
        name = entry.split(";", 1)[0].strip()
        if name:
            names.append(name)
    return names


def merge_instructors(*groups: Iterable[str]) -> list[str]:
    return sorted({name for group in groups for name in group})


def format_course_code(course_code: str) -> str:
    """Pad a course number the way WebReg expects (`8` -> `  8`, `20E` -> ` 20E`)."""
    course_code = course_code.strip()
    digits = sum(c.isdigit() for c in course_code)
    if digits == 1:
        return f"  {course_code}"
    if digits == 2:
        return f" {course_code}"
    return course_code


def strip_tags(reason: str) -> str:
    return TAG_RE.sub("", reason.strip())


def parse_hhmm(value: str) -> tuple[int, int]:
    value = value.strip().zfill(4)
    if len(value) != 4 or not value.isdigit():
        raise ValueError(f"Invalid HHMM time {value!r}")
    return int(value[:2]), int(value[2:])


def format_hhmm(hour: int, minute: int) -> str:
    return f"{hour * 100 + minute:04d}"


def parse_event_days(bits: str) -> list[Weekday]:
    """`1010100` -> Monday, Wednesday, Friday."""
    return [day for day, bit in zip(WEEKDAY_ORDER, bits.strip()) if bit == "1"]


def format_event_days(days: Iterable[Weekday]) -> str:
    selected = set(days)
    return "".join("1" if day in selected else "0" for day in WEEKDAY_ORDER)


def strip_leading_zeros(section_id: str) -> str:
    return section_id.strip().lstrip("0")
