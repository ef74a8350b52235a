"""Text renderings of sections, meetings and events."""

from pydantic import TypeAdapter

from webreg.models import (
    CourseSection,
    Enrolled,
    Event,
    Meeting,
    MeetingDays,
    NoMeeting,
    OneTimeDate,
    Planned,
    ScheduledSection,
    Waitlisted,
)
from webreg.raw_models import RawSearchResultItem

NO_DAYS_TEXT = "N/A"
INSTRUCTOR_SEPARATOR = " & "


def days_to_str(meeting_days: MeetingDays) -> str:
    match meeting_days:
        case OneTimeDate(date=date):
            return date.isoformat()
        case NoMeeting():
            return NO_DAYS_TEXT
        case _:
            return "".join(meeting_days.days)


def time_range(start_hr: int, start_min: int, end_hr: int, end_min: int, sep: str = " - ") -> str:
    return f"{start_hr}:{start_min:02d}{sep}{end_hr}:{end_min:02d}"


def meeting_to_str(meeting: Meeting) -> str:
    times = time_range(meeting.start_hr, meeting.start_min, meeting.end_hr, meeting.end_min)
    return (
        f"\t[{meeting.type_tag}] {days_to_str(meeting.meeting_days)} at {times} "
        f"in {meeting.building} {meeting.room} "
        f"[{INSTRUCTOR_SEPARATOR.join(meeting.instructors)}]"
    )


def meeting_to_flat_str(meeting: Meeting) -> str:
    """One-line form for CSV/TSV output, e.g. `MWF LE 13:00-13:50 CENTR 115..`."""
    times = time_range(
        meeting.start_hr, meeting.start_min, meeting.end_hr, meeting.end_min, sep="-"
    )
    return (
        f"{days_to_str(meeting.meeting_days)} {meeting.type_tag} {times} "
        f"{meeting.building} {meeting.room}.."
        f"{INSTRUCTOR_SEPARATOR.join(meeting.instructors)}"
    )


def section_to_str(section: CourseSection) -> str:
    header = (
        f"[{section.subj_course_id}] [{section.section_code} / {section.section_id}] "
        f"{INSTRUCTOR_SEPARATOR.join(section.all_instructors)} - "
        f"Avail.: {section.available_seats}, Enroll.: {section.enrolled_ct}, "
        f"Total: {section.total_seats} (WL: {section.waitlist_ct}) "
        f"[{'E' if section.has_seats() else 'W'}]"
    )
    return "\n".join([header, *map(meeting_to_str, section.meetings)])


def status_to_str(section: ScheduledSection) -> str:
    waitlist = "?" if section.waitlist_ct is None else section.waitlist_ct
    match section.enrolled_status:
        case Enrolled():
            return "Enrolled"
        case Waitlisted(position=position):
            return f"Waitlisted {'?' if position is None else position}/{waitlist}"
        case Planned():
            return "Planned"
        case _:
            return "Unknown"


def scheduled_to_str(section: ScheduledSection) -> str:
    header = (
        f"[{section.section_code} / {section.section_id}] {section.course_title} "
        f"({section.subject_code} {section.course_code}) with "
        f"{INSTRUCTOR_SEPARATOR.join(section.all_instructors)} - {status_to_str(section)} "
        f"({section.units:g} Units, {section.grade_option} Grading, "
        f"Avail.: {section.available_seats}, Enroll.: {section.enrolled_count}, "
        f"Total: {section.section_capacity})"
    )
    return "\n".join([header, *map(meeting_to_str, section.meetings)])


def search_result_to_str(item: RawSearchResultItem) -> str:
    units = f"{item.min_units:g}"
    if item.max_units != item.min_units:
        units += f"-{item.max_units:g}"
    return f"{item.subj_code.strip()} {item.course_code.strip()}: {item.course_title.strip()} ({units} Units)"


def event_to_str(event: Event) -> str:
    times = time_range(event.start_hr, event.start_min, event.end_hr, event.end_min)
    location = f" in {event.location}" if event.location else ""
    return f"{event.name}: {''.join(event.days)} at {times}{location}"


def to_json(value: CourseSection | ScheduledSection | Meeting | Event | list) -> str:
    return TypeAdapter(type(value)).dump_json(value, indent=2).decode()
