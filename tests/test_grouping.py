import os
import random
import sys
from datetime import date

import pytest

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from webreg.constants import MeetingType, Weekday
from webreg.errors import DateParseError, WebRegError
from webreg.grouping import (
    MISSING_MAIN,
    MIXED_MAIN_TYPE,
    enrollment_counts,
    group_course_meetings,
    group_schedule_meetings,
)
from webreg.models import (
    Enrolled,
    OneTimeDate,
    Planned,
    RepeatedDays,
    Unknown,
    Waitlisted,
)
from webreg.raw_models import RawMeetingRecord, RawScheduledMeetingRecord

COURSE = "CSE 100"


def meeting(section_code, **overrides) -> RawMeetingRecord:
    fields = {
        "subj_code": "CSE",
        "course_code": "100",
        "section_code": section_code,
        "section_id": f"0799{section_code[-2:]}",
        "meeting_type": "LE",
        "special_meeting": "  ",
        "day_code": "135",
        "start_date": "2024-04-01",
        "start_time_hr": 10,
        "start_time_min": 0,
        "end_time_hr": 10,
        "end_time_min": 50,
        "bldg_code": "CENTR",
        "room_code": "101",
        "person_full_name": "Smith, J  ;A123",
        "section_capacity": 100,
        "enrolled_count": 50,
        "count_on_waitlist": 0,
        "avail_seat": 50,
        "display_type": "AC",
    }
    fields.update(overrides)
    return RawMeetingRecord(**fields)


def scheduled(section_code, **overrides) -> RawScheduledMeetingRecord:
    fields = {
        "section_id": 79912,
        "sect_credit_hrs": 4.0,
        "subj_code": "CSE",
        "course_code": "100",
        "course_title": "Advanced Data Structures",
        "section_code": section_code,
        "meeting_type": "LE",
        "special_meeting": "  ",
        "day_code": "1",
        "start_date": "2024-04-01",
        "start_time_hr": 10,
        "start_time_min": 0,
        "end_time_hr": 10,
        "end_time_min": 50,
        "bldg_code": "CENTR",
        "room_code": "101",
        "person_full_name": "Smith, J  ;A123",
        "grade_option": "L",
        "enroll_status": "EN",
        "section_capacity": None,
        "enrolled_count": None,
        "count_on_waitlist": None,
        "waitlist_pos": "",
    }
    fields.update(overrides)
    return RawScheduledMeetingRecord(**fields)


def lecture_with_discussions():
    return [
        meeting("A00", display_type="NC", section_capacity=200, enrolled_count=180),
        meeting(
            "A01",
            meeting_type="DI",
            day_code="2",
            start_time_hr=9,
            end_time_hr=9,
            section_capacity=40,
            enrolled_count=41,
            count_on_waitlist=3,
            person_full_name="Lee, T  ;C789",
        ),
        meeting(
            "A02",
            meeting_type="DI",
            day_code="4",
            start_time_hr=9,
            end_time_hr=9,
            section_capacity=40,
            enrolled_count=10,
        ),
        meeting(
            "A00",
            display_type="NC",
            special_meeting="FI",
            day_code="6",
            start_date="2024-06-10",
            start_time_hr=11,
            end_time_hr=13,
            end_time_min=59,
        ),
    ]


def test_lecture_discussion_final():
    result = group_course_meetings(lecture_with_discussions(), COURSE)

    assert not result.diagnostics
    assert [s.section_code for s in result.sections] == ["A01", "A02"]
    for section in result.sections:
        assert len(section.meetings) == 3
        lecture, discussion, final = section.meetings
        assert lecture.meeting_type == MeetingType.LECTURE
        assert lecture.meeting_days == RepeatedDays(
            (Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY)
        )
        assert discussion.meeting_type == MeetingType.DISCUSSION
        assert final.meeting_type == MeetingType.FINAL
        assert final.meeting_days == OneTimeDate(date(2024, 6, 10))
        assert section.subj_course_id == COURSE

    a01, a02 = result.sections
    assert a01.meetings[1].meeting_days == RepeatedDays((Weekday.TUESDAY,))
    assert a02.meetings[1].meeting_days == RepeatedDays((Weekday.THURSDAY,))


def test_child_counts_and_instructors():
    a01, a02 = group_course_meetings(lecture_with_discussions(), COURSE).sections

    assert a01.section_id == "079901"
    assert (a01.total_seats, a01.enrolled_ct, a01.waitlist_ct) == (40, 41, 3)
    assert a01.available_seats == 0
    assert not a01.has_seats()
    assert a02.available_seats == 30
    assert a02.has_seats()

    # Base instructors come from the lecture and final.
    assert a01.all_instructors == ("Smith, J",)
    assert a01.meetings[0].instructors == ()
    assert a01.meetings[1].instructors == ("Lee, T",)
    assert a02.meetings[1].instructors == ()


def test_lecture_only_course():
    rows = [
        meeting("A00", day_code="2", section_capacity=30, enrolled_count=20),
        meeting("A00", day_code="4", section_capacity=30, enrolled_count=20),
        meeting("A00", special_meeting="FI", start_date="2024-06-12"),
    ]
    (section,) = group_course_meetings(rows, COURSE).sections

    assert section.section_code == "A00"
    assert len(section.meetings) == 3
    assert section.meetings[-1].meeting_days == OneTimeDate(date(2024, 6, 12))
    assert (section.total_seats, section.enrolled_ct) == (30, 20)
    assert section.available_seats == 10


def test_numeric_sections_are_standalone():
    rows = [
        meeting("001", section_id="080001", meeting_type="IN", day_code=""),
        meeting("002", section_id="080002", meeting_type="IN", day_code=""),
        meeting("A00"),
    ]
    sections = group_course_meetings(rows, COURSE).sections

    numeric = [s for s in sections if s.section_code[0].isdigit()]
    assert [s.section_code for s in numeric] == ["001", "002"]
    for section in numeric:
        assert len(section.meetings) == 1
        assert section.meetings[0].meeting_type == MeetingType.INDEPENDENT_STUDY


def test_dead_rows_are_dropped():
    rows = [
        meeting(code, section_capacity=0, enrolled_count=0)
        for code in ["A00", "A01", "A02", "001"]
    ]
    result = group_course_meetings(rows, COURSE)
    assert result.sections == ()


def test_non_enrollable_child_rows_are_dropped():
    rows = lecture_with_discussions()
    rows[2] = meeting("A02", meeting_type="DI", display_type="CA")
    sections = group_course_meetings(rows, COURSE).sections
    assert [s.section_code for s in sections] == ["A01"]


def test_seat_clamping():
    rows = [meeting("A00", section_capacity=10, enrolled_count=15, count_on_waitlist=-2)]
    (section,) = group_course_meetings(rows, COURSE).sections
    assert section.available_seats == 0
    assert section.waitlist_ct == 0


def test_has_seats_false_with_waitlist():
    rows = [meeting("A00", section_capacity=10, enrolled_count=5, count_on_waitlist=1)]
    (section,) = group_course_meetings(rows, COURSE).sections
    assert section.available_seats == 5
    assert not section.has_seats()


def test_instructor_dedup():
    rows = [meeting("A00", person_full_name="Smith, J  ;A123:Smith, J  ;A123:Doe, R  ;B456")]
    (section,) = group_course_meetings(rows, COURSE).sections
    assert list(section.all_instructors) == ["Doe, R", "Smith, J"]


def test_missing_main_is_skipped(caplog):
    rows = [
        meeting("A01", meeting_type="DI"),
        meeting("A02", meeting_type="DI"),
        meeting("B00"),
    ]
    result = group_course_meetings(rows, COURSE)

    assert [s.section_code for s in result.sections] == ["B00"]
    assert len(result.diagnostics) == 1
    assert result.diagnostics[0].kind == MISSING_MAIN
    assert result.diagnostics[0].key == "A"
    assert "Inconsistent WebReg feed" in caplog.text


def test_auxiliary_only_family():
    rows = [
        meeting("A00", special_meeting="FI", start_date="2024-06-10"),
        meeting("A01", meeting_type="LA"),
    ]
    result = group_course_meetings(rows, COURSE)

    (section,) = result.sections
    assert not result.diagnostics
    assert [m.meeting_type for m in section.meetings] == [MeetingType.LAB, MeetingType.FINAL]


def test_mixed_main_type_first_row_wins():
    rows = [
        meeting("A00", day_code="1", meeting_type="LE"),
        meeting("A00", day_code="3", meeting_type="SE"),
    ]
    result = group_course_meetings(rows, COURSE)

    (section,) = result.sections
    assert [d.kind for d in result.diagnostics] == [MIXED_MAIN_TYPE]
    assert all(m.meeting_type == MeetingType.LECTURE for m in section.meetings)


def test_grouping_ignores_row_order():
    rows = lecture_with_discussions() + [
        meeting("B00", day_code="24"),
        meeting("B01", meeting_type="LA", day_code="5"),
        meeting("003", meeting_type="IN"),
    ]
    expected = group_course_meetings(rows, COURSE)

    shuffled = rows[:]
    for seed in range(5):
        random.Random(seed).shuffle(shuffled)
        assert group_course_meetings(shuffled, COURSE) == expected


def test_enrollment_counts():
    sections = enrollment_counts(lecture_with_discussions(), COURSE)

    assert [s.section_code for s in sections] == ["A01", "A02"]
    assert all(s.meetings == () for s in sections)
    assert sections[0].enrolled_ct == 41


# Schedule feed


def test_schedule_waitlisted_position():
    rows = [scheduled("A00", enroll_status="WT", waitlist_pos="3")]
    (section,) = group_schedule_meetings(rows).sections
    assert section.enrolled_status == Waitlisted(3)


def test_schedule_enrolled_ignores_position():
    rows = [scheduled("A00", enroll_status="EN", waitlist_pos="3")]
    (section,) = group_schedule_meetings(rows).sections
    assert section.enrolled_status == Enrolled()


@pytest.mark.parametrize(
    "status, expected",
    [("PL", Planned()), ("XX", Unknown("XX")), ("WT", Waitlisted(None))],
)
def test_schedule_status_decoding(status, expected):
    (section,) = group_schedule_meetings([scheduled("A00", enroll_status=status)]).sections
    assert section.enrolled_status == expected


def test_schedule_lecture_and_discussion():
    rows = [
        scheduled("A00", day_code="1"),
        scheduled("A00", day_code="3"),
        scheduled("A00", day_code="5"),
        scheduled(
            "A01",
            meeting_type="DI",
            day_code="2",
            section_capacity=35,
            enrolled_count=30,
            count_on_waitlist=2,
            enroll_status="WT",
            waitlist_pos="2",
        ),
        scheduled("A00", special_meeting="FI", day_code="6", start_date="2024-06-10"),
    ]
    (section,) = group_schedule_meetings(rows).sections

    assert section.section_code == "A01"
    assert section.section_id == "79912"
    assert len(section.meetings) == 5
    assert (section.section_capacity, section.enrolled_count) == (35, 30)
    assert section.available_seats == 5
    assert section.waitlist_ct == 2
    assert section.enrolled_status == Waitlisted(2)
    assert section.units == 4.0
    assert section.course_title == "Advanced Data Structures"


def test_schedule_unknown_counts():
    (section,) = group_schedule_meetings([scheduled("A00")]).sections
    assert section.waitlist_ct is None
    assert section.section_capacity == 0
    assert section.available_seats == 0


def test_schedule_splits_courses():
    rows = [
        scheduled("A00"),
        scheduled("A00", subj_code="MATH", course_code="20C", section_id=80011),
    ]
    sections = group_schedule_meetings(rows).sections
    assert sorted((s.subject_code, s.course_code) for s in sections) == [
        ("CSE", "100"),
        ("MATH", "20C"),
    ]


def test_schedule_drops_dead_rows():
    rows = [scheduled("A00", section_capacity=0, enrolled_count=0)]
    assert group_schedule_meetings(rows).sections == ()


def test_schedule_numeric_rows_merge_days():
    rows = [
        scheduled("001", meeting_type="SE", day_code="3"),
        scheduled("001", meeting_type="SE", day_code="1"),
    ]
    (section,) = group_schedule_meetings(rows).sections
    (only,) = section.meetings
    assert only.meeting_days == RepeatedDays((Weekday.MONDAY, Weekday.WEDNESDAY))


def test_schedule_has_seats():
    (open_section,) = group_schedule_meetings(
        [scheduled("A00", section_capacity=40, enrolled_count=30, count_on_waitlist=0)]
    ).sections
    (unknown_waitlist,) = group_schedule_meetings(
        [scheduled("A00", section_capacity=40, enrolled_count=30)]
    ).sections
    (full,) = group_schedule_meetings(
        [scheduled("A00", section_capacity=40, enrolled_count=40, count_on_waitlist=0)]
    ).sections

    assert open_section.has_seats()
    assert not unknown_waitlist.has_seats()
    assert not full.has_seats()


def test_schedule_missing_main_is_skipped(caplog):
    rows = [
        scheduled("A01", meeting_type="DI", day_code="2"),
        scheduled("A02", meeting_type="DI", day_code="4"),
        scheduled("A00", subj_code="MATH", course_code="20C", section_id=80011),
    ]
    result = group_schedule_meetings(rows)

    assert [(s.subject_code, s.section_code) for s in result.sections] == [("MATH", "A00")]
    assert [d.kind for d in result.diagnostics] == [MISSING_MAIN]
    assert "Inconsistent WebReg feed" in caplog.text


def test_schedule_grouping_ignores_row_order():
    rows = [
        scheduled("A00", day_code="1"),
        scheduled("A00", day_code="3"),
        scheduled("A01", meeting_type="DI", day_code="2", enroll_status="WT", waitlist_pos="2"),
        scheduled("A00", special_meeting="FI", start_date="2024-06-10"),
        scheduled("002", meeting_type="SE", day_code="5", course_code="199", section_id=80500),
        scheduled("002", meeting_type="SE", day_code="4", course_code="199", section_id=80500),
        scheduled("A00", subj_code="MATH", course_code="20C", section_id=80011),
    ]
    expected = group_schedule_meetings(rows)
    assert len(expected.sections) == 3

    shuffled = rows[:]
    for seed in range(5):
        random.Random(seed).shuffle(shuffled)
        assert group_schedule_meetings(shuffled) == expected


def test_malformed_row_raises_webreg_error():
    with pytest.raises(WebRegError):
        group_course_meetings([meeting("A00", day_code="1x3")], COURSE)
    with pytest.raises(DateParseError):
        group_course_meetings(
            [meeting("A00", special_meeting="FI", start_date="")], COURSE
        )
