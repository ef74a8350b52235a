"""Models mirroring WebReg's JSON responses key for key.

Field aliases are the portal's own key names, so `model_dump(by_alias=True)`
reproduces the original payload. No cleanup happens here; values keep their
padding and sentinel strings.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class RawModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class RawSearchResultItem(RawModel):
    """One course matched by a search."""

    subj_code: str = Field(alias="SUBJ_CODE")
    course_code: str = Field(alias="CRSE_CODE")
    course_title: str = Field(alias="CRSE_TITLE")
    min_units: float = Field(alias="UNIT_FROM")
    max_units: float = Field(alias="UNIT_TO")


class RawMeetingRecord(RawModel):
    """A single meeting row from the course catalog feed.

    One row is one piece of a section (a lecture day, a discussion, a final),
    never a whole section.
    """

    subj_code: str = Field(default="", alias="SUBJ_CODE")
    course_code: str = Field(default="", alias="CRSE_CODE")
    section_code: str = Field(alias="SECT_CODE")
    section_id: str = Field(alias="SECTION_NUMBER")
    # Finals and midterms are reported as `LE` here; check `special_meeting`.
    meeting_type: str = Field(alias="FK_CDI_INSTR_TYPE")
    # Two spaces (or `TBA`) for a regular meeting.
    special_meeting: str = Field(alias="FK_SPM_SPCL_MTG_CD")
    # Digits 1-5 for Monday-Friday, e.g. `135` for MWF.
    day_code: str = Field(alias="DAY_CODE")
    start_date: str = Field(alias="START_DATE")
    section_start_date: str = Field(default="", alias="SECTION_START_DATE")
    start_time_hr: int = Field(alias="BEGIN_HH_TIME")
    start_time_min: int = Field(alias="BEGIN_MM_TIME")
    end_time_hr: int = Field(alias="END_HH_TIME")
    end_time_min: int = Field(alias="END_MM_TIME")
    bldg_code: str = Field(alias="BLDG_CODE")
    room_code: str = Field(alias="ROOM_CODE")
    # `name  ;pid:name  ;pid:...`
    person_full_name: str = Field(alias="PERSON_FULL_NAME")
    section_capacity: int = Field(alias="SCTN_CPCTY_QTY")
    enrolled_count: int = Field(alias="SCTN_ENRLT_QTY")
    count_on_waitlist: int = Field(alias="COUNT_ON_WAITLIST")
    avail_seat: int = Field(alias="AVAIL_SEAT")
    # `AC` enrollable, `NC` not enrollable, `CA` canceled
    display_type: str = Field(alias="FK_SST_SCTN_STATCD")
    print_flag: str = Field(default=" ", alias="PRINT_FLAG")
    needs_waitlist: str = Field(default="N", alias="STP_ENRLT_FLAG")

    def is_visible(self) -> bool:
        return self.print_flag in ("Y", " ")


class RawScheduledMeetingRecord(RawModel):
    """A single meeting row from the personal schedule feed.

    Capacity, enrollment and waitlist columns are null on rows that cannot be
    enrolled in directly (e.g. the lecture of a lecture + discussion course).
    """

    section_id: int = Field(alias="SECTION_HEAD")
    sect_credit_hrs: float = Field(alias="SECT_CREDIT_HRS")
    subj_code: str = Field(alias="SUBJ_CODE")
    course_code: str = Field(alias="CRSE_CODE")
    course_title: str = Field(alias="CRSE_TITLE")
    section_code: str = Field(alias="SECT_CODE")
    meeting_type: str = Field(alias="FK_CDI_INSTR_TYPE")
    special_meeting: str = Field(alias="FK_SPM_SPCL_MTG_CD")
    day_code: str = Field(alias="DAY_CODE")
    start_date: str = Field(alias="START_DATE")
    start_time_hr: int = Field(alias="BEGIN_HH_TIME")
    start_time_min: int = Field(alias="BEGIN_MM_TIME")
    end_time_hr: int = Field(alias="END_HH_TIME")
    end_time_min: int = Field(alias="END_MM_TIME")
    bldg_code: str = Field(alias="BLDG_CODE")
    room_code: str = Field(alias="ROOM_CODE")
    person_full_name: str = Field(alias="PERSON_FULL_NAME")
    grade_option: str = Field(alias="GRADE_OPTION")
    enroll_status: str = Field(alias="ENROLL_STATUS")
    section_capacity: int | None = Field(default=None, alias="SCTN_CPCTY_QTY")
    enrolled_count: int | None = Field(default=None, alias="SCTN_ENRLT_QTY")
    count_on_waitlist: int | None = Field(default=None, alias="COUNT_ON_WAITLIST")
    waitlist_pos: str = Field(default="", alias="WT_POS")


class RawEvent(RawModel):
    location: str = Field(alias="LOCATION")
    # HHMM
    start_time: str = Field(alias="START_TIME")
    end_time: str = Field(alias="END_TIME")
    description: str = Field(alias="DESCRIPTION")
    # Seven characters, Monday first, `1` when selected.
    days: str = Field(alias="DAYS")
    time_stamp: str = Field(alias="TIME_STAMP")


class RawTermListItem(RawModel):
    term_desc: str = Field(alias="termDesc")
    seq_id: int = Field(alias="seqId")
    term_code: str = Field(alias="termCode")


class RawSubjectElement(RawModel):
    long_desc: str = Field(alias="LONG_DESC")
    subject_code: str = Field(alias="SUBJECT_CODE")


class RawDepartmentElement(RawModel):
    dep_code: str = Field(alias="DEP_CODE")
    dep_desc: str = Field(alias="DEP_DESC")


class RawTestPrerequisite(RawModel):
    type: Literal["TEST"] = Field(alias="TYPE")
    test_title: str = Field(alias="TEST_TITLE")


class RawCoursePrerequisite(RawModel):
    type: Literal["COURSE"] = Field(alias="TYPE")
    subject_code: str = Field(alias="SUBJECT_CODE")
    course_code: str = Field(alias="COURSE_CODE")
    course_title: str = Field(alias="CRSE_TITLE")
    # Prerequisites sharing an id are alternatives for each other.
    prereq_seq_id: str = Field(alias="PREREQ_SEQ_ID")
    grade_seq_id: str = Field(default="", alias="GRADE_SEQ_ID")


RawPrerequisite = Annotated[
    RawTestPrerequisite | RawCoursePrerequisite, Field(discriminator="type")
]
