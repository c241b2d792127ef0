from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
    model_validator,
)

from canvas_mcp.utils.time_parser import parse_timestamp

from .client import DATE_FIELDS, DATE_FIELDS_REQUIRED

# --- Backend DTOs --------------------------------------------------------- #
#
# Canvas payloads are passed through to callers as-is; these models are only
# used where a tool needs to read fields. Unknown keys are ignored and every
# field is optional so partial payloads still validate.


class Term(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    start_at: Optional[str] = None
    end_at: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class Course(BaseModel):
    id: int
    name: Optional[str] = None
    course_code: Optional[str] = None
    original_name: Optional[str] = None
    term: Optional[Term] = None

    model_config = ConfigDict(extra="ignore")


class ModuleItem(BaseModel):
    id: Optional[int] = None
    title: Optional[str] = None
    type: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class Module(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    items_count: Optional[int] = None
    items: List[ModuleItem] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @property
    def item_total(self) -> int:
        if self.items_count is not None:
            return self.items_count
        return len(self.items)


# Known values; Canvas may add states, so the field stays a plain string.
SUBMISSION_STATES = ("submitted", "unsubmitted", "graded", "pending_review")


class Submission(BaseModel):
    id: Optional[int] = None
    assignment_id: Optional[int] = None
    user_id: Optional[int] = None
    workflow_state: Optional[str] = None
    submitted_at: Optional[str] = None
    grade: Optional[str] = None
    score: Optional[float] = None
    late: Optional[bool] = None
    missing: Optional[bool] = None
    excused: Optional[bool] = None
    user: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="ignore")

    @property
    def is_unsubmitted(self) -> bool:
        return self.workflow_state == "unsubmitted" or not self.submitted_at

    @property
    def display_name(self) -> str:
        name = (self.user or {}).get("name")
        return name or f"User {self.user_id}"


class Assignment(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    due_at: Optional[str] = None
    unlock_at: Optional[str] = None
    lock_at: Optional[str] = None
    points_possible: Optional[float] = None
    published: Optional[bool] = None
    submission: Optional[Submission] = None

    model_config = ConfigDict(extra="ignore")


class Quiz(BaseModel):
    id: Optional[int] = None
    title: Optional[str] = None
    due_at: Optional[str] = None
    unlock_at: Optional[str] = None
    lock_at: Optional[str] = None
    points_possible: Optional[float] = None
    published: Optional[bool] = None

    model_config = ConfigDict(extra="ignore")


class EnrollmentGrades(BaseModel):
    current_grade: Optional[str] = None
    final_grade: Optional[str] = None
    current_score: Optional[float] = None
    final_score: Optional[float] = None

    model_config = ConfigDict(extra="ignore")


class Enrollment(BaseModel):
    id: Optional[int] = None
    type: Optional[str] = None
    enrollment_state: Optional[str] = None
    grades: Optional[EnrollmentGrades] = None

    model_config = ConfigDict(extra="ignore")


class User(BaseModel):
    id: int
    name: Optional[str] = None
    sortable_name: Optional[str] = None
    email: Optional[str] = None
    login_id: Optional[str] = None
    enrollments: List[Enrollment] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class Page(BaseModel):
    page_id: Optional[int] = None
    url: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


# --- Tool inputs ---------------------------------------------------------- #

CourseRef = Annotated[
    Union[StrictInt, StrictStr],
    Field(description="Course ID, or part of the course name or code"),
]
StudentRef = Annotated[
    Union[StrictInt, StrictStr],
    Field(description="Student ID, or part of the student's name, email or login"),
]
Grade = Annotated[
    Union[StrictInt, StrictFloat, StrictStr],
    Field(description="Grade to post: points, percentage ('85%') or letter grade"),
]


class ToolInput(BaseModel):
    model_config = ConfigDict(extra="forbid")


class EmptyInput(ToolInput):
    pass


class CourseInput(ToolInput):
    course_id: CourseRef


class PageInput(CourseInput):
    page_url: Union[StrictInt, StrictStr] = Field(
        description="Page URL slug or page ID"
    )


class AssignmentInput(CourseInput):
    assignment_id: int


class SubmissionInput(AssignmentInput):
    student_id: int


class DeleteCommentInput(SubmissionInput):
    comment_id: int


class QuizInput(CourseInput):
    quiz_id: int


class DateFields(ToolInput):
    """
    due_at / unlock_at / lock_at: an omitted field is left untouched,
    an explicit null clears the date. At least one must be present.
    """

    due_at: Optional[str] = Field(default=None, description="ISO-8601 date or null")
    unlock_at: Optional[str] = Field(default=None, description="ISO-8601 date or null")
    lock_at: Optional[str] = Field(default=None, description="ISO-8601 date or null")

    @field_validator("due_at", "unlock_at", "lock_at")
    @classmethod
    def _check_timestamp(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            parse_timestamp(value)
        return value

    @model_validator(mode="after")
    def _require_one_date(self):
        if not self.model_fields_set.intersection(DATE_FIELDS):
            raise ValueError(DATE_FIELDS_REQUIRED)
        return self

    def dates(self) -> Dict[str, Optional[str]]:
        """Only the date fields the caller actually sent."""
        return {k: getattr(self, k) for k in DATE_FIELDS if k in self.model_fields_set}


class AssignmentDatesInput(DateFields):
    course_id: CourseRef
    assignment_id: int


class QuizDatesInput(DateFields):
    course_id: CourseRef
    quiz_id: int


class RubricRating(BaseModel):
    points: float
    rating_id: Optional[str] = None
    comments: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


def rubric_payload(
    rubric: Optional[Dict[str, RubricRating]],
) -> Optional[Dict[str, Dict[str, Any]]]:
    if not rubric:
        return None
    return {k: v.model_dump(exclude_none=True) for k, v in rubric.items()}


class GradeSubmissionInput(SubmissionInput):
    grade: Grade
    comment: Optional[str] = None
    rubric_assessment: Optional[Dict[str, RubricRating]] = Field(
        default=None, description="Map of rubric criterion ID to rating/points"
    )


FilterStatus = Literal["unsubmitted", "missing", "late"]


class GradeMultipleInput(AssignmentInput):
    grade: Grade
    comment: Optional[str] = None
    student_ids: Optional[List[int]] = None
    filter_status: Optional[FilterStatus] = Field(
        default=None, description="Grade every student whose submission has this status"
    )
    rubric_assessment: Optional[Dict[str, RubricRating]] = None

    @model_validator(mode="after")
    def _require_targets(self):
        if self.student_ids is None and self.filter_status is None:
            raise ValueError(
                "You must provide either student_ids or a filter_status "
                "(e.g. 'unsubmitted')"
            )
        return self


class AnnouncementsInput(ToolInput):
    course_ids: List[CourseRef] = Field(min_length=1)


class DiscussionTopicInput(CourseInput):
    topic_id: int


class PostAnnouncementInput(CourseInput):
    title: str = Field(min_length=1)
    message: str = Field(min_length=1, description="Announcement body (HTML allowed)")


class PostReplyInput(DiscussionTopicInput):
    message: str = Field(min_length=1)


class StudentInput(CourseInput):
    student_id: StudentRef


class DueDatesInput(CourseInput):
    only_upcoming: bool = Field(
        default=False, description="Only assignments with due_at >= now"
    )


class BulkDueDateInput(ToolInput):
    query_terms: List[str] = Field(
        min_length=1,
        description="Every term must appear in the assignment name (case-insensitive)",
    )
    due_at: str = Field(description="New ISO-8601 due date")
    limit: int = Field(default=20, ge=1, le=100)
    dry_run: bool = False

    @field_validator("query_terms")
    @classmethod
    def _normalize_terms(cls, terms: List[str]) -> List[str]:
        cleaned = [t.strip().lower() for t in terms if t and t.strip()]
        if not cleaned:
            raise ValueError("query_terms must contain at least one non-empty term")
        return cleaned

    @field_validator("due_at")
    @classmethod
    def _check_due_at(cls, value: str) -> str:
        parse_timestamp(value)
        return value


class BulkDueDateToolInput(BulkDueDateInput):
    course_id: CourseRef


__all__ = [
    "Assignment",
    "AssignmentDatesInput",
    "AssignmentInput",
    "AnnouncementsInput",
    "BulkDueDateInput",
    "BulkDueDateToolInput",
    "Course",
    "CourseInput",
    "CourseRef",
    "DateFields",
    "DeleteCommentInput",
    "DiscussionTopicInput",
    "DueDatesInput",
    "EmptyInput",
    "Enrollment",
    "EnrollmentGrades",
    "GradeMultipleInput",
    "GradeSubmissionInput",
    "Module",
    "ModuleItem",
    "Page",
    "PageInput",
    "PostAnnouncementInput",
    "PostReplyInput",
    "Quiz",
    "QuizDatesInput",
    "QuizInput",
    "RubricRating",
    "SUBMISSION_STATES",
    "StudentInput",
    "Submission",
    "SubmissionInput",
    "Term",
    "ToolInput",
    "User",
    "rubric_payload",
]
