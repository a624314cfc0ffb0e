"""Enrollment request and response schemas."""

from typing import List

from pydantic import Field

from ._strict_base import StrictModel, StrictRequestModel


class EnrollRequest(StrictRequestModel):
    student_id: str = Field(min_length=1)


class BulkEnrollRequest(StrictRequestModel):
    student_ids: List[str] = Field(min_length=1, max_length=500)


class EnrollmentResponse(StrictModel):
    class_id: str
    student_id: str
    current_enrollment: int
    capacity: int


class BulkEnrollmentResponse(StrictModel):
    """Outcome of a best-effort bulk enrollment. ``new_enrollments`` is exact."""

    class_id: str
    new_enrollments: int
    enrolled: List[str] = Field(default_factory=list)
    already_enrolled: List[str] = Field(default_factory=list)
    over_capacity: List[str] = Field(default_factory=list)
    not_found: List[str] = Field(default_factory=list)
    current_enrollment: int
    capacity: int


class EnrollmentRecountResponse(StrictModel):
    class_id: str
    stored: int
    actual: int
    repaired: bool
