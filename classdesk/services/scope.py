# classdesk/services/scope.py
"""
Report scoping.

Role rules are reduced once, here, to a plain ``ReportScope`` value. The
aggregation engine and the repositories only ever see that value; they
never branch on roles.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..core.constants import ALL_FILTER_VALUE
from ..core.exceptions import ForbiddenException
from ..principal import Principal


def normalize_filter(value: Optional[str]) -> Optional[str]:
    """``None``, blank and ``all`` mean "no filter on this dimension"."""
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned or cleaned.lower() == ALL_FILTER_VALUE:
        return None
    return cleaned


@dataclass(frozen=True)
class ReportFilters:
    """Caller-supplied filter dimensions, already normalised."""

    class_id: Optional[str] = None
    location_id: Optional[str] = None
    teacher_id: Optional[str] = None
    subject: Optional[str] = None
    status: Optional[str] = None
    search: Optional[str] = None

    @classmethod
    def from_query(
        cls,
        *,
        class_id: Optional[str] = None,
        location_id: Optional[str] = None,
        teacher_id: Optional[str] = None,
        subject: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> "ReportFilters":
        return cls(
            class_id=normalize_filter(class_id),
            location_id=normalize_filter(location_id),
            teacher_id=normalize_filter(teacher_id),
            subject=normalize_filter(subject),
            status=normalize_filter(status),
            search=(search or "").strip() or None,
        )


@dataclass(frozen=True)
class ReportScope:
    """The class-set restriction an aggregation run covers."""

    class_id: Optional[str] = None
    location_id: Optional[str] = None
    teacher_id: Optional[str] = None
    subject: Optional[str] = None
    search: Optional[str] = None

    def as_query_kwargs(self) -> Dict[str, Any]:
        return {
            "class_id": self.class_id,
            "location_id": self.location_id,
            "teacher_id": self.teacher_id,
            "subject": self.subject,
            "search": self.search,
        }


def build_report_scope(principal: Principal, filters: ReportFilters) -> ReportScope:
    """
    Build the scope for a report request.

    Admins may filter on every dimension. Teachers are pinned to their own
    classes whatever ``teacherId`` they send. Students have no report access.

    Raises:
        ForbiddenException: the caller's role cannot read reports
    """
    if principal.is_student:
        raise ForbiddenException(
            "Students cannot access reports",
            details={"role": principal.role.value},
        )

    teacher_id = principal.id if principal.is_teacher else filters.teacher_id

    return ReportScope(
        class_id=filters.class_id,
        location_id=filters.location_id,
        teacher_id=teacher_id,
        subject=filters.subject,
        search=filters.search,
    )
