import pytest

from classdesk.core.enums import RoleName
from classdesk.core.exceptions import ForbiddenException
from classdesk.principal import Principal
from classdesk.services.scope import ReportFilters, build_report_scope, normalize_filter


@pytest.mark.parametrize("value", [None, "", "  ", "all", "ALL"])
def test_normalize_filter_treats_all_as_absent(value) -> None:
    assert normalize_filter(value) is None


def test_normalize_filter_strips() -> None:
    assert normalize_filter("  loc-1 ") == "loc-1"


def test_admin_keeps_every_filter() -> None:
    filters = ReportFilters.from_query(
        class_id="c1", location_id="all", teacher_id="t9", subject="Physics", search=" alg "
    )
    scope = build_report_scope(Principal("admin-1", RoleName.ADMIN), filters)
    assert scope.as_query_kwargs() == {
        "class_id": "c1",
        "location_id": None,
        "teacher_id": "t9",
        "subject": "Physics",
        "search": "alg",
    }


def test_teacher_is_pinned_to_own_classes() -> None:
    filters = ReportFilters.from_query(teacher_id="someone-else")
    scope = build_report_scope(Principal("t-1", RoleName.TEACHER), filters)
    assert scope.teacher_id == "t-1"


def test_teacher_with_all_is_still_pinned() -> None:
    scope = build_report_scope(Principal("t-1", RoleName.TEACHER), ReportFilters.from_query(teacher_id="all"))
    assert scope.teacher_id == "t-1"


def test_student_has_no_report_access() -> None:
    with pytest.raises(ForbiddenException) as exc_info:
        build_report_scope(Principal("s-1", RoleName.STUDENT), ReportFilters())
    assert exc_info.value.status_code == 403
