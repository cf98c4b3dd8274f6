from __future__ import annotations

from dataclasses import replace

import pytest

from fakes import InMemorySchedules, make_schedule
from hr_portal.core.enums import Role, RowAction, ScheduleKind
from hr_portal.core.exceptions import AuthorizationError, ImportFormatError
from hr_portal.schedules.planning_import import PlanningImportService, build_entry

HEADER = "staffid,staffname,date,type,starttime,endtime,notes"


def _csv(*lines: str) -> str:
    return "\n".join((HEADER,) + lines) + "\n"


def test_type_is_inferred_as_work_when_both_times_are_given():
    entry = build_entry(2, {"staffid": "S1", "date": "2025-02-03", "type": "off", "starttime": "09:00", "endtime": "17:00"})
    assert entry.kind == ScheduleKind.WORK
    assert entry.schedule_id == "S1_2025-02-03"


def test_off_clears_times():
    entry = build_entry(2, {"staffid": "S1", "date": "2025-02-03", "type": "off", "starttime": "09:00"})
    assert entry.kind == ScheduleKind.OFF
    assert entry.start_time is None and entry.end_time is None


@pytest.mark.parametrize(
    "cells, fragment",
    [
        ({"staffid": "", "date": "2025-02-03"}, "staffid"),
        ({"staffid": "S1", "date": "2025/02/03"}, "date"),
        ({"staffid": "S1", "date": "2025-02-03", "type": "holiday"}, "Invalid type"),
        ({"staffid": "S1", "date": "2025-02-03", "type": "work", "starttime": "9:00"}, "starttime"),
        ({"staffid": "S1", "date": "2025-02-03", "starttime": "18:00", "endtime": "09:00"}, "must be before"),
    ],
)
def test_invalid_rows_become_errors(cells, fragment):
    outcome = build_entry(5, cells)
    assert outcome.action == RowAction.ERROR
    assert fragment in outcome.message


def test_analyze_classifies_against_stored_entries():
    repo = InMemorySchedules(
        [
            make_schedule("S1", "2025-02-03", "09:00", "17:00"),
            make_schedule("S2", "2025-02-03", "09:00", "17:00"),
        ]
    )
    service = PlanningImportService(repo)

    analysis = service.analyze(
        Role.MANAGER,
        _csv(
            "S1,,2025-02-03,work,09:00,17:00,",
            "S2,,2025-02-03,work,10:00,17:00,",
            "S3,,2025-02-03,off,,,",
            "S4,,bad-date,work,09:00,17:00,",
        ),
    )

    assert [o.row_number for o in analysis.bucket(RowAction.NO_CHANGE)] == [2]
    updates = analysis.bucket(RowAction.UPDATE)
    assert [o.row_number for o in updates] == [3]
    assert updates[0].changes == {"start_time": {"from": "09:00", "to": "10:00"}}
    assert [o.row_number for o in analysis.bucket(RowAction.CREATE)] == [4]
    assert [o.row_number for o in analysis.bucket(RowAction.ERROR)] == [5]
    assert repo.get_by_id("S2_2025-02-03").start_time == "09:00"


def test_apply_upserts_and_keeps_break_setting():
    stored = replace(make_schedule("S1", "2025-02-03", "09:00", "17:00"), break_included=False)
    repo = InMemorySchedules([stored])
    service = PlanningImportService(repo, max_workers=2)

    result = service.apply(
        Role.MANAGER,
        _csv("S1,,2025-02-03,work,08:00,17:00,early", "S2,,2025-02-04,work,09:00,18:00,"),
        confirm=True,
    )

    assert result["summaryMessage"] == "Planning import finished. Processed: 2. Created: 1. Updated: 1. Errors: 0."
    updated = repo.get_by_id("S1_2025-02-03")
    assert updated.start_time == "08:00"
    assert updated.notes == "early"
    assert updated.break_included is False
    assert repo.get_by_id("S2_2025-02-04").break_included is True


def test_planning_import_structural_and_role_checks():
    service = PlanningImportService(InMemorySchedules())
    with pytest.raises(AuthorizationError):
        service.analyze(Role.STAFF, _csv("S1,,2025-02-03,off,,,"))
    with pytest.raises(ImportFormatError):
        service.analyze(Role.MANAGER, "staffid,type\nS1,off\n")
