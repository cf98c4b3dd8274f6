from __future__ import annotations

from datetime import date

import pytest

from fakes import InMemoryAttendance, InMemorySchedules, make_record, make_schedule
from hr_portal.core.enums import OvertimeDecision, OvertimeStatus, Role
from hr_portal.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from hr_portal.overtime.service import OvertimeService

START, END = date(2025, 3, 1), date(2025, 3, 31)


@pytest.fixture()
def repos():
    attendance = InMemoryAttendance(
        [
            make_record("att-1", "S1", "2025-03-03", check_in="08:00", check_out="17:20"),
            make_record("att-2", "S2", "2025-03-03", check_in="08:00", check_out="17:00"),
            make_record("att-3", "S1", "2025-03-04", check_in="08:00", check_out="16:00"),
            make_record(
                "att-4", "S1", "2025-03-05", check_in="08:00", check_out="18:00",
                ot_status=OvertimeStatus.APPROVED, ot_approved_minutes=120,
            ),
        ]
    )
    schedules = InMemorySchedules(
        [
            make_schedule("S1", "2025-03-03", "08:00", "16:00"),
            make_schedule("S2", "2025-03-03", "08:00", "16:00"),
            make_schedule("S1", "2025-03-04", "08:00", "16:00"),
            make_schedule("S1", "2025-03-05", "08:00", "16:00"),
        ]
    )
    return attendance, schedules


@pytest.fixture()
def service(repos):
    attendance, schedules = repos
    return OvertimeService(attendance, schedules, threshold_minutes=15, max_workers=4)


def test_list_candidates_skips_decided_and_short_days(service):
    candidates = service.list_candidates(current_role=Role.MANAGER, start=START, end=END)
    assert {c.attendance_id: c.overtime_minutes for c in candidates} == {"att-1": 80, "att-2": 60}


def test_list_candidates_filters_by_staff(service):
    candidates = service.list_candidates(current_role=Role.MANAGER, start=START, end=END, staff_id="S2")
    assert [c.attendance_id for c in candidates] == ["att-2"]


def test_approve_defaults_to_proposed_minutes(service, repos):
    attendance, _ = repos
    assert service.approve(current_role=Role.MANAGER, attendance_id="att-1") == 80

    record = attendance.get_by_id("att-1")
    assert record.ot_status == OvertimeStatus.APPROVED
    assert record.ot_approved_minutes == 80
    assert record.ot_processed
    assert record.ot_decided_at is not None


def test_approve_with_override(service, repos):
    attendance, _ = repos
    assert service.approve(current_role=Role.MANAGER, attendance_id="att-1", minutes=45) == 45
    assert attendance.get_by_id("att-1").ot_approved_minutes == 45


def test_approve_rejects_negative_override(service):
    with pytest.raises(ValidationError):
        service.approve(current_role=Role.MANAGER, attendance_id="att-1", minutes=-5)


def test_reject_forces_zero_minutes(service, repos):
    attendance, _ = repos
    service.reject(current_role=Role.MANAGER, attendance_id="att-2")
    record = attendance.get_by_id("att-2")
    assert record.ot_status == OvertimeStatus.REJECTED
    assert record.ot_approved_minutes == 0


def test_decided_record_must_be_reverted_before_deciding_again(service, repos):
    attendance, _ = repos
    with pytest.raises(ValidationError):
        service.reject(current_role=Role.MANAGER, attendance_id="att-4")

    service.revert(current_role=Role.MANAGER, attendance_id="att-4")
    record = attendance.get_by_id("att-4")
    assert record.ot_status is None
    assert record.ot_approved_minutes is None
    assert not record.ot_processed
    assert record.ot_decided_at is None

    with pytest.raises(ValidationError):
        service.revert(current_role=Role.MANAGER, attendance_id="att-4")


def test_unknown_record_is_not_found(service):
    with pytest.raises(NotFoundError):
        service.approve(current_role=Role.MANAGER, attendance_id="nope")


def test_bulk_approve_settles_each_record_independently(service, repos):
    attendance, _ = repos
    attendance.fail_decision_for = {"att-2"}

    result = service.bulk_decide(current_role=Role.MANAGER, decision=OvertimeDecision.APPROVE, start=START, end=END)

    assert result.succeeded == 1
    assert result.failures == [{"attendanceId": "att-2", "message": "deadlock detected"}]
    assert attendance.get_by_id("att-1").ot_status == OvertimeStatus.APPROVED
    assert attendance.get_by_id("att-2").ot_status is None


def test_bulk_revert_targets_decided_records(service, repos):
    attendance, _ = repos
    result = service.bulk_decide(current_role=Role.MANAGER, decision=OvertimeDecision.REVERT, start=START, end=END)
    assert result.succeeded == 1
    assert attendance.get_by_id("att-4").ot_status is None


def test_overtime_requires_manager(service):
    with pytest.raises(AuthorizationError):
        service.list_candidates(current_role=Role.STAFF, start=START, end=END)
    with pytest.raises(AuthorizationError):
        service.bulk_decide(current_role=Role.STAFF, decision=OvertimeDecision.REJECT, start=START, end=END)


def test_overtime_endpoints(manager_client, attendance_repo, schedules_repo):
    attendance_repo.records["att-1"] = make_record("att-1", "S1", "2025-03-03", check_in="08:00", check_out="17:20")
    schedules_repo.upsert(make_schedule("S1", "2025-03-03", "08:00", "16:00"))

    resp = manager_client.get("/api/overtime?start=2025-03-01&end=2025-03-31")
    assert resp.status_code == 200
    assert [c["overtimeMinutes"] for c in resp.get_json()["candidates"]] == [80]

    resp = manager_client.post("/api/overtime/att-1/approve", json={"minutes": 60})
    assert resp.get_json()["approvedMinutes"] == 60

    resp = manager_client.post("/api/overtime/att-1/revert")
    assert resp.status_code == 200

    resp = manager_client.post("/api/overtime/bulk", json={"decision": "reject", "start": "2025-03-01", "end": "2025-03-31"})
    assert resp.get_json()["succeeded"] == 1
    assert attendance_repo.get_by_id("att-1").ot_status == OvertimeStatus.REJECTED

    resp = manager_client.post("/api/overtime/bulk", json={"decision": "maybe"})
    assert resp.status_code == 400
