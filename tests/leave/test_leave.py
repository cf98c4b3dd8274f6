from __future__ import annotations

from datetime import date

import pytest

from fakes import InMemoryLeave
from hr_portal.core.enums import RequestStatus, Role
from hr_portal.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from hr_portal.leave.service import LeaveService


@pytest.fixture()
def repo():
    return InMemoryLeave()


@pytest.fixture()
def service(repo):
    return LeaveService(repo)


def _create(service, role=Role.STAFF, start=date(2025, 11, 3), end=date(2025, 11, 5)):
    return service.create_leave(
        current_role=role,
        staff_id="S1",
        leave_type="annual",
        start_date=start,
        end_date=end,
        reason="  family trip ",
    )


def test_create_counts_inclusive_days(service, repo):
    leave_id = _create(service)

    req = repo.get_by_id(leave_id)
    assert req.total_days == 3
    assert req.status == RequestStatus.PENDING
    assert req.reason == "family trip"


def test_create_rejects_reversed_range(service):
    with pytest.raises(ValidationError):
        _create(service, start=date(2025, 11, 5), end=date(2025, 11, 3))


def test_approve_then_second_decision_is_rejected(service, repo):
    leave_id = _create(service)

    service.approve_leave(current_role=Role.MANAGER, manager_id="u-manager", leave_id=leave_id)
    assert repo.get_by_id(leave_id).status == RequestStatus.APPROVED
    assert repo.get_by_id(leave_id).decided_by == "u-manager"

    with pytest.raises(ValidationError, match="already been processed"):
        service.reject_leave(current_role=Role.MANAGER, manager_id="u-manager", leave_id=leave_id)


def test_decisions_need_manager_and_existing_request(service):
    leave_id = _create(service)
    with pytest.raises(AuthorizationError):
        service.approve_leave(current_role=Role.STAFF, manager_id="u-staff", leave_id=leave_id)
    with pytest.raises(NotFoundError):
        service.reject_leave(current_role=Role.MANAGER, manager_id="u-manager", leave_id="missing")


def test_leave_endpoints(manager_client, leave_repo):
    resp = manager_client.post(
        "/api/leave",
        json={"staffId": "S1", "leaveType": "sick", "startDate": "2025-11-03", "endDate": "2025-11-03"},
    )
    assert resp.status_code == 201
    leave_id = resp.get_json()["leaveId"]

    assert manager_client.post(f"/api/leave/{leave_id}/reject").status_code == 200
    assert leave_repo.get_by_id(leave_id).status == RequestStatus.REJECTED

    again = manager_client.post(f"/api/leave/{leave_id}/approve")
    assert again.status_code == 400
    assert manager_client.post("/api/leave/missing/approve").status_code == 404


def test_leave_endpoint_validates_dates(manager_client):
    resp = manager_client.post(
        "/api/leave",
        json={"staffId": "S1", "leaveType": "sick", "startDate": "03/11/2025", "endDate": "2025-11-03"},
    )
    assert resp.status_code == 400
