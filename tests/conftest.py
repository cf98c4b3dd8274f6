from __future__ import annotations

import pytest

from fakes import (
    BatchRecorder,
    InMemoryAttendance,
    InMemoryLeave,
    InMemoryPayroll,
    InMemorySchedules,
    InMemoryStaff,
    InMemoryUsers,
    make_user,
)
from hr_portal.common.datetime_utils import configure_business_timezone
from hr_portal.container import wire_services
from hr_portal.core.enums import Role
from hr_portal.payroll.model import CompanyConfig


@pytest.fixture(autouse=True)
def business_timezone():
    configure_business_timezone("Asia/Bangkok")


@pytest.fixture()
def attendance_repo():
    return InMemoryAttendance()


@pytest.fixture()
def schedules_repo():
    return InMemorySchedules()


@pytest.fixture()
def staff_repo():
    return InMemoryStaff()


@pytest.fixture()
def leave_repo():
    return InMemoryLeave()


@pytest.fixture()
def payroll_repo():
    return InMemoryPayroll()


@pytest.fixture()
def users_repo():
    return InMemoryUsers(
        [
            make_user("u-manager", "manager", "manager123", role=Role.MANAGER),
            make_user("u-staff", "staff", "staff123", role=Role.STAFF),
            make_user("u-gone", "former", "former123", role=Role.MANAGER, is_active=False),
        ]
    )


@pytest.fixture()
def batches():
    return BatchRecorder()


@pytest.fixture()
def company_config():
    return CompanyConfig()


@pytest.fixture()
def container(users_repo, staff_repo, attendance_repo, schedules_repo, leave_repo, payroll_repo, batches, company_config):
    return wire_services(
        conn=None,
        users_repo=users_repo,
        staff_repo=staff_repo,
        attendance_repo=attendance_repo,
        schedules_repo=schedules_repo,
        leave_repo=leave_repo,
        payroll_repo=payroll_repo,
        batch_factory=batches,
        company_config=company_config,
        overtime_threshold_minutes=15,
        max_workers=4,
    )


@pytest.fixture()
def app(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    from hr_portal.main import create_app

    flask_app = create_app(container)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def manager_client(client):
    with client.session_transaction() as sess:
        sess["user_id"] = "u-manager"
    return client


@pytest.fixture()
def staff_client(client):
    with client.session_transaction() as sess:
        sess["user_id"] = "u-staff"
    return client
