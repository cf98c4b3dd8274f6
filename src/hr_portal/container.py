from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.export import AttendanceExportService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.reconciliation import AttendanceImportService
from .attendance.repository import AttendanceRepository
from .core.constants import DEFAULT_IMPORT_MAX_WORKERS, DEFAULT_OVERTIME_THRESHOLD_MINUTES
from .database.batch import WriteBatch
from .database.connection import DBConfig, DatabaseConnection
from .leave.mysql_leave_repository import MySQLLeaveRepository
from .leave.repository import LeaveRepository
from .leave.service import LeaveService
from .overtime.service import OvertimeService
from .payroll.advances import AdvanceService
from .payroll.model import CompanyConfig
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.repository import PayrollRepository
from .payroll.service import PayrollService
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.planning_import import PlanningImportService
from .schedules.repository import ScheduleRepository
from .schedules.service import ScheduleService
from .staff.mysql_staff_repository import MySQLStaffRepository
from .staff.repository import StaffRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    staff_repo: StaffRepository
    attendance_repo: AttendanceRepository
    schedules_repo: ScheduleRepository
    leave_repo: LeaveRepository
    payroll_repo: PayrollRepository

    auth_service: AuthService
    attendance_import_service: AttendanceImportService
    attendance_export_service: AttendanceExportService
    planning_import_service: PlanningImportService
    schedule_service: ScheduleService
    overtime_service: OvertimeService
    leave_service: LeaveService
    payroll_service: PayrollService
    advance_service: AdvanceService


def wire_services(
    *,
    conn: Optional[DatabaseConnection],
    users_repo: UserRepository,
    staff_repo: StaffRepository,
    attendance_repo: AttendanceRepository,
    schedules_repo: ScheduleRepository,
    leave_repo: LeaveRepository,
    payroll_repo: PayrollRepository,
    batch_factory,
    company_config: CompanyConfig,
    overtime_threshold_minutes: int = DEFAULT_OVERTIME_THRESHOLD_MINUTES,
    max_workers: int = DEFAULT_IMPORT_MAX_WORKERS,
) -> Container:
    """Build the services on top of any set of repositories."""

    return Container(
        conn=conn,
        users_repo=users_repo,
        staff_repo=staff_repo,
        attendance_repo=attendance_repo,
        schedules_repo=schedules_repo,
        leave_repo=leave_repo,
        payroll_repo=payroll_repo,
        auth_service=AuthService(users_repo),
        attendance_import_service=AttendanceImportService(attendance_repo, max_workers=max_workers),
        attendance_export_service=AttendanceExportService(
            attendance=attendance_repo,
            schedules=schedules_repo,
            leaves=leave_repo,
            staff=staff_repo,
        ),
        planning_import_service=PlanningImportService(schedules_repo, max_workers=max_workers),
        schedule_service=ScheduleService(schedules_repo, attendance_repo, batch_factory=batch_factory),
        overtime_service=OvertimeService(
            attendance_repo,
            schedules_repo,
            threshold_minutes=overtime_threshold_minutes,
            max_workers=max_workers,
        ),
        leave_service=LeaveService(leave_repo),
        payroll_service=PayrollService(
            staff=staff_repo,
            attendance=attendance_repo,
            schedules=schedules_repo,
            leaves=leave_repo,
            payroll=payroll_repo,
            config=company_config,
            batch_factory=batch_factory,
        ),
        advance_service=AdvanceService(
            staff=staff_repo,
            attendance=attendance_repo,
            schedules=schedules_repo,
            leaves=leave_repo,
            payroll=payroll_repo,
            config=company_config,
        ),
    )


def build_container(*, settings) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(getattr(settings, "DB_CONFIG")))

    return wire_services(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        staff_repo=MySQLStaffRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        schedules_repo=MySQLScheduleRepository(conn),
        leave_repo=MySQLLeaveRepository(conn),
        payroll_repo=MySQLPayrollRepository(conn),
        batch_factory=lambda: WriteBatch(conn),
        company_config=CompanyConfig.from_settings(getattr(settings, "PAYROLL_SETTINGS", None)),
        overtime_threshold_minutes=int(getattr(settings, "OVERTIME_THRESHOLD_MINUTES", DEFAULT_OVERTIME_THRESHOLD_MINUTES)),
        max_workers=int(getattr(settings, "IMPORT_MAX_WORKERS", DEFAULT_IMPORT_MAX_WORKERS)),
    )
