from __future__ import annotations

from flask import Flask, g, jsonify

from ..common.datetime_utils import parse_iso_date
from ..common.http import current_role, json_body, make_manager_required
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    manager_required = make_manager_required(container)

    @app.route("/api/leave", methods=["POST"], endpoint="leave_create")
    @manager_required
    def leave_create():
        data = json_body()
        try:
            start = parse_iso_date(str(data.get("startDate", "")))
            end = parse_iso_date(str(data.get("endDate", "")))
        except ValueError:
            raise ValidationError("startDate/endDate must be YYYY-MM-DD")

        leave_id = container.leave_service.create_leave(
            current_role=current_role(),
            staff_id=str(data.get("staffId", "")),
            leave_type=str(data.get("leaveType", "")),
            start_date=start,
            end_date=end,
            reason=data.get("reason"),
        )
        return jsonify({"success": True, "leaveId": leave_id}), 201

    @app.route("/api/leave/<leave_id>/approve", methods=["POST"], endpoint="leave_approve")
    @manager_required
    def leave_approve(leave_id: str):
        container.leave_service.approve_leave(current_role=current_role(), manager_id=g.current_user.user_id, leave_id=leave_id)
        return jsonify({"success": True})

    @app.route("/api/leave/<leave_id>/reject", methods=["POST"], endpoint="leave_reject")
    @manager_required
    def leave_reject(leave_id: str):
        container.leave_service.reject_leave(current_role=current_role(), manager_id=g.current_user.user_id, leave_id=leave_id)
        return jsonify({"success": True})
