from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_role, date_param, json_body, make_manager_required
from ..core.enums import OvertimeDecision
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    manager_required = make_manager_required(container)

    @app.route("/api/overtime", methods=["GET"], endpoint="overtime_list")
    @manager_required
    def overtime_list():
        candidates = container.overtime_service.list_candidates(
            current_role=current_role(),
            start=date_param(request.args.get("start"), "start"),
            end=date_param(request.args.get("end"), "end"),
            staff_id=request.args.get("staff_id") or None,
        )
        return jsonify({"success": True, "candidates": [c.to_dict() for c in candidates]})

    @app.route("/api/overtime/<attendance_id>/approve", methods=["POST"], endpoint="overtime_approve")
    @manager_required
    def overtime_approve(attendance_id: str):
        data = json_body()
        minutes = container.overtime_service.approve(
            current_role=current_role(),
            attendance_id=attendance_id,
            minutes=data.get("minutes"),
        )
        return jsonify({"success": True, "approvedMinutes": minutes})

    @app.route("/api/overtime/<attendance_id>/reject", methods=["POST"], endpoint="overtime_reject")
    @manager_required
    def overtime_reject(attendance_id: str):
        container.overtime_service.reject(current_role=current_role(), attendance_id=attendance_id)
        return jsonify({"success": True})

    @app.route("/api/overtime/<attendance_id>/revert", methods=["POST"], endpoint="overtime_revert")
    @manager_required
    def overtime_revert(attendance_id: str):
        container.overtime_service.revert(current_role=current_role(), attendance_id=attendance_id)
        return jsonify({"success": True})

    @app.route("/api/overtime/bulk", methods=["POST"], endpoint="overtime_bulk")
    @manager_required
    def overtime_bulk():
        data = json_body()
        try:
            decision = OvertimeDecision(str(data.get("decision", "")).lower())
        except ValueError:
            raise ValidationError("decision must be approve, reject or revert")

        result = container.overtime_service.bulk_decide(
            current_role=current_role(),
            decision=decision,
            start=date_param(data.get("start"), "start"),
            end=date_param(data.get("end"), "end"),
            staff_id=data.get("staff_id") or None,
        )
        return jsonify({"success": True, **result.to_dict()})
