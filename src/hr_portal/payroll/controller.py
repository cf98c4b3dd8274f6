from __future__ import annotations

import io

from flask import Flask, g, jsonify, request, send_file

from ..common.http import current_role, json_body, make_manager_required
from ..core.exceptions import ValidationError
from ..container import Container
from .model import PayPeriod


def _staff_ids(data: dict) -> list[str]:
    raw = data.get("staffIds") or []
    if not isinstance(raw, list):
        raise ValidationError("staffIds must be a list")
    return [str(s) for s in raw]


def register(app: Flask, container: Container) -> None:
    manager_required = make_manager_required(container)

    @app.route("/api/payroll/generate", methods=["POST"], endpoint="payroll_generate")
    @manager_required
    def payroll_generate():
        data = json_body()
        period = PayPeriod.of(data.get("year"), data.get("month"))
        rows = container.payroll_service.generate(current_role(), period, _staff_ids(data))
        return jsonify({"success": True, "year": period.year, "month": period.month, "rows": [r.to_dict() for r in rows]})

    @app.route("/api/payroll/finalize", methods=["POST"], endpoint="payroll_finalize")
    @manager_required
    def payroll_finalize():
        data = json_body()
        period = PayPeriod.of(data.get("year"), data.get("month"))
        result = container.payroll_service.finalize_selected(
            current_role(),
            period,
            _staff_ids(data),
            finalized_by=g.current_user.user_id,
        )
        return jsonify({"success": True, **result.to_dict()})

    @app.route("/api/payroll/export", methods=["GET"], endpoint="payroll_export")
    @manager_required
    def payroll_export():
        period = PayPeriod.of(request.args.get("year"), request.args.get("month"))
        register_file = container.payroll_service.export_register(
            current_role(), period, request.args.get("format", "csv")
        )
        return send_file(
            io.BytesIO(register_file.content),
            mimetype=register_file.mimetype,
            as_attachment=True,
            download_name=register_file.filename,
        )

    @app.route("/api/advances/eligibility", methods=["GET"], endpoint="advances_eligibility")
    @manager_required
    def advances_eligibility():
        staff_id = (request.args.get("staff_id") or "").strip()
        if not staff_id:
            raise ValidationError("staff_id is required")
        eligibility = container.advance_service.eligibility(current_role=current_role(), staff_id=staff_id)
        return jsonify({"success": True, **eligibility.to_dict()})

    @app.route("/api/advances", methods=["POST"], endpoint="advances_request")
    @manager_required
    def advances_request():
        data = json_body()
        advance_id = container.advance_service.request_advance(
            current_role=current_role(),
            staff_id=str(data.get("staffId", "")),
            amount=data.get("amount"),
        )
        return jsonify({"success": True, "advanceId": advance_id}), 201
