from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_role, date_param, json_body, make_manager_required
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    manager_required = make_manager_required(container)

    @app.route("/api/attendance/import", methods=["POST"], endpoint="attendance_import")
    @manager_required
    def attendance_import():
        """Without ``confirm`` the CSV is only analyzed; with it, the reviewed changes are applied."""

        data = json_body()
        csv_text = data.get("csvData")
        if bool(data.get("confirm")):
            summary = container.attendance_import_service.apply(current_role(), csv_text, confirm=True)
            return jsonify({"success": True, **summary.to_dict()})

        analysis = container.attendance_import_service.analyze(current_role(), csv_text)
        return jsonify({"success": True, **analysis.to_dict()})

    @app.route("/api/attendance/export", methods=["GET"], endpoint="attendance_export")
    @manager_required
    def attendance_export():
        start = date_param(request.args.get("start"), "start")
        end = date_param(request.args.get("end"), "end")
        if start is None or end is None:
            raise ValidationError("Valid start and end dates (YYYY-MM-DD) are required")

        export = container.attendance_export_service.export_csv(current_role=current_role(), start=start, end=end)
        return app.response_class(
            export.content,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={export.filename}"},
        )
