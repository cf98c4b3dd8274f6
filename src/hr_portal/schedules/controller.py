from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_role, json_body, make_manager_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    manager_required = make_manager_required(container)

    @app.route("/api/schedules/import", methods=["POST"], endpoint="schedules_import")
    @manager_required
    def schedules_import():
        data = json_body()
        csv_text = data.get("csvData")
        if bool(data.get("confirm")):
            summary = container.planning_import_service.apply(current_role(), csv_text, confirm=True)
            return jsonify({"success": True, **summary})

        analysis = container.planning_import_service.analyze(current_role(), csv_text)
        return jsonify({"success": True, **analysis.to_dict()})

    @app.route("/api/schedules/<schedule_id>", methods=["DELETE"], endpoint="schedules_delete")
    @manager_required
    def schedules_delete(schedule_id: str):
        container.schedule_service.delete_entry(current_role=current_role(), schedule_id=schedule_id)
        return jsonify({"success": True})
