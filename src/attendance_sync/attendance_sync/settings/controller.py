from __future__ import annotations

from flask import Flask, request, session

from ..common.http import current_company_id, json_errors, ok
from ..common.validators import positive_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.settings_service

    @app.route("/attendance-settings", methods=["GET"], endpoint="settings_get")
    @json_errors
    def settings_get():
        company_id = current_company_id()
        settings = service.get(company_id)
        return ok({"data": settings.to_dict(), "effective": service.policy(company_id).to_dict()})

    @app.route("/attendance-settings", methods=["PUT"], endpoint="settings_put")
    @json_errors
    def settings_put():
        company_id = current_company_id()
        updated_by = request.headers.get("X-User-Id") or session.get("user_id")
        if updated_by is not None:
            updated_by = str(updated_by)
        saved = service.update(company_id, request.get_json(silent=True) or {}, updated_by=updated_by)
        return ok({
            "message": "Attendance settings updated",
            "data": saved.to_dict(),
            "effective": service.policy(company_id).to_dict(),
        })

    @app.route("/attendance-settings/history", methods=["GET"], endpoint="settings_history")
    @json_errors
    def settings_history():
        company_id = current_company_id()
        limit = positive_int(request.args.get("limit"), "limit", 20)
        return ok({"data": [s.to_dict() for s in service.history(company_id, limit=limit)]})
