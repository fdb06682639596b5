from __future__ import annotations

from flask import Flask, request

from ..common.http import current_company_id, json_errors, ok
from ..common.validators import positive_int, require_date_range, window_or_default
from ..container import Container


def register(app: Flask, container: Container) -> None:
    engine = container.metrics_engine

    def _window():
        return window_or_default(
            request.args.get("startDate"),
            request.args.get("endDate"),
            today=engine.today(),
            days=engine.window_days,
        )

    def _limit():
        return positive_int(request.args.get("limit"), "limit", engine.leaderboard_limit)

    @app.route("/performance/leaderboard", methods=["GET"], endpoint="performance_leaderboard")
    @json_errors
    def performance_leaderboard():
        company_id = current_company_id()
        start, end = _window()
        board = engine.leaderboard(company_id, start, end, limit=_limit())
        return ok({"data": board.to_dict()})

    @app.route("/performance/machine-leaderboard/<device_address>", methods=["GET"], endpoint="performance_machine_leaderboard")
    @json_errors
    def performance_machine_leaderboard(device_address: str):
        company_id = current_company_id()
        start, end = _window()
        board = engine.leaderboard(company_id, start, end, device_address=device_address, limit=_limit())
        return ok({"data": board.to_dict()})

    @app.route("/performance/overview", methods=["GET"], endpoint="performance_overview")
    @json_errors
    def performance_overview():
        company_id = current_company_id()
        start, end = _window()
        device_address = request.args.get("deviceAddress") or None
        return ok({"data": engine.overview(company_id, start, end, device_address=device_address)})

    @app.route("/attendance-report/<device_address>", methods=["GET"], endpoint="attendance_report")
    @json_errors
    def attendance_report(device_address: str):
        start, end = require_date_range(request.args.get("startDate"), request.args.get("endDate"))
        company_id = current_company_id()
        report = engine.attendance_report(device_address, company_id, start, end)
        return ok({"data": report.to_dict(engine.reporting_tz)})
