from __future__ import annotations

from flask import Flask, request

from ..common.http import current_company_id, json_errors, json_object_body, ok
from ..common.validators import ordered_range, positive_int, require_date_range
from ..common.datetime_utils import parse_optional_date
from ..container import Container


def register(app: Flask, container: Container) -> None:
    engine = container.sync_engine

    def _port():
        return positive_int(request.args.get("port"), "port", container.device_port)

    @app.route("/attendance-sync/manual/<device_address>", methods=["POST"], endpoint="sync_manual")
    @json_errors
    def sync_manual(device_address: str):
        company_id = current_company_id()
        body = json_object_body()
        start = parse_optional_date(body.get("startDate"))
        end = parse_optional_date(body.get("endDate"))
        if start and end:
            ordered_range(start, end)
        result = engine.full_sync(device_address, company_id, start_date=start, end_date=end, port=_port())
        return ok({"message": result.message, "data": result.to_dict()})

    @app.route("/attendance-sync/incremental/<device_address>", methods=["POST"], endpoint="sync_incremental")
    @json_errors
    def sync_incremental(device_address: str):
        company_id = current_company_id()
        result = engine.incremental_sync(device_address, company_id, port=_port())
        return ok({"message": result.message, "data": result.to_dict()})

    @app.route("/attendance-sync/from-database/<device_address>", methods=["GET"], endpoint="sync_from_database")
    @json_errors
    def sync_from_database(device_address: str):
        start, end = require_date_range(request.args.get("startDate"), request.args.get("endDate"))
        company_id = current_company_id()
        records = engine.query_range(device_address, company_id, start, end)
        return ok({
            "count": len(records),
            "dateRange": {"startDate": start.isoformat(), "endDate": end.isoformat()},
            "data": [r.to_dict() for r in records],
        })

    @app.route("/attendance-sync/status/<device_address>", methods=["GET"], endpoint="sync_status")
    @json_errors
    def sync_status(device_address: str):
        company_id = current_company_id()
        return ok({"data": engine.sync_stats(device_address, company_id).to_dict()})

    @app.route("/attendance-sync/device-info/<device_address>", methods=["GET"], endpoint="sync_device_info")
    @json_errors
    def sync_device_info(device_address: str):
        info = engine.device_info(device_address, port=_port())
        return ok({"message": "Device connected", "data": info.to_dict()})
