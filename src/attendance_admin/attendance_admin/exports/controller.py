from __future__ import annotations

import io
import json

from flask import Flask, jsonify, send_file

from ..common.datetime_utils import now_utc
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def _stamp() -> str:
        return now_utc().strftime("%Y%m%d_%H%M%S")

    @app.route("/admin/export.json", methods=["GET"], endpoint="admin_export_json")
    def admin_export_json():
        document = container.export_service.export_structured()
        payload = json.dumps(document, ensure_ascii=False, indent=2, default=str).encode("utf-8")
        return app.response_class(
            payload,
            mimetype="application/json",
            headers={"Content-Disposition": f"attachment; filename=attendance_backup_{_stamp()}.json"},
        )

    @app.route("/admin/export.zip", methods=["GET"], endpoint="admin_export_zip")
    def admin_export_zip():
        return send_file(
            io.BytesIO(container.export_service.archive_bytes()),
            mimetype="application/zip",
            as_attachment=True,
            download_name=f"attendance_backup_{_stamp()}.zip",
        )

    @app.route("/admin/stats", methods=["GET"], endpoint="admin_stats")
    def admin_stats():
        return jsonify(container.export_service.collection_stats())
