from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..container import Container
from ..core.enums import ImportMode
from ..core.exceptions import BackendError, UnsupportedFormatError, ValidationError
from .detector import UploadedFile

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.errorhandler(BackendError)
    def _backend_error(e: BackendError):
        return jsonify(error=str(e)), 502

    @app.route("/admin/import", methods=["POST"], endpoint="admin_import")
    def admin_import():
        file = request.files.get("file")
        if file is None or not file.filename:
            return jsonify(error="No file uploaded"), 400

        try:
            mode = ImportMode(request.form.get("mode", ImportMode.REPLACE.value))
        except ValueError:
            return jsonify(error="mode must be 'replace' or 'merge'"), 400

        upload = UploadedFile(filename=file.filename, content=file.read())
        steps: list[int] = []
        try:
            report = container.import_service.run(upload, progress=steps.append, mode=mode)
        except UnsupportedFormatError as e:
            return jsonify(error=str(e)), 415
        except ValidationError as e:
            return jsonify(error=str(e)), 400

        body = report.to_dict()
        body["progress"] = steps
        return jsonify(body)
