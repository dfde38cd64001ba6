from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_non_negative_int
from ..container import Container
from ..core.constants import DEFAULT_SESSION_MINUTES
from ..core.exceptions import AmbiguousMatchError, ExternalServiceFailure, StaleHistoryError, ValidationError
from ..matching.extraction import parse_extraction_payload
from .serialization import (
    matched_item_to_dict,
    metrics_to_dict,
    optional_student_id,
    record_from_dict,
    record_to_dict,
    student_to_dict,
    subject_to_dict,
)
from .sheet import AttendanceSheet

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def json_errors(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except ValidationError as e:
                return jsonify({"success": False, "message": str(e)}), 400
            except AmbiguousMatchError as e:
                outcome = e.outcome
                return (
                    jsonify(
                        {
                            "success": False,
                            "message": str(e),
                            "match": outcome.kind,
                            "candidates": list(getattr(outcome, "candidate_ids", ())),
                        }
                    ),
                    409,
                )
            except StaleHistoryError as e:
                return jsonify({"success": False, "message": str(e)}), 409
            except ExternalServiceFailure as e:
                return jsonify({"success": False, "message": str(e)}), 502
            except Exception:
                logger.exception("Unhandled error in %s", request.path)
                return jsonify({"success": False, "message": "Internal error"}), 500

        return wrapper

    def _body() -> dict:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Expected a JSON object body")
        return data

    def _result(result) -> tuple:
        return (
            jsonify(
                {
                    "success": True,
                    "removed": len(result.change.removed),
                    "added": len(result.change.added),
                    "history": [record_to_dict(r) for r in result.history],
                    "students": [student_to_dict(s) for s in result.students],
                }
            ),
            200,
        )

    @app.route("/api/attendance", methods=["GET"], endpoint="api_history")
    @json_errors
    def api_history():
        return jsonify({"success": True, "history": [record_to_dict(r) for r in service.history()]}), 200

    @app.route("/api/attendance", methods=["POST"], endpoint="api_submit_attendance")
    @json_errors
    def api_submit_attendance():
        raw = _body().get("records")
        if not isinstance(raw, list):
            raise ValidationError("records must be a list")
        records = [record_from_dict(r) for r in raw]
        return _result(service.submit_attendance(records))

    @app.route("/api/attendance/sheet", methods=["POST"], endpoint="api_submit_sheet")
    @json_errors
    def api_submit_sheet():
        data = _body()
        sheet = AttendanceSheet(
            class_id=data.get("class_id"),
            subject=data.get("subject"),
            date=parse_iso_date(data.get("date") or ""),
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
        )

        marks = data.get("marks") or {}
        if not isinstance(marks, dict):
            raise ValidationError("marks must be an object keyed by student id")
        for student_id, mark in marks.items():
            if isinstance(mark, str):
                mark = {"status": mark}
            if not isinstance(mark, dict):
                raise ValidationError(f"Invalid mark for {student_id}")
            sheet.mark(
                student_id,
                mark.get("status", ""),
                minutes_late=mark.get("minutes_late"),
                notes=mark.get("notes"),
            )
        return _result(service.submit_sheet(sheet))

    @app.route("/api/sessions/<class_id>/<session_date>", methods=["DELETE"], endpoint="api_delete_session")
    @json_errors
    def api_delete_session(class_id: str, session_date: str):
        return _result(service.delete_session(class_id, parse_iso_date(session_date)))

    @app.route("/api/metrics", methods=["GET"], endpoint="api_metrics")
    @json_errors
    def api_metrics():
        return jsonify({"success": True, "metrics": metrics_to_dict(service.compute_metrics())}), 200

    @app.route("/api/students/<student_id>/subjects", methods=["GET"], endpoint="api_student_subjects")
    @json_errors
    def api_student_subjects(student_id: str):
        rows = service.subject_breakdown(student_id)
        return jsonify({"success": True, "student_id": student_id, "subjects": [subject_to_dict(r) for r in rows]}), 200

    @app.route("/api/extraction/match", methods=["POST"], endpoint="api_extraction_match")
    @json_errors
    def api_extraction_match():
        matched = service.match_identities(_body().get("items", []))
        return jsonify({"success": True, "rows": [matched_item_to_dict(m) for m in matched]}), 200

    @app.route("/api/extraction/commit", methods=["POST"], endpoint="api_extraction_commit")
    @json_errors
    def api_extraction_commit():
        data = _body()
        rows = data.get("rows")
        if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
            raise ValidationError("rows must be a list of objects")

        try:
            items = parse_extraction_payload([r.get("item") for r in rows])
        except ExternalServiceFailure as e:
            raise ValidationError(str(e)) from e

        batch = service.start_extraction_batch(items)
        for i, row in enumerate(rows):
            if "student_id" in row or "studentId" in row:
                batch.assign(i, optional_student_id(row))

        duration = require_non_negative_int(data.get("session_duration", DEFAULT_SESSION_MINUTES), "session_duration")
        result = service.commit_extraction(
            batch,
            parse_iso_date(data.get("date") or ""),
            subject=data.get("subject"),
            session_duration=duration,
        )
        return _result(result)

    @app.route("/api/roster/lookup", methods=["GET"], endpoint="api_roster_lookup")
    @json_errors
    def api_roster_lookup():
        name = (request.args.get("name") or "").strip()
        if not name:
            raise ValidationError("name is required")
        return jsonify({"success": True, "student_id": service.resolve_name(name)}), 200
