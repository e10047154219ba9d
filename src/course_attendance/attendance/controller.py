from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import AuthorizationError, DomainError, NotFoundError, ValidationError
from ..container import Container
from .params import (
    ExportAttendanceParams,
    ListAttendanceParams,
    MarkAttendancePayload,
    StatsParams,
    StudentHistoryParams,
    UpdateAttendancePayload,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
)


def register(app: Flask, container: Container) -> None:
    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session or "role" not in session:
                return jsonify({"success": False, "message": "Authentication required"}), 401
            return view(*args, **kwargs)

        return wrapper

    def roles_required(*roles: Role):
        allowed = {r.value for r in roles}

        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                if session.get("role") not in allowed:
                    return jsonify({"success": False, "message": "Not authorized"}), 403
                return view(*args, **kwargs)

            return wrapper

        return decorator

    def _actor() -> tuple[int, Role]:
        try:
            return int(session["user_id"]), Role(session["role"])
        except (KeyError, TypeError, ValueError):
            raise AuthorizationError("Invalid session")

    def _ok(data, status: int = 200):
        return jsonify({"success": True, "data": data}), status

    def _json_body() -> dict:
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise ValidationError("JSON body is required")
        return body

    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        for error_type, status in _STATUS_BY_ERROR:
            if isinstance(e, error_type):
                return jsonify({"success": False, "message": str(e)}), status
        logger.error("Unmapped domain error: %s", e)
        return jsonify({"success": False, "message": str(e)}), 400

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    @login_required
    @roles_required(Role.TEACHER, Role.ADMIN)
    def attendance_list():
        actor_id, role = _actor()
        params = ListAttendanceParams.from_mapping(request.args)
        return _ok(container.attendance_service.list_attendances(params, actor_id, role))

    @app.route("/api/attendance/export", methods=["GET"], endpoint="attendance_export")
    @login_required
    @roles_required(Role.TEACHER, Role.ADMIN)
    def attendance_export():
        actor_id, role = _actor()
        params = ExportAttendanceParams.from_mapping(request.args)
        report = container.attendance_service.export_attendance_report(params, actor_id, role)
        if report["format"] == "json":
            return _ok(report)

        csv_bytes = report["csv"].encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=attendance_report.csv"},
        )

    @app.route("/api/attendance/self", methods=["GET"], endpoint="attendance_self")
    @login_required
    def attendance_self():
        actor_id, _ = _actor()
        params = StudentHistoryParams.from_mapping(request.args)
        return _ok(container.attendance_service.get_self_attendance_history(actor_id, params))

    @app.route("/api/attendance/students/<int:student_id>", methods=["GET"], endpoint="attendance_student_history")
    @login_required
    @roles_required(Role.TEACHER, Role.ADMIN)
    def attendance_student_history(student_id: int):
        actor_id, role = _actor()
        params = StudentHistoryParams.from_mapping(request.args)
        return _ok(container.attendance_service.get_student_attendance_history(student_id, params, actor_id, role))

    @app.route("/api/attendance/courses/<int:course_id>/stats", methods=["GET"], endpoint="attendance_course_stats")
    @login_required
    @roles_required(Role.TEACHER, Role.ADMIN)
    def attendance_course_stats(course_id: int):
        actor_id, role = _actor()
        params = StatsParams.from_mapping(request.args)
        return _ok(container.attendance_service.get_course_attendance_stats(course_id, params, actor_id, role))

    @app.route(
        "/api/attendance/courses/<int:course_id>/students/<int:student_id>/stats",
        methods=["GET"],
        endpoint="attendance_student_stats",
    )
    @login_required
    @roles_required(Role.TEACHER, Role.ADMIN)
    def attendance_student_stats(course_id: int, student_id: int):
        actor_id, role = _actor()
        params = StatsParams.from_mapping(request.args)
        return _ok(
            container.attendance_service.get_student_attendance_stats(course_id, student_id, params, actor_id, role)
        )

    @app.route("/api/attendance", methods=["POST"], endpoint="attendance_mark")
    @login_required
    @roles_required(Role.TEACHER, Role.ADMIN)
    def attendance_mark():
        actor_id, role = _actor()
        payload = MarkAttendancePayload.from_mapping(_json_body())
        return _ok(container.mutation_service.mark_attendance(payload, actor_id, role), 201)

    @app.route("/api/attendance/<int:attendance_id>", methods=["PATCH"], endpoint="attendance_update_one")
    @login_required
    @roles_required(Role.TEACHER, Role.ADMIN)
    def attendance_update_one(attendance_id: int):
        actor_id, role = _actor()
        payload = UpdateAttendancePayload.from_mapping(_json_body())
        return _ok(container.mutation_service.update_attendance(attendance_id, payload, actor_id, role))

    @app.route("/api/attendance", methods=["PATCH"], endpoint="attendance_update_many")
    @login_required
    @roles_required(Role.TEACHER, Role.ADMIN)
    def attendance_update_many():
        actor_id, role = _actor()
        body = _json_body()
        payload = UpdateAttendancePayload.from_mapping(body)
        ids = list(body.get("attendance_ids") or [])
        return _ok(container.mutation_service.update_attendance(ids, payload, actor_id, role))

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="attendance_delete_one")
    @login_required
    @roles_required(Role.TEACHER, Role.ADMIN)
    def attendance_delete_one(attendance_id: int):
        actor_id, role = _actor()
        return _ok(container.mutation_service.delete_attendance(attendance_id, actor_id, role))

    @app.route("/api/attendance", methods=["DELETE"], endpoint="attendance_delete_many")
    @login_required
    @roles_required(Role.TEACHER, Role.ADMIN)
    def attendance_delete_many():
        actor_id, role = _actor()
        ids = list(_json_body().get("attendance_ids") or [])
        return _ok(container.mutation_service.delete_attendance(ids, actor_id, role))

    @app.route(
        "/api/attendance/courses/<int:course_id>/absence-notifications",
        methods=["POST"],
        endpoint="attendance_absence_notifications",
    )
    @login_required
    @roles_required(Role.TEACHER, Role.ADMIN)
    def attendance_absence_notifications(course_id: int):
        actor_id, role = _actor()
        body = _json_body()
        result = container.notification_service.send_absence_notification_emails(
            course_id, list(body.get("student_ids") or []), actor_id, role
        )
        return _ok(result)
