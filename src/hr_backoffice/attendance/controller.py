from __future__ import annotations

import io
from typing import List

from flask import Flask, request, send_file

from ..common.http import arg_bool, arg_date, arg_enum, arg_int, created, json_body, ok, page_request, paginated
from ..common.validators import require_date, require_int
from ..container import Container
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from .model import AttendanceQuery, RekapItem
from .service import ManualAttendanceInput
from .spreadsheet import XLSX_MIMETYPE


def _parse_status(value) -> AttendanceStatus:
    try:
        return AttendanceStatus(str(value or "").strip().upper())
    except ValueError:
        raise ValidationError(f"Invalid attendance status: {value}")


def _excel_upload():
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        raise ValidationError("file is required")
    if not upload.filename.lower().endswith((".xlsx", ".xls")):
        raise ValidationError("Only Excel files (.xlsx, .xls) are accepted")
    return upload


def _text(data: dict, name: str):
    value = data.get(name)
    return None if value is None else str(value)


def _rekap_items(data: dict) -> List[RekapItem]:
    rows = data.get("data")
    if not isinstance(rows, list) or not rows:
        raise ValidationError("data must be a non-empty list")
    items = []
    for row in rows:
        if not isinstance(row, dict):
            raise ValidationError("Each data row must be an object")
        employee_id = row.get("employee_id")
        items.append(
            RekapItem(
                emp_no=_text(row, "emp_no") or "",
                badge_number=_text(row, "badge_number") or "",
                employee_id=require_int(employee_id, "employee_id") if employee_id is not None else None,
                national_id=_text(row, "national_id") or "",
                name=_text(row, "name") or "",
                work_date=_text(row, "work_date") or "",
                clock_in=_text(row, "clock_in"),
                clock_out=_text(row, "clock_out"),
                work_hours=_text(row, "work_hours"),
                scan_in=_text(row, "scan_in"),
                scan_out=_text(row, "scan_out"),
                note=_text(row, "note"),
            )
        )
    return items


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service

    @app.route("/api/attendance/rekap", methods=["POST"], endpoint="process_attendance_rekap")
    def process_attendance_rekap():
        result = attendance.process_rekap_file(_excel_upload().stream)
        return ok(result, "Recap file processed")

    @app.route("/api/attendance/rekap/export/excel", methods=["POST"], endpoint="export_attendance_rekap")
    def export_attendance_rekap():
        data = json_body()
        period_label = _text(data, "period_label")
        content = attendance.export_rekap(_rekap_items(data), period_label)
        suffix = "_" + "_".join(period_label.split()) if period_label and period_label.strip() else ""
        return send_file(
            io.BytesIO(content),
            download_name=f"Rekap_Absensi{suffix}.xlsx",
            as_attachment=True,
            mimetype=XLSX_MIMETYPE,
        )

    @app.route("/api/attendance/rekap/export/report", methods=["POST"], endpoint="attendance_rekap_report")
    def attendance_rekap_report():
        data = json_body()
        report = attendance.rekap_report(_rekap_items(data), _text(data, "period_label"))
        return ok(report, "Recap report prepared")

    @app.route("/api/attendance/import", methods=["POST"], endpoint="import_attendance")
    def import_attendance():
        upload = _excel_upload()
        work_date = require_date(request.form.get("date"), "date")
        result = attendance.import_scanner_file(upload.stream, work_date)
        return ok(result, f"Imported {result.success} records")

    @app.route("/api/attendance/missing", methods=["GET"], endpoint="list_missing_attendance")
    def list_missing_attendance():
        return ok(attendance.list_missing(arg_date("date", required=True)))

    @app.route("/api/attendance", methods=["GET"], endpoint="list_attendance")
    def list_attendance():
        query = AttendanceQuery(
            start_date=arg_date("start_date"),
            end_date=arg_date("end_date"),
            employee_id=arg_int("employee_id"),
            status=arg_enum("status", AttendanceStatus),
            is_manual=arg_bool("is_manual"),
        )
        return paginated(attendance.list(query, page_request()))

    @app.route("/api/attendance", methods=["POST"], endpoint="create_attendance")
    def create_attendance():
        data = json_body()
        record = attendance.create_manual(
            ManualAttendanceInput(
                employee_id=require_int(data.get("employee_id"), "employee_id"),
                work_date=require_date(data.get("date"), "date"),
                status=_parse_status(data.get("status")),
                note=data.get("note"),
                entered_by=data.get("entered_by"),
            )
        )
        return created(record, "Attendance recorded")

    @app.route("/api/attendance/bulk", methods=["POST"], endpoint="bulk_create_attendance")
    def bulk_create_attendance():
        data = json_body()
        employee_ids = data.get("employee_ids")
        if not isinstance(employee_ids, list):
            raise ValidationError("employee_ids must be a list")
        result = attendance.bulk_create_manual(
            employee_ids,
            require_date(data.get("date"), "date"),
            _parse_status(data.get("status")),
            note=data.get("note"),
            entered_by=data.get("entered_by"),
        )
        return ok(result, f"Recorded {result.success} of {len(employee_ids)} employees")

    @app.route("/api/attendance/summary", methods=["GET"], endpoint="attendance_summary")
    def attendance_summary():
        summary = attendance.summary(
            arg_date("start_date", required=True),
            arg_date("end_date", required=True),
            arg_int("employee_id"),
        )
        return ok(summary)

    @app.route("/api/attendance/export", methods=["GET"], endpoint="export_attendance")
    def export_attendance():
        start_date = arg_date("start_date", required=True)
        end_date = arg_date("end_date", required=True)
        content = attendance.export_matrix(start_date, end_date)
        return send_file(
            io.BytesIO(content),
            download_name=f"attendance_{start_date.isoformat()}_{end_date.isoformat()}.xlsx",
            as_attachment=True,
            mimetype=XLSX_MIMETYPE,
        )

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="get_attendance")
    def get_attendance(attendance_id: int):
        return ok(attendance.get(attendance_id))

    @app.route("/api/attendance/<int:attendance_id>", methods=["PUT"], endpoint="update_attendance")
    def update_attendance(attendance_id: int):
        data = json_body()
        record = attendance.update(
            attendance_id,
            status=_parse_status(data["status"]) if data.get("status") else None,
            note=data.get("note"),
            entered_by=data.get("entered_by"),
        )
        return ok(record, "Attendance updated")

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="delete_attendance")
    def delete_attendance(attendance_id: int):
        return ok(attendance.delete(attendance_id), "Attendance deleted")
