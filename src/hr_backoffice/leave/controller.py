from __future__ import annotations

from flask import Flask

from ..common.http import arg_enum, arg_int, created, json_body, ok, page_request, paginated
from ..common.validators import require_date, require_int
from ..container import Container
from ..core.enums import LeaveBalanceOperation, LeaveKind
from ..core.exceptions import ValidationError
from .model import LeaveEntryQuery
from .service import LeaveEntryInput


def _parse_kind(value) -> LeaveKind:
    try:
        return LeaveKind(str(value or "").strip().upper())
    except ValueError:
        raise ValidationError(f"Invalid leave kind: {value}")


def register(app: Flask, container: Container) -> None:
    years = container.leave_year_service
    entries = container.leave_entry_service

    @app.route("/api/leave-years/generate", methods=["POST"], endpoint="generate_leave_year")
    def generate_leave_year():
        data = json_body()
        leave_year = years.generate(
            require_int(data.get("employee_id"), "employee_id"),
            require_int(data.get("year"), "year"),
        )
        return created(leave_year, "Leave year generated")

    @app.route("/api/leave-years/generate-bulk", methods=["POST"], endpoint="generate_leave_years_bulk")
    def generate_leave_years_bulk():
        data = json_body()
        year = data.get("year")
        result = years.generate_bulk(require_int(year, "year") if year is not None else None)
        return ok(result, f"Generated {len(result.succeeded)} leave years, {len(result.failed)} failed")

    @app.route("/api/leave-years", methods=["GET"], endpoint="list_leave_years")
    def list_leave_years():
        page = years.list_for_year(arg_int("year"), employee_id=arg_int("employee_id"), page=page_request())
        return paginated(page)

    @app.route("/api/leave-years/<int:leave_year_id>", methods=["GET"], endpoint="get_leave_year")
    def get_leave_year(leave_year_id: int):
        return ok(years.get(leave_year_id))

    @app.route(
        "/api/leave-years/employee/<int:employee_id>/<int:year>",
        methods=["GET"],
        endpoint="get_employee_leave_year",
    )
    def get_employee_leave_year(employee_id: int, year: int):
        return ok(years.get_for_employee(employee_id, year))

    @app.route("/api/leave-years/<int:leave_year_id>/balance", methods=["POST"], endpoint="update_leave_balance")
    def update_leave_balance(leave_year_id: int):
        data = json_body()
        try:
            operation = LeaveBalanceOperation(str(data.get("operation", "")).upper())
        except ValueError:
            raise ValidationError("operation must be ADD or SUBTRACT")
        leave_year = years.update_balance(leave_year_id, require_int(data.get("days"), "days"), operation)
        return ok(leave_year, "Leave balance updated")

    @app.route("/api/leave-entries", methods=["GET"], endpoint="list_leave_entries")
    def list_leave_entries():
        query = LeaveEntryQuery(
            employee_id=arg_int("employee_id"),
            kind=arg_enum("kind", LeaveKind),
            year=arg_int("year"),
        )
        return paginated(entries.list(query, page_request()))

    @app.route("/api/leave-entries", methods=["POST"], endpoint="create_leave_entry")
    def create_leave_entry():
        data = json_body()
        entry = entries.create(
            LeaveEntryInput(
                employee_id=require_int(data.get("employee_id"), "employee_id"),
                kind=_parse_kind(data.get("kind")),
                reason=data.get("reason", ""),
                start_date=require_date(data.get("start_date"), "start_date"),
                end_date=require_date(data.get("end_date"), "end_date"),
            )
        )
        return created(entry, "Leave recorded")

    @app.route("/api/leave-entries/<int:leave_entry_id>", methods=["GET"], endpoint="get_leave_entry")
    def get_leave_entry(leave_entry_id: int):
        return ok(entries.get(leave_entry_id))

    @app.route("/api/leave-entries/<int:leave_entry_id>", methods=["PUT"], endpoint="update_leave_entry")
    def update_leave_entry(leave_entry_id: int):
        data = json_body()
        entry = entries.update(
            leave_entry_id,
            kind=_parse_kind(data["kind"]) if data.get("kind") else None,
            reason=data.get("reason"),
            start_date=require_date(data["start_date"], "start_date") if data.get("start_date") else None,
            end_date=require_date(data["end_date"], "end_date") if data.get("end_date") else None,
        )
        return ok(entry, "Leave entry updated")

    @app.route("/api/leave-entries/<int:leave_entry_id>", methods=["DELETE"], endpoint="delete_leave_entry")
    def delete_leave_entry(leave_entry_id: int):
        return ok(entries.delete(leave_entry_id), "Leave entry deleted")

    @app.route("/api/leave-entries/rollup/reasons", methods=["GET"], endpoint="leave_reason_rollup")
    def leave_reason_rollup():
        return ok(entries.reason_rollup(arg_int("year")))

    @app.route("/api/leave-entries/summary/<int:employee_id>", methods=["GET"], endpoint="leave_summary")
    def leave_summary(employee_id: int):
        return ok(entries.summary_for_employee(employee_id, arg_int("year")))
