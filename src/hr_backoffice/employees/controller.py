from __future__ import annotations

from flask import Flask, request

from ..common.http import arg_enum, created, json_body, ok, page_request, paginated
from ..common.validators import require_date
from ..container import Container
from ..core.enums import EmployeeStatus
from .model import EmployeeQuery
from .service import EmployeeInput


def register(app: Flask, container: Container) -> None:
    service = container.employee_service

    @app.route("/api/employees", methods=["GET"], endpoint="list_employees")
    def list_employees():
        query = EmployeeQuery(
            status=arg_enum("status", EmployeeStatus),
            department=request.args.get("department") or None,
            search=request.args.get("search") or None,
        )
        return paginated(service.list(query, page_request()))

    @app.route("/api/employees/active", methods=["GET"], endpoint="list_active_employees")
    def list_active_employees():
        return ok(service.list_active())

    @app.route("/api/employees", methods=["POST"], endpoint="create_employee")
    def create_employee():
        data = json_body()
        employee = service.create(
            EmployeeInput(
                national_id=data.get("national_id", ""),
                name=data.get("name", ""),
                hire_date=require_date(data.get("hire_date"), "hire_date"),
                job_title=data.get("job_title"),
                department=data.get("department"),
                badge_number=data.get("badge_number"),
            )
        )
        return created(employee, "Employee created")

    @app.route("/api/employees/<int:employee_id>", methods=["GET"], endpoint="get_employee")
    def get_employee(employee_id: int):
        return ok(service.get(employee_id))

    @app.route("/api/employees/nik/<national_id>", methods=["GET"], endpoint="get_employee_by_national_id")
    def get_employee_by_national_id(national_id: str):
        return ok(service.get_by_national_id(national_id))

    @app.route("/api/employees/<int:employee_id>", methods=["PUT"], endpoint="update_employee")
    def update_employee(employee_id: int):
        data = json_body()
        hire_date = data.get("hire_date")
        employee = service.update(
            employee_id,
            name=data.get("name"),
            job_title=data.get("job_title"),
            department=data.get("department"),
            hire_date=require_date(hire_date, "hire_date") if hire_date else None,
            badge_number=data.get("badge_number"),
        )
        return ok(employee, "Employee updated")

    @app.route("/api/employees/<int:employee_id>/deactivate", methods=["POST"], endpoint="deactivate_employee")
    def deactivate_employee(employee_id: int):
        return ok(service.deactivate(employee_id), "Employee deactivated")
