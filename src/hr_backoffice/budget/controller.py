from __future__ import annotations

from flask import Flask

from ..common.http import arg_bool, arg_int, created, json_body, ok, page_request, paginated
from ..common.validators import require_int
from ..container import Container
from ..core.exceptions import ValidationError
from .model import AllocationInput


def _parse_allocations(data: dict) -> list[AllocationInput]:
    raw = data.get("allocations")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("allocations must be a list")
    out = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValidationError("each allocation must be an object")
        out.append(AllocationInput(category_id=item.get("category_id"), amount=item.get("amount")))
    return out


def register(app: Flask, container: Container) -> None:
    categories = container.category_service
    budgets = container.budget_service

    @app.route("/api/budget-categories", methods=["GET"], endpoint="list_budget_categories")
    def list_budget_categories():
        return paginated(categories.list(is_active=arg_bool("is_active"), page=page_request()))

    @app.route("/api/budget-categories/active", methods=["GET"], endpoint="list_active_budget_categories")
    def list_active_budget_categories():
        return ok(categories.list_active())

    @app.route("/api/budget-categories", methods=["POST"], endpoint="create_budget_category")
    def create_budget_category():
        data = json_body()
        category = categories.create(name=data.get("name", ""), description=data.get("description"))
        return created(category, "Category created")

    @app.route("/api/budget-categories/<int:category_id>", methods=["GET"], endpoint="get_budget_category")
    def get_budget_category(category_id: int):
        return ok(categories.get(category_id))

    @app.route("/api/budget-categories/<int:category_id>", methods=["PUT"], endpoint="update_budget_category")
    def update_budget_category(category_id: int):
        data = json_body()
        category = categories.update(
            category_id,
            name=data.get("name"),
            description=data.get("description"),
            is_active=data.get("is_active"),
        )
        return ok(category, "Category updated")

    @app.route("/api/budget-categories/<int:category_id>", methods=["DELETE"], endpoint="delete_budget_category")
    def delete_budget_category(category_id: int):
        result = categories.delete(category_id)
        message = "Category deleted" if result.deleted else "Category is in use and was deactivated"
        return ok(result, message)

    @app.route("/api/budgets", methods=["GET"], endpoint="list_budgets")
    def list_budgets():
        return paginated(budgets.list(arg_int("year"), page_request()))

    @app.route("/api/budgets", methods=["POST"], endpoint="create_budget")
    def create_budget():
        data = json_body()
        budget = budgets.create(
            month=data.get("month"),
            year=require_int(data.get("year"), "year"),
            allocations=_parse_allocations(data),
        )
        return created(budget, "Budget created")

    @app.route("/api/budgets/<int:budget_id>", methods=["GET"], endpoint="get_budget")
    def get_budget(budget_id: int):
        return ok(budgets.get(budget_id))

    @app.route("/api/budgets/period/<int:year>/<int:month>", methods=["GET"], endpoint="get_budget_by_period")
    def get_budget_by_period(year: int, month: int):
        return ok(budgets.get_by_period(month, year))

    @app.route("/api/budgets/<int:budget_id>", methods=["PUT"], endpoint="update_budget")
    def update_budget(budget_id: int):
        budget = budgets.update(budget_id, allocations=_parse_allocations(json_body()))
        return ok(budget, "Budget updated")

    @app.route("/api/budgets/<int:budget_id>", methods=["DELETE"], endpoint="delete_budget")
    def delete_budget(budget_id: int):
        return ok(budgets.delete(budget_id), "Budget deleted")

    @app.route("/api/budgets/<int:budget_id>/summary", methods=["GET"], endpoint="budget_summary")
    def budget_summary(budget_id: int):
        return ok(budgets.summary(budget_id))
