from __future__ import annotations

from flask import Flask

from ..common.http import arg_bool, arg_int, created, json_body, ok, page_request, paginated
from ..common.validators import require_date, require_decimal, require_int, require_month
from ..container import Container
from ..core.enums import DiscountType
from ..core.exceptions import ValidationError
from .model import LineItemInput, ReceiptInput, ReceiptUpdate, RollupFilter


def _optional_decimal(data: dict, name: str):
    value = data.get(name)
    if value is None or value == "":
        return None
    return require_decimal(value, name)


def _parse_line(item: dict) -> LineItemInput:
    if not isinstance(item, dict):
        raise ValidationError("each line item must be an object")
    discount_type = item.get("discount_type")
    if discount_type:
        try:
            discount_type = DiscountType(str(discount_type).strip().upper())
        except ValueError:
            raise ValidationError(f"Invalid discount_type: {discount_type}")
    inventory_item_id = item.get("inventory_item_id")
    return LineItemInput(
        label_id=require_int(item.get("label_id"), "label_id"),
        category_id=require_int(item.get("category_id"), "category_id"),
        item_name=item.get("item_name", ""),
        unit_price=require_decimal(item.get("unit_price"), "unit_price"),
        qty=require_int(item.get("qty"), "qty"),
        discount_type=discount_type or None,
        discount_value=_optional_decimal(item, "discount_value"),
        inventory_item_id=require_int(inventory_item_id, "inventory_item_id") if inventory_item_id else None,
        note=item.get("note"),
    )


def _rollup_filter() -> RollupFilter:
    budget_id = arg_int("budget_id")
    if budget_id is not None:
        return RollupFilter(budget_id=budget_id)
    year = arg_int("year")
    month = arg_int("month")
    if month is not None:
        if year is None:
            raise ValidationError("month filter needs a year")
        month = require_month(month)
    return RollupFilter(year=year, month=month)


def register(app: Flask, container: Container) -> None:
    labels = container.label_service
    receipts = container.receipt_service

    @app.route("/api/labels", methods=["GET"], endpoint="list_labels")
    def list_labels():
        return paginated(labels.list(is_active=arg_bool("is_active"), page=page_request()))

    @app.route("/api/labels/active", methods=["GET"], endpoint="list_active_labels")
    def list_active_labels():
        return ok(labels.list_active())

    @app.route("/api/labels", methods=["POST"], endpoint="create_label")
    def create_label():
        data = json_body()
        label = labels.create(name=data.get("name", ""), description=data.get("description"), color=data.get("color"))
        return created(label, "Label created")

    @app.route("/api/labels/<int:label_id>", methods=["GET"], endpoint="get_label")
    def get_label(label_id: int):
        return ok(labels.get(label_id))

    @app.route("/api/labels/<int:label_id>", methods=["PUT"], endpoint="update_label")
    def update_label(label_id: int):
        data = json_body()
        label = labels.update(
            label_id,
            name=data.get("name"),
            description=data.get("description"),
            color=data.get("color"),
            is_active=data.get("is_active"),
        )
        return ok(label, "Label updated")

    @app.route("/api/labels/<int:label_id>", methods=["DELETE"], endpoint="delete_label")
    def delete_label(label_id: int):
        result = labels.delete(label_id)
        message = "Label deleted" if result.deleted else "Label is in use and was deactivated"
        return ok(result, message)

    @app.route("/api/receipts", methods=["GET"], endpoint="list_receipts")
    def list_receipts():
        return paginated(receipts.list(_rollup_filter(), page_request()))

    @app.route("/api/receipts", methods=["POST"], endpoint="create_receipt")
    def create_receipt():
        data = json_body()
        raw_lines = data.get("lines") or []
        if not isinstance(raw_lines, list):
            raise ValidationError("lines must be a list")
        receipt = receipts.create(
            ReceiptInput(
                budget_id=require_int(data.get("budget_id"), "budget_id"),
                receipt_date=require_date(data.get("receipt_date"), "receipt_date"),
                lines=[_parse_line(item) for item in raw_lines],
                receipt_number=data.get("receipt_number"),
                attachment_path=data.get("attachment_path"),
                original_filename=data.get("original_filename"),
                tax_percent=_optional_decimal(data, "tax_percent"),
                tax_amount=_optional_decimal(data, "tax_amount"),
                note=data.get("note"),
            )
        )
        return created(receipt, "Receipt created")

    @app.route("/api/receipts/<int:receipt_id>", methods=["GET"], endpoint="get_receipt")
    def get_receipt(receipt_id: int):
        return ok(receipts.get(receipt_id))

    @app.route("/api/receipts/<int:receipt_id>", methods=["PUT"], endpoint="update_receipt")
    def update_receipt(receipt_id: int):
        data = json_body()
        receipt = receipts.update(
            receipt_id,
            ReceiptUpdate(
                receipt_date=require_date(data["receipt_date"], "receipt_date") if data.get("receipt_date") else None,
                receipt_number=data.get("receipt_number"),
                attachment_path=data.get("attachment_path"),
                original_filename=data.get("original_filename"),
                tax_percent=_optional_decimal(data, "tax_percent"),
                tax_amount=_optional_decimal(data, "tax_amount"),
                note=data.get("note"),
            ),
        )
        return ok(receipt, "Receipt updated")

    @app.route("/api/receipts/<int:receipt_id>", methods=["DELETE"], endpoint="delete_receipt")
    def delete_receipt(receipt_id: int):
        return ok(receipts.delete(receipt_id), "Receipt deleted")

    @app.route("/api/receipts/rollup/labels", methods=["GET"], endpoint="receipt_rollup_by_label")
    def receipt_rollup_by_label():
        return ok(receipts.rollup_by_label(_rollup_filter()))

    @app.route("/api/receipts/rollup/categories", methods=["GET"], endpoint="receipt_rollup_by_category")
    def receipt_rollup_by_category():
        return ok(receipts.rollup_by_category(_rollup_filter()))
