from __future__ import annotations

from flask import Flask, request

from ..common.http import arg_bool, arg_date, arg_enum, arg_int, created, json_body, ok, page_request, paginated
from ..common.validators import require_date, require_int
from ..container import Container
from ..core.enums import ItemCategory
from ..core.exceptions import ValidationError
from .model import ItemQuery, MovementQuery
from .service import ItemInput


def _parse_category(value) -> ItemCategory:
    try:
        return ItemCategory(str(value or "").strip().upper())
    except ValueError:
        raise ValidationError(f"Invalid item category: {value}")


def _movement_query() -> MovementQuery:
    return MovementQuery(
        item_id=arg_int("item_id"),
        start_date=arg_date("start_date"),
        end_date=arg_date("end_date"),
    )


def _date_or_none(data: dict, name: str):
    return require_date(data[name], name) if data.get(name) else None


def register(app: Flask, container: Container) -> None:
    items = container.item_service
    purchases = container.purchase_service
    disbursements = container.disbursement_service

    @app.route("/api/items", methods=["GET"], endpoint="list_items")
    def list_items():
        query = ItemQuery(
            category=arg_enum("category", ItemCategory),
            search=request.args.get("search") or None,
            low_stock=bool(arg_bool("low_stock")),
        )
        return paginated(items.list(query, page_request()))

    @app.route("/api/items/low-stock", methods=["GET"], endpoint="list_low_stock_items")
    def list_low_stock_items():
        return ok(items.low_stock())

    @app.route("/api/items", methods=["POST"], endpoint="create_item")
    def create_item():
        data = json_body()
        item = items.create(
            ItemInput(
                code=data.get("code", ""),
                name=data.get("name", ""),
                category=_parse_category(data.get("category")),
                unit=data.get("unit", ""),
                min_stock=data.get("min_stock", 0),
                current_stock=data.get("current_stock", 0),
                note=data.get("note"),
            )
        )
        return created(item, "Item created")

    @app.route("/api/items/<int:item_id>", methods=["GET"], endpoint="get_item")
    def get_item(item_id: int):
        return ok(items.get(item_id))

    @app.route("/api/items/<int:item_id>", methods=["PUT"], endpoint="update_item")
    def update_item(item_id: int):
        data = json_body()
        item = items.update(
            item_id,
            name=data.get("name"),
            unit=data.get("unit"),
            min_stock=data.get("min_stock"),
            note=data.get("note"),
        )
        return ok(item, "Item updated")

    @app.route("/api/items/<int:item_id>", methods=["DELETE"], endpoint="delete_item")
    def delete_item(item_id: int):
        return ok(items.delete(item_id), "Item deleted")

    @app.route("/api/purchases", methods=["GET"], endpoint="list_purchases")
    def list_purchases():
        return paginated(purchases.list(_movement_query(), page_request()))

    @app.route("/api/purchases", methods=["POST"], endpoint="create_purchase")
    def create_purchase():
        data = json_body()
        purchase = purchases.create(
            item_id=require_int(data.get("item_id"), "item_id"),
            qty=data.get("qty"),
            purchase_date=require_date(data.get("purchase_date"), "purchase_date"),
            unit_price=data.get("unit_price"),
            supplier=data.get("supplier"),
            note=data.get("note"),
        )
        return created(purchase, "Purchase recorded")

    @app.route("/api/purchases/rollup", methods=["GET"], endpoint="purchase_rollup")
    def purchase_rollup():
        return ok(purchases.rollup(request.args.get("group_by", "item"), _movement_query()))

    @app.route("/api/purchases/<int:purchase_id>", methods=["GET"], endpoint="get_purchase")
    def get_purchase(purchase_id: int):
        return ok(purchases.get(purchase_id))

    @app.route("/api/purchases/<int:purchase_id>", methods=["PUT"], endpoint="update_purchase")
    def update_purchase(purchase_id: int):
        data = json_body()
        purchase = purchases.update(
            purchase_id,
            qty=data.get("qty"),
            purchase_date=_date_or_none(data, "purchase_date"),
            unit_price=data.get("unit_price"),
            supplier=data.get("supplier"),
            note=data.get("note"),
        )
        return ok(purchase, "Purchase updated")

    @app.route("/api/purchases/<int:purchase_id>", methods=["DELETE"], endpoint="delete_purchase")
    def delete_purchase(purchase_id: int):
        return ok(purchases.delete(purchase_id), "Purchase deleted")

    @app.route("/api/disbursements", methods=["GET"], endpoint="list_disbursements")
    def list_disbursements():
        return paginated(disbursements.list(_movement_query(), page_request()))

    @app.route("/api/disbursements", methods=["POST"], endpoint="create_disbursement")
    def create_disbursement():
        data = json_body()
        disbursement = disbursements.create(
            item_id=require_int(data.get("item_id"), "item_id"),
            qty=data.get("qty"),
            disbursement_date=require_date(data.get("disbursement_date"), "disbursement_date"),
            purpose=data.get("purpose", ""),
            recipient=data.get("recipient"),
            note=data.get("note"),
        )
        return created(disbursement, "Disbursement recorded")

    @app.route("/api/disbursements/rollup", methods=["GET"], endpoint="disbursement_rollup")
    def disbursement_rollup():
        return ok(disbursements.rollup(request.args.get("group_by", "item"), _movement_query()))

    @app.route("/api/disbursements/<int:disbursement_id>", methods=["GET"], endpoint="get_disbursement")
    def get_disbursement(disbursement_id: int):
        return ok(disbursements.get(disbursement_id))

    @app.route("/api/disbursements/<int:disbursement_id>", methods=["PUT"], endpoint="update_disbursement")
    def update_disbursement(disbursement_id: int):
        data = json_body()
        disbursement = disbursements.update(
            disbursement_id,
            qty=data.get("qty"),
            disbursement_date=_date_or_none(data, "disbursement_date"),
            purpose=data.get("purpose"),
            recipient=data.get("recipient"),
            note=data.get("note"),
        )
        return ok(disbursement, "Disbursement updated")

    @app.route("/api/disbursements/<int:disbursement_id>", methods=["DELETE"], endpoint="delete_disbursement")
    def delete_disbursement(disbursement_id: int):
        return ok(disbursements.delete(disbursement_id), "Disbursement deleted")
