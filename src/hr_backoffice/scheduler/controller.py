from __future__ import annotations

from flask import Flask

from ..common.http import json_body, ok
from ..common.validators import require_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    scheduler = container.scheduler

    @app.route("/api/scheduler/status", methods=["GET"], endpoint="scheduler_status")
    def scheduler_status():
        return ok(scheduler.status())

    @app.route("/api/scheduler/trigger", methods=["POST"], endpoint="scheduler_trigger")
    def scheduler_trigger():
        year = json_body().get("year")
        result = scheduler.trigger_now(require_int(year, "year") if year is not None else None)
        return ok(result, f"Generated {len(result.succeeded)} leave years, {len(result.failed)} failed")
