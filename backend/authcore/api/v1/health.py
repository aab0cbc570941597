"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from authcore.api.deps import json_response, timing
from authcore.core.extensions import db, get_redis

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Return application, database and refresh-store health."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:  # pragma: no cover - depends on DB backend
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"

    backend = str(current_app.config.get("REFRESH_STORE_BACKEND", "sql")).lower()
    store_status = db_status if backend == "sql" else "ok"
    if backend == "redis":
        try:
            get_redis().ping()
        except (RedisError, RuntimeError):  # pragma: no cover - depends on Redis
            current_app.logger.exception("healthcheck.redis_error")
            store_status = "fail"

    payload = {
        "status": "ok" if db_status == store_status == "ok" else "degraded",
        "db": db_status,
        "refresh_store": {"backend": backend, "status": store_status},
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    return json_response(payload)
