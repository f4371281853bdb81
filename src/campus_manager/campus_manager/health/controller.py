from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import now_local


def register(app: Flask, environment: str) -> None:
    def health():
        return jsonify({"status": "OK", "timestamp": now_local().isoformat(), "environment": environment})

    app.add_url_rule("/health", endpoint="health", view_func=health, methods=["GET"])
    app.add_url_rule("/api/health", endpoint="api_health", view_func=health, methods=["GET"])
