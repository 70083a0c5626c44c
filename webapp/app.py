from __future__ import annotations

import io
import os
from dataclasses import asdict, replace
from typing import Optional, Tuple

import pandas as pd
from flask import Flask, jsonify, request, send_file

from sprint_planner import engine
from sprint_planner.export import group_by_sprint, sprint_csv, sprint_export_name
from sprint_planner.io_utils import load_config, load_issues
from sprint_planner.models import PlanningConfig, PlanningError
from sprint_planner.view import bucket_view

MAX_UPLOAD_BYTES = 5 * 1024 * 1024


def _resolve_config() -> PlanningConfig:
    env_value = os.getenv("PLANNER_CONFIG")
    if env_value:
        return load_config(env_value)
    return PlanningConfig()


def _read_upload() -> pd.DataFrame:
    """Issues CSV from a multipart ``file`` field or the raw request body."""
    upload = request.files.get("file")
    if upload is not None:
        if not upload.filename:
            raise ValueError("uploaded file has no name")
        return load_issues(io.BytesIO(upload.read()))
    body = request.get_data()
    if not body:
        raise ValueError("no issues CSV provided")
    return load_issues(io.BytesIO(body))


def _request_config(base: PlanningConfig) -> PlanningConfig:
    buckets = request.args.get("buckets")
    if buckets is None:
        return base
    try:
        count = int(buckets)
    except ValueError as exc:
        raise ValueError("buckets must be an integer") from exc
    if count <= 0:
        raise ValueError("buckets must be positive")
    return replace(base, bucket_count=count)


def _plan_from_request(base: PlanningConfig) -> Tuple[engine.PlanResult, PlanningConfig]:
    cfg = _request_config(base)
    issues_df = _read_upload()
    return engine.plan(issues_df, cfg), cfg


def _planning_error(exc: PlanningError):
    return jsonify({"error": str(exc), "type": type(exc).__name__}), 422


def create_app(config: Optional[PlanningConfig] = None) -> Flask:
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_BYTES
    app.config["PLANNING_CONFIG"] = config if config is not None else _resolve_config()

    @app.errorhandler(413)
    def upload_too_large(_exc):
        limit = app.config["MAX_CONTENT_LENGTH"]
        return jsonify({"error": f"upload exceeds {limit} bytes"}), 413

    @app.get("/config")
    def show_config():
        cfg: PlanningConfig = app.config["PLANNING_CONFIG"]
        payload = asdict(cfg)
        if cfg.planning_start is not None:
            payload["planning_start"] = cfg.planning_start.isoformat()
        return jsonify(payload)

    @app.post("/api/plan")
    def plan_upload():
        try:
            result, cfg = _plan_from_request(app.config["PLANNING_CONFIG"])
            view = bucket_view(
                result,
                cfg,
                hovered_key=request.args.get("hovered"),
                clicked_key=request.args.get("clicked"),
            )
        except PlanningError as exc:
            return _planning_error(exc)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        view["sprints"] = {
            f"Sprint {sprint}": keys
            for sprint, keys in group_by_sprint(result.buckets, cfg.points_per_sprint).items()
        }
        return jsonify(view)

    @app.post("/api/export")
    def export_upload():
        try:
            result, cfg = _plan_from_request(app.config["PLANNING_CONFIG"])
        except PlanningError as exc:
            return _planning_error(exc)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        payload = io.BytesIO(sprint_csv(result.buckets, cfg.points_per_sprint).encode("utf-8"))
        return send_file(
            payload,
            mimetype="text/csv",
            as_attachment=True,
            download_name=f"{sprint_export_name(cfg)}.csv",
        )

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
