from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware

from services.monitor import LogMonitor

# ──────────────────────────────────────────────────────────────────────────────
# Config
# ──────────────────────────────────────────────────────────────────────────────

API_PREFIX = "/api"


# ──────────────────────────────────────────────────────────────────────────────
# App
# ──────────────────────────────────────────────────────────────────────────────

def create_app(monitor: LogMonitor) -> FastAPI:
    """
    Read-only HTTP view of a running monitor.
    The monitor's lifecycle is owned by the caller.
    """
    app = FastAPI(title="Access Log Monitor")
    app.state.monitor = monitor

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # dev OK; lock down in prod
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ──────────────────────────────────────────────────────────────────────────
    # Health
    # ──────────────────────────────────────────────────────────────────────────

    @app.get(f"{API_PREFIX}/health")
    def health() -> Dict[str, Any]:
        return monitor.health()

    # ──────────────────────────────────────────────────────────────────────────
    # Metrics of the last drained interval
    # ──────────────────────────────────────────────────────────────────────────

    @app.get(f"{API_PREFIX}/metrics")
    def metrics() -> Dict[str, Any]:
        snapshot = monitor.window.snapshot
        return {
            "metrics": snapshot.to_dict(),
            "config": {
                "stats_interval": monitor.config.stats_interval,
                "alert_threshold": monitor.config.alert_threshold,
            },
        }

    # ──────────────────────────────────────────────────────────────────────────
    # Alerts: live set is read without consuming resolved ones
    # ──────────────────────────────────────────────────────────────────────────

    @app.get(f"{API_PREFIX}/alerts")
    def alerts(limit: int = Query(20, ge=1, le=200)) -> Dict[str, Any]:
        active = monitor.alerts.active_alerts()
        resolved = list(monitor.resolved_history)
        resolved.sort(key=lambda a: a.resolved_at or a.created_at, reverse=True)
        return {
            "active": [a.to_dict() for a in active],
            "resolved": [a.to_dict() for a in resolved[:limit]],
        }

    return app
