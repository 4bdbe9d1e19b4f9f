from flask import current_app, jsonify

from . import monitoring
from ...metrics import metrics_registry


@monitoring.route("/api/metrics/summary")
def metrics_summary():
    """Return the latest classifier inference metrics and stream counters."""
    stream_summary = current_app.metric_stream.summary()
    stream = {
        "update_count": stream_summary["update_count"],
        "axis_length": stream_summary["axis_length"],
        "capacity": stream_summary["capacity"],
    }

    if not current_app.config.get("METRICS_ENABLED", True):
        return jsonify({
            "enabled": False,
            "inference": {
                "inferences_total": 0,
                "failures": {"total": 0, "window_total": 0, "per_minute": 0.0},
                "detections": {"total": 0, "window_total": 0, "per_minute": 0.0},
                "latency_ms": {"avg_ms": 0.0, "p50_ms": 0.0, "p95_ms": 0.0, "max_ms": 0.0, "count": 0},
            },
            "stream": stream,
        })

    snapshot = metrics_registry.get_snapshot()
    return jsonify({
        "enabled": True,
        "generated_at": snapshot["generated_at"],
        "inference": snapshot["inference"],
        "stream": stream,
        "config": snapshot["config"],
    })
