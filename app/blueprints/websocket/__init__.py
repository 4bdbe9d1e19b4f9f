"""
WebSocket push for real-time chart and value updates.

Acts as the dashboard's chart sink: every event published by the metric
stream or the detection loop is forwarded to connected Socket.IO clients.
"""

from flask_socketio import SocketIO, emit
import logging

from app.enums import Domain
from app.metrics.events import ChartUpdate, ValueChanged

logger = logging.getLogger(__name__)

# Global SocketIO instance (will be initialized in create_app)
socketio = None


def init_socketio(app):
    """
    Initialize Flask-SocketIO with the Flask app and subscribe it to the event hub.

    Args:
        app: Flask application instance

    Returns:
        SocketIO instance
    """
    global socketio

    socketio = SocketIO(
        app,
        cors_allowed_origins="*",  # Allow all origins for development
        async_mode='threading',    # Detection runs in a plain thread
        logger=app.debug,
        engineio_logger=app.debug,
        ping_timeout=60,
        ping_interval=25,
    )

    @socketio.on('connect')
    def handle_connect():
        """Send the current charts so a fresh page starts populated."""
        from flask import current_app, request
        logger.info(f"WebSocket client connected: {request.sid}")
        emit('connected', {'status': 'success'})
        for domain in Domain:
            labels, datasets = current_app.metric_stream.snapshot(domain)
            emit('chart_update', {'domain': domain.value, 'labels': labels, 'datasets': datasets})

    @socketio.on('disconnect')
    def handle_disconnect():
        from flask import request
        logger.info(f"WebSocket client disconnected: {request.sid}")

    app.event_hub.subscribe(forward_event)
    return socketio


def forward_event(event):
    """Emit a stream event to every connected client."""
    if socketio is None:
        logger.debug("SocketIO not initialized, dropping event")
        return

    if isinstance(event, ChartUpdate):
        socketio.emit('chart_update', event.to_dict(), namespace='/')
    elif isinstance(event, ValueChanged):
        socketio.emit('value_changed', event.to_dict(), namespace='/')
