"""Application entry point.

Run the dashboard backend with environment-based configuration.

Environment Variables:
    FLASK_ENV: Set to 'production' for production mode, 'development' for dev mode
    FLASK_DEBUG: Set to '0' to disable debug mode (alternative to FLASK_ENV)
    HOST: Server host address (default: 0.0.0.0)
    PORT: Server port (default: 8080)
    LOG_LEVEL: Root logging level (default: INFO, DEBUG in development)

Examples:
    python run.py
    FLASK_ENV=development python run.py
"""

import logging

from config import get_config

logging.basicConfig(
    level=get_config().LOG_LEVEL,
    format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
)

from app import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    host = app.config.get('HOST', '0.0.0.0')
    port = app.config.get('PORT', 8080)
    debug = app.config.get('DEBUG', False)

    # use_reloader=False so the reloader does not open the webcam twice
    socketio = getattr(app, 'socketio', None)
    if socketio is not None:
        socketio.run(app, host=host, port=port, debug=debug, use_reloader=False,
                     allow_unsafe_werkzeug=True)
    else:
        app.run(host=host, port=port, debug=debug, use_reloader=False)
