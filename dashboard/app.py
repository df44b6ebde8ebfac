"""Flask application factory for the alert engine API."""

import os

from flask import Flask

from alert_engine.scheduler import ThreadingTicker
from alert_engine.service import AlertService

from .config import get_config


def create_app(config=None, service: AlertService | None = None) -> Flask:
    """Build the API app around an alert service.

    ``config`` may be a config object, a config name ("testing",
    "production", ...) or a plain dict of overrides applied on top of the
    environment default. Without ``service`` a new engine driven by a
    background-thread ticker is created; starting it is up to the caller.
    """
    app = Flask(__name__)

    if isinstance(config, dict):
        app.config.from_object(get_config())
        app.config.update(config)
    elif config is None or isinstance(config, str):
        app.config.from_object(get_config(config))
    else:
        app.config.from_object(config)

    app.alert_service = service or AlertService(ticker=ThreadingTicker())

    from .routes.api import api_bp
    app.register_blueprint(api_bp, url_prefix="/api")

    return app


def run_dev_server():
    """Serve the API with a running engine until interrupted."""
    app = create_app("development")
    service = app.alert_service
    service.start()
    try:
        app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)),
                debug=True, use_reloader=False)
    finally:
        service.shutdown()


if __name__ == "__main__":
    run_dev_server()
