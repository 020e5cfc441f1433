"""
MapParser – main application entry point

* Flask app exposing the route-link pipeline as a small JSON API under
  `/api` (resolve, parse, geocode, location, route, export).
* The browser renderer used for hard-to-resolve links is injected into the
  resolver; none is configured here, so browser mode degrades to plain
  redirect-following.
"""

import logging

from flask import Flask
from flask_cors import CORS
from dotenv import load_dotenv

from mapparser.api.config import get_cors_origins, get_port

# --------------------------------------------------------------------------- #
# Environment & logging
# --------------------------------------------------------------------------- #
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(**blueprint_kwargs) -> Flask:
    """Build the Flask app; keyword arguments go to the maps blueprint."""
    from mapparser.routes import create_maps_blueprint

    app = Flask(__name__)

    # CORS for local dev / cross‑origin front‑end requests
    CORS(app, origins=get_cors_origins())

    app.register_blueprint(create_maps_blueprint(**blueprint_kwargs))

    @app.route("/health")
    def health():
        """Simple JSON health endpoint."""
        return {
            "status": "ok",
            "endpoints": [
                "/api/resolve",
                "/api/parse",
                "/api/geocode",
                "/api/location",
                "/api/route",
                "/api/export/csv",
                "/api/export/kml",
            ],
        }

    logger.info("MapParser app initialised")
    return app


# --------------------------------------------------------------------------- #
# Local development runner ( `python main.py` )
# --------------------------------------------------------------------------- #
if __name__ == "__main__":
    port = get_port()
    logger.info("Starting MapParser on http://localhost:%d", port)
    create_app().run(host="0.0.0.0", port=port, debug=False)
