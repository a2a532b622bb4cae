"""HTTP entrypoint serving the proximity search to the VAIBA web client."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict

from flask import Flask, g, jsonify, request

from vaiba.core import proximity_search
from vaiba.core.config import ConfigurationError, get_settings
from vaiba.etl.transform import to_response_item

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App ----------
app = Flask(__name__)


@app.before_request
def _start_timer() -> None:
    g.started_at = time.monotonic()


@app.after_request
def _log_api_request(response: Any) -> Any:
    if request.path.startswith("/api"):
        started_at = getattr(g, "started_at", None)
        duration_ms = (time.monotonic() - started_at) * 1000 if started_at is not None else 0.0
        logger.info("%s %s %s in %.0fms", request.method, request.path, response.status_code, duration_ms)
    return response


# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings but never calls Google."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "api_key_configured": bool(settings.google_api_key),
                "max_pages": settings.max_pages,
            }
        ),
        200,
    )


@app.post("/api/places/search")
def search_places() -> Any:
    """
    Search nearby places for the customer search page.
    Required JSON fields: searchTerm, location, radius (meters)
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        payload = {}
    search_term = payload.get("searchTerm")
    location = payload.get("location")
    radius = payload.get("radius")
    logger.info("Received search request: searchTerm=%s location=%s radius=%s", search_term, location, radius)

    try:
        results = proximity_search.search(search_term, location, radius)
    except proximity_search.ValidationError as exc:
        return _error(str(exc), exc.details, 400)
    except proximity_search.LocationNotFoundError as exc:
        return _error("Location not found", exc.details, 400)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return _error(str(exc), None, 500)
    except proximity_search.UpstreamError as exc:
        logger.error("Places API error: %s details=%s", exc, exc.details)
        return _error("Error searching for places", exc.details or str(exc), 500)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected failure searching places: %s", exc)
        return _error("Error searching for places", str(exc), 500)

    return jsonify([to_response_item(result) for result in results]), 200


# ---------- Internals ----------


def _error(message: str, details: Any, status: int) -> Any:
    return jsonify({"error": message, "details": details}), status


def main() -> None:
    """Bind on 0.0.0.0 at the configured PORT."""
    port = get_settings().port
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
