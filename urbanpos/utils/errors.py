# urbanpos/utils/errors.py
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

from ..pos.errors import PosError
from ..services.rate_service import RateSyncError
from .api import api_error

logger = logging.getLogger(__name__)


def err(msg, status=400, data=None):
    r = jsonify(api_error(msg, data)); r.status_code = status; return r


def register_error_handlers(app):
    @app.errorhandler(PosError)
    def handle_pos_error(e):
        return err(e.message, e.status_code, e.as_data())

    @app.errorhandler(RateSyncError)
    def handle_rate_sync_error(e):
        return err(f"Failed to sync exchange rates: {e}", 502)

    @app.errorhandler(ValueError)
    def handle_value_error(e):
        return err(str(e), 422)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return err(e.description or e.name, e.code or 500)
