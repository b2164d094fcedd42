from flask import Blueprint

bp = Blueprint("sales", __name__, url_prefix="/api/sales")
dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")

from . import routes  # noqa: E402,F401
