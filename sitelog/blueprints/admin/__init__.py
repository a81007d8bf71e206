from flask import Blueprint

bp = Blueprint("admin", __name__)

# Import submodules so their routes register on the same bp
from . import settings  # noqa: E402,F401
from . import weather  # noqa: E402,F401
