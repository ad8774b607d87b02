from flask import Blueprint

bp = Blueprint("department", __name__)
from . import routes  # noqa
