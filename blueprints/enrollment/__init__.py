from flask import Blueprint

bp = Blueprint("enrollment", __name__)
from . import routes  # noqa
