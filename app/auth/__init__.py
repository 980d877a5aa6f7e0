"""
LEO-CAD Auth Module
Session login and route guards for the LEO surfaces.
"""
from .models import init_auth_schema
from .guards import current_user, require_user, require_leo
from .routes import register_session_routes

__all__ = [
    "init_auth_schema",
    "current_user",
    "require_user",
    "require_leo",
    "register_session_routes",
]
