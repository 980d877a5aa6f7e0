"""
LEO-CAD Auth — Route guards.

Used as FastAPI dependencies, in order: require_user, then require_leo.
"""
from typing import Dict

from fastapi import Depends, Request

from app.errors import NotLoggedIn, MissingPermission


def current_user(request: Request) -> Dict:
    """Session user, or an empty dict when nobody is logged in."""
    user_id = request.session.get("user_id")
    if not user_id:
        return {}
    return {
        "id": user_id,
        "username": request.session.get("user"),
        "is_leo": bool(request.session.get("is_leo")),
    }


def require_user(user: Dict = Depends(current_user)) -> Dict:
    if not user:
        raise NotLoggedIn()
    return user


def require_leo(user: Dict = Depends(require_user)) -> Dict:
    if not user["is_leo"]:
        raise MissingPermission()
    return user
