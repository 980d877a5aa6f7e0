"""
LEO-CAD — LEO routes (active unit lookup for the client duty state)
"""
from typing import Dict

from fastapi import FastAPI, Request, Depends

from app.auth.guards import require_leo
from .duty import resolve_selected_unit


def register_leo_routes(app: FastAPI, get_conn):
    """Register /leo/* routes owned by the unit module."""

    @app.get("/leo/active-officer")
    async def get_active_officer(request: Request, user: Dict = Depends(require_leo)):
        """The caller's selected unit (officer or combined), or null."""
        selected = resolve_selected_unit(request, get_conn)
        return selected.unit if selected else None
