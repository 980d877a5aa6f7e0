# ============================================================================
# LEO-CAD Unit Module
# ============================================================================
# Officers, combined units, duty-status resolution and display helpers.
# The officer chat consumes these read-only.
# ============================================================================

from .models import LeoUnit, init_leo_schema, is_unit_on_duty
from .duty import get_active_unit, resolve_active_unit

__all__ = [
    "LeoUnit",
    "init_leo_schema",
    "is_unit_on_duty",
    "get_active_unit",
    "resolve_active_unit",
]
