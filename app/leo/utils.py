"""
LEO-CAD — Unit display helpers (callsigns, names, departments, divisions).

Pure functions over the unit dicts produced by app.leo.models.
"""
import re
from typing import Optional, Dict

from app.config import CONFIG

CALLSIGN_TEMPLATE = "callsignTemplate"
PAIRED_UNIT_TEMPLATE = "pairedUnitTemplate"


def is_combined_unit(unit: Optional[Dict]) -> bool:
    return bool(unit) and isinstance(unit.get("officers"), list)


def is_unit_officer(unit: Optional[Dict]) -> bool:
    return bool(unit) and not is_combined_unit(unit)


def _template(template_id: str) -> str:
    if template_id == PAIRED_UNIT_TEMPLATE:
        return CONFIG["paired_unit_template"]
    return CONFIG["callsign_template"]


def generate_callsign(unit: Dict, template_id: str = CALLSIGN_TEMPLATE) -> str:
    """
    Fill a callsign template for a unit.

    Placeholders: {department}, {callsign1}, {callsign2}, {division}.
    Department and division use their short callsigns; a combined unit has
    no divisions of its own.
    """
    department = get_unit_department(unit) or {}
    division = ""
    if is_unit_officer(unit) and unit.get("divisions"):
        division = unit["divisions"][0].get("callsign") or ""

    replacements = {
        "{department}": department.get("callsign") or "",
        "{callsign1}": unit.get("callsign") or "",
        "{callsign2}": unit.get("callsign2") or "",
        "{division}": division,
    }

    callsign = _template(template_id)
    for token, value in replacements.items():
        callsign = callsign.replace(token, value)
    return callsign.strip()


def make_unit_name(unit: Dict) -> str:
    if is_combined_unit(unit):
        return ""
    return f"{unit.get('firstName', '')} {unit.get('lastName', '')}".strip()


def get_unit_department(unit: Optional[Dict]) -> Optional[Dict]:
    if not unit:
        return None
    return unit.get("department")


def get_department_abbreviation(name: Optional[str]) -> str:
    """'Los Santos Police Department' -> 'LSPD'. Single words are kept whole."""
    if not name:
        return ""
    words = [w for w in re.split(r"[\s\-_]+", name.strip()) if w]
    if len(words) <= 1:
        return name.strip()
    return "".join(w[0] for w in words if w[0].isalnum()).upper()


def format_unit_divisions(unit: Dict) -> str:
    return ", ".join(d["value"] for d in unit.get("divisions") or [])
