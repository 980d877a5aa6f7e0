# ============================================================================
# LEO-CAD — Runtime Configuration
# ============================================================================
# Environment-driven settings. Read once at import; tests set CAD_* variables
# before importing main.
# ============================================================================

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

CONFIG = {
    # Storage
    "db_path": os.getenv("CAD_DB_PATH", str(BASE_DIR / "cad.db")),

    # Sessions
    "session_secret": os.getenv("CAD_SESSION_SECRET", "leo-cad-secret-key"),

    # Logging
    "log_level": os.getenv("CAD_LOG_LEVEL", "INFO").upper(),

    # Test mode skips background jobs
    "test_mode": os.getenv("CAD_TEST_MODE", "0") == "1",

    # WebSocket keepalive interval
    "ws_ping_seconds": int(os.getenv("CAD_WS_PING_SECONDS", "30")),

    # Callsign templates
    "callsign_template": os.getenv(
        "CAD_CALLSIGN_TEMPLATE", "{department}{callsign1} - {callsign2}{division}"
    ),
    "paired_unit_template": os.getenv("CAD_PAIRED_UNIT_TEMPLATE", "1A-{callsign1}"),
}

TEMPLATES_DIR = BASE_DIR / "templates"
