"""
LyricWidget configuration.
Every tunable resolves as: environment variable > settings.json > built-in default.
Credentials only ever come from the environment (or .env).
"""
import os
import sys
from pathlib import Path
from dotenv import load_dotenv

from settings import settings

if getattr(sys, 'frozen', False):
    ROOT_DIR = Path(sys.executable).parent
else:
    ROOT_DIR = Path(__file__).parent

VERSION = "0.3.0"

dotenv_path = ROOT_DIR / '.env'
if dotenv_path.exists():
    load_dotenv(dotenv_path)

def conf(key, default=None):
    """Look up a dotted key; TIMELINE_STEP_SECONDS overrides "timeline.step_seconds"."""
    from_env = os.getenv(key.upper().replace('.', '_'))
    if from_env is not None:
        return from_env

    stored = settings.get(key)
    return default if stored is None else stored

def conf_bool(key, default=False) -> bool:
    value = conf(key, default)
    if isinstance(value, str):
        return value.lower() in ('true', '1', 'yes', 'on')
    return bool(value)

# Exported sections

DEBUG = {
    "log_file": conf("debug.log_file", "lyricwidget.log"),
    "log_level": conf("debug.log_level", "WARNING" if getattr(sys, 'frozen', False) else "INFO"),
    "log_providers": conf_bool("debug.log_providers", True),
    "log_to_console": conf_bool("debug.log_to_console", not getattr(sys, 'frozen', False)),
    "log_detailed": conf_bool("debug.log_detailed", False),
    "log_rotation": {
        "max_bytes": int(conf("debug.log_rotation.max_bytes", 1048576)),
        "backup_count": int(conf("debug.log_rotation.backup_count", 10))
    }
}

SERVER = {
    "port": int(conf("server.port", 9012)),
    "host": conf("server.host", "0.0.0.0"),
}

SPOTIFY = {
    # Access token comes from the external login flow; empty means "not logged in"
    "access_token": os.getenv("SPOTIFY_ACCESS_TOKEN", ""),
    "timeout": int(conf("spotify.timeout", 5)),
}

PROVIDERS = {
    "genius": {
        "enabled": conf_bool("providers.genius.enabled", True),
        "access_token": os.getenv("GENIUS_ACCESS_TOKEN", ""),
        "api_url": os.getenv("GENIUS_API_URL", "https://api.genius.com"),
        "site_url": os.getenv("GENIUS_SITE_URL", "https://genius.com"),
        "timeout": int(conf("providers.genius.timeout", 10)),
    }
}

TIMELINE = {
    "entry_count": int(conf("timeline.entry_count", 24)),
    "step_seconds": float(conf("timeline.step_seconds", 5.0)),
    "refresh_after_seconds": float(conf("timeline.refresh_after_seconds", 30.0)),
    "idle_refresh_seconds": float(conf("timeline.idle_refresh_seconds", 15.0)),
    "lead_in_ms": int(conf("timeline.lead_in_ms", 3000)),
    "fallback_line_ms": int(conf("timeline.fallback_line_ms", 4000)),
    "min_dwell_ms": int(conf("timeline.min_dwell_ms", 0)),
}

def get_provider_config(name: str) -> dict:
    return PROVIDERS.get(name, {"enabled": False})
