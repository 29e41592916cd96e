"""
LyricWidget Settings Manager
Typed schema over settings.json; config.py reads every tunable through here.
"""

import json
import os
import shutil
import sys
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from logging_config import get_logger

logger = get_logger(__name__)

if getattr(sys, 'frozen', False):
    ROOT_DIR = Path(sys.executable).parent
else:
    ROOT_DIR = Path(__file__).parent

# Docker and the test suite point this elsewhere
SETTINGS_FILE = Path(os.getenv("LYRICWIDGET_SETTINGS_FILE", str(ROOT_DIR / "settings.json")))

TRUTHY = ('true', '1', 'yes', 'on')

@dataclass
class Setting:
    """Schema entry for one key of settings.json"""
    type: type
    default: Any
    description: str = ""
    requires_restart: bool = False
    min_val: Optional[float] = None
    max_val: Optional[float] = None

    def validate_and_convert(self, value: Any) -> Any:
        """Coerce a raw JSON value; anything unusable or out of range yields the default."""
        if self.type is bool:
            if isinstance(value, str):
                return value.strip().lower() in TRUTHY
            return bool(value)

        try:
            converted = self.type(value)
        except (ValueError, TypeError):
            logger.warning(f"Ignoring invalid value {value!r}, expected {self.type.__name__}")
            return self.default

        if self.min_val is not None and converted < self.min_val:
            return self.default
        if self.max_val is not None and converted > self.max_val:
            return self.default
        return converted

SCHEMA: Dict[str, Setting] = {
    "debug.log_file": Setting(str, "lyricwidget.log", "Log file name under logs/", requires_restart=True),
    "debug.log_level": Setting(str, "INFO", "Console log level", requires_restart=True),
    "debug.log_providers": Setting(bool, True, "Let provider modules log at console level"),
    "debug.log_to_console": Setting(bool, True, "Mirror logs to stdout"),
    "debug.log_detailed": Setting(bool, False, "Write DEBUG records to the log file"),
    "debug.log_rotation.max_bytes": Setting(int, 1048576, "Rotate the log file at this size", min_val=1024),
    "debug.log_rotation.backup_count": Setting(int, 10, "Rotated log files to keep", min_val=0),

    "server.port": Setting(int, 9012, "HTTP port", requires_restart=True, min_val=1, max_val=65535),
    "server.host": Setting(str, "0.0.0.0", "Bind address", requires_restart=True),

    "timeline.entry_count": Setting(int, 24, "Display states per timeline", min_val=1, max_val=240),
    "timeline.step_seconds": Setting(float, 5.0, "Seconds between display states", min_val=0.5, max_val=60.0),
    "timeline.refresh_after_seconds": Setting(float, 30.0, "Seconds until a timeline is rebuilt", min_val=1.0, max_val=600.0),
    "timeline.idle_refresh_seconds": Setting(float, 15.0, "Rebuild interval while nothing plays", min_val=1.0, max_val=600.0),
    "timeline.lead_in_ms": Setting(int, 3000, "Intro offset before the first line", min_val=0, max_val=60000),
    "timeline.fallback_line_ms": Setting(int, 4000, "Time per line when the track length is unknown", min_val=500, max_val=60000),
    "timeline.min_dwell_ms": Setting(int, 0, "Minimum time per line, 0 disables", min_val=0, max_val=60000),

    "providers.genius.enabled": Setting(bool, True, "Fetch lyrics from Genius", requires_restart=True),
    "providers.genius.timeout": Setting(int, 10, "Genius request timeout (s)", min_val=1, max_val=120),

    "spotify.timeout": Setting(int, 5, "Spotify request timeout (s)", min_val=1, max_val=120),
}

class SettingsManager:
    def __init__(self, settings_file: Path = SETTINGS_FILE):
        self.settings_file = Path(settings_file)
        self._values: Dict[str, Any] = {}
        self.load_settings()

    def load_settings(self) -> None:
        """
        Read settings.json over the schema defaults.

        A missing file is created with the defaults. An unreadable one is
        copied aside as settings.json.corrupted and replaced.
        """
        self._values = {key: setting.default for key, setting in SCHEMA.items()}

        if not self.settings_file.exists():
            logger.info(f"No settings file, writing defaults to {self.settings_file}")
            self.save_to_config()
            return

        try:
            with open(self.settings_file, 'r', encoding='utf-8') as f:
                stored = json.load(f)
            if not isinstance(stored, dict):
                raise ValueError(f"top level is {type(stored).__name__}, not an object")
        except (OSError, ValueError) as e:
            logger.error(f"Unreadable {self.settings_file.name} ({e}), restoring defaults")
            self._quarantine()
            self.save_to_config()
            return

        for key, raw in stored.items():
            setting = SCHEMA.get(key)
            # Keys outside the schema survive a save untouched
            self._values[key] = setting.validate_and_convert(raw) if setting else raw

    def _quarantine(self) -> None:
        backup_path = self.settings_file.with_suffix('.json.corrupted')
        try:
            shutil.copy2(self.settings_file, backup_path)
            logger.info(f"Previous settings kept at {backup_path}")
        except OSError as e:
            logger.warning(f"Could not keep a copy of the broken settings: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """Stored value, else the schema default, else ``default``."""
        if key in self._values:
            return self._values[key]
        return default

    def set(self, key: str, value: Any) -> bool:
        """Update a schema key in memory; True when the change needs a restart."""
        setting = SCHEMA.get(key)
        if setting is None:
            logger.warning(f"Refusing to set unknown setting {key}")
            return False
        self._values[key] = setting.validate_and_convert(value)
        return setting.requires_restart

    def save_to_config(self) -> None:
        """Write all values through a temp file so a crash never leaves half a file."""
        temp_path = self.settings_file.parent / f".{self.settings_file.stem}_{uuid.uuid4().hex}.tmp"
        try:
            self.settings_file.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(self._values, f, indent=4, sort_keys=True)
            os.replace(temp_path, self.settings_file)
        except OSError as e:
            logger.error(f"Could not save {self.settings_file}: {e}")
            if temp_path.exists():
                temp_path.unlink()

settings = SettingsManager()
