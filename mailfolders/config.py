"""Application configuration — paths, defaults, persistence."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from mailfolders.models.folder import FolderMode

logger = logging.getLogger(__name__)

# ── Directories ───────────────────────────────────────────────────────────────

_XDG_DATA = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
_XDG_CONFIG = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))

DATA_DIR: Path = _XDG_DATA / "mailfolders"
CONFIG_DIR: Path = _XDG_CONFIG / "mailfolders"
DB_PATH: Path = DATA_DIR / "mailfolders.db"
LOG_PATH: Path = DATA_DIR / "mailfolders.log"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.json"

# ── New-account defaults ──────────────────────────────────────────────────────

DEFAULT_FOLDER_DISPLAY_MODE: FolderMode = FolderMode.NOT_SECOND_CLASS
DEFAULT_INBOX_FOLDER: str = "INBOX"
DEFAULT_OUTBOX_FOLDER: str = "OUTBOX-LOCAL"   # local-only, never synced


def ensure_dirs() -> None:
    for _d in (DATA_DIR, CONFIG_DIR):
        _d.mkdir(parents=True, exist_ok=True)


# ── Persistence ───────────────────────────────────────────────────────────────

def save_settings() -> None:
    """Persist user-changeable settings to disk."""
    data = {
        "default_folder_display_mode": DEFAULT_FOLDER_DISPLAY_MODE.name,
        "default_inbox_folder": DEFAULT_INBOX_FOLDER,
        "default_outbox_folder": DEFAULT_OUTBOX_FOLDER,
    }
    try:
        ensure_dirs()
        SETTINGS_PATH.write_text(json.dumps(data, indent=2), encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not save settings: %s", exc)


def load_settings() -> None:
    """Load persisted settings from disk, falling back to defaults."""
    global DEFAULT_FOLDER_DISPLAY_MODE, DEFAULT_INBOX_FOLDER, DEFAULT_OUTBOX_FOLDER
    if not SETTINGS_PATH.exists():
        return
    try:
        data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
        saved_mode = data.get("default_folder_display_mode", DEFAULT_FOLDER_DISPLAY_MODE.name)
        if saved_mode in FolderMode.__members__ and saved_mode != FolderMode.NONE.name:
            DEFAULT_FOLDER_DISPLAY_MODE = FolderMode[saved_mode]
        DEFAULT_INBOX_FOLDER = data.get("default_inbox_folder", DEFAULT_INBOX_FOLDER)
        DEFAULT_OUTBOX_FOLDER = data.get("default_outbox_folder", DEFAULT_OUTBOX_FOLDER)
    except (OSError, ValueError) as exc:
        logger.warning("Could not load settings: %s", exc)


# Load on import so settings are available immediately
load_settings()
