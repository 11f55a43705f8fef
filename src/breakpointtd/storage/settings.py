from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
import json
import logging
from pathlib import Path


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GameSettings:
    sound_enabled: bool = True
    haptics_enabled: bool = True
    show_fps: bool = False


DEFAULT_SETTINGS = GameSettings()
_SETTING_NAMES = {f.name for f in fields(GameSettings)}


def load_settings(path: str | Path) -> GameSettings:
    """Stored values over defaults; unknown keys and bad values are ignored."""
    p = Path(path)
    if not p.exists():
        return DEFAULT_SETTINGS
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.error("Failed to load settings %s: %s", p, exc)
        return DEFAULT_SETTINGS
    if not isinstance(raw, dict):
        logger.error("Settings %s is not a JSON object", p)
        return DEFAULT_SETTINGS
    known = {k: v for k, v in raw.items() if k in _SETTING_NAMES and isinstance(v, bool)}
    return replace(DEFAULT_SETTINGS, **known)


def save_settings(path: str | Path, settings: GameSettings) -> bool:
    p = Path(path)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(asdict(settings), indent=2), encoding="utf-8")
    except OSError as exc:
        logger.error("Failed to save settings %s: %s", p, exc)
        return False
    return True
