"""JSON-based settings persistence for the contribution wall painter."""

import json
import os

from grid_logic import INTENSITIES

_DEFAULT_PATH = os.path.join(os.path.expanduser("~"), ".contribution-wall-settings.json")

_DEFAULTS = {
    "year": None,
    "tool": "pen",
    "pen_mode": "auto",
    "pen_intensity": 1,
    "quantize_mode": "quantile",
    "invert": True,
    "binary_relax_steps": 1,
    "relax_step": 16,
    "sparse_ratio": 0.05,
    "window_width": None,
    "window_height": None,
    "log_dir": None,
}

_CHOICES = {
    "tool": ("pen", "eraser"),
    "pen_mode": ("auto", "manual"),
    "quantize_mode": ("quantile", "binary"),
    "pen_intensity": INTENSITIES,
    "binary_relax_steps": (0, 1, 2),
}


def settings_path() -> str:
    return os.environ.get("CONTRIBUTION_WALL_SETTINGS") or _DEFAULT_PATH


def load_settings() -> dict:
    """Load settings from disk, returning defaults for missing or bad keys."""
    settings = dict(_DEFAULTS)
    try:
        with open(settings_path(), "r", encoding="utf-8") as f:
            stored = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return settings
    if not isinstance(stored, dict):
        return settings

    for key, allowed in _CHOICES.items():
        if stored.get(key) in allowed and not isinstance(stored.get(key), bool):
            settings[key] = stored[key]
    if "invert" in stored and isinstance(stored["invert"], bool):
        settings["invert"] = stored["invert"]
    for key in ("year", "window_width", "window_height", "relax_step"):
        value = stored.get(key)
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            settings[key] = value
    ratio = stored.get("sparse_ratio")
    if isinstance(ratio, (int, float)) and not isinstance(ratio, bool) and 0 <= ratio <= 1:
        settings["sparse_ratio"] = float(ratio)
    if isinstance(stored.get("log_dir"), str):
        settings["log_dir"] = stored["log_dir"]
    return settings


def save_settings(settings: dict) -> None:
    """Persist settings to disk."""
    with open(settings_path(), "w", encoding="utf-8") as f:
        json.dump(settings, f, indent=2)
