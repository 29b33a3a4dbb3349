from __future__ import annotations

from pathlib import Path
from typing import Optional
import json


BASE_DIR = Path(__file__).resolve().parents[1]
OUT_DIR = BASE_DIR / "out"
DB_PATH = OUT_DIR / "exports.db"
LAYOUT_PRESET_PATH = BASE_DIR / "assets" / "brand" / "layout_overrides.json"

PRODUCT_NAME = "Wavering Wanderers"
FILENAME_PREFIX = "ww"
DEFAULT_SUBTITLE = f"{PRODUCT_NAME} export"

# Pages rendered to PNG when snapshots are requested (0-based).
SNAPSHOT_PAGES = (0, 1)


def load_layout_preset(path: Optional[Path] = None) -> dict:
    preset_path = path or LAYOUT_PRESET_PATH
    if not preset_path.exists():
        return {}
    try:
        with preset_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid layout preset JSON in {preset_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Layout preset must be a JSON object: {preset_path}")
    return data


def set_out_dir(path: Path) -> None:
    global OUT_DIR, DB_PATH
    OUT_DIR = path
    DB_PATH = OUT_DIR / "exports.db"
