"""Predefined Tissue Presets (Catalog)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
import json
import logging

from tensfield.config import DEFAULT_PRESETS_PATH
from tensfield.model.tissue import TissueConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TissuePreset:
    id: str
    label: str
    config: TissueConfig
    is_custom: bool = False

    @property
    def description(self) -> str:
        return self.config.description

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> TissuePreset:
        return TissuePreset(
            id=str(data["id"]),
            label=data.get("label", data["id"]),
            config=TissueConfig.from_dict(data["config"]),
            is_custom=bool(data.get("isCustom", False)),
        )


def load_presets(filepath: Optional[str] = None) -> Dict[str, TissuePreset]:
    """
    Load the preset catalog from a JSON file (bundled presets by default).

    Returns:
        Mapping of preset id -> TissuePreset, in file order.
    """
    path = filepath or DEFAULT_PRESETS_PATH
    logger.info(f"Loading tissue presets from: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read presets file '{path}': {e}")
        raise

    presets: Dict[str, TissuePreset] = {}
    for entry in raw:
        try:
            preset = TissuePreset.from_dict(entry)
        except (KeyError, ValueError) as e:
            logger.error(f"Invalid preset entry {entry.get('id', '?')!r}: {e}")
            raise ValueError(f"Invalid preset entry: {e}") from e
        if preset.id in presets:
            raise ValueError(f"Duplicate preset id '{preset.id}'.")
        presets[preset.id] = preset

    logger.debug(f"Loaded {len(presets)} presets.")
    return presets


_DEFAULT_PRESETS: Optional[Dict[str, TissuePreset]] = None


def default_presets() -> Dict[str, TissuePreset]:
    """Bundled preset catalog, read once per process."""
    global _DEFAULT_PRESETS
    if _DEFAULT_PRESETS is None:
        _DEFAULT_PRESETS = load_presets()
    return dict(_DEFAULT_PRESETS)


def get_preset(preset_id: str) -> TissuePreset:
    presets = default_presets()
    if preset_id not in presets:
        raise KeyError(f"Unknown preset '{preset_id}'. Available: {list(presets.keys())}")
    return presets[preset_id]
