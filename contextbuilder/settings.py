"""Persistent per-configuration aggregation settings.

Settings live in one JSON object under the user config directory::

    {
      "aggregation": {"<configuration id>": {"format": "xml", "prepend_tree": true, ...}},
      "prompt_presets": {"<name>": {"preamble": "...", "query": "...", ...}}
    }

Reads are defensive: a missing, unreadable or malformed file (or entry) falls
back to the defaults. Writes raise ``SettingsStoreError`` so callers can
report the failure.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

from .aggregate import (
    DEFAULT_FORMAT,
    DEFAULT_PREAMBLE_TAG,
    DEFAULT_QUERY_TAG,
    OUTPUT_FORMATS,
    AggregationSettings,
)
from .errors import SettingsStoreError

logger = logging.getLogger(__name__)

APP_NAME = "contextbuilder"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH
AGGREGATION_KEY = "aggregation"
PRESETS_KEY = "prompt_presets"


@dataclass(frozen=True)
class PromptPreset:
    """Named preamble/query pair reusable across configurations."""

    name: str
    preamble: str = ""
    query: str = ""
    preamble_tag: str = DEFAULT_PREAMBLE_TAG
    query_tag: str = DEFAULT_QUERY_TAG


def _typed(entry: dict, key: str, kind: type, default):
    value = entry.get(key)
    return value if isinstance(value, kind) else default


def _settings_from_entry(entry: object) -> AggregationSettings:
    """Coerce one stored entry, ignoring fields with the wrong type."""
    if not isinstance(entry, dict):
        return AggregationSettings()
    defaults = AggregationSettings()
    fmt = entry.get("format")
    return AggregationSettings(
        format=fmt if isinstance(fmt, str) and fmt in OUTPUT_FORMATS else DEFAULT_FORMAT,
        prepend_tree=_typed(entry, "prepend_tree", bool, defaults.prepend_tree),
        compress=_typed(entry, "compress", bool, defaults.compress),
        remove_comments=_typed(entry, "remove_comments", bool, defaults.remove_comments),
        preamble=_typed(entry, "preamble", str, defaults.preamble),
        query=_typed(entry, "query", str, defaults.query),
        preamble_tag=_typed(entry, "preamble_tag", str, defaults.preamble_tag) or DEFAULT_PREAMBLE_TAG,
        query_tag=_typed(entry, "query_tag", str, defaults.query_tag) or DEFAULT_QUERY_TAG,
    )


def _settings_to_entry(settings: AggregationSettings) -> dict[str, object]:
    normalized = settings.normalized()
    return {
        "format": normalized.format,
        "prepend_tree": bool(normalized.prepend_tree),
        "compress": bool(normalized.compress),
        "remove_comments": bool(normalized.remove_comments),
        "preamble": normalized.preamble,
        "query": normalized.query,
        "preamble_tag": normalized.preamble_tag,
        "query_tag": normalized.query_tag,
    }


def _preset_from_entry(name: str, entry: object) -> PromptPreset | None:
    if not isinstance(entry, dict):
        return None
    return PromptPreset(
        name=name,
        preamble=_typed(entry, "preamble", str, ""),
        query=_typed(entry, "query", str, ""),
        preamble_tag=_typed(entry, "preamble_tag", str, "") or DEFAULT_PREAMBLE_TAG,
        query_tag=_typed(entry, "query_tag", str, "") or DEFAULT_QUERY_TAG,
    )


class SettingsStore:
    """JSON-backed settings store keyed by configuration id."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path if self._path is not None else CONFIG_PATH

    def load_config(self) -> dict[str, object]:
        """Return the top-level config object, or ``{}`` when it cannot be read."""
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def save_config(self, data: dict[str, object]) -> None:
        """Write ``data`` as pretty-printed JSON, creating parent directories."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Could not write settings file %s: %s", self.path, exc)
            raise SettingsStoreError(f"could not write {self.path}: {exc}") from exc

    def load_aggregation_settings(self, configuration_id: str) -> AggregationSettings:
        """Load settings for ``configuration_id``, defaulting anything invalid."""
        section = self.load_config().get(AGGREGATION_KEY)
        if not isinstance(section, dict):
            return AggregationSettings()
        return _settings_from_entry(section.get(str(configuration_id)))

    def save_aggregation_settings(self, configuration_id: str, settings: AggregationSettings) -> None:
        """Persist ``settings`` for ``configuration_id``, keeping other entries."""
        if not configuration_id:
            raise SettingsStoreError("configuration id is required to save settings")
        config = self.load_config()
        section = config.get(AGGREGATION_KEY)
        if not isinstance(section, dict):
            section = {}
        section[str(configuration_id)] = _settings_to_entry(settings)
        config[AGGREGATION_KEY] = section
        self.save_config(config)
        logger.debug("Saved aggregation settings for %s", configuration_id)

    def configuration_ids(self) -> list[str]:
        section = self.load_config().get(AGGREGATION_KEY)
        if not isinstance(section, dict):
            return []
        return sorted(str(key) for key in section)

    def load_prompt_presets(self) -> dict[str, PromptPreset]:
        """Return saved prompt presets by name, skipping malformed entries."""
        section = self.load_config().get(PRESETS_KEY)
        if not isinstance(section, dict):
            return {}
        presets: dict[str, PromptPreset] = {}
        for name, entry in section.items():
            preset = _preset_from_entry(str(name), entry)
            if preset is not None:
                presets[preset.name] = preset
        return presets

    def save_prompt_preset(self, preset: PromptPreset) -> None:
        """Store ``preset`` under its name, replacing any earlier preset."""
        name = preset.name.strip()
        if not name:
            raise SettingsStoreError("preset name is required")
        config = self.load_config()
        section = config.get(PRESETS_KEY)
        if not isinstance(section, dict):
            section = {}
        section[name] = {
            "preamble": preset.preamble,
            "preamble_tag": preset.preamble_tag or DEFAULT_PREAMBLE_TAG,
            "query": preset.query,
            "query_tag": preset.query_tag or DEFAULT_QUERY_TAG,
        }
        config[PRESETS_KEY] = section
        self.save_config(config)
        logger.debug("Saved prompt preset %s", name)

    def delete_prompt_preset(self, name: str) -> bool:
        """Remove the preset called ``name``; return whether it existed."""
        config = self.load_config()
        section = config.get(PRESETS_KEY)
        if not isinstance(section, dict) or name not in section:
            return False
        del section[name]
        config[PRESETS_KEY] = section
        self.save_config(config)
        return True


__all__ = ["CONFIG_PATH", "DEFAULT_CONFIG_PATH", "PromptPreset", "SettingsStore"]
