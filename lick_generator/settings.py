"""Persistent user preferences.

Settings are stored as a small JSON object in the user's home directory so
the command line remembers the last key, scale and tempo between runs. Set
``LICK_SETTINGS_FILE`` to use a different location.

Example settings file::

    {
      "algorithm": "bebop",
      "key": "Bb",
      "scale": "mixolydian",
      "tempo": 180,
      "length_bars": 2,
      "octave_range": [3, 5],
      "rhythm_feel": "swing"
    }
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from .models import GeneratorConfig

__all__ = [
    "DEFAULT_SETTINGS_FILE",
    "CONFIG_FIELDS",
    "load_settings",
    "save_settings",
    "config_from_settings",
    "settings_from_config",
]

# Default path for storing user preferences. The file lives in the user's
# home directory so settings persist between runs of the application.
env_path = os.environ.get("LICK_SETTINGS_FILE")
if env_path:
    DEFAULT_SETTINGS_FILE = Path(env_path).expanduser()
else:
    DEFAULT_SETTINGS_FILE = Path.home() / ".lick_generator_settings.json"

# Settings keys that map directly onto ``GeneratorConfig`` fields.
CONFIG_FIELDS = (
    "key",
    "scale",
    "tempo",
    "length_bars",
    "octave_range",
    "rhythm_feel",
    "seed",
)


def load_settings(path: Path = DEFAULT_SETTINGS_FILE) -> dict:
    """Load saved user settings from ``path`` if it exists.

    @param path (Path): Location of the settings file.
    @returns dict: Loaded settings or an empty dictionary when unavailable.
    """
    if path.is_file():
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logging.error(f"Could not load settings: {exc}")
            return {}
        if isinstance(data, dict):
            return data
        logging.error(f"Ignoring settings file {path}: expected a JSON object")
    return {}


def save_settings(settings: dict, path: Path = DEFAULT_SETTINGS_FILE) -> None:
    """Save user ``settings`` to ``path`` as JSON.

    @param settings (dict): Options to be persisted.
    @param path (Path): Destination file path.
    @returns None: Function does not return a value.
    """
    # Failing to save preferences never prevents lick generation.
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(settings, fh, indent=2)
    except OSError as exc:
        logging.error(f"Could not save settings: {exc}")


def config_from_settings(settings: dict, **overrides) -> GeneratorConfig:
    """Build a :class:`GeneratorConfig` from ``settings``.

    Keys that are not config fields (such as ``algorithm``) are ignored.
    A ``seed`` written into the file by hand is honoured and logged.
    ``overrides`` whose value is ``None`` do not replace stored settings.

    Raises
    ------
    ValueError
        If the merged values do not form a valid configuration.
    """

    values = {k: settings[k] for k in CONFIG_FIELDS if k in settings}
    values.update({k: v for k, v in overrides.items() if v is not None})
    if settings.get("seed") is not None and overrides.get("seed") is None:
        logging.info(f"Using seed {settings['seed']} from saved settings")
    if "octave_range" in values:
        values["octave_range"] = tuple(values["octave_range"])
    return GeneratorConfig(**values)


def settings_from_config(config: GeneratorConfig, algorithm: Optional[str] = None) -> dict:
    """Return a JSON-serialisable settings dictionary for ``config``.

    The seed is not persisted; pass it per run instead.
    """

    data = {name: getattr(config, name) for name in CONFIG_FIELDS}
    data["octave_range"] = list(config.octave_range)
    del data["seed"]
    if algorithm is not None:
        data["algorithm"] = algorithm
    return data
