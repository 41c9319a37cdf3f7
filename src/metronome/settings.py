"""
Settings management for the metronome.

Loads configuration from settings.toml and keeps the live values in a
ConfigStore that announces every change on the event bus.
"""

import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

from core.events import ConfigChanged, EventBus
from core.log import get_logger

logger = get_logger(__name__)

CONFIG_GROUP = "metronome"

# Config keys as seen by change listeners, keyed by settings field name
CONFIG_KEYS = {
    "volume": "volume",
    "tick_count": "tickCount",
    "tick_offset": "tickOffset",
    "tock_number": "tockNumber",
    "tick_volume": "tickVolume",
    "tock_volume": "tockVolume",
    "tick_path": "tickSoundFilePath",
    "tock_path": "tockSoundFilePath",
}
FIELDS_BY_KEY = {key: name for name, key in CONFIG_KEYS.items()}

_PERCENT_FIELDS = ("volume", "tick_volume", "tock_volume")
_COUNT_FIELDS = ("tick_count", "tock_number")
_PATH_FIELDS = ("tick_path", "tock_path")


class SettingsError(ValueError):
    """Raised when a configuration value is out of range or of the wrong type."""


@dataclass(frozen=True)
class MetronomeSettings:
    """Pattern and sound settings, read-only to the engine."""

    volume: int = 50  # Gain scale for loaded clips (0-100)
    tick_count: int = 1  # Ticks between candidate firings, 0 disables
    tick_offset: int = 0  # Phase shift applied before the modulo test
    tock_number: int = 0  # Every Nth candidate firing is a tock, 0 disables
    tick_volume: int = 96  # Built-in tick effect volume, 0 mutes the fallback tick
    tock_volume: int = 0  # Built-in tock effect volume, 0 disables tocks
    tick_path: str = ""  # Optional sound file for ticks
    tock_path: str = ""  # Optional sound file for tocks


@dataclass
class HostSettings:
    """Settings for the local stand-in host."""

    effects_volume: int = 100  # Shared sound effects volume, 0 is muted


@dataclass
class Settings:
    """Application settings loaded from settings.toml."""

    metronome: MetronomeSettings = field(default_factory=MetronomeSettings)
    host: HostSettings = field(default_factory=HostSettings)


def validate_value(name: str, value: Any) -> Any:
    """
    Check a single settings field value.

    Args:
        name: MetronomeSettings field name
        value: Candidate value

    Returns:
        The value, unchanged

    Raises:
        SettingsError: If the value has the wrong type or is out of range
    """
    if name in _PATH_FIELDS:
        if not isinstance(value, str):
            raise SettingsError(f"{name} must be a string, got {value!r}")
        return value

    # bool is an int subclass but never a meaningful count or volume
    if not isinstance(value, int) or isinstance(value, bool):
        raise SettingsError(f"{name} must be an integer, got {value!r}")
    if name in _PERCENT_FIELDS and not 0 <= value <= 100:
        raise SettingsError(f"{name} must be between 0 and 100, got {value}")
    if name in _COUNT_FIELDS and value < 0:
        raise SettingsError(f"{name} must not be negative, got {value}")
    return value


def _parse_metronome(data: dict) -> MetronomeSettings:
    known = {f.name for f in fields(MetronomeSettings)}
    for name in data:
        if name not in known:
            raise SettingsError(f"Unknown metronome setting: {name}")
    values = {name: validate_value(name, value) for name, value in data.items()}
    return MetronomeSettings(**values)


def _table(data: dict, name: str) -> dict:
    """Get a top-level table, rejecting arrays of tables and plain values."""
    table = data.get(name, {})
    if not isinstance(table, dict):
        raise SettingsError(f"[{name}] must be a table, got {type(table).__name__}")
    return table


def load_settings(settings_path: str | Path = "settings.toml") -> Settings:
    """
    Load settings from settings.toml.

    Args:
        settings_path: Path to the settings file

    Returns:
        Settings object with all configuration values. A missing file
        yields the defaults.
    """
    settings_path = Path(settings_path)

    if settings_path.exists():
        with open(settings_path, "rb") as f:
            data = tomllib.load(f)
    else:
        data = {}

    metronome_settings = _parse_metronome(_table(data, "metronome"))

    host_data = _table(data, "host")
    effects_volume = host_data.get("effects_volume", 100)
    if isinstance(effects_volume, bool) or not isinstance(effects_volume, int) or not 0 <= effects_volume <= 100:
        raise SettingsError(f"effects_volume must be between 0 and 100, got {effects_volume!r}")

    return Settings(
        metronome=metronome_settings,
        host=HostSettings(effects_volume=effects_volume),
    )


class ConfigStore:
    """
    Holds the live MetronomeSettings and announces changes.

    Each key whose value actually changes produces one ConfigChanged
    event on the bus, emitted after the new settings are in place so
    listeners read the updated values.
    """

    def __init__(
        self,
        settings: MetronomeSettings | None = None,
        event_bus: EventBus | None = None,
        group: str = CONFIG_GROUP,
    ):
        self._settings = settings or MetronomeSettings()
        self.event_bus = event_bus or EventBus()
        self.group = group

    @property
    def settings(self) -> MetronomeSettings:
        """Current settings snapshot."""
        return self._settings

    def get(self, key: str) -> Any:
        """Get a value by config key (e.g. "tickSoundFilePath")."""
        return getattr(self._settings, FIELDS_BY_KEY[key])

    def set(self, key: str, value: Any) -> bool:
        """
        Set one value by config key.

        Args:
            key: Config key, e.g. "volume" or "tockSoundFilePath"
            value: New value

        Returns:
            True if the value changed

        Raises:
            KeyError: If the key is unknown
            SettingsError: If the value is invalid
        """
        return bool(self.update({key: value}))

    def update(self, changes: dict[str, Any]) -> list[str]:
        """
        Apply several changes at once, validating all of them first.

        Args:
            changes: Mapping of config key to new value

        Returns:
            Config keys whose value changed, in the order given
        """
        values = {}
        for key, value in changes.items():
            if key not in FIELDS_BY_KEY:
                raise KeyError(f"Unknown config key: {key}")
            name = FIELDS_BY_KEY[key]
            values[name] = validate_value(name, value)

        old = self._settings
        changed = [CONFIG_KEYS[name] for name, value in values.items() if getattr(old, name) != value]
        if not changed:
            return []

        self._settings = replace(old, **values)
        for key in changed:
            name = FIELDS_BY_KEY[key]
            logger.debug(f"Config {self.group}.{key}: {getattr(old, name)!r} -> {values[name]!r}")
            self.event_bus.emit(
                ConfigChanged(
                    group=self.group,
                    key=key,
                    old_value=getattr(old, name),
                    new_value=values[name],
                )
            )
        return changed

    def replace_all(self, settings: MetronomeSettings) -> list[str]:
        """Swap in a whole settings object, announcing each changed key."""
        return self.update({CONFIG_KEYS[f.name]: getattr(settings, f.name) for f in fields(settings)})

    def reload(self, settings_path: str | Path) -> list[str]:
        """
        Re-read settings.toml and apply any differences.

        Returns:
            Config keys that changed
        """
        changed = self.replace_all(load_settings(settings_path).metronome)
        if changed:
            logger.info(f"Reloaded {settings_path}: {', '.join(changed)} changed")
        return changed
