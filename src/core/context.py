"""
Application context for dependency injection.

The AppContext holds all shared dependencies and is passed
to components that need them. This replaces global singletons
and makes dependencies explicit.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from .events import EventBus

if TYPE_CHECKING:
    from audio.manager import ClipManager
    from metronome.host import Host
    from metronome.settings import ConfigStore


@dataclass
class AppContext:
    """
    Container for all application dependencies.

    Attributes:
        event_bus: Central event bus for tick and config events
        config: Live configuration store
        clip_manager: Owns the tick/tock clip slots
        host: Host capabilities (built-in effects, shared effects volume)
    """

    event_bus: EventBus = field(default_factory=EventBus)
    config: "ConfigStore | None" = None
    clip_manager: "ClipManager | None" = None
    host: "Host | None" = None


def create_app_context(
    settings_path: str | Path = "settings.toml",
    config: "ConfigStore | None" = None,
    clip_manager: "ClipManager | None" = None,
    host: "Host | None" = None,
) -> AppContext:
    """
    Factory function to create a fully initialized AppContext.

    Args:
        settings_path: settings.toml to load when no store is given
        config: Optional ConfigStore (loaded from settings_path if not provided)
        clip_manager: Optional ClipManager instance (created if not provided)
        host: Optional Host (a LocalHost is created if not provided)

    Returns:
        Fully initialized AppContext
    """
    from audio.manager import ClipManager
    from metronome.host import LocalHost
    from metronome.settings import ConfigStore, load_settings

    if config is None:
        settings = load_settings(settings_path)
        config = ConfigStore(settings.metronome, event_bus=EventBus())
        host = host or LocalHost(effects_volume=settings.host.effects_volume)

    # Handlers must subscribe on the bus the store emits ConfigChanged on
    event_bus = config.event_bus

    return AppContext(
        event_bus=event_bus,
        config=config,
        clip_manager=clip_manager or ClipManager(),
        host=host or LocalHost(),
    )
