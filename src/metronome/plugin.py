"""
Metronome plugin: session lifecycle and config-change wiring.

Connects host events on the event bus to the pattern scheduler and keeps
the clip slots in sync with the configured paths and volume.
"""

from enum import Enum, auto
from typing import TYPE_CHECKING

from core.events import ConfigChanged, GameTick
from core.log import get_logger
from metronome.scheduler import Cue, PatternScheduler

if TYPE_CHECKING:
    from audio.manager import ClipManager
    from core.context import AppContext
    from core.events import EventBus
    from metronome.host import Host
    from metronome.settings import ConfigStore

logger = get_logger(__name__)

VOLUME_KEY = "volume"
# Config key -> clip slot reloaded when it changes
PATH_KEYS = {
    "tickSoundFilePath": "tick",
    "tockSoundFilePath": "tock",
}


class PluginState(Enum):
    INACTIVE = auto()
    ACTIVE = auto()


class MetronomePlugin:
    """
    Plays sounds in a customisable pattern on every host tick.

    Disabled until start_up() is called. While active it listens for
    GameTick and ConfigChanged events on the bus.
    """

    name = "Metronome"

    def __init__(
        self,
        config: "ConfigStore",
        clip_manager: "ClipManager",
        host: "Host",
        event_bus: "EventBus | None" = None,
    ):
        """
        Args:
            config: Live configuration store
            clip_manager: Owner of the tick/tock clip slots
            host: Host capabilities for fallback effects
            event_bus: Bus to subscribe on (defaults to the store's bus)
        """
        self._config = config
        self._clips = clip_manager
        self._event_bus = event_bus or config.event_bus
        self._state = PluginState.INACTIVE
        self.scheduler = PatternScheduler(config, clip_manager, host)

    @classmethod
    def from_context(cls, ctx: "AppContext") -> "MetronomePlugin":
        return cls(ctx.config, ctx.clip_manager, ctx.host, event_bus=ctx.event_bus)

    @property
    def is_active(self) -> bool:
        return self._state == PluginState.ACTIVE

    def start_up(self) -> None:
        """Load both clips from the current settings and start listening."""
        if self.is_active:
            return

        settings = self._config.settings
        self._clips.reload_slot("tick", settings.tick_path, settings.volume)
        self._clips.reload_slot("tock", settings.tock_path, settings.volume)

        self._event_bus.subscribe(GameTick, self.on_game_tick)
        self._event_bus.subscribe(ConfigChanged, self.on_config_changed)
        self._state = PluginState.ACTIVE
        logger.info(
            f"{self.name} started (tick: {self._clips.slot('tick')!r}, tock: {self._clips.slot('tock')!r})"
        )

    def shut_down(self) -> None:
        """Stop listening, reset the pattern and release both clips."""
        if not self.is_active:
            return

        self._event_bus.unsubscribe(GameTick, self.on_game_tick)
        self._event_bus.unsubscribe(ConfigChanged, self.on_config_changed)
        self.scheduler.reset()
        self._clips.release_all()
        self._state = PluginState.INACTIVE
        logger.info(f"{self.name} stopped")

    def on_config_changed(self, event: ConfigChanged) -> None:
        if not self.is_active or event.group != self._config.group:
            return

        settings = self._config.settings
        if event.key == VOLUME_KEY:
            self._clips.set_volume(settings.volume)
        elif event.key in PATH_KEYS:
            slot_name = PATH_KEYS[event.key]
            path = settings.tick_path if slot_name == "tick" else settings.tock_path
            slot = self._clips.reload_slot(slot_name, path, settings.volume)
            logger.info(f"Reloaded {slot_name} clip: {slot!r}")

    def on_game_tick(self, event: GameTick | None = None) -> Cue | None:
        if not self.is_active:
            return None
        return self.scheduler.on_tick()
