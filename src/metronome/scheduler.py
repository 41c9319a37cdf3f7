"""
Pattern scheduler for the metronome.

Decides on each host tick whether a cue fires and whether it is a tick or
a tock, then plays it through the clip manager or the host fallback.

Counting rules:
- tick_counter advances once per tick while the pattern is enabled
- a tick is a candidate firing when (tick_counter + tick_offset) % tick_count == 0
- tock_counter advances once per candidate firing while tocks are enabled,
  so every tock_number-th candidate firing is a tock
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from audio.manager import Loaded, Unloaded
from metronome.host import BuiltinEffect, play_fallback
from core.log import get_logger

if TYPE_CHECKING:
    from audio.manager import ClipManager
    from metronome.host import Host
    from metronome.settings import ConfigStore

logger = get_logger(__name__)


class CueKind(Enum):
    TICK = "tick"
    TOCK = "tock"


class CueRoute(Enum):
    CLIP = "clip"
    FALLBACK = "fallback"


EFFECTS = {
    CueKind.TICK: BuiltinEffect.TICK,
    CueKind.TOCK: BuiltinEffect.TOCK,
}


@dataclass(frozen=True)
class Cue:
    """A cue that was played on a tick."""

    kind: CueKind
    route: CueRoute
    fallback_volume: int  # tick_volume or tock_volume; a clip plays at the clip gain instead
    tick: int  # tick_counter value when it fired


class PatternScheduler:
    """
    Tick/tock pattern state machine.

    Owns the tick and tock counters for one active session. Reads settings
    from the config store on every tick, so changes apply immediately
    without resetting the counters.
    """

    def __init__(self, config: "ConfigStore", clip_manager: "ClipManager", host: "Host"):
        self._config = config
        self._clips = clip_manager
        self._host = host
        self._tick_counter = 0
        self._tock_counter = 0

    @property
    def tick_counter(self) -> int:
        return self._tick_counter

    @property
    def tock_counter(self) -> int:
        return self._tock_counter

    def reset(self) -> None:
        """Zero both counters."""
        self._tick_counter = 0
        self._tock_counter = 0

    def on_tick(self) -> Cue | None:
        """
        Advance the pattern by one host tick.

        Returns:
            The cue that was played, or None if this tick is silent
        """
        settings = self._config.settings
        if settings.tick_count == 0:
            return None

        self._tick_counter += 1
        if (self._tick_counter + settings.tick_offset) % settings.tick_count != 0:
            return None

        # Tock counter advances on every candidate firing, even when the tick
        # branch ends up playing
        if settings.tock_volume > 0 and settings.tock_number > 0:
            self._tock_counter += 1
            if self._tock_counter % settings.tock_number == 0:
                return self._play(CueKind.TOCK, settings.tock_volume)

        if settings.tick_volume > 0:
            return self._play(CueKind.TICK, settings.tick_volume)

        return None

    def _play(self, kind: CueKind, volume: int) -> Cue:
        slot = self._clips.slot(kind.value)
        if isinstance(slot, Loaded):
            self._clips.trigger(slot.clip)
            route = CueRoute.CLIP
        elif isinstance(slot, Unloaded):
            play_fallback(self._host, EFFECTS[kind], volume)
            route = CueRoute.FALLBACK
        else:
            raise TypeError(f"Unexpected clip slot: {slot!r}")

        logger.debug(f"Tick {self._tick_counter}: {kind.value} via {route.value}")
        return Cue(kind=kind, route=route, fallback_volume=volume, tick=self._tick_counter)
