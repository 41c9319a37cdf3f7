"""
Host capabilities used by the metronome.

The host (normally a game client) owns the built-in sound effects and a
single shared sound effects volume. The metronome only borrows that volume
for the duration of a fallback effect.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum
from typing import Callable

import numpy as np

from audio.feedback import SAMPLE_RATE, generate_tick_effect, generate_tock_effect
from core.log import get_logger

logger = get_logger(__name__)


class BuiltinEffect(Enum):
    """Built-in effects used when no clip is loaded for a cue."""

    TICK = "ge_increment_plop"
    TOCK = "ge_decrement_plop"


class Host(ABC):
    """Capabilities the host environment provides."""

    @abstractmethod
    def play_builtin_effect(self, effect: BuiltinEffect, volume: int) -> None:
        """Play a built-in effect at a 0-100 volume."""

    @abstractmethod
    def get_effects_volume(self) -> int:
        """Read the shared sound effects volume (0-100)."""

    @abstractmethod
    def set_effects_volume(self, volume: int) -> None:
        """Write the shared sound effects volume (0-100)."""


@contextmanager
def overridden_effects_volume(host: Host, volume: int):
    """
    Temporarily set the host's shared effects volume.

    The previous value is restored on every exit path, including an error
    raised inside the block.

    Yields:
        The volume that will be restored
    """
    previous = host.get_effects_volume()
    host.set_effects_volume(volume)
    try:
        yield previous
    finally:
        host.set_effects_volume(previous)


def play_fallback(host: Host, effect: BuiltinEffect, volume: int) -> None:
    """
    Play a built-in effect at `volume`.

    Hosts ignore the volume argument while their own effects volume is
    muted, so the shared volume is set to the cue volume for the call.
    """
    with overridden_effects_volume(host, volume):
        host.play_builtin_effect(effect, volume)


def _play_audio(audio: np.ndarray, sample_rate: int) -> None:
    """Play audio without blocking."""
    try:
        import sounddevice as sd

        sd.play(audio, sample_rate)
    except Exception as e:
        logger.warning(f"Built-in effect playback failed: {e}")


class LocalHost(Host):
    """
    Stand-in host for running the metronome outside a game client.

    Keeps the shared effects volume in memory and renders built-in effects
    as short tones. An effects volume of 0 means muted.
    """

    def __init__(
        self,
        effects_volume: int = 100,
        player: Callable[[np.ndarray, int], None] | None = None,
    ):
        """
        Args:
            effects_volume: Initial shared effects volume
            player: Callable(audio, sample_rate); defaults to sounddevice playback
        """
        self._effects_volume = effects_volume
        self._player = player or _play_audio
        self._effects = {
            BuiltinEffect.TICK: generate_tick_effect(),
            BuiltinEffect.TOCK: generate_tock_effect(),
        }

    def play_builtin_effect(self, effect: BuiltinEffect, volume: int) -> None:
        if self._effects_volume == 0:
            logger.debug(f"Effects muted, skipping {effect.name}")
            return
        self._player(self._effects[effect] * (volume / 100), SAMPLE_RATE)

    def get_effects_volume(self) -> int:
        return self._effects_volume

    def set_effects_volume(self, volume: int) -> None:
        self._effects_volume = volume
