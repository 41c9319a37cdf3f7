"""
Audio for the metronome.

Provides the clip manager for user-supplied tick/tock sounds and the
built-in cue tones played by the local host.
"""

from .feedback import SAMPLE_RATE, generate_tick_effect, generate_tock_effect
from .manager import (
    UNLOADED,
    AudioDeviceError,
    Clip,
    ClipClosedError,
    ClipManager,
    ClipSlot,
    Loaded,
    Unloaded,
    volume_to_gain_db,
)

__all__ = [
    "AudioDeviceError",
    "Clip",
    "ClipClosedError",
    "ClipManager",
    "ClipSlot",
    "Loaded",
    "Unloaded",
    "UNLOADED",
    "volume_to_gain_db",
    "SAMPLE_RATE",
    "generate_tick_effect",
    "generate_tock_effect",
]
