"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import numpy as np
import pytest
import soundfile as sf

# Add src directory to path so tests can import modules
src_path = Path(__file__).parent.parent
sys.path.insert(0, str(src_path))

from audio.manager import ClipManager  # noqa: E402
from core.events import EventBus  # noqa: E402
from metronome.host import Host  # noqa: E402
from metronome.settings import ConfigStore, MetronomeSettings  # noqa: E402


class FakeStream:
    """Stands in for a sounddevice OutputStream."""

    def __init__(self, sample_rate, channels, callback):
        self.sample_rate = sample_rate
        self.channels = channels
        self.callback = callback
        self.active = False
        self.stopped = True
        self.closed = False
        self.calls = []

    def start(self):
        self.calls.append("start")
        self.active = True
        self.stopped = False

    def stop(self):
        self.calls.append("stop")
        self.active = False
        self.stopped = True

    def close(self):
        self.calls.append("close")
        self.active = False
        self.closed = True

    def pull(self, frames):
        """Run the callback once; a True return ends playback like CallbackStop."""
        outdata = np.ones((frames, self.channels), dtype=np.float32)
        if self.callback(outdata, frames, None, None):
            self.active = False
        return outdata


class FakeStreamFactory:
    """Records every stream opened; optionally fails like a missing device."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.streams: list[FakeStream] = []

    def __call__(self, sample_rate, channels, callback):
        if self.error is not None:
            raise self.error
        stream = FakeStream(sample_rate, channels, callback)
        self.streams.append(stream)
        return stream


class FakeHost(Host):
    """Records built-in effect calls and every write to the effects volume."""

    def __init__(self, effects_volume: int = 30):
        self.effects_volume = effects_volume
        self.played = []  # (effect, volume, effects volume at call time)
        self.volume_writes = []
        self.fail_next_play = False

    def play_builtin_effect(self, effect, volume):
        self.played.append((effect, volume, self.effects_volume))
        if self.fail_next_play:
            self.fail_next_play = False
            raise RuntimeError("client not ready")

    def get_effects_volume(self):
        return self.effects_volume

    def set_effects_volume(self, volume):
        self.volume_writes.append(volume)
        self.effects_volume = volume


@pytest.fixture
def stream_factory():
    return FakeStreamFactory()


@pytest.fixture
def clip_manager(stream_factory):
    manager = ClipManager(stream_factory=stream_factory)
    yield manager
    manager.release_all()


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def make_config(event_bus):
    """Build a ConfigStore on the shared bus from keyword settings."""

    def _make(**values):
        return ConfigStore(MetronomeSettings(**values), event_bus=event_bus)

    return _make


@pytest.fixture
def wav_file(tmp_path):
    """Write a short mono WAV file and return a factory for more."""

    def _write(name: str = "tick.wav", frames: int = 2205, channels: int = 1) -> Path:
        path = tmp_path / name
        data = np.full((frames, channels), 0.25, dtype=np.float32)
        sf.write(path, data, 44100)
        return path

    return _write
