"""
Clip manager for the metronome.

Owns the short audio clips played on cues:
- Decoding sound files once and keeping them in memory per slot
- Gain control mapped from the 0-100 volume setting
- Retrigger-by-restart playback (a clip never overlaps itself)
- Hot reload of a slot when its file path changes
- Releasing output streams on reload and shutdown

Load failures never propagate: the slot is left unloaded and cues for it
fall back to the host's built-in sound effect.
"""

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import numpy as np
import soundfile as sf

from core.log import get_logger

logger = get_logger(__name__)

SLOT_NAMES = ("tick", "tock")

# Gain range mapped from volume 0..100
MIN_GAIN_DB = -35.0
GAIN_SPAN_DB = 40.0


class AudioDeviceError(OSError):
    """Raised when no output stream can be opened."""


class ClipClosedError(RuntimeError):
    """Raised when a released clip is used again."""


def volume_to_gain_db(volume: int) -> float:
    """Map a 0-100 volume to a gain in dB (0 -> -35 dB, 100 -> +5 dB)."""
    return volume * GAIN_SPAN_DB / 100 + MIN_GAIN_DB


def gain_db_to_amplitude(gain_db: float) -> float:
    """Convert a gain in dB to a linear amplitude factor."""
    return 10 ** (gain_db / 20)


def open_output_stream(sample_rate: int, channels: int, callback: Callable):
    """
    Open a sounddevice output stream for a clip.

    sounddevice is imported here so the rest of the engine works on machines
    without PortAudio; those clips simply fail to load.

    `callback` returns True once the clip has played out; the stream then
    stops itself after the current buffer instead of streaming silence.

    Raises:
        AudioDeviceError: If PortAudio or an output device is unavailable
    """
    try:
        import sounddevice as sd
    except OSError as e:
        raise AudioDeviceError(f"PortAudio library unavailable: {e}") from e

    def _stream_callback(outdata, frames, time, status):
        if callback(outdata, frames, time, status):
            raise sd.CallbackStop

    try:
        return sd.OutputStream(
            samplerate=sample_rate,
            channels=channels,
            dtype=np.float32,
            callback=_stream_callback,
        )
    except (sd.PortAudioError, ValueError) as e:
        raise AudioDeviceError(f"Could not open output stream: {e}") from e


class Clip:
    """
    A decoded sound file bound to its own output stream.

    The stream callback reads from the current frame position and scales by
    the gain, so changing gain or rewinding never touches the decoded data.
    """

    def __init__(
        self,
        path: Path,
        data: np.ndarray,
        sample_rate: int,
        stream_factory: Callable = open_output_stream,
    ):
        """
        Args:
            path: File the clip was decoded from
            data: float32 samples shaped (frames, channels)
            sample_rate: Sample rate of the data
            stream_factory: Callable(sample_rate, channels, callback) -> stream
        """
        self.path = path
        self.sample_rate = sample_rate
        self._data = data
        self._position = 0
        self._gain_db = 0.0
        self._amplitude = 1.0
        self._closed = False
        self._lock = threading.Lock()

        self._stream = stream_factory(sample_rate, data.shape[1], self._callback)

    def __repr__(self) -> str:
        return f"Clip({str(self.path)!r})"

    @property
    def frame_length(self) -> int:
        return self._data.shape[0]

    @property
    def frame_position(self) -> int:
        return self._position

    @property
    def gain_db(self) -> float:
        return self._gain_db

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_running(self) -> bool:
        """True while the stream is active and frames remain to be played."""
        if self._closed:
            return False
        return self._stream.active and self._position < self.frame_length

    def _check_open(self) -> None:
        if self._closed:
            raise ClipClosedError(f"Clip {self.path} has been released")

    def _callback(self, outdata: np.ndarray, frames: int, time, status) -> bool:
        """
        Fill the output buffer from the current position, then silence.

        Called by sounddevice from a separate thread.

        Returns:
            True when the last frame has been written
        """
        with self._lock:
            chunk = self._data[self._position : self._position + frames]
            copied = len(chunk)
            outdata[:copied] = chunk * self._amplitude
            outdata[copied:] = 0.0
            self._position += copied
            return self._position >= self.frame_length

    def set_gain_db(self, gain_db: float) -> None:
        self._check_open()
        with self._lock:
            self._gain_db = gain_db
            self._amplitude = gain_db_to_amplitude(gain_db)

    def set_frame_position(self, frame: int) -> None:
        self._check_open()
        with self._lock:
            self._position = max(0, min(frame, self.frame_length))

    def start(self) -> None:
        """(Re)start the stream, playing from the current position."""
        self._check_open()
        if not self._stream.stopped:
            # Stream that stopped itself after the last frame, or is still draining it
            self._stream.stop()
        self._stream.start()

    def stop(self) -> None:
        self._check_open()
        if not self._stream.stopped:
            self._stream.stop()

    def close(self) -> None:
        """Stop and close the stream. Closing twice is a no-op."""
        if self._closed:
            return
        if not self._stream.stopped:
            self._stream.stop()
        self._stream.close()
        self._closed = True


@dataclass(frozen=True)
class Loaded:
    """Slot holding a playable clip."""

    clip: Clip


class Unloaded:
    """Slot with no clip; cues fall back to the host's built-in effect."""

    def __repr__(self) -> str:
        return "UNLOADED"


UNLOADED = Unloaded()

ClipSlot = Loaded | Unloaded


class ClipManager:
    """
    Loads, caches and plays the "tick" and "tock" clips.

    Each slot is either Loaded(clip) or UNLOADED. Only this class starts,
    stops or releases clips.
    """

    def __init__(self, stream_factory: Callable | None = None):
        """
        Args:
            stream_factory: Callable(sample_rate, channels, callback) -> stream.
                Defaults to a sounddevice OutputStream.
        """
        self._stream_factory = stream_factory or open_output_stream
        self._slots: dict[str, ClipSlot] = {name: UNLOADED for name in SLOT_NAMES}

    def slot(self, name: str) -> ClipSlot:
        """Get the current state of a slot ("tick" or "tock")."""
        return self._slots[name]

    def load(self, path: str | Path, volume: int) -> Clip | None:
        """
        Decode a sound file into a clip with gain applied.

        Args:
            path: Sound file path. An empty path means no clip is configured.
            volume: 0-100 volume mapped to gain

        Returns:
            The clip, or None if the file is missing, cannot be decoded,
            or no output stream could be opened
        """
        if not path:
            return None

        path = Path(path)
        if not path.is_file():
            logger.warning(f"Sound file not found: {path}")
            return None

        try:
            data, sample_rate = sf.read(path, dtype="float32", always_2d=True)
            clip = Clip(path, data, sample_rate, self._stream_factory)
        except (OSError, RuntimeError) as e:
            # soundfile raises LibsndfileError (a RuntimeError) for unsupported formats
            logger.warning(f"Error opening audio clip from {path}: {e}")
            return None

        self.set_gain(clip, volume)
        logger.info(f"Loaded clip {path} ({clip.frame_length} frames at {sample_rate} Hz)")
        return clip

    def set_gain(self, clip: Clip, volume: int) -> None:
        """Apply the gain for `volume` to an already loaded clip."""
        clip.set_gain_db(volume_to_gain_db(volume))

    def trigger(self, clip: Clip) -> None:
        """Play a clip from the start, restarting it if it is still sounding."""
        if clip.is_running:
            clip.stop()
        clip.set_frame_position(0)
        clip.start()

    def release(self, clip: Clip) -> None:
        """Stop a clip and release its output stream."""
        clip.close()

    def reload(self, old: Clip | None, path: str | Path, volume: int) -> Clip | None:
        """
        Replace a clip with one loaded from `path`.

        The old clip is released first. Returns None if the new path does
        not load.
        """
        if old is not None:
            self.release(old)
        return self.load(path, volume)

    def reload_slot(self, name: str, path: str | Path, volume: int) -> ClipSlot:
        """
        Load (or replace) the clip in a slot.

        Returns:
            The new slot state
        """
        current = self._slots[name]
        old = current.clip if isinstance(current, Loaded) else None
        clip = self.reload(old, path, volume)
        self._slots[name] = Loaded(clip) if clip is not None else UNLOADED
        return self._slots[name]

    def set_volume(self, volume: int) -> None:
        """Recompute gain for every loaded slot; unloaded slots are skipped."""
        for slot in self._slots.values():
            if isinstance(slot, Loaded):
                self.set_gain(slot.clip, volume)

    def release_all(self) -> None:
        """Release every loaded clip and mark all slots unloaded."""
        for name, slot in self._slots.items():
            if isinstance(slot, Loaded):
                self.release(slot.clip)
            self._slots[name] = UNLOADED
