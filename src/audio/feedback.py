"""
Built-in cue sounds for the local host.

Short "plop" tones standing in for a game client's built-in sound effects:
- Tick: bright plop sliding down from A5
- Tock: duller plop sliding down from D5
"""

import numpy as np

# Note frequencies (Hz)
A5 = 880.00
D5 = 587.33

# Tone parameters
SAMPLE_RATE = 44100
PLOP_DURATION = 0.06  # seconds
PLOP_DROP = 0.5  # pitch falls to this fraction of the start frequency
PLOP_VOLUME = 0.5


def _generate_plop(
    frequency: float,
    duration: float = PLOP_DURATION,
    sample_rate: int = SAMPLE_RATE,
    volume: float = PLOP_VOLUME,
) -> np.ndarray:
    """Generate a falling sine chirp with a fast attack and exponential decay."""
    n_samples = int(sample_rate * duration)
    t = np.linspace(0, duration, n_samples, endpoint=False)

    # Exponential pitch glide; integrate frequency to get phase
    freqs = frequency * PLOP_DROP ** (t / duration)
    phase = 2 * np.pi * np.cumsum(freqs) / sample_rate
    tone = np.sin(phase)

    # 3ms raised cosine attack avoids a click at onset
    envelope = np.exp(-5.0 * t / duration)
    attack_samples = int(0.003 * sample_rate)
    envelope[:attack_samples] *= 0.5 * (1 - np.cos(np.pi * np.linspace(0, 1, attack_samples)))

    return (tone * envelope * volume).astype(np.float32)


def generate_tick_effect() -> np.ndarray:
    """Bright plop used for ticks."""
    return _generate_plop(A5)


def generate_tock_effect() -> np.ndarray:
    """Lower plop used for tocks."""
    return _generate_plop(D5)
