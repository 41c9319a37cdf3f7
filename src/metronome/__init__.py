"""
Metronome - plays tick/tock cues in a configurable pattern on host ticks.

Modules:
    settings: Configuration dataclasses, settings.toml loading, live ConfigStore
    scheduler: Tick/tock pattern logic and cue dispatch
    plugin: Activation lifecycle and config-change wiring
    host: Host capabilities (built-in effects, shared effects volume)
    cli: Driver loop emitting ticks at a fixed rate
"""

__version__ = "0.1.0"

# Note: Modules are imported on-demand to avoid circular imports with core.
# Use: from metronome import settings, scheduler, plugin, etc.
