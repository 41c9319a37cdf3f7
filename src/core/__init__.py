"""
Core infrastructure for the metronome.

Provides foundational abstractions:
- Event bus for decoupled communication
- Application context for dependency injection
- Shared logging setup
"""

from .context import AppContext, create_app_context
from .events import ConfigChanged, Event, EventBus, GameTick

__all__ = [
    "Event",
    "EventBus",
    "GameTick",
    "ConfigChanged",
    "AppContext",
    "create_app_context",
]
