# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Tool registry and family handlers.

  reminder  (reminders.py)   create / list / delete, scheduled delivery
  song      (music.py)       per guild/channel song queues
  voice     (voice.py)       voice channel lookup
  generic   (generic.py)     clock, news, video search
"""

from assistant.config import MUSIC_FAMILY, REMINDER_FAMILY, VOICE_FAMILY
from assistant.services.tools.generic import GenericTools
from assistant.services.tools.music import MusicQueueRegistry, MusicTools
from assistant.services.tools.registry import ToolFamily, ToolRegistry, parse_arguments
from assistant.services.tools.reminders import ReminderScheduler, ReminderTools
from assistant.services.tools.voice import VoiceTools


def build_registry(
    reminders: ReminderTools,
    music: MusicTools,
    voice: VoiceTools,
    generic: GenericTools,
) -> ToolRegistry:
    """Registry with the families checked in reminder, song, voice order."""
    registry = ToolRegistry()
    registry.register_family(REMINDER_FAMILY, reminders)
    registry.register_family(MUSIC_FAMILY, music)
    registry.register_family(VOICE_FAMILY, voice)
    registry.set_generic(generic)
    return registry


__all__ = [
    "GenericTools",
    "MusicQueueRegistry",
    "MusicTools",
    "ReminderScheduler",
    "ReminderTools",
    "ToolFamily",
    "ToolRegistry",
    "VoiceTools",
    "build_registry",
    "parse_arguments",
]
