"""
Audio Output - Service contract, dispatch, announcements
"""
from .service import AudioService, AudioServiceNotInitializedError, LoggingAudioService
from .announcements import AnnouncementTracker
from .dispatcher import AudioDispatcher, timer_scheduler
from .tones import TONE_FREQUENCIES, tone_frequency

__all__ = [
    "AudioService",
    "AudioServiceNotInitializedError",
    "LoggingAudioService",
    "AnnouncementTracker",
    "AudioDispatcher",
    "timer_scheduler",
    "TONE_FREQUENCIES",
    "tone_frequency",
]
