"""
Audio Dispatcher
================

Convierte cada set publicado en cues de audio priorizados.

Flujo por set:
1. filter_by_confidence (0.75) → sort_by_priority
2. Objeto i: tono tras i * stagger_ms (400 ms near, 200 ms resto,
   volume = confidence) + "<label> nearby" si es near y no fue anunciado
   dentro de la ventana
3. Urgent alert inmediato si un objeto NUEVO está a <= 2 m

Fire-and-forget: los cues diferidos corren en timers cancelables atados a
la sesión. Un timer de una sesión cerrada es no-op, así que stop() no
puede "resucitar" audio de un set ya limpiado.
"""
import time
from functools import partial
from threading import RLock, Timer
from typing import Any, Callable, Dict, Optional, Sequence

from ..config.schemas import AudioSettings
from ..detection.geometry import Distance, is_object_nearby
from ..detection.models import DetectedObject
from ..detection.priority import sort_by_priority
from ..detection.quality import DEFAULT_CONFIDENCE_THRESHOLD, filter_by_confidence
from ..detection.stabilization import MatchingStrategy
from ..logging import get_component_logger, log_error_with_context
from .announcements import AnnouncementTracker
from .service import AudioService

logger = get_component_logger("audio.dispatcher")


def timer_scheduler(delay_s: float, callback: Callable[[], None]) -> Timer:
    """Scheduler default: threading.Timer daemon (cancelable)."""
    timer = Timer(delay_s, callback)
    timer.daemon = True
    timer.start()
    return timer


class AudioDispatcher:
    """
    Args:
        service: AudioService ya construido (lifecycle a cargo del caller)
        settings: AudioSettings (stagger, duraciones, ventana, speech)
        confidence_threshold: Umbral previo al ranking
        matcher: Identidad de objetos (la misma del stabilizer)
        scheduler: (delay_s, callback) -> handle con cancel()
        clock: Tiempo monotónico en segundos
    """

    def __init__(
        self,
        service: AudioService,
        settings: Optional[AudioSettings] = None,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        matcher: Optional[MatchingStrategy] = None,
        scheduler: Callable = timer_scheduler,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.service = service
        self.settings = settings or AudioSettings()
        self.confidence_threshold = confidence_threshold
        self.announcements = AnnouncementTracker(matcher, self.settings.announce_window_s)
        self.alerts = AnnouncementTracker(matcher, self.settings.announce_window_s)
        self._scheduler = scheduler
        self._clock = clock

        self.muted = self.settings.muted
        self._session = 0
        self._active = False
        self._pending: Dict[int, Any] = {}
        self._next_cue = 0
        self._lock = RLock()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._active

    def start_session(self) -> None:
        """Abre una sesión nueva (anuncios previos olvidados)."""
        with self._lock:
            self._session += 1
            self._active = True
        self.announcements.reset()
        self.alerts.reset()

    def stop_session(self) -> None:
        """Cierra la sesión y cancela todos los cues pendientes."""
        with self._lock:
            self._session += 1
            self._active = False
        self.cancel_pending()
        self.announcements.reset()
        self.alerts.reset()

    def cancel_pending(self) -> int:
        """Cancela timers pendientes. Retorna cuántos se cancelaron."""
        with self._lock:
            pending, self._pending = self._pending, {}
        for handle in pending.values():
            handle.cancel()
        return len(pending)

    def mute(self) -> None:
        self.muted = True
        self.cancel_pending()

    def unmute(self) -> None:
        self.muted = False

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, objects: Sequence[DetectedObject]) -> int:
        """
        Programa los cues de audio para un set publicado.

        Returns:
            Número de objetos que recibirán tono (0 si no-op)
        """
        if not self._active or self.muted or not objects:
            return 0

        if not self.service.is_initialized:
            logger.warning(
                "⚠️ Audio service not initialized, dispatch skipped",
                extra={"component": "audio", "event": "dispatch_skipped", "reason": "not_initialized"}
            )
            return 0

        ranked = sort_by_priority(filter_by_confidence(objects, self.confidence_threshold))
        session = self._session
        now = self._clock()

        if self._has_new_nearby(ranked, now):
            self._run_guarded(self.service.play_urgent_alert, session, "urgent_alert")

        stagger_s = self.settings.stagger_ms / 1000.0
        for index, obj in enumerate(ranked):
            announce = (
                self.settings.announce_nearby
                and obj.distance is Distance.NEAR
                and self.announcements.should_announce(obj, now)
            )
            cue = partial(self._play_cue, obj, announce, session)
            delay_s = index * stagger_s
            if delay_s <= 0:
                cue()
            else:
                self._schedule(delay_s, cue)

        logger.debug(
            f"Dispatched {len(ranked)} cues",
            extra={
                "component": "audio",
                "event": "dispatched",
                "received": len(objects),
                "ranked": len(ranked),
                "session": session,
            }
        )
        return len(ranked)

    def _schedule(self, delay_s: float, cue: Callable[[], None]) -> None:
        # _fire espera este lock: el handle queda registrado antes de removerse
        with self._lock:
            self._next_cue += 1
            key = self._next_cue
            self._pending[key] = self._scheduler(delay_s, partial(self._fire, key, cue))

    def _fire(self, key: int, cue: Callable[[], None]) -> None:
        with self._lock:
            self._pending.pop(key, None)
        cue()

    def _has_new_nearby(self, ranked: Sequence[DetectedObject], now: float) -> bool:
        new_nearby = False
        for obj in ranked:
            box = obj.bounding_box
            if is_object_nearby(box.width, box.height) and self.alerts.should_announce(obj, now):
                new_nearby = True
        return new_nearby

    def _play_cue(self, obj: DetectedObject, announce: bool, session: int) -> None:
        duration = (
            self.settings.near_duration_ms
            if obj.distance is Distance.NEAR
            else self.settings.default_duration_ms
        )
        self._run_guarded(
            partial(self.service.play_tone, obj.label, obj.distance, duration, obj.confidence),
            session,
            "tone",
        )
        if announce:
            self._run_guarded(
                partial(
                    self.service.speak,
                    f"{obj.label} nearby",
                    self.settings.speech_rate,
                    self.settings.speech_pitch,
                ),
                session,
                "speech",
            )

    def _run_guarded(self, action: Callable[[], None], session: int, cue: str) -> None:
        # Cue de una sesión cerrada o silenciada: descartar
        if session != self._session or not self._active or self.muted:
            return
        try:
            action()
        except Exception as e:
            log_error_with_context(
                logger,
                message="❌ Error reproduciendo cue de audio",
                exception=e,
                component="audio",
                event="cue_failed",
                cue=cue,
            )
