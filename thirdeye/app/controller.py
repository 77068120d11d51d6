"""
Detection Controller
====================

Orquestador de la sesión de detección: máquina de estados single-owner.

    IDLE ──start()──▶ RUNNING ──stop()──▶ IDLE

Responsabilidad:
- Adquisición de cámara (permission provider), nunca propaga fallas
- Un único ticker cancelable por sesión
- Tick: source → pipeline → estado persistido → listeners
- Guard de intervalo mínimo entre ticks aceptados

Diseño:
- El estado persistido (persisted_objects) lo muta SOLO el controller
- Cada sesión tiene un id; un tick que termina después de stop() no
  escribe estado ni publica
- Listeners: callbacks (objects) -> None; sus errores se loguean y no
  rompen el tick
"""
import time
from enum import Enum
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config.schemas import DetectionSettings
from ..detection.models import DetectedObject
from ..detection.pipeline import DetectionPipeline
from ..detection.source import DetectionSource
from ..logging import (
    generate_trace_id,
    get_component_logger,
    log_error_with_context,
    log_tick_stats,
    trace_context,
)
from .permissions import CameraPermissionProvider
from .ticker import PeriodicTicker

logger = get_component_logger("controller")

CAMERA_DENIED_MESSAGE = "Camera access denied. Please enable camera permissions to use this app."

Listener = Callable[[Tuple[DetectedObject, ...]], None]


class DetectionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class DetectionController:
    """
    Controller de la sesión de detección.

    Args:
        source: Proveedor de candidatos crudos por tick
        permissions: Provider de acceso a cámara
        pipeline: DetectionPipeline configurado (default: umbrales estándar)
        settings: DetectionSettings (período, intervalo mínimo)
        audio: AudioDispatcher opcional (se suscribe y sigue el lifecycle)
        clock: Tiempo monotónico en segundos (inyectable para tests)
        ticker_factory: (period_s, callback) -> objeto con start()/stop()
    """

    def __init__(
        self,
        source: DetectionSource,
        permissions: CameraPermissionProvider,
        pipeline: Optional[DetectionPipeline] = None,
        settings: Optional[DetectionSettings] = None,
        audio=None,
        clock: Callable[[], float] = time.monotonic,
        ticker_factory: Callable = PeriodicTicker,
    ):
        self.source = source
        self.permissions = permissions
        self.pipeline = pipeline or DetectionPipeline()
        self.settings = settings or DetectionSettings()
        self.audio = audio
        self._clock = clock
        self._ticker_factory = ticker_factory

        # Camera
        self.has_camera_permission: Optional[bool] = None
        self.is_camera_ready = False
        self.is_loading = False
        self.error: Optional[str] = None

        # Session
        self.state = DetectionState.IDLE
        self.session_id = 0
        self.generation_count = 0
        self.last_tick_at: Optional[float] = None
        self._persisted: Tuple[DetectedObject, ...] = ()
        self._ticker = None
        self._trace_id: Optional[str] = None
        self._lock = RLock()

        # Stats
        self.ticks_accepted = 0
        self.ticks_rejected = 0

        self._listeners: List[Listener] = []
        if audio is not None:
            self.subscribe(audio.dispatch)

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def detected_objects(self) -> Tuple[DetectedObject, ...]:
        return self._persisted

    @property
    def is_running(self) -> bool:
        return self.state is DetectionState.RUNNING

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Registra un listener de sets publicados.

        Returns:
            Función para desuscribir
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Camera
    # ------------------------------------------------------------------

    def request_camera_permission(self) -> bool:
        """
        Adquiere la cámara. Nunca lanza: fallas quedan en flags + error.

        Returns:
            True si la cámara quedó lista
        """
        self.is_loading = True
        try:
            granted = bool(self.permissions.request())
        except Exception as e:
            log_error_with_context(
                logger,
                message="❌ Error adquiriendo cámara",
                exception=e,
                component="controller",
                event="camera_error",
            )
            granted = False
        finally:
            self.is_loading = False

        self.has_camera_permission = granted
        self.is_camera_ready = granted
        if granted:
            self.error = None
            logger.info(
                "📷 Camera ready",
                extra={"component": "controller", "event": "camera_ready"}
            )
        else:
            self.error = CAMERA_DENIED_MESSAGE
            logger.warning(
                f"⚠️ {CAMERA_DENIED_MESSAGE}",
                extra={"component": "controller", "event": "camera_denied"}
            )
        return granted

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """
        Inicia una sesión de detección.

        Sin permiso de cámara: solicita permiso y retorna sin iniciar.

        Returns:
            True si la sesión quedó en RUNNING
        """
        if not self.has_camera_permission:
            logger.info(
                "📷 Camera permission missing, requesting before start",
                extra={"component": "controller", "event": "start_deferred"}
            )
            self.request_camera_permission()
            return False

        if self.is_running:
            self._halt_ticker()

        with self._lock:
            self.session_id += 1
            self.generation_count = 0
            self.last_tick_at = None
            self._persisted = ()
            self._trace_id = generate_trace_id("session")
            self.source.reset()
            self.state = DetectionState.RUNNING

        if self.audio is not None:
            self.audio.start_session()

        period_s = self.settings.tick_period_ms / 1000.0
        self._ticker = self._ticker_factory(period_s, self._on_tick)
        self._ticker.start()

        logger.info(
            f"▶️ Detection started (session {self.session_id})",
            extra={
                "component": "controller",
                "event": "started",
                "session_id": self.session_id,
                "trace_id": self._trace_id,
                "tick_period_ms": self.settings.tick_period_ms,
            }
        )
        return True

    def stop(self) -> None:
        """Detiene la sesión: cancela ticker y audio, limpia estado, publica set vacío."""
        was_running = self.is_running
        self._halt_ticker()

        with self._lock:
            self.session_id += 1
            self.state = DetectionState.IDLE
            self._persisted = ()
            self.last_tick_at = None

        if self.audio is not None:
            self.audio.stop_session()

        self._publish(())

        if was_running:
            logger.info(
                "⏹️ Detection stopped",
                extra={
                    "component": "controller",
                    "event": "stopped",
                    "generation": self.generation_count,
                    "trace_id": self._trace_id,
                }
            )

    def _halt_ticker(self) -> None:
        ticker, self._ticker = self._ticker, None
        if ticker is not None:
            ticker.stop()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def _on_tick(self) -> None:
        with trace_context(self._trace_id):
            self.tick()

    def tick(self) -> bool:
        """
        Ejecuta un ciclo de detección.

        Returns:
            False si el tick fue descartado (no running o intervalo mínimo)
        """
        with self._lock:
            if not self.is_running:
                return False

            now = self._clock()
            if self.last_tick_at is not None:
                elapsed_ms = (now - self.last_tick_at) * 1000.0
                if elapsed_ms < self.settings.min_tick_interval_ms:
                    self.ticks_rejected += 1
                    logger.debug(
                        f"Tick discarded ({elapsed_ms:.0f} ms since last)",
                        extra={
                            "component": "controller",
                            "event": "tick_discarded",
                            "elapsed_ms": round(elapsed_ms, 1),
                        }
                    )
                    return False

            self.last_tick_at = now
            self.generation_count += 1
            generation = self.generation_count
            session = self.session_id
            previous = self._persisted

        raw = self.source.next_candidates(previous, generation)
        result = self.pipeline.run(raw, previous)

        with self._lock:
            # stop() durante el tick: descartar resultado
            if session != self.session_id:
                return False
            self._persisted = result.objects
            self.ticks_accepted += 1

        log_tick_stats(
            logger,
            generation=generation,
            raw_count=result.raw_count,
            ingested_count=result.ingested_count,
            sanitized_count=result.sanitized_count,
            stabilized_count=len(result.objects),
            matched_count=result.matched_count,
        )
        self._publish(result.objects)
        return True

    def _publish(self, objects: Tuple[DetectedObject, ...]) -> None:
        for listener in list(self._listeners):
            try:
                listener(objects)
            except Exception as e:
                log_error_with_context(
                    logger,
                    message="❌ Error en listener",
                    exception=e,
                    component="controller",
                    event="listener_failed",
                    listener=getattr(listener, "__qualname__", repr(listener)),
                )

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "session_id": self.session_id,
            "generation_count": self.generation_count,
            "ticks_accepted": self.ticks_accepted,
            "ticks_rejected": self.ticks_rejected,
            "persisted_count": len(self._persisted),
            "has_camera_permission": self.has_camera_permission,
            "is_camera_ready": self.is_camera_ready,
            "error": self.error,
        }
