"""
Audio Service
=============

Output boundary hacia los motores de tono y speech.

Diseño:
- Objeto de servicio explícito (uno por sesión), pasado por referencia
  a los consumidores; sin singleton global ni init lazy
- Lifecycle explícito: initialize() / dispose()
- Llamadas antes de initialize() lanzan AudioServiceNotInitializedError

La síntesis real (waveforms, TTS) queda fuera: LoggingAudioService resuelve
la frecuencia del tono y registra cada llamada.
"""
from abc import ABC, abstractmethod
from threading import Lock

from ..detection.geometry import Distance
from ..logging import get_component_logger
from .tones import tone_frequency

logger = get_component_logger("audio")


class AudioServiceNotInitializedError(RuntimeError):
    """Se usó el servicio de audio antes de initialize() o después de dispose()."""
    pass


class AudioService(ABC):
    """
    Contrato del audio sink.

    Contract:
    - initialize / dispose: lifecycle (idempotentes)
    - play_tone(label, distance, duration_ms, volume)
    - speak(text, rate, pitch)
    - play_urgent_alert(): cue distinto para proximidad (<= 2 m)
    """

    def __init__(self):
        self._initialized = False
        self._lock = Lock()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> bool:
        """
        Inicializa los motores de audio.

        Returns:
            True si el servicio quedó listo, False si el backend falló
        """
        with self._lock:
            if self._initialized:
                return True
            self._initialized = self._open()
            return self._initialized

    def dispose(self) -> None:
        """Libera los motores. Llamadas posteriores fallan hasta re-initialize()."""
        with self._lock:
            if not self._initialized:
                return
            self._close()
            self._initialized = False

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise AudioServiceNotInitializedError(
                f"{self.__class__.__name__} used before initialize()"
            )

    def play_tone(
        self,
        label: str,
        distance: Distance,
        duration_ms: int = 200,
        volume: float = 0.5,
    ) -> None:
        self._ensure_initialized()
        self._play_tone(label, Distance(distance), duration_ms, volume)

    def speak(self, text: str, rate: float = 1.0, pitch: float = 1.0) -> None:
        self._ensure_initialized()
        self._speak(text, rate, pitch)

    def play_urgent_alert(self) -> None:
        self._ensure_initialized()
        self._play_urgent_alert()

    def _open(self) -> bool:
        return True

    def _close(self) -> None:
        pass

    @abstractmethod
    def _play_tone(self, label: str, distance: Distance, duration_ms: int, volume: float) -> None:
        pass

    @abstractmethod
    def _speak(self, text: str, rate: float, pitch: float) -> None:
        pass

    @abstractmethod
    def _play_urgent_alert(self) -> None:
        pass


class LoggingAudioService(AudioService):
    """
    Backend sin hardware: registra cada cue como log estructurado.

    Útil en headless/CI y como referencia del contrato para backends reales.
    """

    def _open(self) -> bool:
        logger.info(
            "🔊 Audio service initialized",
            extra={"component": "audio", "event": "initialized", "backend": "logging"}
        )
        return True

    def _close(self) -> None:
        logger.info(
            "🔇 Audio service disposed",
            extra={"component": "audio", "event": "disposed"}
        )

    def _play_tone(self, label: str, distance: Distance, duration_ms: int, volume: float) -> None:
        logger.info(
            f"🎵 Tone {label} ({distance.value})",
            extra={
                "component": "audio",
                "event": "tone",
                "label": label,
                "distance": distance.value,
                "frequency_hz": tone_frequency(label, distance),
                "duration_ms": duration_ms,
                "volume": round(volume, 3),
            }
        )

    def _speak(self, text: str, rate: float, pitch: float) -> None:
        logger.info(
            f"🗣️ {text}",
            extra={"component": "audio", "event": "speech", "rate": rate, "pitch": pitch}
        )

    def _play_urgent_alert(self) -> None:
        logger.warning(
            "🚨 Proximity alert",
            extra={"component": "audio", "event": "urgent_alert"}
        )
